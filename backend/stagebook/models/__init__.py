from stagebook.models.program import ProgramRow
from stagebook.models.slot import SlotRow
from stagebook.models.application import ApplicationRow
from stagebook.models.booking import BookingRow

__all__ = ["ProgramRow", "SlotRow", "ApplicationRow", "BookingRow"]
