from stagebook.schemas.program import ConditionsPayload, ProgramCreate, ProgramResponse, ProgramStatusUpdate
from stagebook.schemas.slot import (
    DateSlotCreate,
    EffectiveConditionsResponse,
    GenerateWeeksRequest,
    OverridePayload,
    SlotResponse,
)
from stagebook.schemas.booking import (
    ApplicationCreate,
    ApplicationResponse,
    BookingResponse,
    ConfirmRequest,
    RoadmapResponse,
    WithdrawRequest,
)

__all__ = [
    "ProgramCreate", "ProgramResponse", "ProgramStatusUpdate", "ConditionsPayload",
    "GenerateWeeksRequest", "DateSlotCreate", "OverridePayload", "SlotResponse", "EffectiveConditionsResponse",
    "ApplicationCreate", "ApplicationResponse", "WithdrawRequest", "ConfirmRequest",
    "BookingResponse", "RoadmapResponse",
]
