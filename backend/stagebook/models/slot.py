"""
Slot model: one bookable date or Sunday-to-Sunday week of a program.

Key design decisions:
- DATE slots store end_date == start_date; WEEK slots store the exclusive
  end (the following Sunday)
- Composite index on (program_id, start_date) serves the overlap query run
  before every slot insertion
- `tier` is only set on generated weeks (STANDARD / HIGH_DEMAND)
"""

from sqlalchemy import Column, Date, Integer, String, ForeignKey, Index, CheckConstraint

from stagebook.db.base import Base, JSONType, TimestampMixin


class SlotRow(Base, TimestampMixin):
    __tablename__ = "slots"

    id = Column(Integer, primary_key=True, index=True)
    program_id = Column(Integer, ForeignKey("programs.id"), nullable=False, index=True)
    slot_type = Column(String(8), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(String(16), nullable=False, default="OPEN")
    tier = Column(String(16), nullable=True)
    conditions_override = Column(JSONType, nullable=True)

    __table_args__ = (
        CheckConstraint("slot_type IN ('DATE', 'WEEK')", name="check_slot_type"),
        CheckConstraint("status IN ('OPEN', 'CLOSED', 'CANCELLED')", name="check_slot_status"),
        CheckConstraint("end_date >= start_date", name="check_slot_dates_ordered"),
        Index("ix_slots_program_start", "program_id", "start_date"),
    )

    def __repr__(self) -> str:
        return f"<Slot(id={self.id}, program={self.program_id}, {self.start_date}->{self.end_date}, status={self.status})>"
