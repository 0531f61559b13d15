"""
Program model: a client's booking campaign.

Key design decisions:
- Programs are never deleted; `status` moves to ARCHIVED instead
- `conditions` holds the baseline conditions as JSON, parsed leniently by
  ProgramConditions.from_json on the way out
"""

from sqlalchemy import Column, Integer, String, CheckConstraint

from stagebook.db.base import Base, JSONType, TimestampMixin


class ProgramRow(Base, TimestampMixin):
    __tablename__ = "programs"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    program_type = Column(String(32), nullable=False)
    status = Column(String(16), nullable=False, default="DRAFT")
    conditions = Column(JSONType, nullable=False, default=dict)

    __table_args__ = (
        CheckConstraint(
            "program_type IN ('MULTI_DATES', 'WEEKLY_RESIDENCY')", name="check_program_type"
        ),
        CheckConstraint(
            "status IN ('DRAFT', 'ACTIVE', 'ENDED', 'ARCHIVED')", name="check_program_status"
        ),
    )

    def __repr__(self) -> str:
        return f"<Program(id={self.id}, type={self.program_type}, status={self.status})>"
