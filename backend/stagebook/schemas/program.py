"""
Pydantic schemas for program request/response validation.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from stagebook.domain import Program, ProgramType


class ProgramCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    program_type: ProgramType
    status: str = "DRAFT"
    conditions: dict[str, Any] = Field(default_factory=dict)


class ProgramStatusUpdate(BaseModel):
    status: str = Field(..., min_length=1, max_length=32)


class ConditionsPayload(BaseModel):
    # Free-form: unknown or malformed keys are read as unset, never rejected
    conditions: dict[str, Any] = Field(default_factory=dict)


class ProgramResponse(BaseModel):
    id: int
    title: str
    program_type: str
    status: str
    conditions: dict[str, Any]
    created_at: Optional[datetime]

    @classmethod
    def from_domain(cls, program: Program) -> "ProgramResponse":
        return cls(
            id=program.id,
            title=program.title,
            program_type=program.program_type.value,
            status=program.status.value,
            conditions=program.conditions.to_json(),
            created_at=program.created_at,
        )
