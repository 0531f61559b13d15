"""
Pydantic schemas for slots and their conditions.
"""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from stagebook.domain import EffectiveConditions, Slot
from stagebook.services.conditions_service import has_override


class GenerateWeeksRequest(BaseModel):
    # Strings on purpose: DD/MM/YYYY is accepted and errors use the engine's messages
    start_date: str = Field(..., max_length=10)
    end_date: str = Field(..., max_length=10)


class DateSlotCreate(BaseModel):
    date: str = Field(..., max_length=10)
    conditions_override: Optional[dict[str, Any]] = None


class OverridePayload(BaseModel):
    conditions_override: Optional[dict[str, Any]] = None


class SlotResponse(BaseModel):
    id: int
    program_id: int
    slot_type: str
    start_date: date
    end_date: date
    status: str
    tier: Optional[str]
    conditions_override: Optional[dict[str, Any]]
    has_override: bool
    created_at: Optional[datetime]

    @classmethod
    def from_domain(cls, slot: Slot) -> "SlotResponse":
        return cls(
            id=slot.id,
            program_id=slot.program_id,
            slot_type=slot.slot_type.value,
            start_date=slot.start_date,
            end_date=slot.end_date,
            status=slot.status.value,
            tier=slot.tier.value if slot.tier else None,
            conditions_override=slot.override.to_json() if slot.override else None,
            has_override=has_override(slot),
            created_at=slot.created_at,
        )


class FeeOptionResponse(BaseModel):
    label: str
    amount_cents: Optional[int] = None


class EffectiveConditionsResponse(BaseModel):
    slot_id: int
    fee_cents: Optional[int]
    currency: str
    is_net: bool
    performance_count: int
    lodging_included: bool
    meals_included: bool
    notes: str
    options: list[FeeOptionResponse]
    summary: str
    fee_label: str

    @classmethod
    def from_domain(cls, slot_id: int, effective: EffectiveConditions) -> "EffectiveConditionsResponse":
        return cls(
            slot_id=slot_id,
            fee_cents=effective.fee_cents,
            currency=effective.currency,
            is_net=effective.is_net,
            performance_count=effective.performance_count,
            lodging_included=effective.lodging_included,
            meals_included=effective.meals_included,
            notes=effective.notes,
            options=[FeeOptionResponse(label=o.label, amount_cents=o.amount_cents) for o in effective.options],
            summary=effective.summary(),
            fee_label=effective.fee_label(),
        )
