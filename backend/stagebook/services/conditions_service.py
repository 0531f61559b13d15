"""
Conditions resolution.

Precedence, field by field:
  1. slot override value, when set
  2. program baseline value (for weekly residencies, the per-tier entry
     matching the slot's week tier replaces the flat fee/performance count)
  3. system default (EUR, net, 0 performances, nothing included, no notes)

Resolution is total: any well-formed or malformed input yields a result.
"""

from typing import Any, Optional, Union

from stagebook.domain.conditions import (
    DEFAULT_CURRENCY,
    ConditionsOverride,
    EffectiveConditions,
    ProgramConditions,
    TierRemuneration,
)
from stagebook.domain.models import Program, ProgramType, Slot, WeekTier


def _coalesce(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def _tier_entry(baseline: ProgramConditions, tier: Optional[WeekTier]) -> Optional[TierRemuneration]:
    if tier is WeekTier.STANDARD:
        return baseline.remuneration.standard
    if tier is WeekTier.HIGH_DEMAND:
        return baseline.remuneration.high_demand
    return None


def resolve(
    program_conditions: Union[ProgramConditions, dict, None],
    slot_override: Union[ConditionsOverride, dict, None],
    *,
    program_type: Optional[ProgramType] = None,
    tier: Optional[WeekTier] = None,
    default_currency: str = DEFAULT_CURRENCY,
) -> EffectiveConditions:
    """Merge a program baseline and a slot override into effective conditions."""
    baseline = (
        program_conditions
        if isinstance(program_conditions, ProgramConditions)
        else ProgramConditions.from_json(program_conditions)
    )
    override = (
        slot_override
        if isinstance(slot_override, ConditionsOverride)
        else ConditionsOverride.from_json(slot_override)
    )
    remuneration = baseline.remuneration

    base_fee = _coalesce(baseline.fee_cents, remuneration.amount_cents)
    base_performances = baseline.performance_count
    options = ()

    if program_type is ProgramType.WEEKLY_RESIDENCY:
        entry = _tier_entry(baseline, tier)
        if entry is not None:
            base_fee = _coalesce(entry.fee_cents, base_fee)
            base_performances = _coalesce(entry.performance_count, base_performances)
    elif program_type is ProgramType.MULTI_DATES and remuneration.artist_choice:
        # The artist picks one of these on application; no single fee applies.
        options = remuneration.options

    return EffectiveConditions(
        fee_cents=_coalesce(override.fee_cents, base_fee),
        currency=_coalesce(override.currency, baseline.currency, remuneration.currency, default_currency),
        is_net=_coalesce(override.is_net, baseline.is_net, remuneration.is_net, True),
        performance_count=_coalesce(override.performance_count, base_performances, 0),
        lodging_included=_coalesce(
            override.lodging_included, baseline.lodging_included, baseline.lodging.included, False
        ),
        meals_included=_coalesce(
            override.meals_included, baseline.meals_included, baseline.meals.included, False
        ),
        notes=_coalesce(override.notes, baseline.notes, ""),
        options=options,
    )


def resolve_for_slot(
    program: Program,
    slot: Slot,
    default_currency: str = DEFAULT_CURRENCY,
) -> EffectiveConditions:
    return resolve(
        program.conditions,
        slot.override,
        program_type=program.program_type,
        tier=slot.tier,
        default_currency=default_currency,
    )


def has_override(slot: Slot) -> bool:
    return slot.override is not None and not slot.override.is_empty()
