"""
Tests for conditions parsing and resolution precedence.
"""

import pytest

from stagebook.domain import (
    ConditionsOverride,
    EffectiveConditions,
    FeeOption,
    ProgramConditions,
    ProgramType,
    WeekTier,
)
from stagebook.services.conditions_service import resolve

BASELINE = {
    "fee_cents": 20000,
    "currency": "EUR",
    "is_net": False,
    "performance_count": 3,
    "lodging_included": True,
    "notes": "Balances à 17h",
}


def test_defaults_when_nothing_is_set():
    effective = resolve(None, None)

    assert effective == EffectiveConditions()
    assert effective.currency == "EUR"
    assert effective.is_net is True
    assert effective.performance_count == 0
    assert effective.fee_cents is None
    assert effective.notes == ""


def test_baseline_applies_when_no_override():
    effective = resolve(BASELINE, None)

    assert effective.fee_cents == 20000
    assert effective.is_net is False
    assert effective.performance_count == 3
    assert effective.lodging_included is True
    assert effective.meals_included is False


def test_override_wins_field_by_field():
    effective = resolve(BASELINE, {"fee_cents": 25000, "meals_included": True, "notes": ""})

    assert effective.fee_cents == 25000
    assert effective.meals_included is True
    # Empty string is a value, not "unset"
    assert effective.notes == ""
    # Untouched fields keep the baseline
    assert effective.performance_count == 3
    assert effective.is_net is False


def test_weekly_residency_uses_tier_table():
    baseline = {
        "fee_cents": 10000,
        "remuneration": {
            "mode": "PER_WEEK",
            "per_week": {
                "standard": {"fee_cents": 15000, "performance_count": 2},
                "high_demand": {"fee_cents": 30000, "performance_count": 4},
            },
        },
    }

    standard = resolve(baseline, None, program_type=ProgramType.WEEKLY_RESIDENCY, tier=WeekTier.STANDARD)
    high = resolve(baseline, None, program_type=ProgramType.WEEKLY_RESIDENCY, tier=WeekTier.HIGH_DEMAND)
    overridden = resolve(
        baseline,
        {"performance_count": 5},
        program_type=ProgramType.WEEKLY_RESIDENCY,
        tier=WeekTier.HIGH_DEMAND,
    )

    assert (standard.fee_cents, standard.performance_count) == (15000, 2)
    assert (high.fee_cents, high.performance_count) == (30000, 4)
    assert (overridden.fee_cents, overridden.performance_count) == (30000, 5)
    # No tier on the slot: flat baseline
    assert resolve(baseline, None, program_type=ProgramType.WEEKLY_RESIDENCY).fee_cents == 10000


def test_legacy_tier_keys_are_read():
    baseline = {"remuneration": {"per_week": {"calm": {"fee_cents": 12000, "performances_count": 2}}}}
    effective = resolve(baseline, None, program_type=ProgramType.WEEKLY_RESIDENCY, tier=WeekTier.STANDARD)
    assert (effective.fee_cents, effective.performance_count) == (12000, 2)


def test_multi_dates_artist_choice_exposes_options():
    baseline = {
        "remuneration": {
            "per_date": {
                "artist_choice": True,
                "options": [
                    {"label": "Cachet fixe", "amount_cents": 20000},
                    {"label": "Au chapeau"},
                    {"amount_cents": 500},
                ],
            }
        }
    }
    effective = resolve(baseline, None, program_type=ProgramType.MULTI_DATES)

    assert effective.options == (FeeOption("Cachet fixe", 20000), FeeOption("Au chapeau", None))
    assert effective.fee_cents is None


def test_per_date_amount_is_the_baseline_fee():
    baseline = {"remuneration": {"per_date": {"amount_cents": 18000}}}
    effective = resolve(baseline, None, program_type=ProgramType.MULTI_DATES)

    assert effective.fee_cents == 18000
    assert effective.options == ()


def test_nested_baseline_keys_are_unwrapped():
    assert resolve({"conditions_default": {"fee_cents": 9000}}, None).fee_cents == 9000
    assert resolve({"conditions": {"fee_cents": 8000}}, None).fee_cents == 8000


@pytest.mark.parametrize(
    "raw",
    [
        None,
        "not a dict",
        [1, 2, 3],
        {"fee_cents": "200", "is_net": "yes", "performance_count": float("nan")},
        {"fee_cents": True, "lodging_included": 1},
        {"remuneration": "broken", "lodging": [], "schedule": {"items": "nope"}},
    ],
)
def test_malformed_input_falls_back_to_defaults(raw):
    effective = resolve(raw, raw)
    assert effective == EffectiveConditions()


def test_conditions_json_round_trip():
    raw = {
        "fee_cents": 15000,
        "remuneration": {"per_date": {"artist_choice": True, "options": [{"label": "A", "amount_cents": 100}]}},
        "lodging": {"included": True, "companion_included": False, "details": "Chambre double"},
        "defrayal": {"details": "Train remboursé"},
        "contacts": {"items": [{"label": "Régie", "value": "06 00 00 00 00"}]},
        "schedule": {"items": [{"day": "Vendredi", "time": "20h", "place": "Grande salle"}]},
    }
    conditions = ProgramConditions.from_json(raw)

    assert ProgramConditions.from_json(conditions.to_json()) == conditions
    assert conditions.defrayal == "Train remboursé"
    assert conditions.lodging.details == "Chambre double"


def test_override_emptiness():
    assert ConditionsOverride.from_json({}).is_empty()
    assert ConditionsOverride.from_json({"unknown": 1}).is_empty()
    assert not ConditionsOverride.from_json({"notes": "Arrivée 14h"}).is_empty()


def test_summary_and_fee_label():
    effective = EffectiveConditions(
        fee_cents=15000,
        performance_count=2,
        lodging_included=True,
        meals_included=True,
    )
    assert effective.summary() == "150 € net • 2 prestations • logement / repas"
    assert effective.fee_label() == "150 € (net)"
    assert EffectiveConditions().summary() == "Conditions à préciser"
    assert EffectiveConditions().fee_label() == "Cachet à définir"
