"""
Tests for roadmap assembly and its plain-text export.
"""

from datetime import date

import pytest

from stagebook.domain import (
    Booking,
    ConditionsOverride,
    Entry,
    FeeOption,
    Program,
    ProgramConditions,
    ProgramType,
    Slot,
    SlotType,
    WeekTier,
)
from stagebook.services import booking_service, roadmap_service, slot_service
from stagebook.services.conditions_service import resolve_for_slot
from stagebook.services.roadmap_service import assemble, roadmap_to_dict, roadmap_to_lines


def _program(program_type=ProgramType.MULTI_DATES, **conditions) -> Program:
    return Program(
        id=1,
        title="Jeudis acoustiques",
        program_type=program_type,
        conditions=ProgramConditions.from_json(conditions),
    )


def _slot(slot_type=SlotType.DATE, tier=None, override=None) -> Slot:
    start = date(2025, 3, 14) if slot_type is SlotType.DATE else date(2025, 1, 5)
    end = start if slot_type is SlotType.DATE else date(2025, 1, 12)
    return Slot(
        id=7,
        program_id=1,
        slot_type=slot_type,
        start_date=start,
        end_date=end,
        tier=tier,
        override=ConditionsOverride.from_json(override) if override else None,
    )


def _build(program, slot, booking=None):
    return assemble(program, slot, booking, resolve_for_slot(program, slot))


def test_empty_sections_are_omitted():
    roadmap = _build(_program(), _slot())

    # Lodging and meals were never set, so not even an inclusion line
    assert roadmap.section_ids == []


def test_inclusion_line_follows_the_flag():
    roadmap = _build(_program(meals={"included": False}), _slot(override={"lodging_included": True}))

    assert roadmap.section_ids == ["lodging", "meals"]
    assert roadmap.section("lodging").items == (Entry("Logement", "Inclus"),)
    assert roadmap.section("meals").items == (Entry("Repas", "Non inclus"),)


def test_section_order():
    program = _program(
        fee_cents=20000,
        lodging={"included": True, "details": "Chambre chez l'habitant"},
        meals={"included": False, "details": "Repas du soir offert"},
        defrayal={"details": "Essence remboursée"},
        locations={"items": [{"label": "Salle", "value": "Le Comptoir"}]},
        contacts={"items": [{"label": "Régie", "value": "Camille"}]},
        access={"items": [{"label": "Parking", "value": "Cour arrière"}]},
        logistics={"items": [{"label": "Sono", "value": "Fournie"}]},
        schedule={"items": [{"day": "Vendredi", "time": "18h", "place": "Scène"}]},
        notes="Merci d'arriver à l'heure",
    )
    roadmap = _build(program, _slot())

    assert roadmap.section_ids == [
        "remuneration", "lodging", "meals", "defrayal", "locations",
        "contacts", "access", "logistics", "schedule", "notes",
    ]
    assert roadmap.section("remuneration").items[0].label == "Cachet par date"
    assert roadmap.section("remuneration").items[0].value == "200 € (net)"
    assert roadmap.section("defrayal").text == "Essence remboursée"


def test_weekly_residency_labels_the_tier():
    program = _program(
        ProgramType.WEEKLY_RESIDENCY,
        remuneration={"per_week": {
            "standard": {"fee_cents": 15000, "performance_count": 2},
            "high_demand": {"fee_cents": 30000, "performance_count": 4},
        }},
    )

    peak = _build(program, _slot(SlotType.WEEK, WeekTier.HIGH_DEMAND)).section("remuneration").items
    unknown = _build(program, _slot(SlotType.WEEK)).section("remuneration").items

    assert [(e.label, e.value) for e in peak] == [("Semaine forte", "4 prestations • 300 € (net)")]
    assert [e.label for e in unknown] == ["Semaine standard", "Semaine forte"]


def test_artist_choice_lists_every_option():
    program = _program(remuneration={"per_date": {
        "artist_choice": True,
        "options": [{"label": "Cachet fixe", "amount_cents": 20050}, {"label": "Au chapeau"}],
    }})
    slot = _slot()
    booking = Booking(id=3, slot_id=7, artist_id="artist-a", application_id=2, option=FeeOption("Au chapeau"))

    items = _build(program, slot, booking).section("remuneration").items

    assert [(e.label, e.value) for e in items] == [
        ("Option retenue", "Au chapeau • Montant à définir (net)"),
        ("Cachet fixe", "200,50 €"),
        ("Au chapeau", "Montant à définir"),
    ]


def test_entries_are_trimmed_and_merged_with_override():
    program = _program(contacts={"items": [
        {"label": "  Régie ", "value": " Camille "},
        {"label": " ", "value": ""},
    ]})
    slot = _slot(override={"contacts": [{"label": "Bar", "value": "Sam"}], "notes": "Entrée par la cour"})

    roadmap = _build(program, slot)
    contacts = roadmap.section("contacts").items

    assert [(e.label, e.value) for e in contacts] == [("Régie", "Camille"), ("Bar", "Sam")]
    assert roadmap.section("notes").text == "Entrée par la cour"


def test_slot_schedule_replaces_program_schedule():
    program = _program(schedule={"items": [{"day": "Vendredi", "time": "18h"}]})
    slot = _slot(override={"schedule": [{"day": "Samedi", "place": "Terrasse"}, {"notes": " "}]})

    schedule = _build(program, slot).section("schedule").schedule

    assert len(schedule) == 1
    assert (schedule[0].day, schedule[0].place) == ("Samedi", "Terrasse")


def test_blank_notes_are_omitted():
    roadmap = _build(_program(notes="   "), _slot(override={"notes": ""}))
    assert roadmap.section("notes") is None


def test_assemble_is_idempotent():
    program = _program(fee_cents=20000, notes="Arrivée 17h")
    slot = _slot(override={"fee_cents": 25000})

    assert _build(program, slot) == _build(program, slot)
    assert program.conditions.notes == "Arrivée 17h"


def test_text_export_has_no_double_blank_lines():
    program = _program(
        fee_cents=20000,
        defrayal={"details": "Ligne 1\n\n\nLigne 2"},
        schedule={"items": [{"day": "Vendredi", "time": "18h", "place": "Scène", "notes": "Balances"}]},
    )
    lines = roadmap_to_lines(_build(program, _slot(), Booking(id=3, slot_id=7, artist_id="artist-a", application_id=2)))

    assert lines[0] == "Feuille de route • Jeudis acoustiques"
    assert lines[1] == "Jeudis acoustiques • 14 mars 2025"
    assert lines[2] == "Artiste : artist-a"
    assert "- Cachet par date : 200 € (net)" in lines
    assert "- Vendredi 18h - Scène (Balances)" in lines
    assert lines[-1] != ""
    assert all(not (a == "" and b == "") for a, b in zip(lines, lines[1:]))


def test_dict_and_text_carry_the_same_sections():
    program = _program(fee_cents=20000, contacts={"items": [{"label": "Régie", "value": "Camille"}]})
    roadmap = _build(program, _slot())
    data = roadmap_to_dict(roadmap)
    lines = roadmap_to_lines(roadmap)

    assert [s["id"] for s in data["sections"]] == roadmap.section_ids
    for section in data["sections"]:
        assert section["title"].upper() in lines


@pytest.mark.asyncio
async def test_booking_roadmap_uses_the_snapshot(store, multi_dates):
    slot = await slot_service.add_date_slot(store, multi_dates.id, "2025-03-14")
    option = multi_dates.conditions.remuneration.options[0]
    application = await booking_service.apply(store, slot.id, "artist-a", option)
    booking = await booking_service.confirm(store, slot.id, application.id)

    # Later edits to the program do not change a confirmed booking's roadmap
    await store.update_program_conditions(multi_dates.id, ProgramConditions(fee_cents=1))

    roadmap = await roadmap_service.build_booking_roadmap(store, booking.id)
    items = roadmap.section("remuneration").items
    assert items[0].label == "Option retenue"
    assert items[0].value == "Cachet fixe • 200 € (net)"
    assert roadmap.artist_id == "artist-a"


def test_text_export_renders_one_line_per_schedule_entry():
    program = _program(schedule={"items": [
        {"day": "Lun", "time": "20h", "place": "Salle", "notes": "balance"},
        {"notes": "only notes"},
        {"place": "Cour", "notes": "  accueil\n  public "},
    ]})
    roadmap = _build(program, _slot())
    lines = roadmap_to_lines(roadmap)

    start = lines.index("PLANNING") + 1
    rendered = lines[start:start + len(roadmap.section("schedule").schedule)]
    assert rendered == ["- Lun 20h - Salle (balance)", "- only notes", "- Cour (accueil public)"]
    assert lines[start + len(rendered):] == []
