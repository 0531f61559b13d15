"""
Roadmap assembly.

A roadmap is the document an artist receives for a confirmed booking:
remuneration, lodging, meals, defrayal, places, contacts, access,
logistics, schedule and notes, in that order. It is never stored; the same
structure feeds the JSON preview and the plain-text export, so both always
carry the same content.

Sections with nothing to show are left out.
"""

from dataclasses import dataclass, replace
from typing import Any, Iterable, Optional

from stagebook.core.exceptions import BookingNotFound, ProgramNotFound, SlotNotFound
from stagebook.domain import (
    Booking,
    ConditionsOverride,
    EffectiveConditions,
    Entry,
    FeeOption,
    Program,
    ProgramConditions,
    ProgramType,
    ScheduleEntry,
    Slot,
    SlotType,
    TierRemuneration,
    WeekTier,
)
from stagebook.scheduling.calendar import format_localized
from stagebook.services.conditions_service import resolve_for_slot
from stagebook.services.interfaces import ProgrammingStore

KIND_LIST = "list"
KIND_SCHEDULE = "schedule"
KIND_TEXT = "text"

TIER_LABELS = {
    WeekTier.STANDARD: "Semaine standard",
    WeekTier.HIGH_DEMAND: "Semaine forte",
}
AMOUNT_TBD = "Montant à définir"
INCLUDED = "Inclus"
NOT_INCLUDED = "Non inclus"


@dataclass(frozen=True)
class RoadmapSection:
    id: str
    title: str
    kind: str = KIND_LIST
    items: tuple[Entry, ...] = ()
    schedule: tuple[ScheduleEntry, ...] = ()
    text: str = ""


@dataclass(frozen=True)
class Roadmap:
    title: str
    subtitle: str
    artist_id: Optional[str]
    sections: tuple[RoadmapSection, ...]

    def section(self, section_id: str) -> Optional[RoadmapSection]:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None

    @property
    def section_ids(self) -> list[str]:
        return [section.id for section in self.sections]


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def _entries(items: Iterable[Entry]) -> tuple[Entry, ...]:
    trimmed = (Entry(label=_clean(item.label), value=_clean(item.value)) for item in items)
    return tuple(item for item in trimmed if item.label or item.value)


def _schedule(items: Iterable[ScheduleEntry]) -> tuple[ScheduleEntry, ...]:
    trimmed = (
        ScheduleEntry(
            day=_clean(item.day),
            time=_clean(item.time),
            place=_clean(item.place),
            notes=_clean(item.notes),
        )
        for item in items
    )
    return tuple(item for item in trimmed if item.day or item.time or item.place or item.notes)


def _amount(effective: EffectiveConditions, cents: Optional[int]) -> str:
    if cents is None or cents < 0:
        return AMOUNT_TBD
    return effective.money(cents, decimals=0 if cents % 100 == 0 else 2)


def _performances(count: Optional[int]) -> str:
    if not count:
        return ""
    return f"{count} prestation{'s' if count > 1 else ''}"


def _tier_value(effective: EffectiveConditions, fee_cents: Optional[int], count: Optional[int]) -> str:
    parts = [_performances(count), f"{_amount(effective, fee_cents)} ({effective.net_label})"]
    return " • ".join(part for part in parts if part)


def _remuneration(
    program: Program,
    slot: Slot,
    booking: Optional[Booking],
    effective: EffectiveConditions,
    baseline: ProgramConditions,
) -> list[Entry]:
    remuneration = baseline.remuneration

    if program.program_type is ProgramType.WEEKLY_RESIDENCY:
        if slot.tier is not None:
            return [Entry(
                TIER_LABELS[slot.tier],
                _tier_value(effective, effective.fee_cents, effective.performance_count),
            )]
        # Tier unknown: show the whole table
        table: list[tuple[WeekTier, Optional[TierRemuneration]]] = [
            (WeekTier.STANDARD, remuneration.standard),
            (WeekTier.HIGH_DEMAND, remuneration.high_demand),
        ]
        entries = [
            Entry(TIER_LABELS[tier], _tier_value(effective, entry.fee_cents, entry.performance_count))
            for tier, entry in table
            if entry is not None
        ]
        if not entries and effective.fee_cents is not None:
            entries.append(Entry("Cachet", effective.fee_label()))
        return entries

    options: tuple[FeeOption, ...] = effective.options or (
        remuneration.options if remuneration.artist_choice else ()
    )
    if options:
        entries = []
        if booking is not None and booking.option is not None:
            entries.append(Entry(
                "Option retenue",
                f"{booking.option.label} • {_amount(effective, booking.option.amount_cents)} ({effective.net_label})",
            ))
        entries.extend(Entry(option.label, _amount(effective, option.amount_cents)) for option in options)
        return entries

    entries = []
    if effective.fee_cents is not None:
        entries.append(Entry(
            "Cachet par date",
            f"{_amount(effective, effective.fee_cents)} ({effective.net_label})",
        ))
    if effective.performance_count:
        entries.append(Entry("Prestations", str(effective.performance_count)))
    return entries


def _inclusion_line(label: str, included: bool) -> Entry:
    return Entry(label, INCLUDED if included else NOT_INCLUDED)


def _is_set(*flags: Optional[bool]) -> bool:
    return any(flag is not None for flag in flags)


def _lodging(
    effective: EffectiveConditions, baseline: ProgramConditions, override: ConditionsOverride
) -> list[Entry]:
    entries = []
    # Inclusion line only when the flag was set somewhere
    if _is_set(override.lodging_included, baseline.lodging_included, baseline.lodging.included):
        entries.append(_inclusion_line("Logement", effective.lodging_included))
    if baseline.lodging.companion_included is not None:
        entries.append(_inclusion_line("Accompagnant", baseline.lodging.companion_included))
    if _clean(baseline.lodging.details):
        entries.append(Entry("Détails", baseline.lodging.details))
    return entries


def _meals(
    effective: EffectiveConditions, baseline: ProgramConditions, override: ConditionsOverride
) -> list[Entry]:
    entries = []
    if _is_set(override.meals_included, baseline.meals_included, baseline.meals.included):
        entries.append(_inclusion_line("Repas", effective.meals_included))
    if _clean(baseline.meals.details):
        entries.append(Entry("Détails", baseline.meals.details))
    return entries


def slot_label(slot: Slot) -> str:
    if slot.slot_type is SlotType.DATE:
        return format_localized(slot.start_date)
    return f"Semaine du {format_localized(slot.start_date)} au {format_localized(slot.end_date)}"


def assemble(
    program: Program,
    slot: Slot,
    booking: Optional[Booking],
    effective: EffectiveConditions,
) -> Roadmap:
    """
    Build the ordered roadmap for one (program, slot, booking) triple.

    Pure: inputs are frozen and left untouched, identical inputs give an
    identical roadmap.
    """
    baseline = program.conditions
    override = slot.override or ConditionsOverride()

    sections: list[RoadmapSection] = []

    def add_list(section_id: str, title: str, items: Iterable[Entry]) -> None:
        entries = _entries(items)
        if entries:
            sections.append(RoadmapSection(id=section_id, title=title, kind=KIND_LIST, items=entries))

    add_list("remuneration", "Rémunération", _remuneration(program, slot, booking, effective, baseline))
    add_list("lodging", "Logement", _lodging(effective, baseline, override))
    add_list("meals", "Repas", _meals(effective, baseline, override))

    defrayal = _clean(baseline.defrayal)
    if defrayal:
        sections.append(RoadmapSection(id="defrayal", title="Défraiement", kind=KIND_TEXT, text=defrayal))

    add_list("locations", "Lieux", baseline.locations + override.locations)
    add_list("contacts", "Contacts", baseline.contacts + override.contacts)
    add_list("access", "Accès", baseline.access + override.access)
    add_list("logistics", "Logistique", baseline.logistics + override.logistics)

    schedule = _schedule(override.schedule) or _schedule(baseline.schedule)
    if schedule:
        sections.append(RoadmapSection(id="schedule", title="Planning", kind=KIND_SCHEDULE, schedule=schedule))

    notes = _clean(override.notes) or _clean(baseline.notes)
    if notes:
        sections.append(RoadmapSection(id="notes", title="Notes", kind=KIND_TEXT, text=notes))

    return Roadmap(
        title=f"Feuille de route • {program.title}",
        subtitle=f"{program.title} • {slot_label(slot)}",
        artist_id=booking.artist_id if booking is not None else None,
        sections=tuple(sections),
    )


def assemble_for_booking(program: Program, slot: Slot, booking: Booking) -> Roadmap:
    """
    Roadmap of a confirmed booking, from the conditions frozen at confirmation.

    Parts missing from the snapshot fall back to the live program and slot.
    """
    snapshot = booking.conditions_snapshot or {}
    if isinstance(snapshot.get("program"), dict):
        program = replace(program, conditions=ProgramConditions.from_json(snapshot["program"]))
    if isinstance(snapshot.get("override"), dict):
        override = ConditionsOverride.from_json(snapshot["override"])
        slot = replace(slot, override=None if override.is_empty() else override)

    if isinstance(snapshot.get("effective"), dict):
        effective = EffectiveConditions.from_json(snapshot["effective"])
    else:
        effective = resolve_for_slot(program, slot)
    return assemble(program, slot, booking, effective)


def _schedule_line(entry: ScheduleEntry) -> str:
    """One line per entry: ``- day time - place (notes)``."""
    line = " ".join(part for part in (entry.day, entry.time) if part)
    if entry.place:
        line = f"{line} - {entry.place}" if line else entry.place
    notes = " ".join(entry.notes.split())
    if notes:
        line = f"{line} ({notes})" if line else notes
    return f"- {line}"


def roadmap_to_lines(roadmap: Roadmap) -> list[str]:
    """Plain-text rendering used by the exporter. Never two blank lines in a row."""
    lines = [roadmap.title, roadmap.subtitle]
    if roadmap.artist_id:
        lines.append(f"Artiste : {roadmap.artist_id}")
    lines.append("")

    for section in roadmap.sections:
        lines.append(section.title.upper())
        if section.kind == KIND_LIST:
            for item in section.items:
                lines.append(f"- {item.label} : {item.value}" if item.label and item.value else f"- {item.label or item.value}")
        elif section.kind == KIND_SCHEDULE:
            for entry in section.schedule:
                lines.append(_schedule_line(entry))
        else:
            lines.extend(section.text.splitlines())
        lines.append("")

    collapsed: list[str] = []
    for line in lines:
        if line.strip() == "" and (not collapsed or collapsed[-1] == ""):
            continue
        collapsed.append(line.rstrip() if line.strip() else "")
    while collapsed and collapsed[-1] == "":
        collapsed.pop()
    return collapsed


def roadmap_to_dict(roadmap: Roadmap) -> dict[str, Any]:
    return {
        "title": roadmap.title,
        "subtitle": roadmap.subtitle,
        "artist_id": roadmap.artist_id,
        "sections": [
            {
                "id": section.id,
                "title": section.title,
                "kind": section.kind,
                "items": [item.to_json() for item in section.items],
                "schedule": [entry.to_json() for entry in section.schedule],
                "text": section.text,
            }
            for section in roadmap.sections
        ],
    }


async def build_booking_roadmap(store: ProgrammingStore, booking_id: int) -> Roadmap:
    """Load a booking with its slot and program, then assemble from the snapshot."""
    booking = await store.get_booking(booking_id)
    if booking is None:
        raise BookingNotFound(booking_id)
    slot = await store.get_slot(booking.slot_id)
    if slot is None:
        raise SlotNotFound(booking.slot_id)
    program = await store.get_program(slot.program_id)
    if program is None:
        raise ProgramNotFound(slot.program_id)
    return assemble_for_booking(program, slot, booking)
