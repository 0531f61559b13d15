"""
Typed commercial and logistic conditions.

Programs carry a baseline (ProgramConditions), slots an optional
ConditionsOverride. Every field is optional and ``None`` means "unset", so
resolving the two is a plain field-by-field coalesce.

Parsing is lenient on purpose: the stored JSON is edited by hand in admin
forms, and anything that is missing, of the wrong type or malformed is read
as unset instead of raising.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Optional

from stagebook.domain.value_objects import Money

DEFAULT_CURRENCY = "EUR"


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _first(source: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if source.get(key) is not None:
            return source[key]
    return None


def _opt_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return None


def _opt_bool(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


def _opt_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _prune(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value not in (None, [], {})}


@dataclass(frozen=True)
class Entry:
    label: str = ""
    value: str = ""

    @classmethod
    def from_json(cls, raw: Any) -> Optional["Entry"]:
        if not isinstance(raw, dict):
            return None
        label, value = raw.get("label"), raw.get("value")
        return cls(
            label="" if label is None else str(label),
            value="" if value is None else str(value),
        )

    def to_json(self) -> dict[str, str]:
        return {"label": self.label, "value": self.value}


@dataclass(frozen=True)
class ScheduleEntry:
    day: str = ""
    time: str = ""
    place: str = ""
    notes: str = ""

    @classmethod
    def from_json(cls, raw: Any) -> Optional["ScheduleEntry"]:
        if not isinstance(raw, dict):
            return None

        def text(*keys: str) -> str:
            found = _first(raw, *keys)
            return "" if found is None else str(found)

        return cls(day=text("day", "date"), time=text("time"), place=text("place"), notes=text("notes"))

    def to_json(self) -> dict[str, str]:
        return {"day": self.day, "time": self.time, "place": self.place, "notes": self.notes}


def _entries(raw: Any) -> tuple[Entry, ...]:
    # Accept both {"items": [...]} and a bare list
    if isinstance(raw, dict):
        raw = raw.get("items")
    if not isinstance(raw, list):
        return ()
    return tuple(entry for entry in (Entry.from_json(item) for item in raw) if entry is not None)


def _schedule(raw: Any) -> tuple[ScheduleEntry, ...]:
    if isinstance(raw, dict):
        raw = raw.get("items")
    if not isinstance(raw, list):
        return ()
    return tuple(
        entry for entry in (ScheduleEntry.from_json(item) for item in raw) if entry is not None
    )


@dataclass(frozen=True)
class FeeOption:
    """One remuneration choice offered to artists on multi-date programs."""

    label: str
    amount_cents: Optional[int] = None

    @classmethod
    def from_json(cls, raw: Any) -> Optional["FeeOption"]:
        data = _as_dict(raw)
        label = _opt_str(data.get("label"))
        if not label or not label.strip():
            return None
        return cls(label=label, amount_cents=_opt_int(_first(data, "amount_cents", "amount")))

    def to_json(self) -> dict[str, Any]:
        return _prune({"label": self.label, "amount_cents": self.amount_cents})


@dataclass(frozen=True)
class TierRemuneration:
    fee_cents: Optional[int] = None
    performance_count: Optional[int] = None

    @classmethod
    def from_json(cls, raw: Any) -> Optional["TierRemuneration"]:
        if not isinstance(raw, dict):
            return None
        return cls(
            fee_cents=_opt_int(raw.get("fee_cents")),
            performance_count=_opt_int(_first(raw, "performance_count", "performances_count")),
        )

    def to_json(self) -> dict[str, Any]:
        return _prune({"fee_cents": self.fee_cents, "performance_count": self.performance_count})


@dataclass(frozen=True)
class Remuneration:
    mode: Optional[str] = None  # PER_DATE | PER_WEEK
    currency: Optional[str] = None
    is_net: Optional[bool] = None
    amount_cents: Optional[int] = None
    artist_choice: bool = False
    options: tuple[FeeOption, ...] = ()
    standard: Optional[TierRemuneration] = None
    high_demand: Optional[TierRemuneration] = None

    @classmethod
    def from_json(cls, raw: Any) -> "Remuneration":
        data = _as_dict(raw)
        per_date = _as_dict(data.get("per_date"))
        per_week = _as_dict(data.get("per_week"))
        mode = _opt_str(data.get("mode"))
        raw_options = per_date.get("options")
        options = tuple(
            option
            for option in (FeeOption.from_json(item) for item in (raw_options if isinstance(raw_options, list) else []))
            if option is not None
        )
        return cls(
            mode=mode.upper() if mode else None,
            currency=_opt_str(data.get("currency")),
            is_net=_opt_bool(data.get("is_net")),
            amount_cents=_opt_int(per_date.get("amount_cents")),
            artist_choice=per_date.get("artist_choice") is True,
            options=options,
            standard=TierRemuneration.from_json(_first(per_week, "standard", "calm")),
            high_demand=TierRemuneration.from_json(_first(per_week, "high_demand", "peak")),
        )

    def to_json(self) -> dict[str, Any]:
        per_date = _prune({
            "amount_cents": self.amount_cents,
            "artist_choice": self.artist_choice or None,
            "options": [option.to_json() for option in self.options],
        })
        per_week = _prune({
            "standard": self.standard.to_json() if self.standard else None,
            "high_demand": self.high_demand.to_json() if self.high_demand else None,
        })
        return _prune({
            "mode": self.mode,
            "currency": self.currency,
            "is_net": self.is_net,
            "per_date": per_date,
            "per_week": per_week,
        })


@dataclass(frozen=True)
class Inclusion:
    """Lodging or meals: included flag plus free-text details."""

    included: Optional[bool] = None
    companion_included: Optional[bool] = None
    details: Optional[str] = None

    @classmethod
    def from_json(cls, raw: Any) -> "Inclusion":
        data = _as_dict(raw)
        return cls(
            included=_opt_bool(data.get("included")),
            companion_included=_opt_bool(data.get("companion_included")),
            details=_opt_str(data.get("details")),
        )

    def to_json(self) -> dict[str, Any]:
        return _prune({
            "included": self.included,
            "companion_included": self.companion_included,
            "details": self.details,
        })


@dataclass(frozen=True)
class ProgramConditions:
    """Program-level baseline."""

    fee_cents: Optional[int] = None
    currency: Optional[str] = None
    is_net: Optional[bool] = None
    performance_count: Optional[int] = None
    lodging_included: Optional[bool] = None
    meals_included: Optional[bool] = None
    notes: Optional[str] = None
    remuneration: Remuneration = field(default_factory=Remuneration)
    lodging: Inclusion = field(default_factory=Inclusion)
    meals: Inclusion = field(default_factory=Inclusion)
    defrayal: Optional[str] = None
    locations: tuple[Entry, ...] = ()
    contacts: tuple[Entry, ...] = ()
    access: tuple[Entry, ...] = ()
    logistics: tuple[Entry, ...] = ()
    schedule: tuple[ScheduleEntry, ...] = ()

    @classmethod
    def from_json(cls, raw: Any) -> "ProgramConditions":
        source = _as_dict(raw)
        # Older rows nest the baseline one level down
        for key in ("conditions_override", "conditions_default", "conditions"):
            if isinstance(source.get(key), dict):
                source = source[key]
                break
        return cls(
            fee_cents=_opt_int(source.get("fee_cents")),
            currency=_opt_str(source.get("currency")),
            is_net=_opt_bool(source.get("is_net")),
            performance_count=_opt_int(_first(source, "performance_count", "performances_count")),
            lodging_included=_opt_bool(source.get("lodging_included")),
            meals_included=_opt_bool(source.get("meals_included")),
            notes=_opt_str(source.get("notes")),
            remuneration=Remuneration.from_json(source.get("remuneration")),
            lodging=Inclusion.from_json(source.get("lodging")),
            meals=Inclusion.from_json(source.get("meals")),
            defrayal=_opt_str(_as_dict(_first(source, "defrayal", "defraiement")).get("details")),
            locations=_entries(source.get("locations")),
            contacts=_entries(source.get("contacts")),
            access=_entries(source.get("access")),
            logistics=_entries(source.get("logistics")),
            schedule=_schedule(_first(source, "schedule", "planning")),
        )

    def to_json(self) -> dict[str, Any]:
        return _prune({
            "fee_cents": self.fee_cents,
            "currency": self.currency,
            "is_net": self.is_net,
            "performance_count": self.performance_count,
            "lodging_included": self.lodging_included,
            "meals_included": self.meals_included,
            "notes": self.notes,
            "remuneration": self.remuneration.to_json(),
            "lodging": self.lodging.to_json(),
            "meals": self.meals.to_json(),
            "defrayal": {"details": self.defrayal} if self.defrayal is not None else None,
            "locations": {"items": [e.to_json() for e in self.locations]} if self.locations else None,
            "contacts": {"items": [e.to_json() for e in self.contacts]} if self.contacts else None,
            "access": {"items": [e.to_json() for e in self.access]} if self.access else None,
            "logistics": {"items": [e.to_json() for e in self.logistics]} if self.logistics else None,
            "schedule": {"items": [e.to_json() for e in self.schedule]} if self.schedule else None,
        })


@dataclass(frozen=True)
class ConditionsOverride:
    """Slot-level override; set fields win over the program baseline."""

    fee_cents: Optional[int] = None
    currency: Optional[str] = None
    is_net: Optional[bool] = None
    performance_count: Optional[int] = None
    lodging_included: Optional[bool] = None
    meals_included: Optional[bool] = None
    notes: Optional[str] = None
    locations: tuple[Entry, ...] = ()
    contacts: tuple[Entry, ...] = ()
    access: tuple[Entry, ...] = ()
    logistics: tuple[Entry, ...] = ()
    schedule: tuple[ScheduleEntry, ...] = ()

    @classmethod
    def from_json(cls, raw: Any) -> "ConditionsOverride":
        source = _as_dict(raw)
        return cls(
            fee_cents=_opt_int(source.get("fee_cents")),
            currency=_opt_str(source.get("currency")),
            is_net=_opt_bool(source.get("is_net")),
            performance_count=_opt_int(_first(source, "performance_count", "performances_count")),
            lodging_included=_opt_bool(source.get("lodging_included")),
            meals_included=_opt_bool(source.get("meals_included")),
            notes=_opt_str(source.get("notes")),
            locations=_entries(_first(source, "locations", "venues")),
            contacts=_entries(source.get("contacts")),
            access=_entries(source.get("access")),
            logistics=_entries(source.get("logistics")),
            schedule=_schedule(_first(source, "schedule", "planning")),
        )

    def to_json(self) -> dict[str, Any]:
        return _prune({
            "fee_cents": self.fee_cents,
            "currency": self.currency,
            "is_net": self.is_net,
            "performance_count": self.performance_count,
            "lodging_included": self.lodging_included,
            "meals_included": self.meals_included,
            "notes": self.notes,
            "locations": [e.to_json() for e in self.locations],
            "contacts": [e.to_json() for e in self.contacts],
            "access": [e.to_json() for e in self.access],
            "logistics": [e.to_json() for e in self.logistics],
            "schedule": [e.to_json() for e in self.schedule],
        })

    def is_empty(self) -> bool:
        return not self.to_json()


@dataclass(frozen=True)
class EffectiveConditions:
    """Resolved conditions for one slot. Computed on every read, never stored except as a booking snapshot."""

    fee_cents: Optional[int] = None
    currency: str = DEFAULT_CURRENCY
    is_net: bool = True
    performance_count: int = 0
    lodging_included: bool = False
    meals_included: bool = False
    notes: str = ""
    options: tuple[FeeOption, ...] = ()

    @property
    def net_label(self) -> str:
        return "net" if self.is_net else "brut"

    def money(self, cents: Optional[int], decimals: int = 2) -> str:
        if cents is None or cents < 0:
            return ""
        return Money(cents, self.currency).format(decimals)

    def fee_label(self) -> str:
        if self.fee_cents is None:
            return "Cachet à définir"
        return f"{self.money(self.fee_cents, decimals=0)} ({self.net_label})"

    def summary(self) -> str:
        parts = []
        if self.fee_cents is not None:
            parts.append(f"{self.money(self.fee_cents, decimals=0)} {self.net_label}")
        if self.performance_count:
            plural = "s" if self.performance_count > 1 else ""
            parts.append(f"{self.performance_count} prestation{plural}")
        extras = [
            label
            for label, included in (("logement", self.lodging_included), ("repas", self.meals_included))
            if included
        ]
        if extras:
            parts.append(" / ".join(extras))
        return " • ".join(parts) if parts else "Conditions à préciser"

    def to_json(self) -> dict[str, Any]:
        return {
            "fee_cents": self.fee_cents,
            "currency": self.currency,
            "is_net": self.is_net,
            "performance_count": self.performance_count,
            "lodging_included": self.lodging_included,
            "meals_included": self.meals_included,
            "notes": self.notes,
            "options": [option.to_json() for option in self.options],
        }

    @classmethod
    def from_json(cls, raw: Any) -> "EffectiveConditions":
        data = _as_dict(raw)
        currency = _opt_str(data.get("currency"))
        is_net = _opt_bool(data.get("is_net"))
        raw_options = data.get("options")
        return cls(
            fee_cents=_opt_int(data.get("fee_cents")),
            currency=currency or DEFAULT_CURRENCY,
            is_net=True if is_net is None else is_net,
            performance_count=_opt_int(data.get("performance_count")) or 0,
            lodging_included=_opt_bool(data.get("lodging_included")) or False,
            meals_included=_opt_bool(data.get("meals_included")) or False,
            notes=_opt_str(data.get("notes")) or "",
            options=tuple(
                option
                for option in (FeeOption.from_json(item) for item in (raw_options if isinstance(raw_options, list) else []))
                if option is not None
            ),
        )
