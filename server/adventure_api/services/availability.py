"""
Availability, pricing and selection rules for events.

Everything here is pure: functions take an event (anything exposing
``price``, ``discounted_price``, ``available_dates``, ``departures`` and
``itinerary``) plus the JSON documents stored on it, and never touch the
database. The booking service and the quote endpoint both price through
:func:`calculate_total`, so a quote always matches what a submission is
charged.

The shopper's departure/month/date/transport narrowing is modelled as an
immutable :class:`SelectionState` driven by typed actions through
:func:`reduce`.
"""

import calendar
from dataclasses import dataclass, replace
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from ..models.event import TRANSPORT_MODES

_MONTHS: dict[str, int] = {}
for _number in range(1, 13):
    _MONTHS[calendar.month_name[_number].lower()] = _number
    _MONTHS[calendar.month_abbr[_number].lower()] = _number

MonthRef = Union[str, int]


class SelectionError(ValueError):
    """Raised when a selection does not match what the event offers."""


def month_number(month: Optional[MonthRef]) -> Optional[int]:
    """Resolve 'March', 'Mar', '3' or 3 to a month number, None if unknown."""
    if month is None:
        return None
    if isinstance(month, int):
        return month if 1 <= month <= 12 else None
    text = str(month).strip().lower()
    if text.isdigit():
        value = int(text)
        return value if 1 <= value <= 12 else None
    return _MONTHS.get(text)


def month_name(number: int) -> str:
    return calendar.month_name[number]


# Pricing

def has_valid_discount(price: Optional[float], discounted_price: Optional[float]) -> bool:
    """A discount applies only when ``0 < discounted_price < price``."""
    if price is None or discounted_price is None:
        return False
    return 0 < discounted_price < price


def display_price(price: float, discounted_price: Optional[float] = None) -> float:
    """Price shown to shoppers, falling back to ``price`` for an invalid discount."""
    if has_valid_discount(price, discounted_price):
        return float(discounted_price)
    return float(price)


def effective_unit_price(event: Any, departure: Optional[Mapping[str, Any]] = None) -> float:
    """
    Per-person price for an event, honouring a departure's own pricing.

    A departure that carries its own ``price`` or ``discountedPrice``
    is priced from its ``price`` (the event price when unset or 0), with
    its own ``discountedPrice`` under the same validity rule. Otherwise
    the event price and discount apply.
    """
    if departure is not None and (departure.get("price") or departure.get("discountedPrice")):
        base = float(departure.get("price") or event.price)
        return display_price(base, departure.get("discountedPrice"))
    return display_price(event.price, event.discounted_price)


def find_departure(event: Any, label: Optional[str]) -> Optional[dict[str, Any]]:
    """Find a departure by label (case-insensitive, whitespace-trimmed)."""
    if not label:
        return None
    wanted = label.strip().lower()
    for departure in event.departures or []:
        if str(departure.get("label", "")).strip().lower() == wanted:
            return departure
    return None


def transport_surcharge(departure: Optional[Mapping[str, Any]], mode: Optional[str]) -> float:
    """
    Price of a transport mode on a departure; 0 when no mode is chosen.

    Raises:
        SelectionError: If the departure does not offer the mode
    """
    if not mode:
        return 0.0
    if departure is None:
        raise SelectionError(f"Transport mode {mode} requires a departure")
    for option in departure.get("transportOptions") or []:
        if option.get("mode") == mode:
            return float(option.get("price") or 0)
    raise SelectionError(f"Transport mode {mode} is not offered on this departure")


def calculate_total(
    event: Any,
    participant_count: int,
    departure: Optional[Mapping[str, Any]] = None,
    mode: Optional[str] = None,
) -> float:
    """
    Booking total: ``participant_count * effective unit price + surcharge``.

    The transport surcharge is charged once per booking.
    """
    if participant_count < 1:
        raise SelectionError("At least one participant is required")
    unit = effective_unit_price(event, departure)
    return round(participant_count * unit + transport_surcharge(departure, mode), 2)


# Calendar

def find_date_group(
    groups: Optional[Iterable[Mapping[str, Any]]],
    month: MonthRef,
    year: int,
) -> Optional[Mapping[str, Any]]:
    """Find the date group for a month/year."""
    number = month_number(month)
    if number is None:
        return None
    for group in groups or []:
        if month_number(group.get("month")) == number and int(group.get("year", 0)) == int(year):
            return group
    return None


def is_date_available(
    groups: Optional[Iterable[Mapping[str, Any]]],
    month: MonthRef,
    year: int,
    day: int,
) -> bool:
    """True when the day is listed and the group is not sold out."""
    group = find_date_group(groups, month, year)
    if group is None:
        return False
    if int(day) not in [int(d) for d in group.get("dates") or []]:
        return False
    seats = group.get("availableSeats")
    return seats is None or seats > 0


def calendar_for(event: Any, departure: Optional[Mapping[str, Any]] = None) -> list:
    """
    Departure calendar when a departure is chosen, else the flat event calendar.

    The flat calendar only applies to events without departures.
    """
    if departure is not None:
        return list(departure.get("availableDates") or [])
    if event.departures:
        return []
    return list(event.available_dates or [])


def offered_transport_options(
    departure: Mapping[str, Any],
    month: MonthRef,
    year: int,
    day: int,
) -> list[dict[str, Any]]:
    """
    Transport options offered on one departure date.

    The day's ``dateTransportModes`` entry wins when present and non-empty,
    then the month's ``availableTransportModes`` when non-empty, otherwise
    every option on the departure. Restrictions are intersected with the
    departure's options; they never add options it does not price.
    """
    options = [
        dict(option)
        for option in departure.get("transportOptions") or []
        if option.get("mode") in TRANSPORT_MODES
    ]
    group = find_date_group(departure.get("availableDates"), month, year)
    if group is None:
        return options

    per_day = group.get("dateTransportModes") or {}
    allowed: Sequence[str] = per_day.get(str(int(day))) or []
    if not allowed:
        allowed = group.get("availableTransportModes") or []
    if not allowed:
        return options

    allowed_set = set(allowed)
    return [option for option in options if option["mode"] in allowed_set]


def resolve_itinerary(event: Any, departure: Optional[Mapping[str, Any]] = None) -> list[dict[str, Any]]:
    """Departure itinerary when non-empty, else the event's, ordered by day (0 first)."""
    days = (departure or {}).get("itinerary") or event.itinerary or []
    return sorted((dict(day) for day in days), key=lambda d: int(d.get("day", 0)))


# Selection reducer

@dataclass(frozen=True)
class SelectionState:
    """Shopper's current narrowing of an event's purchase options."""

    departure: Optional[str] = None
    open_month: Optional[tuple[str, int]] = None
    date: Optional[int] = None
    transport_mode: Optional[str] = None
    transport_dialog_open: bool = False
    offered_modes: tuple[str, ...] = ()

    def display_price(self, event: Any, participant_count: int = 1) -> float:
        """Total for the current selection, re-priced on every change."""
        departure = find_departure(event, self.departure)
        return calculate_total(event, participant_count, departure, self.transport_mode)


@dataclass(frozen=True)
class SelectDeparture:
    label: Optional[str]


@dataclass(frozen=True)
class ToggleMonth:
    month: str
    year: int


@dataclass(frozen=True)
class SelectDate:
    day: int


@dataclass(frozen=True)
class SelectTransport:
    mode: str


@dataclass(frozen=True)
class Reset:
    pass


SelectionAction = Union[SelectDeparture, ToggleMonth, SelectDate, SelectTransport, Reset]


def reduce(state: SelectionState, action: SelectionAction, event: Any) -> SelectionState:
    """
    Apply one selection action.

    - ``SelectDeparture`` clears month, date and transport.
    - ``ToggleMonth`` opens a month; clicking the open month again collapses it.
    - ``SelectDate`` opens the transport dialog with the offered modes.
    - ``SelectTransport`` closes the dialog with the chosen mode.

    Raises:
        SelectionError: If the action picks something the event does not offer
    """
    if isinstance(action, Reset):
        return SelectionState()

    if isinstance(action, SelectDeparture):
        if action.label is not None and find_departure(event, action.label) is None:
            raise SelectionError(f"Unknown departure: {action.label}")
        return SelectionState(departure=action.label)

    if isinstance(action, ToggleMonth):
        key = (action.month, int(action.year))
        if state.open_month == key:
            return replace(state, open_month=None, date=None, transport_mode=None,
                           transport_dialog_open=False, offered_modes=())
        return replace(state, open_month=key, date=None, transport_mode=None,
                       transport_dialog_open=False, offered_modes=())

    if isinstance(action, SelectDate):
        if state.open_month is None:
            raise SelectionError("Open a month before picking a date")
        month, year = state.open_month
        departure = find_departure(event, state.departure)
        if not is_date_available(calendar_for(event, departure), month, year, action.day):
            raise SelectionError(f"{month} {action.day}, {year} is not available")
        if departure is None:
            return replace(state, date=action.day, transport_mode=None,
                           transport_dialog_open=False, offered_modes=())
        offered = tuple(
            option["mode"] for option in offered_transport_options(departure, month, year, action.day)
        )
        return replace(state, date=action.day, transport_mode=None,
                       transport_dialog_open=True, offered_modes=offered)

    if isinstance(action, SelectTransport):
        if state.date is None:
            raise SelectionError("Pick a date before choosing transport")
        if action.mode not in state.offered_modes:
            raise SelectionError(f"Transport mode {action.mode} is not offered on this date")
        return replace(state, transport_mode=action.mode, transport_dialog_open=False)

    raise TypeError(f"Unsupported selection action: {action!r}")
