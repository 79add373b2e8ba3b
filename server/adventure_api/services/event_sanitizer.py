"""Sanitization of raw admin event update payloads."""

import math
from typing import Any, Optional

from ..models.event import TRANSPORT_MODES

SYSTEM_FIELDS = frozenset({"_id", "id", "createdAt", "updatedAt", "created_at", "updated_at", "__v"})
POPULATED_REFERENCES = frozenset({"guide", "createdBy", "created_by"})

# Wire name -> model attribute for scalar fields copied through when supplied
SCALAR_FIELDS = {
    "title": "title",
    "slug": "slug",
    "description": "description",
    "shortDescription": "short_description",
    "category": "category",
    "difficulty": "difficulty",
    "location": "location",
    "images": "images",
    "inclusions": "inclusions",
    "exclusions": "exclusions",
    "highlights": "highlights",
    "thingsToCarry": "things_to_carry",
    "tags": "tags",
    "isActive": "is_active",
    "isFeatured": "is_featured",
}

NUMERIC_FIELDS = {
    "price": "price",
    "maxParticipants": "max_participants",
    "minParticipants": "min_participants",
}

CLEARABLE_FIELDS = {"discountedPrice": "discounted_price", "brochure": "brochure"}


class CastError(ValueError):
    """A supplied value could not be coerced to the field's type."""

    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message


def _to_number(value: Any) -> Optional[float]:
    """Coerce like a lenient numeric cast; None for blanks, booleans, NaN and garbage."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        if not value.strip():
            return None
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _to_int(value: Any) -> Optional[int]:
    number = _to_number(value)
    if number is None:
        return None
    return int(number)


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def _lookup(payload: dict[str, Any], wire_name: str, attribute: str) -> tuple[bool, Any]:
    """Find a key under its wire name or its attribute name."""
    if wire_name in payload:
        return True, payload[wire_name]
    if attribute in payload:
        return True, payload[attribute]
    return False, None


def _filter_modes(modes: Any) -> list[str]:
    if not isinstance(modes, list):
        return []
    return [str(m) for m in modes if str(m) in TRANSPORT_MODES]


def _valid_date_group(entry: Any) -> bool:
    if not isinstance(entry, dict):
        return False
    if not _non_empty_str(entry.get("month")):
        return False
    if _to_number(entry.get("year")) is None:
        return False
    dates = entry.get("dates")
    if not isinstance(dates, list) or not dates:
        return False
    return all(_to_number(d) is not None for d in dates)


def _seat_fields(entry: dict[str, Any], out: dict[str, Any]) -> None:
    for key in ("availableSeats", "totalSeats"):
        if entry.get(key) is not None:
            seats = _to_int(entry[key])
            if seats is not None:
                out[key] = seats


def sanitize_date_groups(entries: list[Any]) -> list[dict[str, Any]]:
    """Keep well-formed flat calendar groups, coercing their types."""
    groups = []
    for entry in entries:
        if not _valid_date_group(entry):
            continue
        group: dict[str, Any] = {
            "month": entry["month"].strip(),
            "year": _to_int(entry["year"]),
            "dates": [_to_int(d) for d in entry["dates"]],
        }
        if entry.get("location"):
            group["location"] = str(entry["location"]).strip()
        _seat_fields(entry, group)
        groups.append(group)
    return groups


def _sanitize_date_transport_modes(value: Any) -> dict[str, list[str]]:
    if not isinstance(value, dict):
        return {}
    result = {}
    for day, modes in value.items():
        day_number = _to_int(day)
        if day_number is None:
            continue
        result[str(day_number)] = _filter_modes(modes)
    return result


def sanitize_departure_date_groups(entries: Any) -> list[dict[str, Any]]:
    """Keep well-formed departure calendar groups, filtering transport modes."""
    if not isinstance(entries, list):
        return []
    groups = []
    for entry in entries:
        if not _valid_date_group(entry):
            continue
        group: dict[str, Any] = {
            "month": entry["month"].strip(),
            "year": _to_int(entry["year"]),
            "dates": [_to_int(d) for d in entry["dates"]],
        }
        if isinstance(entry.get("availableTransportModes"), list):
            group["availableTransportModes"] = _filter_modes(entry["availableTransportModes"])
        if isinstance(entry.get("dateTransportModes"), dict):
            group["dateTransportModes"] = _sanitize_date_transport_modes(entry["dateTransportModes"])
        _seat_fields(entry, group)
        groups.append(group)
    return groups


def sanitize_transport_options(entries: Any) -> list[dict[str, Any]]:
    """Keep options with a known mode and a numeric price."""
    if not isinstance(entries, list):
        return []
    options = []
    for option in entries:
        if not isinstance(option, dict) or str(option.get("mode")) not in TRANSPORT_MODES:
            continue
        price = _to_number(option.get("price"))
        if price is None:
            continue
        options.append({"mode": str(option["mode"]), "price": price})
    return options


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


def sanitize_itinerary(entries: Any) -> list[dict[str, Any]]:
    """Keep itinerary days with a non-negative day number and a title."""
    if not isinstance(entries, list):
        return []
    days = []
    for entry in entries:
        if not isinstance(entry, dict) or not _non_empty_str(entry.get("title")):
            continue
        day = _to_int(entry.get("day"))
        if day is None or day < 0:
            continue
        item: dict[str, Any] = {
            "day": day,
            "title": entry["title"].strip(),
            "description": str(entry.get("description") or "").strip(),
            "activities": _string_list(entry.get("activities")),
            "meals": _string_list(entry.get("meals")),
        }
        if entry.get("location"):
            item["location"] = str(entry["location"]).strip()
        if entry.get("accommodation"):
            item["accommodation"] = str(entry["accommodation"]).strip()
        days.append(item)
    return days


def sanitize_departures(entries: list[Any]) -> list[dict[str, Any]]:
    """Keep departures with label, origin and destination; sanitize nested arrays."""
    departures = []
    for dep in entries:
        if not isinstance(dep, dict):
            continue
        if not all(_non_empty_str(dep.get(key)) for key in ("label", "origin", "destination")):
            continue
        departure: dict[str, Any] = {
            "label": dep["label"].strip(),
            "origin": dep["origin"].strip(),
            "destination": dep["destination"].strip(),
            "transportOptions": sanitize_transport_options(dep.get("transportOptions")),
            "availableDates": sanitize_departure_date_groups(dep.get("availableDates")),
        }
        for key in ("price", "discountedPrice"):
            number = _to_number(dep.get(key))
            if number is not None:
                departure[key] = number
        if isinstance(dep.get("itinerary"), list):
            departure["itinerary"] = sanitize_itinerary(dep["itinerary"])
        departures.append(departure)
    return departures


def sanitize_event_update(payload: dict[str, Any]) -> dict[str, Any]:
    """
    Reduce a raw admin update payload to a safe partial update.

    Only keys the client supplied appear in the result, keyed by model
    attribute name. An explicitly supplied empty array is kept so lists can
    be cleared. ``discountedPrice`` and ``brochure`` accept ``null`` or
    ``""`` as an explicit clear.

    Raises:
        CastError: If a supplied numeric field cannot be coerced
    """
    data = {
        key: value
        for key, value in payload.items()
        if key not in SYSTEM_FIELDS
        and not (key in POPULATED_REFERENCES and isinstance(value, dict))
    }

    update: dict[str, Any] = {}

    for wire_name, attribute in SCALAR_FIELDS.items():
        present, value = _lookup(data, wire_name, attribute)
        if present and value is not None:
            update[attribute] = value.strip() if isinstance(value, str) else value

    for wire_name, attribute in NUMERIC_FIELDS.items():
        present, value = _lookup(data, wire_name, attribute)
        if not present or value is None:
            continue
        number = _to_number(value)
        if number is None:
            raise CastError(wire_name, f"Cast to Number failed for value {value!r}")
        update[attribute] = number if attribute == "price" else int(number)

    present, value = _lookup(data, "discountedPrice", "discounted_price")
    if present:
        if value is None or value == "":
            update["discounted_price"] = None
        else:
            number = _to_number(value)
            if number is None:
                raise CastError("discountedPrice", f"Cast to Number failed for value {value!r}")
            update["discounted_price"] = number

    present, value = _lookup(data, "brochure", "brochure")
    if present:
        update["brochure"] = None if value is None or str(value).strip() == "" else str(value).strip()

    present, value = _lookup(data, "duration", "duration")
    if present and value is not None:
        update["duration"] = str(value).strip()

    present, value = _lookup(data, "availableDates", "available_dates")
    if present and isinstance(value, list):
        update["available_dates"] = sanitize_date_groups(value)

    present, value = _lookup(data, "departures", "departures")
    if present and isinstance(value, list):
        update["departures"] = sanitize_departures(value)

    present, value = _lookup(data, "itinerary", "itinerary")
    if present and isinstance(value, list):
        update["itinerary"] = sanitize_itinerary(value)

    return update
