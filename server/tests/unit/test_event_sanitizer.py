"""Unit tests for admin event update sanitization."""

import pytest

from adventure_api.services.event_sanitizer import (
    CastError,
    sanitize_departures,
    sanitize_event_update,
    sanitize_itinerary,
)


def test_only_supplied_keys_are_returned():
    assert sanitize_event_update({"title": "  Roopkund  "}) == {"title": "Roopkund"}
    assert sanitize_event_update({}) == {}


def test_system_fields_and_populated_references_are_dropped():
    payload = {
        "_id": "abc",
        "id": "abc",
        "createdAt": "2030-01-01",
        "updatedAt": "2030-01-01",
        "__v": 3,
        "createdBy": {"_id": "u1", "name": "Admin"},
        "guide": {"_id": "g1"},
        "price": 100,
    }
    assert sanitize_event_update(payload) == {"price": 100.0}


@pytest.mark.parametrize("clear_value", [None, ""])
def test_discounted_price_explicit_clear(clear_value):
    assert sanitize_event_update({"discountedPrice": clear_value}) == {"discounted_price": None}


def test_absent_discounted_price_is_left_alone():
    assert "discounted_price" not in sanitize_event_update({"price": 9000})


def test_brochure_clear_and_trim():
    assert sanitize_event_update({"brochure": ""}) == {"brochure": None}
    assert sanitize_event_update({"brochure": " /files/b.pdf "}) == {"brochure": "/files/b.pdf"}


def test_numbers_are_coerced():
    result = sanitize_event_update({"price": "12500", "maxParticipants": "18", "discountedPrice": "9999.5"})
    assert result == {"price": 12500.0, "max_participants": 18, "discounted_price": 9999.5}


@pytest.mark.parametrize(
    ("key", "value"),
    [("price", "abc"), ("price", "NaN"), ("maxParticipants", True), ("discountedPrice", "twelve")],
)
def test_uncastable_numbers_raise_cast_error(key, value):
    with pytest.raises(CastError) as exc_info:
        sanitize_event_update({key: value})
    assert exc_info.value.path == key


def test_duration_is_stringified():
    assert sanitize_event_update({"duration": 5}) == {"duration": "5"}


def test_snake_case_keys_are_accepted():
    assert sanitize_event_update({"short_description": "Short", "is_active": False}) == {
        "short_description": "Short",
        "is_active": False,
    }


def test_explicit_empty_arrays_clear_lists():
    result = sanitize_event_update({"availableDates": [], "departures": [], "itinerary": []})
    assert result == {"available_dates": [], "departures": [], "itinerary": []}


def test_malformed_date_groups_are_dropped():
    result = sanitize_event_update({
        "availableDates": [
            {"month": "May", "year": "2030", "dates": ["3", 10], "availableSeats": "12"},
            {"month": "", "year": 2030, "dates": [1]},
            {"month": "June", "year": 2030, "dates": []},
            {"month": "July", "year": "soon", "dates": [1]},
            "garbage",
        ]
    })
    assert result["available_dates"] == [
        {"month": "May", "year": 2030, "dates": [3, 10], "availableSeats": 12},
    ]


def test_departures_require_label_origin_and_destination():
    departures = sanitize_departures([
        {"label": "Delhi to Delhi", "origin": "Delhi", "destination": "Delhi"},
        {"label": "No origin", "destination": "Delhi"},
        {"label": " ", "origin": "A", "destination": "B"},
        None,
    ])
    assert [dep["label"] for dep in departures] == ["Delhi to Delhi"]
    assert departures[0]["transportOptions"] == []
    assert departures[0]["availableDates"] == []


def test_departure_transport_modes_are_filtered_to_closed_set():
    [departure] = sanitize_departures([
        {
            "label": "Delhi to Delhi",
            "origin": "Delhi",
            "destination": "Delhi",
            "price": "12000",
            "discountedPrice": "",
            "transportOptions": [
                {"mode": "AC_TRAIN", "price": "1500"},
                {"mode": "HOVERCRAFT", "price": 100},
                {"mode": "BUS", "price": "free"},
            ],
            "availableDates": [
                {
                    "month": "April",
                    "year": 2030,
                    "dates": [10],
                    "availableTransportModes": ["AC_TRAIN", "TELEPORT"],
                    "dateTransportModes": {"10": ["FLIGHT", "CAMEL"], "x": ["BUS"]},
                }
            ],
        }
    ])
    assert departure["price"] == 12000.0
    assert "discountedPrice" not in departure
    assert departure["transportOptions"] == [{"mode": "AC_TRAIN", "price": 1500.0}]
    group = departure["availableDates"][0]
    assert group["availableTransportModes"] == ["AC_TRAIN"]
    assert group["dateTransportModes"] == {"10": ["FLIGHT"]}


def test_itinerary_days_need_title_and_non_negative_day():
    days = sanitize_itinerary([
        {"day": 0, "title": "Arrival", "activities": ["Check-in", "", None]},
        {"day": "2", "title": " Summit ", "meals": ["Breakfast"], "accommodation": "Tents"},
        {"day": -1, "title": "Before time"},
        {"day": 3, "title": ""},
        {"title": "No day"},
    ])
    assert days == [
        {"day": 0, "title": "Arrival", "description": "", "activities": ["Check-in"], "meals": []},
        {"day": 2, "title": "Summit", "description": "", "activities": [], "meals": ["Breakfast"],
         "accommodation": "Tents"},
    ]


def test_departure_itinerary_is_sanitized():
    [departure] = sanitize_departures([
        {"label": "A", "origin": "A", "destination": "B", "itinerary": [{"day": 1, "title": "Go"}, {"day": 2}]}
    ])
    assert [day["title"] for day in departure["itinerary"]] == ["Go"]
