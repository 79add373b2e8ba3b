"""Property-based tests for pricing, calendar and lifecycle invariants."""

from types import SimpleNamespace

import pytest
from hypothesis import assume, given
from hypothesis import strategies as st

from adventure_api.core.exceptions import InvalidStatusTransitionError
from adventure_api.models.booking import BookingStatus, PaymentStatus
from adventure_api.models.event import TransportMode
from adventure_api.services.availability import (
    calculate_total,
    display_price,
    offered_transport_options,
    transport_surcharge,
)
from adventure_api.services.booking_service import _adjust_group_seats
from adventure_api.services.booking_state import ensure_transition
from adventure_api.services.event_sanitizer import sanitize_event_update

# Strategies for generating test data
prices = st.integers(min_value=1, max_value=500_000)
maybe_discounts = st.one_of(st.none(), st.integers(min_value=-1000, max_value=600_000))
participant_counts = st.integers(min_value=1, max_value=30)
modes = st.sampled_from([mode.value for mode in TransportMode])
transport_options = st.dictionaries(modes, st.integers(min_value=0, max_value=20_000), max_size=4)
statuses = st.sampled_from(list(BookingStatus))


def _event(price, discounted_price=None):
    return SimpleNamespace(price=price, discounted_price=discounted_price, departures=[], available_dates=[])


@given(price=prices, discounted=maybe_discounts)
def test_display_price_never_exceeds_price(price, discounted):
    shown = display_price(price, discounted)
    assert 0 < shown <= price
    if discounted is not None and 0 < discounted < price:
        assert shown == discounted
    else:
        assert shown == price


@given(price=prices, discounted=maybe_discounts, count=participant_counts)
def test_total_scales_with_participants(price, discounted, count):
    event = _event(price, discounted)
    assert calculate_total(event, count) == pytest.approx(count * display_price(price, discounted))


@given(price=prices, options=transport_options, count=participant_counts)
def test_transport_surcharge_is_charged_once(price, options, count):
    assume(options)
    mode, surcharge = next(iter(options.items()))
    departure = {
        "label": "Delhi to Delhi",
        "transportOptions": [{"mode": m, "price": p} for m, p in options.items()],
    }
    event = _event(price)
    with_mode = calculate_total(event, count, departure, mode)
    without_mode = calculate_total(event, count, departure)
    assert with_mode - without_mode == pytest.approx(surcharge)
    assert transport_surcharge(departure, mode) == surcharge


@given(
    options=transport_options,
    month_modes=st.lists(modes, max_size=4),
    day_modes=st.lists(modes, max_size=4),
    day=st.integers(min_value=1, max_value=28),
)
def test_offered_modes_are_a_subset_of_priced_modes(options, month_modes, day_modes, day):
    departure = {
        "transportOptions": [{"mode": m, "price": p} for m, p in options.items()],
        "availableDates": [
            {
                "month": "April",
                "year": 2030,
                "dates": [day],
                "availableTransportModes": month_modes,
                "dateTransportModes": {str(day): day_modes},
            }
        ],
    }
    offered = {option["mode"] for option in offered_transport_options(departure, "April", 2030, day)}
    assert offered <= set(options)
    if day_modes:
        assert offered == set(options) & set(day_modes)
    elif month_modes:
        assert offered == set(options) & set(month_modes)
    else:
        assert offered == set(options)


@given(
    total=st.integers(min_value=0, max_value=60),
    available=st.integers(min_value=0, max_value=60),
    deltas=st.lists(st.integers(min_value=-20, max_value=20), max_size=15),
)
def test_tracked_seats_stay_within_bounds(total, available, deltas):
    assume(available <= total)
    groups = [{"month": "May", "year": 2030, "dates": [1], "availableSeats": available, "totalSeats": total}]
    for delta in deltas:
        groups = _adjust_group_seats(groups, "May", 2030, delta)
        assert 0 <= groups[0]["availableSeats"] <= total


@given(
    payload=st.dictionaries(
        st.sampled_from(["title", "price", "location", "inclusions", "isActive", "brochure"]),
        st.one_of(st.text(max_size=10), st.booleans(), st.none()),
        max_size=3,
    )
)
def test_discounted_price_untouched_unless_supplied(payload):
    payload.pop("price", None)
    assert "discounted_price" not in sanitize_event_update(payload)


@given(transitions=st.lists(st.tuples(statuses, st.sampled_from(list(PaymentStatus))), max_size=12))
def test_terminal_states_are_never_left(transitions):
    current = BookingStatus.PENDING
    for requested, payment_status in transitions:
        try:
            ensure_transition(current, requested, payment_status)
        except InvalidStatusTransitionError:
            continue
        if current in (BookingStatus.CANCELLED, BookingStatus.COMPLETED):
            assert requested in (current, BookingStatus.REFUNDED)
        if current == BookingStatus.REFUNDED:
            assert requested == BookingStatus.REFUNDED
        current = requested
