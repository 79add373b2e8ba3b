"""Booking status lifecycle rules."""

from ..core.exceptions import InvalidStatusTransitionError
from ..models.booking import BookingStatus, PaymentStatus

ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.REFUNDED: frozenset(),
}

# States whose seats are no longer held
RELEASED_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.REFUNDED})


def can_transition(
    current: BookingStatus,
    requested: BookingStatus,
    payment_status: PaymentStatus = PaymentStatus.PENDING,
) -> bool:
    """
    Whether a booking may move from ``current`` to ``requested``.

    Any status may become REFUNDED once its payment has succeeded.
    Requesting the current status is always allowed (a no-op).
    """
    current = BookingStatus(current)
    requested = BookingStatus(requested)
    if current == requested:
        return True
    if requested == BookingStatus.REFUNDED:
        return PaymentStatus(payment_status) == PaymentStatus.SUCCESS
    return requested in ALLOWED_TRANSITIONS[current]


def ensure_transition(
    current: BookingStatus,
    requested: BookingStatus,
    payment_status: PaymentStatus = PaymentStatus.PENDING,
) -> bool:
    """
    Validate a transition.

    Returns:
        False when the request is a no-op, True when the status changes

    Raises:
        InvalidStatusTransitionError: If the transition is not allowed
    """
    if not can_transition(current, requested, payment_status):
        detail = None
        if BookingStatus(requested) == BookingStatus.REFUNDED:
            detail = "Only bookings with a successful payment can be refunded"
        raise InvalidStatusTransitionError(
            current_status=BookingStatus(current).value,
            requested_status=BookingStatus(requested).value,
            detail=detail,
        )
    return BookingStatus(current) != BookingStatus(requested)
