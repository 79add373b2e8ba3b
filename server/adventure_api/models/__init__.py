"""Models module exporting all database models."""

from .audit import AdminAuditLog
from .booking import Booking, BookingStatus, PaymentStatus
from .event import Difficulty, Event, EventCategory, TransportMode
from .idempotency import IdempotencyRecord
from .site_settings import SiteSettings
from .story import Story, StoryCategory
from .team import TeamMember, TeamType
from .testimonial import Testimonial
from .transaction import TransactionLog, TransactionStatus, TransactionType
from .user import User, UserRole, wishlist_table

__all__ = [
    # Catalogue
    "Event",
    "EventCategory",
    "Difficulty",
    "TransportMode",

    # Bookings
    "Booking",
    "BookingStatus",
    "PaymentStatus",
    "TransactionLog",
    "TransactionType",
    "TransactionStatus",

    # Accounts
    "User",
    "UserRole",
    "wishlist_table",

    # Content
    "Testimonial",
    "Story",
    "StoryCategory",
    "SiteSettings",
    "TeamMember",
    "TeamType",

    # Operations
    "AdminAuditLog",
    "IdempotencyRecord",
]
