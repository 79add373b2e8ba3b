"""Service layer package."""

from .admin_user_service import AdminUserService
from .auth_service import AuthService
from .booking_service import BookingService
from .event_service import EventService
from .export_service import ExportService
from .idempotency_service import IdempotencyService
from .payment_service import PaymentService
from .settings_service import SettingsService
from .story_service import StoryService
from .testimonial_service import TestimonialService
from .user_service import UserService

__all__ = [
    "AdminUserService",
    "AuthService",
    "BookingService",
    "EventService",
    "ExportService",
    "IdempotencyService",
    "PaymentService",
    "SettingsService",
    "StoryService",
    "TestimonialService",
    "UserService",
]
