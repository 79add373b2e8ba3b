"""FastAPI routers package."""

from .admin_events import router as admin_events_router
from .admin_users import router as admin_users_router
from .auth import router as auth_router
from .bookings import router as bookings_router
from .events import router as events_router
from .metrics import router as metrics_router
from .payment import router as payment_router
from .settings import router as settings_router
from .stories import router as stories_router
from .teams import router as teams_router
from .testimonials import router as testimonials_router
from .transactions import router as transactions_router
from .user import router as user_router

__all__ = [
    "admin_events_router",
    "admin_users_router",
    "auth_router",
    "bookings_router",
    "events_router",
    "metrics_router",
    "payment_router",
    "settings_router",
    "stories_router",
    "teams_router",
    "testimonials_router",
    "transactions_router",
    "user_router",
]
