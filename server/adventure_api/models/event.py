"""Event model definition."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, Float, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base


class EventCategory(str, Enum):
    """Event category enumeration."""
    TREKKING = "TREKKING"
    CAMPING = "CAMPING"
    WILDLIFE = "WILDLIFE"
    CULTURAL = "CULTURAL"
    ADVENTURE = "ADVENTURE"
    SPIRITUAL = "SPIRITUAL"


class Difficulty(str, Enum):
    """Event difficulty enumeration."""
    EASY = "EASY"
    MODERATE = "MODERATE"
    DIFFICULT = "DIFFICULT"
    EXTREME = "EXTREME"


class TransportMode(str, Enum):
    """Closed set of transport classes a departure can price."""
    AC_TRAIN = "AC_TRAIN"
    NON_AC_TRAIN = "NON_AC_TRAIN"
    FLIGHT = "FLIGHT"
    BUS = "BUS"


TRANSPORT_MODES = frozenset(mode.value for mode in TransportMode)


class Event(Base):
    """
    Travel package with pricing, a flat date calendar and structured departures.

    ``available_dates``, ``departures`` and ``itinerary`` are JSON documents:

    - date group: ``{month, year, dates, location?, availableSeats?, totalSeats?}``
    - departure: ``{label, origin, destination, price?, discountedPrice?,
      transportOptions: [{mode, price}], availableDates: [...], itinerary?: [...]}``
    - departure date group adds ``availableTransportModes`` and
      ``dateTransportModes`` (day-of-month -> modes)
    - itinerary day: ``{day, title, location?, description, activities, meals,
      accommodation?}``
    """

    __tablename__ = "events"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(220), nullable=False, unique=True, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    short_description: Mapped[str | None] = mapped_column(String(300), nullable=True)

    # Pricing (rupees)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    discounted_price: Mapped[float | None] = mapped_column(Float, nullable=True)

    duration: Mapped[str] = mapped_column(String(100), nullable=False)
    category: Mapped[EventCategory] = mapped_column(String(20), nullable=False, index=True)
    difficulty: Mapped[Difficulty] = mapped_column(String(20), nullable=False, index=True)
    location: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    inclusions: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    exclusions: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    highlights: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    things_to_carry: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    brochure: Mapped[str | None] = mapped_column(String(500), nullable=True)

    max_participants: Mapped[int] = mapped_column(Integer, nullable=False, default=20)
    min_participants: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    available_dates: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    departures: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    itinerary: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_by: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_event_price_non_negative"),
        CheckConstraint("min_participants >= 1", name="ck_event_min_participants_positive"),
        CheckConstraint("length(title) > 0", name="ck_event_title_not_empty"),
        CheckConstraint("length(slug) > 0", name="ck_event_slug_not_empty"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, slug='{self.slug}', price={self.price})>"
