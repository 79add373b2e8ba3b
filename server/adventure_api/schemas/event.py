"""Event-related Pydantic schemas."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field, model_validator

from ..models.event import Difficulty, EventCategory, TransportMode
from .common import CamelModel


class Location(CamelModel):
    """Where an event takes place."""

    name: str = Field(..., min_length=1, max_length=200)
    state: Optional[str] = Field(None, max_length=100)
    country: str = Field("India", max_length=100)


class TransportOption(CamelModel):
    """Priced transport class offered on a departure."""

    mode: TransportMode
    price: float = Field(..., ge=0, description="Surcharge per booking in rupees")


class DateGroup(CamelModel):
    """Bookable days within one month of the flat event calendar."""

    month: str = Field(..., min_length=1, description="Month name, e.g. 'March'")
    year: int = Field(..., ge=2000, le=2100)
    dates: List[int] = Field(..., min_length=1, description="Days of month")
    location: Optional[str] = None
    available_seats: Optional[int] = Field(None, ge=0)
    total_seats: Optional[int] = Field(None, ge=0)


class DepartureDateGroup(CamelModel):
    """Bookable days within one month of a departure, with transport restrictions."""

    month: str = Field(..., min_length=1)
    year: int = Field(..., ge=2000, le=2100)
    dates: List[int] = Field(..., min_length=1)
    available_transport_modes: Optional[List[TransportMode]] = None
    date_transport_modes: Optional[Dict[str, List[TransportMode]]] = None
    available_seats: Optional[int] = Field(None, ge=0)
    total_seats: Optional[int] = Field(None, ge=0)


class ItineraryDay(CamelModel):
    """One day of an itinerary; day 0 is the pre-arrival entry."""

    day: int = Field(..., ge=0)
    title: str = Field(..., min_length=1)
    location: Optional[str] = None
    description: str = ""
    activities: List[str] = Field(default_factory=list)
    meals: List[str] = Field(default_factory=list)
    accommodation: Optional[str] = None


class Departure(CamelModel):
    """Named origin to destination leg with its own calendar and transport prices."""

    label: str = Field(..., min_length=1)
    origin: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)
    price: Optional[float] = Field(None, ge=0)
    discounted_price: Optional[float] = Field(None, ge=0)
    transport_options: List[TransportOption] = Field(default_factory=list)
    available_dates: List[DepartureDateGroup] = Field(default_factory=list)
    itinerary: Optional[List[ItineraryDay]] = None


class EventBase(CamelModel):
    """Fields shared by event create and response payloads."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    short_description: Optional[str] = Field(None, max_length=300)
    price: float = Field(..., ge=0)
    discounted_price: Optional[float] = Field(None, ge=0)
    duration: str = Field(..., min_length=1, max_length=100)
    category: EventCategory
    difficulty: Difficulty
    location: Location
    images: List[str] = Field(default_factory=list)
    inclusions: List[str] = Field(default_factory=list)
    exclusions: List[str] = Field(default_factory=list)
    highlights: List[str] = Field(default_factory=list)
    things_to_carry: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    brochure: Optional[str] = None
    max_participants: int = Field(20, ge=1)
    min_participants: int = Field(1, ge=1)
    available_dates: List[DateGroup] = Field(default_factory=list)
    departures: List[Departure] = Field(default_factory=list)
    itinerary: List[ItineraryDay] = Field(default_factory=list)
    is_active: bool = True
    is_featured: bool = False


class CreateEventRequest(EventBase):
    """Request schema for creating an event."""

    slug: Optional[str] = Field(None, max_length=220, pattern=r"^[a-z0-9-]+$")

    @model_validator(mode="after")
    def check_discount_and_group_size(self) -> "CreateEventRequest":
        if self.discounted_price is not None and self.discounted_price >= self.price:
            raise ValueError("discountedPrice must be lower than price")
        if self.min_participants > self.max_participants:
            raise ValueError("minParticipants cannot exceed maxParticipants")
        return self


class EventUpdate(CamelModel):
    """
    Partial event update.

    Validates the output of the admin sanitizer; only keys present in the
    input are considered supplied.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    slug: Optional[str] = Field(None, max_length=220, pattern=r"^[a-z0-9-]+$")
    description: Optional[str] = Field(None, min_length=1)
    short_description: Optional[str] = Field(None, max_length=300)
    price: Optional[float] = Field(None, ge=0)
    discounted_price: Optional[float] = Field(None, ge=0)
    duration: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[EventCategory] = None
    difficulty: Optional[Difficulty] = None
    location: Optional[Location] = None
    images: Optional[List[str]] = None
    inclusions: Optional[List[str]] = None
    exclusions: Optional[List[str]] = None
    highlights: Optional[List[str]] = None
    things_to_carry: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    brochure: Optional[str] = None
    max_participants: Optional[int] = Field(None, ge=1)
    min_participants: Optional[int] = Field(None, ge=1)
    available_dates: Optional[List[DateGroup]] = None
    departures: Optional[List[Departure]] = None
    itinerary: Optional[List[ItineraryDay]] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None


class Event(EventBase):
    """Event response schema."""

    id: str
    slug: str
    display_price: float = Field(..., description="Price shown to shoppers after any valid discount")
    created_at: datetime
    updated_at: datetime


class AdminEventUpdateResponse(CamelModel):
    """Response for an admin event update."""

    success: bool = True
    id: str
    title: str
    price: float
    discounted_price: Optional[float] = None
    duration: str
    updated_at: datetime


class PriceQuote(CamelModel):
    """Server-side price quote for a selection."""

    event_id: str
    participants: int
    departure: Optional[str] = None
    mode: Optional[TransportMode] = None
    unit_price: float
    transport_surcharge: float
    total_amount: float
    currency: str


class TransportOptionsResponse(CamelModel):
    """Transport options offered for one departure date."""

    departure: str
    month: str
    year: int
    date: int
    options: List[TransportOption]
