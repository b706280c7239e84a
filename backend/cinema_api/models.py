from pydantic import BaseModel, ConfigDict, Field, EmailStr
from pydantic.alias_generators import to_camel
from typing import Any, List, Literal, Optional
from datetime import datetime

SeatStatus = Literal["available", "reserved", "occupied"]
TicketType = Literal["full", "half"]
ReservationStatus = Literal["pending", "confirmed", "cancelled"]
PaymentStatus = Literal["pending", "completed", "failed"]
PaymentMethod = Literal["credit_card", "debit_card", "pix", "bank_transfer"]
Role = Literal["user", "admin"]
TheaterType = Literal["standard", "3D", "IMAX", "VIP"]


class Document(BaseModel):
    """Base for everything stored in or read from the API: camelCase on the wire and in MongoDB."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


# Stored records

class User(Document):
    name: str = Field(..., min_length=1)
    email: EmailStr = Field(...)
    password: str = Field(..., description="Password hash, never returned by the API")
    role: Role = "user"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Movie(Document):
    custom_id: Optional[str] = None
    title: str = Field(..., min_length=1)
    synopsis: str = Field(...)
    director: str = Field(...)
    genres: List[str] = Field(..., min_length=1)
    duration: int = Field(..., ge=1, description="Minutes")
    classification: str = Field(...)
    poster: str = "no-image.jpg"
    release_date: datetime = Field(...)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Theater(Document):
    name: str = Field(..., min_length=1)
    capacity: int = Field(..., ge=1)
    type: TheaterType = "standard"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Seat(Document):
    row: str
    number: int
    status: SeatStatus = "available"


class Session(Document):
    movie: Any = Field(..., description="ObjectId of the movie")
    theater: Any = Field(..., description="ObjectId of the theater")
    starts_at: datetime = Field(..., alias="datetime")
    full_price: float = Field(..., ge=0)
    half_price: float = Field(..., ge=0)
    seats: List[Seat] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ReservedSeat(Document):
    row: str = Field(..., min_length=1)
    number: int = Field(..., ge=1)
    type: TicketType


class Reservation(Document):
    user: Any = Field(..., description="ObjectId of the user")
    session: Any = Field(..., description="ObjectId of the session")
    seats: List[ReservedSeat] = Field(..., min_length=1)
    total_price: float = Field(..., ge=0)
    status: ReservationStatus = "pending"
    payment_status: PaymentStatus = "pending"
    payment_method: PaymentMethod = "credit_card"
    payment_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Request bodies

class SessionCreate(Document):
    movie: str = Field(...)
    theater: str = Field(...)
    starts_at: datetime = Field(..., alias="datetime")
    full_price: float = Field(..., ge=0)
    half_price: float = Field(..., ge=0)


class SessionUpdate(Document):
    movie: Optional[str] = None
    theater: Optional[str] = None
    starts_at: Optional[datetime] = Field(None, alias="datetime")
    full_price: Optional[float] = Field(None, ge=0)
    half_price: Optional[float] = Field(None, ge=0)


class ReservationCreate(Document):
    session: str = Field(...)
    seats: List[ReservedSeat] = Field(..., min_length=1)
    payment_method: PaymentMethod = "credit_card"


class ReservationStatusUpdate(Document):
    status: ReservationStatus
