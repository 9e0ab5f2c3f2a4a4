"""
Database Schemas for FixIt

MongoDB collections are defined below using Pydantic models. Each class name is
converted to lowercase for the collection name (User -> "user").

We will use these collections:
- user: clients and helpers
- service: offers published by helpers
- booking: a client's booking of a helper's service
- review: a client's rating of a completed booking
- notification: messages for a user about bookings and reviews
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field

Role = Literal["client", "helper"]
BookingStatus = Literal["pending", "confirmed", "in-progress", "completed", "cancelled"]
PaymentStatus = Literal["pending", "paid", "refunded"]
NotificationType = Literal["booking", "review", "system"]

BOOKING_STATUSES = ("pending", "confirmed", "in-progress", "completed", "cancelled")


class Address(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class Certification(BaseModel):
    name: str
    issuer: Optional[str] = None
    date: Optional[datetime] = None


class User(BaseModel):
    email: EmailStr
    password_hash: str = Field(..., description="BCrypt hash of password")
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    role: Role
    avatar: Optional[str] = None
    address: Optional[Address] = None
    # Helper-specific fields
    expertise: List[str] = []
    hourly_rate: Optional[float] = Field(None, ge=0)
    experience: Optional[str] = None
    availability: bool = True
    rating: float = Field(0, ge=0, le=5)
    total_reviews: int = 0
    bio: Optional[str] = Field(None, max_length=500)
    certifications: List[Certification] = []
    # Client-specific fields
    booking_history: List[str] = Field([], description="Booking ids")
    is_verified: bool = False
    is_active: bool = True


class Service(BaseModel):
    helper_id: str = Field(..., description="Reference to user _id (helper)")
    title: str = Field(..., min_length=1, max_length=120)
    description: str = Field(..., min_length=1)
    category: str
    price: float = Field(..., ge=0)
    duration: Optional[int] = Field(None, ge=0, description="Estimated duration in minutes")
    images: List[str] = []
    tags: List[str] = []
    is_active: bool = True


class Booking(BaseModel):
    client_id: str
    helper_id: str
    service_id: str
    scheduled_date: datetime
    address: Address
    notes: Optional[str] = None
    total_price: float = Field(..., ge=0)
    status: BookingStatus = "pending"
    payment_status: PaymentStatus = "pending"
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None


class Review(BaseModel):
    booking_id: str
    client_id: str
    helper_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=500)
    response: Optional[str] = Field(None, max_length=500)
    response_date: Optional[datetime] = None


class Notification(BaseModel):
    user_id: str
    type: NotificationType
    title: str
    message: str
    related_id: Optional[str] = None
    is_read: bool = False
