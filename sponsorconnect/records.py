"""
Record types shared by every storage backend.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

PLATFORM_TYPES = ("youtube", "instagram", "facebook")

APPLICATION_PENDING = "pending"
APPLICATION_APPROVED = "approved"
APPLICATION_REJECTED = "rejected"
APPLICATION_STATUSES = (
    APPLICATION_PENDING,
    APPLICATION_APPROVED,
    APPLICATION_REJECTED,
)

# Payment type -> fields that must be populated for it.
PAYMENT_FIELDS = {
    "bank": ("account_number", "ifsc_code"),
    "upi_number": ("upi_number",),
    "upi_id": ("upi_id",),
}
PAYMENT_TYPES = tuple(PAYMENT_FIELDS)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class UserRecord:
    id: int
    telegram_id: str
    username: str
    first_name: str
    last_name: Optional[str] = None
    email: Optional[str] = None
    profile_photo: Optional[str] = None
    is_admin: bool = False
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class SponsorshipRecord:
    id: int
    title: str
    description: str
    budget_min: int
    budget_max: int
    min_followers: int
    category: str
    deadline: datetime
    banner_image: Optional[str] = None
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class PlatformRecord:
    id: int
    user_id: int
    platform_type: str
    username: str
    follower_count: int
    verification_code: str
    is_verified: bool = False
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class ApplicationRecord:
    id: int
    user_id: int
    sponsorship_id: int
    platform_type: str
    platform_username: str
    follower_count: int
    category: str
    message: Optional[str] = None
    status: str = APPLICATION_PENDING
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class PaymentMethodRecord:
    id: int
    user_id: int
    type: str
    account_number: Optional[str] = None
    ifsc_code: Optional[str] = None
    upi_number: Optional[str] = None
    upi_id: Optional[str] = None
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)
