"""
Pydantic schemas for the SponsorConnect API.

Wire names are camelCase to match the mini app; Python attribute names stay
snake_case, which is also what ``changes()`` hands to the storage layer.
"""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from sponsorconnect.records import PAYMENT_FIELDS, as_utc

PlatformType = Literal["youtube", "instagram", "facebook"]
ApplicationStatus = Literal["pending", "approved", "rejected"]
PaymentType = Literal["bank", "upi_number", "upi_id"]


class RequestModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )


class ResponseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class UpdateModel(RequestModel):
    """Partial update body. Only fields the client sent are applied."""

    # Fields that may be omitted but never set to null.
    not_nullable: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="after")
    def reject_nulls(self):
        for name in self.not_nullable:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


def check_budget(budget_min: Optional[int], budget_max: Optional[int]) -> None:
    if budget_min is not None and budget_max is not None and budget_min > budget_max:
        raise ValueError("budgetMin must not exceed budgetMax")


def normalize_payment_fields(
    payment_type: str, values: dict, requested: Optional[dict] = None
) -> dict:
    """
    Return ``values`` with the fields of ``payment_type`` required and all
    other account fields cleared.

    ``requested`` holds the fields the client sent (defaults to ``values``).
    Sending a field of another payment type is an error; stale stored
    fields of another type are cleared silently.
    """
    requested = values if requested is None else requested
    normalized = dict(values)
    wanted = PAYMENT_FIELDS[payment_type]
    for fields in PAYMENT_FIELDS.values():
        for name in fields:
            if name not in wanted and requested.get(name) is not None:
                raise ValueError(f"{to_camel(name)} does not apply to {payment_type}")
    for name in wanted:
        if not normalized.get(name):
            raise ValueError(f"{to_camel(name)} is required for {payment_type}")
    for fields in PAYMENT_FIELDS.values():
        for name in fields:
            if name not in wanted:
                normalized[name] = None
    return normalized


# Users


class TelegramAuthRequest(RequestModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    telegram_id: str = Field(..., min_length=1, max_length=64)
    username: str = Field(..., min_length=1)
    first_name: str = Field(..., min_length=1)
    last_name: Optional[str] = None
    profile_photo: Optional[str] = None


class UserUpdate(UpdateModel):
    not_nullable = ("username", "first_name", "is_admin")

    username: Optional[str] = Field(default=None, min_length=1)
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = None
    email: Optional[str] = None
    profile_photo: Optional[str] = None
    is_admin: Optional[bool] = None


class UserResponse(ResponseModel):
    id: int
    telegram_id: str
    username: str
    first_name: str
    last_name: Optional[str] = None
    email: Optional[str] = None
    profile_photo: Optional[str] = None
    is_admin: bool
    created_at: datetime


# Sponsorships


class SponsorshipCreate(RequestModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    banner_image: Optional[str] = None
    budget_min: int = Field(..., ge=0)
    budget_max: int = Field(..., ge=0)
    min_followers: int = Field(..., ge=0)
    category: str = Field(..., min_length=1)
    deadline: datetime
    is_active: bool = True

    @field_validator("deadline")
    @classmethod
    def deadline_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def budget_range(self):
        check_budget(self.budget_min, self.budget_max)
        return self


class SponsorshipUpdate(UpdateModel):
    not_nullable = (
        "title",
        "description",
        "budget_min",
        "budget_max",
        "min_followers",
        "category",
        "deadline",
        "is_active",
    )

    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    banner_image: Optional[str] = None
    budget_min: Optional[int] = Field(default=None, ge=0)
    budget_max: Optional[int] = Field(default=None, ge=0)
    min_followers: Optional[int] = Field(default=None, ge=0)
    category: Optional[str] = Field(default=None, min_length=1)
    deadline: Optional[datetime] = None
    is_active: Optional[bool] = None

    @field_validator("deadline")
    @classmethod
    def deadline_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value) if value is not None else None


class SponsorshipResponse(ResponseModel):
    id: int
    title: str
    description: str
    banner_image: Optional[str] = None
    budget_min: int
    budget_max: int
    min_followers: int
    category: str
    deadline: datetime
    is_active: bool
    created_at: datetime


# Platform links


class PlatformCreate(RequestModel):
    user_id: int = Field(..., gt=0)
    platform_type: PlatformType
    username: str = Field(..., min_length=1)
    follower_count: int = Field(..., ge=0)


class PlatformUpdate(UpdateModel):
    not_nullable = ("platform_type", "username", "follower_count", "is_verified")

    platform_type: Optional[PlatformType] = None
    username: Optional[str] = Field(default=None, min_length=1)
    follower_count: Optional[int] = Field(default=None, ge=0)
    is_verified: Optional[bool] = None


class PlatformResponse(ResponseModel):
    id: int
    user_id: int
    platform_type: str
    username: str
    follower_count: int
    verification_code: str
    is_verified: bool
    created_at: datetime


# Applications


class ApplicationCreate(RequestModel):
    user_id: int = Field(..., gt=0)
    sponsorship_id: int = Field(..., gt=0)
    platform_type: PlatformType
    platform_username: str = Field(..., min_length=1)
    follower_count: int = Field(..., ge=0)
    category: str = Field(..., min_length=1)
    message: Optional[str] = None


class QuickApplyRequest(RequestModel):
    """Body sent by the mini app's apply dialog."""

    user_id: int = Field(..., gt=0)
    sponsorship_id: int = Field(..., gt=0)
    platform: PlatformType
    username: str = Field(..., min_length=1)
    follower_count: int = Field(..., ge=0)
    category: str = Field(..., min_length=1)
    message: Optional[str] = None

    def to_application(self) -> ApplicationCreate:
        return ApplicationCreate(
            user_id=self.user_id,
            sponsorship_id=self.sponsorship_id,
            platform_type=self.platform,
            platform_username=self.username,
            follower_count=self.follower_count,
            category=self.category,
            message=self.message,
        )


class ApplicationUpdate(UpdateModel):
    not_nullable = (
        "platform_type",
        "platform_username",
        "follower_count",
        "category",
        "status",
    )

    platform_type: Optional[PlatformType] = None
    platform_username: Optional[str] = Field(default=None, min_length=1)
    follower_count: Optional[int] = Field(default=None, ge=0)
    category: Optional[str] = Field(default=None, min_length=1)
    message: Optional[str] = None
    status: Optional[ApplicationStatus] = None


class ApplicationResponse(ResponseModel):
    id: int
    user_id: int
    sponsorship_id: int
    platform_type: str
    platform_username: str
    follower_count: int
    category: str
    message: Optional[str] = None
    status: str
    created_at: datetime


class QuickApplyResponse(ResponseModel):
    success: bool
    application: ApplicationResponse


# Payment methods


class PaymentMethodCreate(RequestModel):
    user_id: int = Field(..., gt=0)
    type: PaymentType
    account_number: Optional[str] = None
    ifsc_code: Optional[str] = None
    upi_number: Optional[str] = None
    upi_id: Optional[str] = None
    is_active: bool = True

    def to_fields(self) -> dict:
        return normalize_payment_fields(self.type, self.model_dump())

    @model_validator(mode="after")
    def type_fields(self):
        normalize_payment_fields(self.type, self.model_dump())
        return self


class PaymentMethodUpdate(UpdateModel):
    not_nullable = ("type", "is_active")

    type: Optional[PaymentType] = None
    account_number: Optional[str] = None
    ifsc_code: Optional[str] = None
    upi_number: Optional[str] = None
    upi_id: Optional[str] = None
    is_active: Optional[bool] = None


class PaymentMethodResponse(ResponseModel):
    id: int
    user_id: int
    type: str
    account_number: Optional[str] = None
    ifsc_code: Optional[str] = None
    upi_number: Optional[str] = None
    upi_id: Optional[str] = None
    is_active: bool
    created_at: datetime


# Profile, uploads, health


class ProfilePayload(RequestModel):
    # The profile page posts its whole state, id included; the slot has no id.
    id: Optional[int] = Field(default=None, exclude=True)
    username: Optional[str] = None
    telegram_handle: Optional[str] = None
    email: Optional[str] = None
    profile_photo: Optional[str] = None


class ProfileResponse(ResponseModel):
    username: Optional[str] = None
    telegram_handle: Optional[str] = None
    email: Optional[str] = None
    profile_photo: Optional[str] = None


class ProfileSaveResponse(ResponseModel):
    success: bool
    profile: ProfileResponse


class UploadResponse(BaseModel):
    url: str


class HealthResponse(BaseModel):
    status: Literal["ok"]
    storage: str
