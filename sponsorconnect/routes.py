"""
HTTP routes for the SponsorConnect API.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from typing import Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from sponsorconnect.auth import find_or_create_user
from sponsorconnect.config import Settings
from sponsorconnect.db import DbClient
from sponsorconnect.dependencies import (
    get_db_client,
    get_profile_store,
    get_settings_dep,
    get_storage_client,
)
from sponsorconnect.profile import ProfileStore
from sponsorconnect.records import (
    APPLICATION_PENDING,
    PAYMENT_FIELDS,
    SponsorshipRecord,
)
from sponsorconnect.schemas import (
    ApplicationCreate,
    ApplicationResponse,
    ApplicationUpdate,
    HealthResponse,
    PaymentMethodCreate,
    PaymentMethodResponse,
    PaymentMethodUpdate,
    PlatformCreate,
    PlatformResponse,
    PlatformUpdate,
    ProfilePayload,
    ProfileResponse,
    ProfileSaveResponse,
    QuickApplyRequest,
    QuickApplyResponse,
    SponsorshipCreate,
    SponsorshipResponse,
    SponsorshipUpdate,
    TelegramAuthRequest,
    UpdateModel,
    UploadResponse,
    UserResponse,
    UserUpdate,
    check_budget,
    normalize_payment_fields,
)
from sponsorconnect.storage import StorageClient
from sponsorconnect.verification import generate_verification_code

logger = logging.getLogger(__name__)

router = APIRouter()

_PAYMENT_ACCOUNT_FIELDS = {name for fields in PAYMENT_FIELDS.values() for name in fields}


def _found(record, label: str):
    if record is None:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return record


def _changes(payload: UpdateModel) -> dict:
    changes = payload.changes()
    if not changes:
        raise HTTPException(status_code=400, detail="No changes supplied")
    return changes


def _open_sponsorship(db: DbClient, sponsorship_id: int) -> SponsorshipRecord:
    sponsorship = db.get_sponsorship(sponsorship_id)
    if sponsorship is None or not sponsorship.is_active:
        raise HTTPException(status_code=404, detail="Sponsorship not found")
    return sponsorship


def _create_application(db: DbClient, payload: ApplicationCreate):
    _open_sponsorship(db, payload.sponsorship_id)
    fields = payload.model_dump()
    fields["status"] = APPLICATION_PENDING
    application = db.create_application(fields)
    logger.info(
        "User %s applied to sponsorship %s (application %s)",
        application.user_id,
        application.sponsorship_id,
        application.id,
    )
    return application


@router.get("/health", response_model=HealthResponse)
def health(db: DbClient = Depends(get_db_client)):
    return HealthResponse(status="ok", storage=db.name)


# Auth and users


@router.post("/auth/telegram", response_model=UserResponse)
def auth_telegram(
    payload: TelegramAuthRequest,
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings_dep),
):
    user = find_or_create_user(
        db,
        telegram_id=payload.telegram_id,
        username=payload.username,
        first_name=payload.first_name,
        last_name=payload.last_name,
        profile_photo=payload.profile_photo,
        admin_telegram_id=settings.admin_telegram_id,
    )
    return UserResponse.model_validate(user)


@router.get("/user/{user_id}", response_model=UserResponse)
def get_user(user_id: int, db: DbClient = Depends(get_db_client)):
    return UserResponse.model_validate(_found(db.get_user(user_id), "User"))


@router.patch("/user/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int, payload: UserUpdate, db: DbClient = Depends(get_db_client)
):
    user = db.update_user(user_id, _changes(payload))
    return UserResponse.model_validate(_found(user, "User"))


# Sponsorships


@router.get("/sponsorships", response_model=list[SponsorshipResponse])
def list_sponsorships(db: DbClient = Depends(get_db_client)):
    return [SponsorshipResponse.model_validate(s) for s in db.list_active_sponsorships()]


@router.get("/sponsorship/{sponsorship_id}", response_model=SponsorshipResponse)
@router.get("/sponsorships/{sponsorship_id}", response_model=SponsorshipResponse)
def get_sponsorship(sponsorship_id: int, db: DbClient = Depends(get_db_client)):
    sponsorship = _found(db.get_sponsorship(sponsorship_id), "Sponsorship")
    return SponsorshipResponse.model_validate(sponsorship)


@router.post("/sponsorships", response_model=SponsorshipResponse, status_code=201)
def create_sponsorship(
    payload: SponsorshipCreate, db: DbClient = Depends(get_db_client)
):
    sponsorship = db.create_sponsorship(payload.model_dump())
    logger.info("Created sponsorship %s: %s", sponsorship.id, sponsorship.title)
    return SponsorshipResponse.model_validate(sponsorship)


@router.patch("/sponsorships/{sponsorship_id}", response_model=SponsorshipResponse)
def update_sponsorship(
    sponsorship_id: int,
    payload: SponsorshipUpdate,
    db: DbClient = Depends(get_db_client),
):
    changes = _changes(payload)
    existing = _found(db.get_sponsorship(sponsorship_id), "Sponsorship")
    try:
        check_budget(
            changes.get("budget_min", existing.budget_min),
            changes.get("budget_max", existing.budget_max),
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    sponsorship = _found(db.update_sponsorship(sponsorship_id, changes), "Sponsorship")
    return SponsorshipResponse.model_validate(sponsorship)


# Applications


@router.post("/apply", response_model=QuickApplyResponse)
def quick_apply(payload: QuickApplyRequest, db: DbClient = Depends(get_db_client)):
    application = _create_application(db, payload.to_application())
    return QuickApplyResponse(
        success=True, application=ApplicationResponse.model_validate(application)
    )


@router.post("/applications", response_model=ApplicationResponse, status_code=201)
def create_application(
    payload: ApplicationCreate, db: DbClient = Depends(get_db_client)
):
    return ApplicationResponse.model_validate(_create_application(db, payload))


@router.get("/applications/pending", response_model=list[ApplicationResponse])
def list_pending_applications(db: DbClient = Depends(get_db_client)):
    return [ApplicationResponse.model_validate(a) for a in db.list_pending_applications()]


@router.get("/applications/user/{user_id}", response_model=list[ApplicationResponse])
def list_user_applications(user_id: int, db: DbClient = Depends(get_db_client)):
    return [
        ApplicationResponse.model_validate(a) for a in db.list_user_applications(user_id)
    ]


@router.get("/applications/{application_id}", response_model=ApplicationResponse)
def get_application(application_id: int, db: DbClient = Depends(get_db_client)):
    application = _found(db.get_application(application_id), "Application")
    return ApplicationResponse.model_validate(application)


@router.patch("/applications/{application_id}", response_model=ApplicationResponse)
def update_application(
    application_id: int,
    payload: ApplicationUpdate,
    db: DbClient = Depends(get_db_client),
):
    changes = _changes(payload)
    existing = _found(db.get_application(application_id), "Application")
    new_status = changes.get("status", existing.status)
    if new_status != existing.status and existing.status != APPLICATION_PENDING:
        raise HTTPException(
            status_code=409,
            detail=f"Application is already {existing.status}",
        )
    application = _found(db.update_application(application_id, changes), "Application")
    if new_status != existing.status:
        logger.info("Application %s marked %s", application.id, new_status)
    return ApplicationResponse.model_validate(application)


# Platform links


@router.get("/platforms", response_model=list[PlatformResponse])
def list_platforms(db: DbClient = Depends(get_db_client)):
    return [PlatformResponse.model_validate(p) for p in db.list_platforms()]


@router.post("/platforms", response_model=PlatformResponse, status_code=201)
def create_platform(payload: PlatformCreate, db: DbClient = Depends(get_db_client)):
    fields = payload.model_dump()
    fields["verification_code"] = generate_verification_code()
    fields["is_verified"] = False
    platform = db.create_platform(fields)
    logger.info(
        "User %s linked %s account %s (platform %s)",
        platform.user_id,
        platform.platform_type,
        platform.username,
        platform.id,
    )
    return PlatformResponse.model_validate(platform)


@router.get("/platforms/pending", response_model=list[PlatformResponse])
def list_pending_platforms(db: DbClient = Depends(get_db_client)):
    return [PlatformResponse.model_validate(p) for p in db.list_pending_platforms()]


@router.get("/platforms/user/{user_id}", response_model=list[PlatformResponse])
def list_user_platforms(user_id: int, db: DbClient = Depends(get_db_client)):
    return [PlatformResponse.model_validate(p) for p in db.list_user_platforms(user_id)]


@router.get("/platforms/{platform_id}", response_model=PlatformResponse)
def get_platform(platform_id: int, db: DbClient = Depends(get_db_client)):
    return PlatformResponse.model_validate(
        _found(db.get_platform(platform_id), "Platform")
    )


@router.patch("/platforms/{platform_id}", response_model=PlatformResponse)
def update_platform(
    platform_id: int,
    payload: PlatformUpdate,
    db: DbClient = Depends(get_db_client),
):
    changes = _changes(payload)
    platform = _found(db.update_platform(platform_id, changes), "Platform")
    if "is_verified" in changes:
        logger.info("Platform %s verified=%s", platform.id, platform.is_verified)
    return PlatformResponse.model_validate(platform)


# Payment methods


@router.get("/payment-methods", response_model=list[PaymentMethodResponse])
def list_payment_methods(db: DbClient = Depends(get_db_client)):
    return [PaymentMethodResponse.model_validate(m) for m in db.list_payment_methods()]


@router.post("/payment-methods", response_model=PaymentMethodResponse, status_code=201)
def create_payment_method(
    payload: PaymentMethodCreate, db: DbClient = Depends(get_db_client)
):
    method = db.create_payment_method(payload.to_fields())
    logger.info("User %s added %s payment method %s", method.user_id, method.type, method.id)
    return PaymentMethodResponse.model_validate(method)


@router.get(
    "/payment-methods/user/{user_id}", response_model=list[PaymentMethodResponse]
)
def list_user_payment_methods(user_id: int, db: DbClient = Depends(get_db_client)):
    return [
        PaymentMethodResponse.model_validate(m)
        for m in db.list_user_payment_methods(user_id)
    ]


@router.get("/payment-methods/{method_id}", response_model=PaymentMethodResponse)
def get_payment_method(method_id: int, db: DbClient = Depends(get_db_client)):
    return PaymentMethodResponse.model_validate(
        _found(db.get_payment_method(method_id), "Payment method")
    )


@router.patch("/payment-methods/{method_id}", response_model=PaymentMethodResponse)
def update_payment_method(
    method_id: int,
    payload: PaymentMethodUpdate,
    db: DbClient = Depends(get_db_client),
):
    changes = _changes(payload)
    if "type" in changes or _PAYMENT_ACCOUNT_FIELDS & changes.keys():
        existing = _found(db.get_payment_method(method_id), "Payment method")
        merged = {**dataclasses.asdict(existing), **changes}
        try:
            normalized = normalize_payment_fields(merged["type"], merged, changes)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        for name in _PAYMENT_ACCOUNT_FIELDS | {"type"}:
            changes[name] = normalized[name]
    method = _found(db.update_payment_method(method_id, changes), "Payment method")
    return PaymentMethodResponse.model_validate(method)


# Profile and uploads


@router.get("/profile", response_model=ProfileResponse)
def get_profile(store: ProfileStore = Depends(get_profile_store)):
    return ProfileResponse.model_validate(store.read())


@router.post("/profile", response_model=ProfileSaveResponse)
def save_profile(
    payload: ProfilePayload, store: ProfileStore = Depends(get_profile_store)
):
    profile = payload.model_dump(by_alias=True)
    store.write(profile)
    return ProfileSaveResponse(
        success=True, profile=ProfileResponse.model_validate(profile)
    )


@router.post("/upload/profile-photo", response_model=UploadResponse)
async def upload_profile_photo(
    file: UploadFile = File(...),
    user_id: Optional[int] = Form(None, alias="userId"),
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_settings_dep),
):
    content_type = file.content_type or ""
    if not content_type.startswith("image/"):
        raise HTTPException(status_code=415, detail="Image file required")
    if user_id is not None:
        _found(db.get_user(user_id), "User")

    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Empty upload")
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="Image too large")

    extension = os.path.splitext(file.filename or "")[1].lower()
    path = f"profile-photos/{uuid4().hex}{extension}"
    storage.upload_bytes(path, data, content_type)
    url = storage.public_url(path)
    if user_id is not None:
        db.update_user(user_id, {"profile_photo": url})
    logger.info("Stored profile photo %s (%d bytes)", path, len(data))
    return UploadResponse(url=url)
