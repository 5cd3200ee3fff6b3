"""
Find-or-create of users from a Telegram identity.
"""

from __future__ import annotations

import logging
from typing import Optional

from sponsorconnect.db import DbClient
from sponsorconnect.records import UserRecord

logger = logging.getLogger(__name__)


def find_or_create_user(
    db: DbClient,
    *,
    telegram_id: str,
    username: str,
    first_name: str,
    last_name: Optional[str] = None,
    profile_photo: Optional[str] = None,
    admin_telegram_id: Optional[str] = None,
) -> UserRecord:
    """
    Return the user registered under ``telegram_id``, creating it on first
    sight. Exactly the configured admin id is flagged as admin. Existing
    users are returned unchanged.
    """
    user = db.get_user_by_telegram_id(telegram_id)
    if user:
        return user

    is_admin = bool(admin_telegram_id) and telegram_id == admin_telegram_id
    user = db.create_user(
        {
            "telegram_id": telegram_id,
            "username": username,
            "first_name": first_name,
            "last_name": last_name,
            "email": None,
            "profile_photo": profile_photo,
            "is_admin": is_admin,
        }
    )
    logger.info(
        "Registered user %s for telegram id %s (admin=%s)",
        user.id,
        telegram_id,
        is_admin,
    )
    return user
