"""
Storage interface shared by every backend, plus the in-memory implementation.
"""

from __future__ import annotations

import dataclasses
import threading
from typing import Any, Callable, Dict, Optional, Protocol, TypeVar

from sponsorconnect.records import (
    APPLICATION_PENDING,
    ApplicationRecord,
    PaymentMethodRecord,
    PlatformRecord,
    SponsorshipRecord,
    UserRecord,
    utcnow,
)

R = TypeVar("R")

# Table name -> record type. Also the file names used by FileDbClient.
RECORD_TYPES: Dict[str, type] = {
    "users": UserRecord,
    "sponsorships": SponsorshipRecord,
    "platforms": PlatformRecord,
    "applications": ApplicationRecord,
    "payment_methods": PaymentMethodRecord,
}

# Columns assigned by the backend, never taken from callers.
SERVER_FIELDS = ("id", "created_at")


class StorageError(RuntimeError):
    """Raised when a backend cannot complete an operation."""


class DbClient(Protocol):
    """Interface for record storage."""

    name: str

    # Users
    def get_user(self, user_id: int) -> Optional[UserRecord]:
        ...

    def get_user_by_telegram_id(self, telegram_id: str) -> Optional[UserRecord]:
        ...

    def create_user(self, fields: dict) -> UserRecord:
        ...

    def update_user(self, user_id: int, changes: dict) -> Optional[UserRecord]:
        ...

    # Sponsorships
    def list_active_sponsorships(self) -> list[SponsorshipRecord]:
        ...

    def get_sponsorship(self, sponsorship_id: int) -> Optional[SponsorshipRecord]:
        ...

    def create_sponsorship(self, fields: dict) -> SponsorshipRecord:
        ...

    def update_sponsorship(
        self, sponsorship_id: int, changes: dict
    ) -> Optional[SponsorshipRecord]:
        ...

    # Platform links
    def get_platform(self, platform_id: int) -> Optional[PlatformRecord]:
        ...

    def list_platforms(self) -> list[PlatformRecord]:
        ...

    def list_user_platforms(self, user_id: int) -> list[PlatformRecord]:
        ...

    def list_pending_platforms(self) -> list[PlatformRecord]:
        ...

    def create_platform(self, fields: dict) -> PlatformRecord:
        ...

    def update_platform(
        self, platform_id: int, changes: dict
    ) -> Optional[PlatformRecord]:
        ...

    # Applications
    def get_application(self, application_id: int) -> Optional[ApplicationRecord]:
        ...

    def list_user_applications(self, user_id: int) -> list[ApplicationRecord]:
        ...

    def list_pending_applications(self) -> list[ApplicationRecord]:
        ...

    def create_application(self, fields: dict) -> ApplicationRecord:
        ...

    def update_application(
        self, application_id: int, changes: dict
    ) -> Optional[ApplicationRecord]:
        ...

    # Payment methods
    def get_payment_method(self, method_id: int) -> Optional[PaymentMethodRecord]:
        ...

    def list_payment_methods(self) -> list[PaymentMethodRecord]:
        ...

    def list_user_payment_methods(self, user_id: int) -> list[PaymentMethodRecord]:
        ...

    def create_payment_method(self, fields: dict) -> PaymentMethodRecord:
        ...

    def update_payment_method(
        self, method_id: int, changes: dict
    ) -> Optional[PaymentMethodRecord]:
        ...


def client_fields(fields: dict) -> dict:
    """Drop server-assigned columns from caller supplied fields."""
    return {k: v for k, v in fields.items() if k not in SERVER_FIELDS}


class RecordTableClient:
    """
    Implements the DbClient operations on top of four table primitives.

    Subclasses decide where the rows live. Rows are frozen dataclasses, so an
    update always produces a new record via dataclasses.replace.
    """

    name = "records"

    def _all(self, table: str) -> list:
        raise NotImplementedError

    def _get(self, table: str, record_id: int):
        raise NotImplementedError

    def _insert(self, table: str, fields: dict):
        raise NotImplementedError

    def _replace(self, table: str, record_id: int, changes: dict):
        raise NotImplementedError

    def _select(self, table: str, predicate: Callable[[Any], bool]) -> list:
        return [row for row in self._all(table) if predicate(row)]

    @staticmethod
    def _merge(record: R, changes: dict) -> R:
        return dataclasses.replace(record, **client_fields(changes))

    # Users
    def get_user(self, user_id: int) -> Optional[UserRecord]:
        return self._get("users", user_id)

    def get_user_by_telegram_id(self, telegram_id: str) -> Optional[UserRecord]:
        matches = self._select("users", lambda u: u.telegram_id == telegram_id)
        return matches[0] if matches else None

    def create_user(self, fields: dict) -> UserRecord:
        return self._insert("users", fields)

    def update_user(self, user_id: int, changes: dict) -> Optional[UserRecord]:
        return self._replace("users", user_id, changes)

    # Sponsorships
    def list_active_sponsorships(self) -> list[SponsorshipRecord]:
        return self._select("sponsorships", lambda s: s.is_active)

    def get_sponsorship(self, sponsorship_id: int) -> Optional[SponsorshipRecord]:
        return self._get("sponsorships", sponsorship_id)

    def create_sponsorship(self, fields: dict) -> SponsorshipRecord:
        return self._insert("sponsorships", fields)

    def update_sponsorship(
        self, sponsorship_id: int, changes: dict
    ) -> Optional[SponsorshipRecord]:
        return self._replace("sponsorships", sponsorship_id, changes)

    # Platform links
    def get_platform(self, platform_id: int) -> Optional[PlatformRecord]:
        return self._get("platforms", platform_id)

    def list_platforms(self) -> list[PlatformRecord]:
        return self._all("platforms")

    def list_user_platforms(self, user_id: int) -> list[PlatformRecord]:
        return self._select("platforms", lambda p: p.user_id == user_id)

    def list_pending_platforms(self) -> list[PlatformRecord]:
        return self._select("platforms", lambda p: not p.is_verified)

    def create_platform(self, fields: dict) -> PlatformRecord:
        return self._insert("platforms", fields)

    def update_platform(
        self, platform_id: int, changes: dict
    ) -> Optional[PlatformRecord]:
        return self._replace("platforms", platform_id, changes)

    # Applications
    def get_application(self, application_id: int) -> Optional[ApplicationRecord]:
        return self._get("applications", application_id)

    def list_user_applications(self, user_id: int) -> list[ApplicationRecord]:
        return self._select("applications", lambda a: a.user_id == user_id)

    def list_pending_applications(self) -> list[ApplicationRecord]:
        return self._select(
            "applications", lambda a: a.status == APPLICATION_PENDING
        )

    def create_application(self, fields: dict) -> ApplicationRecord:
        return self._insert("applications", fields)

    def update_application(
        self, application_id: int, changes: dict
    ) -> Optional[ApplicationRecord]:
        return self._replace("applications", application_id, changes)

    # Payment methods
    def get_payment_method(self, method_id: int) -> Optional[PaymentMethodRecord]:
        return self._get("payment_methods", method_id)

    def list_payment_methods(self) -> list[PaymentMethodRecord]:
        return self._all("payment_methods")

    def list_user_payment_methods(self, user_id: int) -> list[PaymentMethodRecord]:
        return self._select(
            "payment_methods", lambda m: m.user_id == user_id and m.is_active
        )

    def create_payment_method(self, fields: dict) -> PaymentMethodRecord:
        return self._insert("payment_methods", fields)

    def update_payment_method(
        self, method_id: int, changes: dict
    ) -> Optional[PaymentMethodRecord]:
        return self._replace("payment_methods", method_id, changes)


class InMemoryDbClient(RecordTableClient):
    """Simple in-memory database for development and tests."""

    name = "memory"

    def __init__(self):
        self.tables: Dict[str, Dict[int, Any]] = {name: {} for name in RECORD_TYPES}
        self.next_ids: Dict[str, int] = {name: 1 for name in RECORD_TYPES}
        self._lock = threading.Lock()

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            for name in RECORD_TYPES:
                self.tables[name].clear()
                self.next_ids[name] = 1

    def _all(self, table: str) -> list:
        return list(self.tables[table].values())

    def _get(self, table: str, record_id: int):
        return self.tables[table].get(record_id)

    def _insert(self, table: str, fields: dict):
        with self._lock:
            record_id = self.next_ids[table]
            self.next_ids[table] = record_id + 1
            record = RECORD_TYPES[table](
                id=record_id, created_at=utcnow(), **client_fields(fields)
            )
            self.tables[table][record_id] = record
        return record

    def _replace(self, table: str, record_id: int, changes: dict):
        with self._lock:
            record = self.tables[table].get(record_id)
            if record is None:
                return None
            updated = self._merge(record, changes)
            self.tables[table][record_id] = updated
        return updated
