"""
SQLAlchemy-backed storage. Accepts any SQLAlchemy URL (Postgres in
production, SQLite for tests and local runs).
"""

from __future__ import annotations

import dataclasses
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    create_engine,
    select,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from sponsorconnect.db import RECORD_TYPES, StorageError, client_fields
from sponsorconnect.records import (
    APPLICATION_PENDING,
    ApplicationRecord,
    PaymentMethodRecord,
    PlatformRecord,
    SponsorshipRecord,
    UserRecord,
    as_utc,
    utcnow,
)

logger = logging.getLogger(__name__)


class SqlDbClient:
    """Relational implementation of the DbClient interface."""

    name = "sql"

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            logger.exception("Failed to initialize database schema")
            raise StorageError("Database unavailable") from exc

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with self.Session() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.exception("Database operation failed")
            raise StorageError("Database operation failed") from exc

    def _to_record(self, table: str, row):
        record_type = RECORD_TYPES[table]
        values = {}
        for f in dataclasses.fields(record_type):
            value = getattr(row, f.name)
            # SQLite hands back naive datetimes.
            if isinstance(value, datetime):
                value = as_utc(value)
            values[f.name] = value
        return record_type(**values)

    def _get(self, table: str, record_id: int):
        with self._session() as session:
            row = session.get(ROW_TYPES[table], record_id)
            return self._to_record(table, row) if row else None

    def _insert(self, table: str, fields: dict):
        with self._session() as session:
            row = ROW_TYPES[table](created_at=utcnow(), **client_fields(fields))
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_record(table, row)

    def _update(self, table: str, record_id: int, changes: dict):
        with self._session() as session:
            row = session.get(ROW_TYPES[table], record_id)
            if not row:
                return None
            for key, value in client_fields(changes).items():
                setattr(row, key, value)
            session.commit()
            session.refresh(row)
            return self._to_record(table, row)

    def _query(self, table: str, *criteria) -> list:
        row_type = ROW_TYPES[table]
        stmt = select(row_type).where(*criteria).order_by(row_type.id.asc())
        with self._session() as session:
            rows = session.execute(stmt).scalars().all()
            return [self._to_record(table, row) for row in rows]

    # Users
    def get_user(self, user_id: int) -> Optional[UserRecord]:
        return self._get("users", user_id)

    def get_user_by_telegram_id(self, telegram_id: str) -> Optional[UserRecord]:
        matches = self._query("users", UserRow.telegram_id == telegram_id)
        return matches[0] if matches else None

    def create_user(self, fields: dict) -> UserRecord:
        return self._insert("users", fields)

    def update_user(self, user_id: int, changes: dict) -> Optional[UserRecord]:
        return self._update("users", user_id, changes)

    # Sponsorships
    def list_active_sponsorships(self) -> list[SponsorshipRecord]:
        return self._query("sponsorships", SponsorshipRow.is_active.is_(True))

    def get_sponsorship(self, sponsorship_id: int) -> Optional[SponsorshipRecord]:
        return self._get("sponsorships", sponsorship_id)

    def create_sponsorship(self, fields: dict) -> SponsorshipRecord:
        return self._insert("sponsorships", fields)

    def update_sponsorship(
        self, sponsorship_id: int, changes: dict
    ) -> Optional[SponsorshipRecord]:
        return self._update("sponsorships", sponsorship_id, changes)

    # Platform links
    def get_platform(self, platform_id: int) -> Optional[PlatformRecord]:
        return self._get("platforms", platform_id)

    def list_platforms(self) -> list[PlatformRecord]:
        return self._query("platforms")

    def list_user_platforms(self, user_id: int) -> list[PlatformRecord]:
        return self._query("platforms", PlatformRow.user_id == user_id)

    def list_pending_platforms(self) -> list[PlatformRecord]:
        return self._query("platforms", PlatformRow.is_verified.is_(False))

    def create_platform(self, fields: dict) -> PlatformRecord:
        return self._insert("platforms", fields)

    def update_platform(
        self, platform_id: int, changes: dict
    ) -> Optional[PlatformRecord]:
        return self._update("platforms", platform_id, changes)

    # Applications
    def get_application(self, application_id: int) -> Optional[ApplicationRecord]:
        return self._get("applications", application_id)

    def list_user_applications(self, user_id: int) -> list[ApplicationRecord]:
        return self._query("applications", ApplicationRow.user_id == user_id)

    def list_pending_applications(self) -> list[ApplicationRecord]:
        return self._query(
            "applications", ApplicationRow.status == APPLICATION_PENDING
        )

    def create_application(self, fields: dict) -> ApplicationRecord:
        return self._insert("applications", fields)

    def update_application(
        self, application_id: int, changes: dict
    ) -> Optional[ApplicationRecord]:
        return self._update("applications", application_id, changes)

    # Payment methods
    def get_payment_method(self, method_id: int) -> Optional[PaymentMethodRecord]:
        return self._get("payment_methods", method_id)

    def list_payment_methods(self) -> list[PaymentMethodRecord]:
        return self._query("payment_methods")

    def list_user_payment_methods(self, user_id: int) -> list[PaymentMethodRecord]:
        return self._query(
            "payment_methods",
            PaymentMethodRow.user_id == user_id,
            PaymentMethodRow.is_active.is_(True),
        )

    def create_payment_method(self, fields: dict) -> PaymentMethodRecord:
        return self._insert("payment_methods", fields)

    def update_payment_method(
        self, method_id: int, changes: dict
    ) -> Optional[PaymentMethodRecord]:
        return self._update("payment_methods", method_id, changes)


Base = declarative_base()


class UserRow(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    telegram_id = Column(String, nullable=False, unique=True, index=True)
    username = Column(String, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=True)
    email = Column(String, nullable=True)
    profile_photo = Column(String, nullable=True)
    is_admin = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False)


class SponsorshipRow(Base):
    __tablename__ = "sponsorships"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    banner_image = Column(String, nullable=True)
    budget_min = Column(Integer, nullable=False)
    budget_max = Column(Integer, nullable=False)
    min_followers = Column(Integer, nullable=False)
    category = Column(String, nullable=False)
    deadline = Column(DateTime(timezone=True), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)


class PlatformRow(Base):
    __tablename__ = "platforms"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    platform_type = Column(String, nullable=False)
    username = Column(String, nullable=False)
    follower_count = Column(Integer, nullable=False)
    verification_code = Column(String, nullable=False)
    is_verified = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)


class ApplicationRow(Base):
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    sponsorship_id = Column(Integer, nullable=False, index=True)
    platform_type = Column(String, nullable=False)
    platform_username = Column(String, nullable=False)
    follower_count = Column(Integer, nullable=False)
    category = Column(String, nullable=False)
    message = Column(Text, nullable=True)
    status = Column(String, nullable=False, default=APPLICATION_PENDING, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)


class PaymentMethodRow(Base):
    __tablename__ = "payment_methods"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    type = Column(String, nullable=False)
    account_number = Column(String, nullable=True)
    ifsc_code = Column(String, nullable=True)
    upi_number = Column(String, nullable=True)
    upi_id = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False)


ROW_TYPES = {
    "users": UserRow,
    "sponsorships": SponsorshipRow,
    "platforms": PlatformRow,
    "applications": ApplicationRow,
    "payment_methods": PaymentMethodRow,
}
