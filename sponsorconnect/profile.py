"""
Single-slot profile used by the mini app's profile page.

This lives outside DbClient: it holds one JSON object, not a table.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Protocol

from sponsorconnect.db import StorageError
from sponsorconnect.file_db import write_json_atomic

logger = logging.getLogger(__name__)


class ProfileStore(Protocol):
    def read(self) -> dict:
        ...

    def write(self, profile: dict) -> None:
        ...


@dataclass
class InMemoryProfileStore:
    """Test double for the profile file."""

    profile: dict = field(default_factory=dict)

    def read(self) -> dict:
        return dict(self.profile)

    def write(self, profile: dict) -> None:
        self.profile = dict(profile)


class FileProfileStore:
    """Keeps the profile in ``<data_dir>/profile.json``."""

    def __init__(self, data_dir: str):
        os.makedirs(data_dir, exist_ok=True)
        self.data_dir = data_dir
        self.path = os.path.join(data_dir, "profile.json")

    def read(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                profile = json.load(f)
        except (OSError, ValueError) as exc:
            logger.exception("Failed to read profile from %s", self.path)
            raise StorageError("Cannot read profile") from exc
        if not isinstance(profile, dict):
            logger.error("Profile file %s does not hold an object", self.path)
            raise StorageError("Cannot read profile")
        return profile

    def write(self, profile: dict) -> None:
        try:
            write_json_atomic(self.data_dir, self.path, profile)
        except (OSError, TypeError, ValueError) as exc:
            logger.exception("Failed to write profile to %s", self.path)
            raise StorageError("Cannot write profile") from exc
