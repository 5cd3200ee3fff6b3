"""
Flat JSON file backend.

Every table is a JSON array in its own file under ``data_dir``. Each call
reads the whole file and each write rewrites it; there is no locking, so
concurrent writers follow last-write-wins at file granularity.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
import tempfile
from datetime import datetime
from typing import Any

from dacite import Config, DaciteError, from_dict

from sponsorconnect.db import RECORD_TYPES, RecordTableClient, StorageError, client_fields
from sponsorconnect.records import as_utc, utcnow

logger = logging.getLogger(__name__)

_DACITE_CONFIG = Config(
    type_hooks={datetime: lambda value: as_utc(datetime.fromisoformat(value))}
)


def _json_default(value: Any):
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def write_json_atomic(directory: str, path: str, data: Any) -> None:
    """Write ``data`` as JSON to a temp file in ``directory``, then move it to ``path``."""
    name = os.path.basename(path)
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=f".{name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, default=_json_default)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


class FileDbClient(RecordTableClient):
    """Stores each table as ``<data_dir>/<table>.json``."""

    name = "file"

    def __init__(self, data_dir: str):
        if not data_dir:
            raise ValueError("DATA_DIR is required for FileDbClient")
        self.data_dir = data_dir
        try:
            os.makedirs(data_dir, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot create data directory {data_dir}") from exc

    def path_for(self, table: str) -> str:
        return os.path.join(self.data_dir, f"{table}.json")

    def _read(self, table: str) -> list:
        path = self.path_for(table)
        if not os.path.exists(path):
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                rows = json.load(f)
            return [
                from_dict(RECORD_TYPES[table], row, config=_DACITE_CONFIG)
                for row in rows
            ]
        except (OSError, ValueError, TypeError, DaciteError) as exc:
            logger.exception("Failed to read %s", path)
            raise StorageError(f"Cannot read {table}") from exc

    def _write(self, table: str, records: list) -> None:
        path = self.path_for(table)
        rows = [dataclasses.asdict(record) for record in records]
        try:
            write_json_atomic(self.data_dir, path, rows)
        except (OSError, TypeError, ValueError) as exc:
            logger.exception("Failed to write %s", path)
            raise StorageError(f"Cannot write {table}") from exc

    def _all(self, table: str) -> list:
        return self._read(table)

    def _get(self, table: str, record_id: int):
        for record in self._read(table):
            if record.id == record_id:
                return record
        return None

    def _insert(self, table: str, fields: dict):
        records = self._read(table)
        record_id = max((r.id for r in records), default=0) + 1
        record = RECORD_TYPES[table](
            id=record_id, created_at=utcnow(), **client_fields(fields)
        )
        records.append(record)
        self._write(table, records)
        return record

    def _replace(self, table: str, record_id: int, changes: dict):
        records = self._read(table)
        for index, record in enumerate(records):
            if record.id == record_id:
                updated = self._merge(record, changes)
                records[index] = updated
                self._write(table, records)
                return updated
        return None
