# app/storage/local.py

"""
Local JSON-file acta storage, used when the database is unavailable to
the service account or when running without a database at all.

The file is the only state: every operation re-reads it, so actas written
by another backend instance on the same path are seen. Serialization of
writes is per instance (an asyncio lock), so the store is meant for a
single service process.
"""

import asyncio
import json
import os
import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from app.actas.schemas import ActaDocument
from app.storage.base import (
    ConcurrentUpdateError, DocumentNotFoundError, StorageBackend,
    StorageError, StoragePermissionError, prepare_fields,
)
from app.utils.logger import get_logger

logger = get_logger(__name__)


def _json_default(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class LocalActaBackend(StorageBackend):
    """
    Stores actas in a single JSON file keyed by acta id.
    All access goes through one asyncio lock, so the version check and the
    write happen as one step within the process. File IO runs in a worker
    thread to keep the event loop free.
    """

    name = "local"

    def __init__(self, storage_path: str = "data/actas.json"):
        self.storage_path = storage_path
        self._lock = asyncio.Lock()

    def _read_file(self) -> Dict[str, Dict[str, Any]]:
        """Load acta data from the JSON file"""
        try:
            if not os.path.exists(self.storage_path):
                return {}
            with open(self.storage_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except PermissionError as e:
            raise StoragePermissionError(str(e)) from e
        except (OSError, ValueError) as e:
            logger.error("Could not read local acta store", path=self.storage_path, error_message=str(e))
            raise StorageError(str(e)) from e

    def _write_file(self, actas: Dict[str, Dict[str, Any]]) -> None:
        """Save acta data to the JSON file"""
        directory = os.path.dirname(self.storage_path)
        tmp_path = f"{self.storage_path}.tmp"
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(actas, f, indent=2, ensure_ascii=False, default=_json_default)
            os.replace(tmp_path, self.storage_path)
        except PermissionError as e:
            raise StoragePermissionError(str(e)) from e
        except OSError as e:
            logger.error("Could not write local acta store", path=self.storage_path, error_message=str(e))
            raise StorageError(str(e)) from e

    async def _load(self) -> Dict[str, Dict[str, Any]]:
        return await asyncio.to_thread(self._read_file)

    async def _store(self, actas: Dict[str, Dict[str, Any]]) -> None:
        await asyncio.to_thread(self._write_file, actas)

    @staticmethod
    def _to_document(record: Dict[str, Any]) -> ActaDocument:
        try:
            return ActaDocument.model_validate(record)
        except ValidationError as e:
            logger.error("Stored acta failed validation", acta_id=record.get("id"), error_message=str(e))
            raise StorageError(f"Stored acta {record.get('id')} is malformed") from e

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    async def get(self, acta_id: str) -> Optional[ActaDocument]:
        async with self._lock:
            record = (await self._load()).get(acta_id)
        return self._to_document(record) if record else None

    async def create(self, fields: Dict[str, Any]) -> str:
        values = prepare_fields(fields)
        acta_id = values.setdefault("id", uuid.uuid4().hex)
        now = self._now()
        values.update({"created_at": now, "updated_at": now, "version": 1})
        values = json.loads(json.dumps(values, default=_json_default))
        # Validate before persisting anything
        self._to_document(values)

        async with self._lock:
            actas = await self._load()
            if acta_id in actas:
                raise StorageError(f"Acta {acta_id} already exists")
            actas[acta_id] = values
            await self._store(actas)

        logger.info("Acta created in local store", acta_id=acta_id, path=self.storage_path)
        return acta_id

    async def update(
        self,
        acta_id: str,
        fields: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> ActaDocument:
        values = prepare_fields(fields)
        values.pop("id", None)

        async with self._lock:
            actas = await self._load()
            current = actas.get(acta_id)
            if current is None:
                raise DocumentNotFoundError(acta_id)
            if expected_version is not None and current.get("version", 1) != expected_version:
                raise ConcurrentUpdateError(acta_id, expected_version)

            updated = {**current, **values}
            updated["version"] = current.get("version", 1) + 1
            updated["updated_at"] = self._now()
            # Round-trip through JSON so the document matches what a reload would see
            updated = json.loads(json.dumps(updated, default=_json_default))
            document = self._to_document(updated)

            actas[acta_id] = updated
            await self._store(actas)
            return document

    async def list_for_organization(self, organization_id: str) -> List[ActaDocument]:
        async with self._lock:
            actas = await self._load()
        records = [r for r in actas.values() if r.get("organization_id") == organization_id]
        records.sort(key=lambda r: r.get("created_at") or "", reverse=True)
        return [self._to_document(r) for r in records]
