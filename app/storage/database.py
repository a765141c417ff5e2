# app/storage/database.py

"""
Database-backed acta storage using async SQLAlchemy 2.x.
"""

import uuid
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy import select, update
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.actas.models import Acta
from app.actas.schemas import ActaDocument
from app.storage.base import (
    ConcurrentUpdateError, DocumentNotFoundError, StorageBackend,
    StorageError, StoragePermissionError, prepare_fields,
)
from app.utils.logger import get_logger

logger = get_logger(__name__)

PERMISSION_MARKERS = (
    "permission",
    "denied",
    "insufficient",
    "not authorized",
    "read-only",
    "readonly",
)


def is_permission_error(error: Exception) -> bool:
    """Whether a driver error means the account lacks rights on the store."""
    message = str(getattr(error, "orig", None) or error).lower()
    return any(marker in message for marker in PERMISSION_MARKERS)


class DatabaseActaBackend(StorageBackend):
    """
    Repository for acta documents in the relational database.
    Writes are committed immediately so the version check is effective
    for concurrent requests.
    """

    name = "database"

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _run(self, operation: str, coro):
        try:
            return await coro
        except DBAPIError as e:
            await self.db.rollback()
            if is_permission_error(e):
                logger.warning("Database denied acta operation", operation=operation, error_message=str(e))
                raise StoragePermissionError(str(e)) from e
            logger.error("Database error in acta operation", operation=operation, error_message=str(e))
            raise StorageError(str(e)) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Database error in acta operation", operation=operation, error_message=str(e))
            raise StorageError(str(e)) from e

    @staticmethod
    def _to_document(row: Acta) -> ActaDocument:
        try:
            return ActaDocument.model_validate({
                "id": row.id,
                "organization_id": row.organization_id,
                "created_by": row.created_by,
                "status": row.status,
                "meeting_info": row.meeting_info,
                "attendees": row.attendees or [],
                "agenda": row.agenda or [],
                "raw_content": row.raw_content or "",
                "audio_url": row.audio_url,
                "generated_content": row.generated_content,
                "pdf_url": row.pdf_url,
                "created_at": row.created_on,
                "updated_at": row.updated_on,
                "signature_request_sent_at": row.signature_request_sent_at,
                "completed_at": row.completed_at,
                "version": row.version,
            })
        except ValidationError as e:
            logger.error("Stored acta failed validation", acta_id=row.id, error_message=str(e))
            raise StorageError(f"Stored acta {row.id} is malformed") from e

    async def _fetch(self, acta_id: str) -> Optional[Acta]:
        stmt = (
            select(Acta)
            .where(Acta.id == acta_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get(self, acta_id: str) -> Optional[ActaDocument]:
        row = await self._run("get", self._fetch(acta_id))
        return self._to_document(row) if row else None

    async def create(self, fields: Dict[str, Any]) -> str:
        values = prepare_fields(fields)
        values.setdefault("id", uuid.uuid4().hex)
        values["version"] = 1

        async def _create():
            self.db.add(Acta(**values))
            await self.db.commit()

        await self._run("create", _create())
        logger.info("Acta created in database", acta_id=values["id"])
        return values["id"]

    async def update(
        self,
        acta_id: str,
        fields: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> ActaDocument:
        values = prepare_fields(fields)
        values.pop("id", None)

        stmt = update(Acta).where(Acta.id == acta_id)
        if expected_version is not None:
            stmt = stmt.where(Acta.version == expected_version)
        stmt = stmt.values(**values, version=Acta.version + 1).execution_options(
            synchronize_session=False
        )

        async def _update():
            result = await self.db.execute(stmt)
            await self.db.commit()
            return result.rowcount

        rowcount = await self._run("update", _update())
        if rowcount == 0:
            existing = await self._run("get", self._fetch(acta_id))
            if existing is None:
                raise DocumentNotFoundError(acta_id)
            raise ConcurrentUpdateError(acta_id, expected_version)

        row = await self._run("get", self._fetch(acta_id))
        return self._to_document(row)

    async def list_for_organization(self, organization_id: str) -> List[ActaDocument]:
        async def _list():
            stmt = (
                select(Acta)
                .where(Acta.organization_id == organization_id)
                .order_by(Acta.created_on.desc())
            )
            result = await self.db.execute(stmt)
            return result.scalars().all()

        rows = await self._run("list", _list())
        return [self._to_document(row) for row in rows]
