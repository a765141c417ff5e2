# app/storage/selector.py

"""
Backend selection for acta storage.

The selector lives on `app.state` and decides, per request, which backend
the services receive. In `auto` mode the database is used until it rejects
an operation for lack of permissions; from then on the selector keeps
serving the local store.
"""

from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.actas.schemas import ActaDocument
from app.core.config import Settings
from app.core.db import get_async_db
from app.storage.base import StorageBackend, StoragePermissionError
from app.storage.database import DatabaseActaBackend
from app.storage.local import LocalActaBackend
from app.utils.logger import get_logger

logger = get_logger(__name__)


class FallbackActaBackend(StorageBackend):
    """
    Delegates to a primary backend and switches to the fallback backend
    once the primary raises `StoragePermissionError`.
    """

    name = "fallback"

    def __init__(
        self,
        primary: StorageBackend,
        fallback: StorageBackend,
        on_fallback: Optional[Callable[[], None]] = None,
    ):
        self.primary = primary
        self.fallback = fallback
        self.on_fallback = on_fallback
        self.engaged = False

    def _engage(self, operation: str, error: Exception) -> None:
        logger.warning(
            "Primary acta storage denied access, switching to fallback",
            operation=operation,
            primary=self.primary.name,
            fallback=self.fallback.name,
            error_message=str(error),
        )
        self.engaged = True
        if self.on_fallback:
            self.on_fallback()

    async def _call(self, operation: str, *args, **kwargs):
        if not self.engaged:
            try:
                return await getattr(self.primary, operation)(*args, **kwargs)
            except StoragePermissionError as e:
                self._engage(operation, e)
        return await getattr(self.fallback, operation)(*args, **kwargs)

    async def get(self, acta_id: str) -> Optional[ActaDocument]:
        return await self._call("get", acta_id)

    async def create(self, fields: Dict[str, Any]) -> str:
        return await self._call("create", fields)

    async def update(
        self,
        acta_id: str,
        fields: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> ActaDocument:
        return await self._call("update", acta_id, fields, expected_version=expected_version)

    async def list_for_organization(self, organization_id: str) -> List[ActaDocument]:
        return await self._call("list_for_organization", organization_id)


class BackendSelector:
    """Resolves the storage backend for a request according to the storage mode."""

    def __init__(self, mode: str, local_backend: LocalActaBackend):
        if mode not in ("database", "local", "auto"):
            raise ValueError(f"Unknown storage mode: {mode}")
        self.mode = mode
        self.local_backend = local_backend
        self.fallback_engaged = mode == "local"

    def engage_fallback(self) -> None:
        if not self.fallback_engaged:
            logger.warning("Acta storage fallback engaged for this process", mode=self.mode)
        self.fallback_engaged = True

    def resolve(self, db: AsyncSession) -> StorageBackend:
        if self.fallback_engaged:
            return self.local_backend
        primary = DatabaseActaBackend(db)
        if self.mode == "database":
            return primary
        return FallbackActaBackend(primary, self.local_backend, on_fallback=self.engage_fallback)


def build_backend_selector(settings: Settings) -> BackendSelector:
    """Create the selector configured by the application settings."""
    return BackendSelector(settings.storage_mode, LocalActaBackend(settings.local_store_path))


async def get_storage_backend(
    request: Request,
    db: AsyncSession = Depends(get_async_db),
) -> StorageBackend:
    """Dependency returning the acta storage backend for the current request."""
    selector: BackendSelector = request.app.state.backend_selector
    return selector.resolve(db)
