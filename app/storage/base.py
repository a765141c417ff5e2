# app/storage/base.py

"""
Storage backend contract for acta documents.
"""

from abc import ABC, abstractmethod
from enum import Enum as PyEnum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from app.actas.schemas import ActaDocument

# Fields a backend accepts in `create` / `update`
WRITABLE_FIELDS = frozenset({
    "id",
    "organization_id",
    "created_by",
    "status",
    "meeting_info",
    "attendees",
    "agenda",
    "raw_content",
    "audio_url",
    "generated_content",
    "pdf_url",
    "signature_request_sent_at",
    "completed_at",
})


class StorageError(Exception):
    """Unexpected failure reading or writing the underlying store."""


class StoragePermissionError(StorageError):
    """The store rejected the operation for lack of permissions."""


class DocumentNotFoundError(StorageError):
    """The acta addressed by a write does not exist."""

    def __init__(self, acta_id: str):
        self.acta_id = acta_id
        super().__init__(f"Acta {acta_id} does not exist")


class ConcurrentUpdateError(StorageError):
    """The stored version no longer matches the version the writer read."""

    def __init__(self, acta_id: str, expected_version: int):
        self.acta_id = acta_id
        self.expected_version = expected_version
        super().__init__(f"Acta {acta_id} is no longer at version {expected_version}")


def to_storage_value(value: Any) -> Any:
    """Convert domain values (models, enums, lists of them) to plain data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (list, tuple)):
        return [to_storage_value(v) for v in value]
    if isinstance(value, PyEnum):
        return value.value
    return value


def prepare_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Validate field names and convert values for storage."""
    unknown = set(fields) - WRITABLE_FIELDS
    if unknown:
        raise ValueError(f"Unsupported acta fields: {sorted(unknown)}")
    return {key: to_storage_value(value) for key, value in fields.items()}


class StorageBackend(ABC):
    """
    Read/write access to acta documents.

    `update` is a partial-field write; when `expected_version` is given the
    write only applies if the stored version still matches, otherwise
    `ConcurrentUpdateError` is raised.
    """

    name = "abstract"

    @abstractmethod
    async def get(self, acta_id: str) -> Optional[ActaDocument]:
        """Return the acta or None when it does not exist."""

    @abstractmethod
    async def create(self, fields: Dict[str, Any]) -> str:
        """Create an acta and return its id."""

    @abstractmethod
    async def update(
        self,
        acta_id: str,
        fields: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> ActaDocument:
        """Apply a partial update and return the stored document."""

    @abstractmethod
    async def list_for_organization(self, organization_id: str) -> List[ActaDocument]:
        """Return the organization's actas, newest first."""
