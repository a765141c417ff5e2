# app/actas/services.py

"""
Business Logic Layer for the Actas module.
Creation, listing, reading and editing of minutes documents; signature
state is owned by the signature workflow and never set here.
"""

import uuid
from typing import Any, Dict, List

from fastapi import Depends

from app.actas.exceptions import (
    ActaNotFoundException, ConcurrentModificationException,
    InternalStorageException, InvalidArgumentException, PermissionDeniedException,
)
from app.actas.schemas import (
    ActaCreate, ActaDocument, ActaStatus, ActaUpdate, Attendee, AttendeeCreate,
)
from app.storage.base import (
    ConcurrentUpdateError, DocumentNotFoundError, StorageBackend, StorageError,
)
from app.storage.selector import get_storage_backend
from app.users.models import User
from app.utils.logger import get_logger

logger = get_logger(__name__)


def build_attendees(attendees: List[AttendeeCreate]) -> List[Attendee]:
    """Turn submitted attendees into pending attendee records with unique ids."""
    records = []
    seen = set()
    for submitted in attendees:
        attendee_id = submitted.id or uuid.uuid4().hex
        if attendee_id in seen:
            raise InvalidArgumentException(
                f"Duplicate attendee id {attendee_id}", {"attendee_id": attendee_id}
            )
        seen.add(attendee_id)
        records.append(Attendee(id=attendee_id, **submitted.model_dump(exclude={"id"})))
    return records


class ActaService:
    """
    Service layer for acta operations.
    Every read is scoped to the caller's organization.
    """

    def __init__(self, backend: StorageBackend = Depends(get_storage_backend)):
        self.backend = backend

    async def _get_for_user(self, acta_id: str, user: User) -> ActaDocument:
        try:
            acta = await self.backend.get(acta_id)
        except StorageError as e:
            raise InternalStorageException("Could not read the acta record", {"acta_id": acta_id}) from e
        if acta is None:
            raise ActaNotFoundException(acta_id)
        if acta.organization_id != user.organization_id:
            logger.warning("Acta access denied for foreign organization", acta_id=acta_id, user_id=user.id)
            raise PermissionDeniedException("You do not have access to this acta", {"acta_id": acta_id})
        return acta

    async def create_acta(self, acta_data: ActaCreate, user: User) -> ActaDocument:
        """Create a draft acta owned by the user's organization."""
        fields: Dict[str, Any] = {
            "organization_id": user.organization_id,
            "created_by": user.id,
            "status": ActaStatus.DRAFT,
            "meeting_info": acta_data.meeting_info,
            "attendees": build_attendees(acta_data.attendees),
            "agenda": acta_data.agenda,
            "raw_content": acta_data.raw_content,
            "audio_url": acta_data.audio_url,
            "generated_content": acta_data.generated_content,
        }
        try:
            acta_id = await self.backend.create(fields)
            acta = await self.backend.get(acta_id)
        except StorageError as e:
            logger.error("Could not create acta", error_message=str(e))
            raise InternalStorageException("Could not create the acta record") from e

        logger.info(
            "Acta created",
            acta_id=acta_id,
            organization_id=user.organization_id,
            attendees=len(fields["attendees"]),
        )
        return acta

    async def get_acta(self, acta_id: str, user: User) -> ActaDocument:
        return await self._get_for_user(acta_id, user)

    async def list_actas(self, user: User) -> List[ActaDocument]:
        """The organization's actas, newest first."""
        try:
            return await self.backend.list_for_organization(user.organization_id)
        except StorageError as e:
            raise InternalStorageException("Could not list actas") from e

    async def update_acta(self, acta_id: str, acta_data: ActaUpdate, user: User) -> ActaDocument:
        """
        Apply descriptive changes. Attendees can only be replaced while the
        acta is still a draft, before any signing link exists.
        """
        acta = await self._get_for_user(acta_id, user)
        changes = acta_data.model_dump(exclude_unset=True, exclude={"attendees"})
        fields: Dict[str, Any] = {
            key: getattr(acta_data, key) for key in changes
        }

        if "attendees" in acta_data.model_fields_set:
            if acta.status != ActaStatus.DRAFT:
                raise InvalidArgumentException(
                    "Attendees can only be changed while the acta is a draft",
                    {"acta_id": acta_id, "status": acta.status.value},
                )
            fields["attendees"] = build_attendees(acta_data.attendees or [])

        if not fields:
            return acta

        try:
            updated = await self.backend.update(acta_id, fields, expected_version=acta.version)
        except ConcurrentUpdateError as e:
            raise ConcurrentModificationException(acta_id) from e
        except DocumentNotFoundError as e:
            raise ActaNotFoundException(acta_id) from e
        except StorageError as e:
            raise InternalStorageException("Could not write the acta record", {"acta_id": acta_id}) from e

        logger.info("Acta updated", acta_id=acta_id, fields=sorted(fields))
        return updated
