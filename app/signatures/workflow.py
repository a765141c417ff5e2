# app/signatures/workflow.py

"""
Signature workflow for actas.

Per attendee: pending --issue--> request sent --record--> signed.
Issuing again replaces the token (older links stop working); verifying is
read-only; signed is terminal. After each recorded signature the acta is
`completed` exactly when every attendee has signed.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import Depends

from app.actas.exceptions import (
    ActaNotFoundException, AlreadySignedException, AttendeeNotFoundException,
    ConcurrentModificationException, InternalStorageException,
    InvalidArgumentException, PermissionDeniedException, UnauthenticatedException,
)
from app.actas.schemas import ActaDocument, ActaStatus, Attendee, SignatureStatus
from app.core.config import settings
from app.signatures.notifications import SignatureRequestNotifier
from app.signatures.schemas import (
    ActaSummary, AttendeeSummary, DeliveryResult, RecordSignatureResponse,
    SignatureRequestsResponse, VerifyTokenResponse,
)
from app.signatures.tokens import build_signing_link, generate_signature_token, tokens_match
from app.storage.base import (
    ConcurrentUpdateError, DocumentNotFoundError, StorageBackend, StorageError,
)
from app.storage.selector import get_storage_backend
from app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Requester:
    """Authenticated caller of a workflow operation."""
    user_id: Optional[int]
    organization_id: str


class SignatureWorkflowEngine:
    """
    Issues signature requests, validates signing tokens and records signatures.
    Receives its storage backend and notifier explicitly.
    """

    def __init__(
        self,
        backend: StorageBackend,
        notifier: SignatureRequestNotifier,
        base_url: str,
    ):
        self.backend = backend
        self.notifier = notifier
        self.base_url = base_url

    # === Storage helpers ===

    async def _load_acta(self, acta_id: str) -> ActaDocument:
        try:
            acta = await self.backend.get(acta_id)
        except StorageError as e:
            logger.error("Could not read acta", acta_id=acta_id, error_message=str(e))
            raise InternalStorageException("Could not read the acta record", {"acta_id": acta_id}) from e
        if acta is None:
            raise ActaNotFoundException(acta_id)
        return acta

    async def _save(self, acta: ActaDocument, fields: Dict[str, Any]) -> ActaDocument:
        try:
            return await self.backend.update(acta.id, fields, expected_version=acta.version)
        except ConcurrentUpdateError as e:
            logger.warning("Concurrent acta modification", acta_id=acta.id, version=acta.version)
            raise ConcurrentModificationException(acta.id) from e
        except DocumentNotFoundError as e:
            raise ActaNotFoundException(acta.id) from e
        except StorageError as e:
            logger.error("Could not write acta", acta_id=acta.id, error_message=str(e))
            raise InternalStorageException("Could not write the acta record", {"acta_id": acta.id}) from e

    @staticmethod
    def _find_attendee(acta: ActaDocument, attendee_id: str) -> Attendee:
        attendee = acta.find_attendee(attendee_id)
        if attendee is None:
            raise AttendeeNotFoundException(acta.id, attendee_id)
        return attendee

    @staticmethod
    def _check_token(acta: ActaDocument, attendee: Attendee, token: str) -> None:
        if not tokens_match(token, attendee.signature_token):
            logger.warning("Invalid signature token", acta_id=acta.id, attendee_id=attendee.id)
            raise PermissionDeniedException(
                "Invalid signature token",
                {"acta_id": acta.id, "attendee_id": attendee.id},
            )

    # === Operations ===

    async def issue_signature_requests(
        self,
        acta_id: str,
        requester: Optional[Requester],
        attendee_ids: Optional[List[str]] = None,
    ) -> SignatureRequestsResponse:
        """
        Send a signing link to every attendee that has not signed yet.

        Delivery failures are collected per attendee and never abort the
        loop; the new tokens and the `pending_signatures` status are then
        written in one update, whatever the delivery outcome.
        """
        if requester is None:
            raise UnauthenticatedException("Authentication is required to send signature requests")
        if not acta_id:
            raise InvalidArgumentException("acta_id is required")

        acta = await self._load_acta(acta_id)
        if requester.organization_id != acta.organization_id:
            logger.warning(
                "Signature request denied for foreign organization",
                acta_id=acta_id,
                user_id=requester.user_id,
            )
            raise PermissionDeniedException(
                "You do not have permission to send signature requests for this acta",
                {"acta_id": acta_id},
            )

        wanted = set(attendee_ids) if attendee_ids else None
        candidates = [
            a for a in acta.attendees
            if not a.is_signed and (wanted is None or a.id in wanted)
        ]
        if not candidates:
            logger.info("No attendees pending signature", acta_id=acta_id)
            return SignatureRequestsResponse(
                success=True,
                message="No attendees are pending signature.",
                sent_count=0,
            )

        updated: Dict[str, Attendee] = {}
        results: List[DeliveryResult] = []
        for attendee in candidates:
            token = generate_signature_token()
            with_token = attendee.model_copy(update={"signature_token": token})
            updated[attendee.id] = with_token
            link = build_signing_link(self.base_url, acta.id, attendee.id, token)
            try:
                await self.notifier.send(acta, with_token, link)
                results.append(DeliveryResult(attendee_id=attendee.id, email=attendee.email, success=True))
            except Exception as e:
                logger.error(
                    "Failed to deliver signature request",
                    acta_id=acta.id,
                    attendee_id=attendee.id,
                    error_message=str(e),
                )
                results.append(DeliveryResult(
                    attendee_id=attendee.id, email=attendee.email, success=False, error=str(e) or type(e).__name__,
                ))

        attendees = [updated.get(a.id, a) for a in acta.attendees]
        await self._save(acta, {
            "attendees": attendees,
            "status": ActaStatus.PENDING_SIGNATURES,
            "signature_request_sent_at": datetime.now(timezone.utc),
        })

        sent_count = sum(1 for r in results if r.success)
        logger.info("Signature requests issued", acta_id=acta.id, attempted=len(results), sent=sent_count)
        return SignatureRequestsResponse(
            success=True,
            message=f"Sent {sent_count} of {len(results)} signature requests.",
            sent_count=sent_count,
            results=results,
        )

    async def verify_signature_token(
        self, acta_id: str, attendee_id: str, token: str
    ) -> VerifyTokenResponse:
        """Check a signing link without changing anything."""
        if not acta_id or not attendee_id or not token:
            raise InvalidArgumentException("acta_id, attendee_id and token are required")

        acta = await self._load_acta(acta_id)
        attendee = self._find_attendee(acta, attendee_id)
        self._check_token(acta, attendee, token)

        return VerifyTokenResponse(
            valid=True,
            attendee=AttendeeSummary(
                id=attendee.id,
                name=attendee.name,
                role=attendee.role,
                signature_status=attendee.signature_status.value,
            ),
            acta=ActaSummary(title=acta.meeting_info.title, date=acta.meeting_info.date),
        )

    async def authorize_signature_upload(self, acta_id: str, attendee_id: str, token: str) -> Attendee:
        """
        Allow storing a signature image only for a pending attendee holding
        the current token, so a recorded signature cannot be replaced.
        """
        if not acta_id or not attendee_id or not token:
            raise InvalidArgumentException("acta_id, attendee_id and token are required")

        acta = await self._load_acta(acta_id)
        attendee = self._find_attendee(acta, attendee_id)
        if attendee.is_signed:
            raise AlreadySignedException(acta.id, attendee.id)
        self._check_token(acta, attendee, token)
        return attendee

    async def record_signature(
        self, acta_id: str, attendee_id: str, token: str, signature_url: str
    ) -> RecordSignatureResponse:
        """
        Mark the attendee as signed and recompute completion.
        Recording twice is rejected with `AlreadySignedException`, whatever
        token comes with the second attempt.
        """
        if not acta_id or not attendee_id or not token or not signature_url:
            raise InvalidArgumentException(
                "acta_id, attendee_id, token and signature_url are required"
            )

        acta = await self._load_acta(acta_id)
        attendee = self._find_attendee(acta, attendee_id)
        # A signed attendee stays signed whatever token is presented
        if attendee.is_signed:
            raise AlreadySignedException(acta.id, attendee.id)
        self._check_token(acta, attendee, token)

        now = datetime.now(timezone.utc)
        signed = attendee.model_copy(update={
            "signature_status": SignatureStatus.SIGNED,
            "signature_url": signature_url,
            "signed_at": now,
        })
        attendees = [signed if a.id == attendee.id else a for a in acta.attendees]
        all_signed = all(a.is_signed for a in attendees)

        fields: Dict[str, Any] = {
            "attendees": attendees,
            "status": ActaStatus.COMPLETED if all_signed else ActaStatus.PENDING_SIGNATURES,
        }
        if all_signed:
            fields["completed_at"] = now
        await self._save(acta, fields)

        logger.info("Signature recorded", acta_id=acta.id, attendee_id=attendee.id, all_signed=all_signed)
        return RecordSignatureResponse(
            success=True,
            message="Signature recorded successfully.",
            all_signed=all_signed,
        )


def get_signature_workflow(
    backend: StorageBackend = Depends(get_storage_backend),
) -> SignatureWorkflowEngine:
    """Dependency to get a SignatureWorkflowEngine bound to the request's backend."""
    return SignatureWorkflowEngine(backend, SignatureRequestNotifier(), settings.app_base_url)
