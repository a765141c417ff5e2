# app/signatures/router.py

"""
FastAPI router for the acta signature workflow.

Issuing requests needs an authenticated organization member; verifying,
uploading an image and recording a signature are authorized by the
signing token carried in the link.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from app.actas.exceptions import ActaBaseException, convert_to_http_exception
from app.signatures.images import SignatureImageStorage, get_signature_image_storage
from app.signatures.schemas import (
    RecordSignatureRequest, RecordSignatureResponse, SignatureImageResponse,
    SignatureImageUpload, SignatureRequestsCreate, SignatureRequestsResponse,
    VerifyTokenRequest, VerifyTokenResponse,
)
from app.signatures.workflow import Requester, SignatureWorkflowEngine, get_signature_workflow
from app.users.models import User
from app.users.utils import get_current_user
from app.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["Signatures"])


@router.post("/actas/{acta_id}/signature-requests", response_model=SignatureRequestsResponse)
async def send_signature_requests(
    acta_id: str,
    request_data: Optional[SignatureRequestsCreate] = None,
    workflow: SignatureWorkflowEngine = Depends(get_signature_workflow),
    current_user: User = Depends(get_current_user),
):
    """
    Email a signing link to every attendee who has not signed yet,
    optionally restricted to `attendee_ids`.
    """
    try:
        logger.info("Sending signature requests", acta_id=acta_id, user_id=current_user.id)
        return await workflow.issue_signature_requests(
            acta_id,
            Requester(user_id=current_user.id, organization_id=current_user.organization_id),
            attendee_ids=request_data.attendee_ids if request_data else None,
        )
    except ActaBaseException as e:
        logger.error(f"Failed to send signature requests: {e.message}", error_details=e.details)
        raise convert_to_http_exception(e) from e


@router.post("/signatures/verify", response_model=VerifyTokenResponse)
async def verify_signature_token(
    request_data: VerifyTokenRequest,
    workflow: SignatureWorkflowEngine = Depends(get_signature_workflow),
):
    """Validate a signing link before showing the signature pad."""
    try:
        return await workflow.verify_signature_token(
            request_data.acta_id, request_data.attendee_id, request_data.token
        )
    except ActaBaseException as e:
        raise convert_to_http_exception(e) from e


@router.post("/signatures/image", response_model=SignatureImageResponse, status_code=status.HTTP_201_CREATED)
async def upload_signature_image(
    request_data: SignatureImageUpload,
    workflow: SignatureWorkflowEngine = Depends(get_signature_workflow),
    image_storage: SignatureImageStorage = Depends(get_signature_image_storage),
):
    """
    Store a captured signature image and return the reference to record.
    Attendees who already signed cannot upload a replacement.
    """
    try:
        await workflow.authorize_signature_upload(
            request_data.acta_id, request_data.attendee_id, request_data.token
        )
        signature_url = await image_storage.store(
            request_data.acta_id, request_data.attendee_id, request_data.signature_data_url
        )
        return SignatureImageResponse(
            signature_url=signature_url,
            preview_url=image_storage.resolve_url(signature_url),
        )
    except ActaBaseException as e:
        raise convert_to_http_exception(e) from e
    except Exception as e:
        logger.error(f"Unexpected error storing signature image: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to store signature image", "error": str(e)}
        ) from e


@router.post("/signatures/record", response_model=RecordSignatureResponse)
async def record_signature(
    request_data: RecordSignatureRequest,
    workflow: SignatureWorkflowEngine = Depends(get_signature_workflow),
):
    """Record the attendee's signature; reports whether the acta is now complete."""
    try:
        return await workflow.record_signature(
            request_data.acta_id,
            request_data.attendee_id,
            request_data.token,
            request_data.signature_url,
        )
    except ActaBaseException as e:
        logger.error(f"Failed to record signature: {e.message}", error_details=e.details)
        raise convert_to_http_exception(e) from e
