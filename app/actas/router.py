# app/actas/router.py

"""
FastAPI router for acta (meeting minutes) management.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from app.actas.exceptions import ActaBaseException, convert_to_http_exception
from app.actas.schemas import ActaCreate, ActaResponse, ActaUpdate
from app.actas.services import ActaService
from app.signatures.images import SignatureImageStorage, get_signature_image_storage
from app.users.models import User
from app.users.utils import get_current_user
from app.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["Actas"], prefix="/actas")


@router.post("", response_model=ActaResponse, status_code=status.HTTP_201_CREATED)
async def create_acta(
    acta_data: ActaCreate,
    acta_service: ActaService = Depends(),
    image_storage: SignatureImageStorage = Depends(get_signature_image_storage),
    current_user: User = Depends(get_current_user),
):
    """
    Create a draft acta for the current user's organization.
    Attendees start as pending; ids are generated when not supplied.
    """
    try:
        acta = await acta_service.create_acta(acta_data, current_user)
        return ActaResponse.from_document(acta, image_storage.resolve_url)
    except ActaBaseException as e:
        logger.error(f"Failed to create acta: {e.message}", error_details=e.details)
        raise convert_to_http_exception(e) from e


@router.get("", response_model=List[ActaResponse])
async def list_actas(
    acta_service: ActaService = Depends(),
    image_storage: SignatureImageStorage = Depends(get_signature_image_storage),
    current_user: User = Depends(get_current_user),
):
    """List the organization's actas, newest first."""
    try:
        actas = await acta_service.list_actas(current_user)
        return [ActaResponse.from_document(acta, image_storage.resolve_url) for acta in actas]
    except ActaBaseException as e:
        raise convert_to_http_exception(e) from e


@router.get("/{acta_id}", response_model=ActaResponse)
async def get_acta(
    acta_id: str,
    acta_service: ActaService = Depends(),
    image_storage: SignatureImageStorage = Depends(get_signature_image_storage),
    current_user: User = Depends(get_current_user),
):
    """Get a specific acta by ID."""
    try:
        acta = await acta_service.get_acta(acta_id, current_user)
        return ActaResponse.from_document(acta, image_storage.resolve_url)
    except ActaBaseException as e:
        raise convert_to_http_exception(e) from e


@router.patch("/{acta_id}", response_model=ActaResponse)
async def update_acta(
    acta_id: str,
    acta_data: ActaUpdate,
    acta_service: ActaService = Depends(),
    image_storage: SignatureImageStorage = Depends(get_signature_image_storage),
    current_user: User = Depends(get_current_user),
):
    """Update the descriptive content of an acta."""
    try:
        acta = await acta_service.update_acta(acta_id, acta_data, current_user)
        return ActaResponse.from_document(acta, image_storage.resolve_url)
    except ActaBaseException as e:
        logger.error(f"Failed to update acta: {e.message}", error_details=e.details)
        raise convert_to_http_exception(e) from e
