# app/signatures/schemas.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class SignatureRequestsCreate(BaseModel):
    """Optional subset of attendees to notify."""
    attendee_ids: Optional[List[str]] = None


class DeliveryResult(BaseModel):
    """Outcome of one signature-request delivery."""
    attendee_id: str
    email: str
    success: bool
    error: Optional[str] = None


class SignatureRequestsResponse(BaseModel):
    success: bool
    message: str
    sent_count: int
    results: List[DeliveryResult] = []


class VerifyTokenRequest(BaseModel):
    acta_id: str = ""
    attendee_id: str = ""
    token: str = ""


class AttendeeSummary(BaseModel):
    id: str
    name: str
    role: str
    signature_status: str


class ActaSummary(BaseModel):
    title: str
    date: Optional[datetime] = None


class VerifyTokenResponse(BaseModel):
    valid: bool
    attendee: AttendeeSummary
    acta: ActaSummary


class RecordSignatureRequest(BaseModel):
    acta_id: str = ""
    attendee_id: str = ""
    token: str = ""
    signature_url: str = ""


class RecordSignatureResponse(BaseModel):
    success: bool
    message: str
    all_signed: bool


class SignatureImageUpload(BaseModel):
    acta_id: str = ""
    attendee_id: str = ""
    token: str = ""
    signature_data_url: str = Field("", description="Image as a base64 data URL")


class SignatureImageResponse(BaseModel):
    signature_url: str
    preview_url: Optional[str] = None
