# app/actas/schemas.py

"""
Pydantic schemas for the Actas (meeting minutes) module.

`ActaDocument` is the validated aggregate every storage backend returns;
the remaining models shape the HTTP API.
"""

from datetime import datetime
from enum import Enum as PyEnum
from typing import Callable, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator


# === Enums ===

class ActaStatus(str, PyEnum):
    """Acta lifecycle status."""
    DRAFT = "draft"
    PENDING_SIGNATURES = "pending_signatures"
    COMPLETED = "completed"


class SignatureStatus(str, PyEnum):
    """Per-attendee signature status."""
    PENDING = "pending"
    SIGNED = "signed"


class Attendance(str, PyEnum):
    """Attendance of a participant."""
    PRESENT = "present"
    ABSENT = "absent"
    EXCUSED = "excused"


class Modality(str, PyEnum):
    """Meeting modality."""
    PRESENCIAL = "presencial"
    VIRTUAL = "virtual"
    HIBRIDA = "híbrida"


# === Value objects ===

class MeetingInfo(BaseModel):
    """Descriptive information about the meeting."""
    title: str = Field(..., min_length=1, max_length=255)
    date: datetime
    start_time: str = Field(..., max_length=16)
    end_time: Optional[str] = Field(None, max_length=16)
    location: str = Field("", max_length=255)
    modality: Modality = Modality.PRESENCIAL


class Attendee(BaseModel):
    """Participant embedded in an acta, tracked for signature purposes."""
    id: str = Field(..., min_length=1, max_length=64)
    name: str
    email: EmailStr
    role: str = ""
    attendance: Attendance = Attendance.PRESENT
    signature_status: SignatureStatus = SignatureStatus.PENDING
    signature_token: Optional[str] = None
    signature_url: Optional[str] = None
    signed_at: Optional[datetime] = None

    @model_validator(mode="after")
    def check_signed_fields(self) -> "Attendee":
        if self.signature_status == SignatureStatus.SIGNED and (
            not self.signature_url or self.signed_at is None
        ):
            raise ValueError("A signed attendee must carry signature_url and signed_at")
        return self

    @property
    def is_signed(self) -> bool:
        return self.signature_status == SignatureStatus.SIGNED


class Commitment(BaseModel):
    """A task agreed during the meeting."""
    description: str
    responsible: str
    due_date: Optional[datetime] = None


class NextMeeting(BaseModel):
    date: datetime
    location: str = ""


class GeneratedContent(BaseModel):
    """Formal minutes body drafted for the meeting."""
    introduction: str = ""
    development: str = ""
    agreements: List[str] = []
    commitments: List[Commitment] = []
    closure: str = ""
    next_meeting: Optional[NextMeeting] = None


# === Aggregate ===

class ActaDocument(BaseModel):
    """
    Validated minutes document as read from a storage backend.

    `version` is bumped on every write and is used as the
    optimistic-concurrency stamp for conditional updates.
    """
    id: str
    organization_id: str
    created_by: Optional[int] = None
    status: ActaStatus = ActaStatus.DRAFT
    meeting_info: MeetingInfo
    attendees: List[Attendee] = []
    agenda: List[str] = []
    raw_content: str = ""
    audio_url: Optional[str] = None
    generated_content: Optional[GeneratedContent] = None
    pdf_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    signature_request_sent_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    version: int = 1

    @field_validator("attendees")
    @classmethod
    def validate_unique_attendee_ids(cls, attendees: List[Attendee]) -> List[Attendee]:
        ids = [a.id for a in attendees]
        if len(ids) != len(set(ids)):
            raise ValueError("Attendee ids must be unique within an acta")
        return attendees

    def find_attendee(self, attendee_id: str) -> Optional[Attendee]:
        """Return the attendee with the given id, if any."""
        return next((a for a in self.attendees if a.id == attendee_id), None)

    @property
    def all_signed(self) -> bool:
        return all(a.is_signed for a in self.attendees)


# === API schemas ===

class AttendeeCreate(BaseModel):
    """Attendee as supplied when creating or editing a draft acta."""
    id: Optional[str] = Field(None, min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    role: str = Field("", max_length=255)
    attendance: Attendance = Attendance.PRESENT


class ActaCreate(BaseModel):
    """Schema for creating an acta."""
    meeting_info: MeetingInfo
    attendees: List[AttendeeCreate] = []
    agenda: List[str] = []
    raw_content: str = ""
    audio_url: Optional[str] = None
    generated_content: Optional[GeneratedContent] = None


class ActaUpdate(BaseModel):
    """Schema for updating an acta. Status is never client-settable."""
    meeting_info: Optional[MeetingInfo] = None
    attendees: Optional[List[AttendeeCreate]] = None
    agenda: Optional[List[str]] = None
    raw_content: Optional[str] = None
    audio_url: Optional[str] = None
    generated_content: Optional[GeneratedContent] = None
    pdf_url: Optional[str] = None


class AttendeeResponse(BaseModel):
    """Attendee as exposed by the API; signature tokens are never returned."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: EmailStr
    role: str
    attendance: Attendance
    signature_status: SignatureStatus
    signature_url: Optional[str] = None
    signed_at: Optional[datetime] = None
    signature_requested: bool = False


class ActaResponse(BaseModel):
    """Schema for acta response."""
    id: str
    organization_id: str
    created_by: Optional[int] = None
    status: ActaStatus
    meeting_info: MeetingInfo
    attendees: List[AttendeeResponse]
    agenda: List[str]
    raw_content: str
    audio_url: Optional[str] = None
    generated_content: Optional[GeneratedContent] = None
    pdf_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    signature_request_sent_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    version: int

    @classmethod
    def from_document(
        cls,
        acta: ActaDocument,
        resolve_url: Optional[Callable[[Optional[str]], Optional[str]]] = None,
    ) -> "ActaResponse":
        """Build the response; `resolve_url` maps stored signature references to readable links."""
        data = acta.model_dump(exclude={"attendees"})
        data["attendees"] = [
            AttendeeResponse(
                **a.model_dump(exclude={"signature_token", "signature_url"}),
                signature_url=resolve_url(a.signature_url) if resolve_url else a.signature_url,
                signature_requested=a.signature_token is not None,
            )
            for a in acta.attendees
        ]
        return cls(**data)
