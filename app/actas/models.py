# app/actas/models.py

"""
SQLAlchemy 2.x models for the actas module
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db import Base
from app.users.models import AuditMixin


class Acta(Base, AuditMixin):
    """
    Model for a meeting minutes document.
    Attendees, including their signature state, are stored as one JSON array
    and always rewritten as a whole, guarded by the `version` column.
    """
    __tablename__ = "actas"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    organization_id: Mapped[str] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False, index=True,
        comment="Tenant that owns the acta"
    )
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default="draft",
        comment="draft, pending_signatures or completed"
    )

    meeting_info: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    attendees: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    agenda: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    raw_content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    generated_content: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    audio_url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
    pdf_url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)

    signature_request_sent_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    version: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1,
        comment="Optimistic concurrency stamp, incremented on every write"
    )

    __table_args__ = (
        Index("ix_actas_organization_created", "organization_id", "created_on"),
    )

    def __repr__(self):
        return f"<Acta(id={self.id}, organization_id='{self.organization_id}', status='{self.status}', version={self.version})>"
