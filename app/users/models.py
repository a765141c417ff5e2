# app/users/models.py

from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Integer,
    String, func,
)
from sqlalchemy.ext.declarative import declared_attr
from sqlalchemy.orm import relationship, Mapped, mapped_column

from app.core.db import Base

# --- Mixins ---
class AuditMixin:
    """Mixin for auditing fields."""

    @declared_attr
    def created_by(cls):
        """
        Column for the user who created this record
        """
        return Column(
            Integer,
            ForeignKey("users.id", ondelete="SET NULL", onupdate="CASCADE"),
            nullable=True,
            comment="User who created this record",
        )

    @declared_attr
    def created_on(cls):
        """
        Column for the timestamp when this record was created
        """
        return Column(
            DateTime(timezone=True),
            server_default=func.now(),
            comment="Timestamp when this record was created",
        )

    @declared_attr
    def updated_on(cls):
        """
        Column for the timestamp when this record was last updated
        """
        return Column(
            DateTime(timezone=True),
            onupdate=func.now(),
            server_default=func.now(),
            comment="Timestamp when this record was last updated",
        )

    is_active = Column(
        Boolean, default=True, comment="Flag to keep track of record is active or not"
    )
# --- End of Mixins ---


class Organization(Base):
    """Organization (tenant) model"""
    __tablename__ = "organizations"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    created_on: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    users: Mapped[List["User"]] = relationship(back_populates="organization")

    def __repr__(self):
        return f"<Organization(id={self.id}, slug='{self.slug}')>"


class User(Base, AuditMixin):
    """User model"""
    __tablename__ = "users"

    # --- Columns ---
    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    email_address: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    display_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    password: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    organization_id: Mapped[str] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[str] = mapped_column(String(32), default="member", nullable=False)
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # --- Relationships ---
    organization: Mapped["Organization"] = relationship(back_populates="users")

    def __repr__(self):
        """
        String representation of the User model
        """
        return f"<User(id={self.id}, email='{self.email_address}', organization_id='{self.organization_id}', role='{self.role}')>"
