"""
Application Model - SQLAlchemy ORM models for tracked job applications

Each application belongs to exactly one user and carries a pipeline status.
Notes hang off an application and are removed with it.

Status Flow:
    saved (external-search import) → applied → interview → offer/rejected
"""

from sqlalchemy import Column, String, Text, Date, DateTime, Boolean, JSON, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from jobtracker.database import Base
import uuid


class Application(Base):
    """
    A tracked job application.

    Attributes:
        id: UUID primary key
        user_id: Owner (users.id)
        company / position: Free text, both required
        status: One of APPLICATION_STATUSES (indexed)
        date_applied: Calendar date the application was sent (or saved)
        job_url: Original posting URL, required for "apply now"
        interview_date: Scheduled interview, if any
        match_analysis: JSON from the match-scoring handler
    """

    __tablename__ = "applications"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    company = Column(String(500), nullable=False)
    position = Column(String(500), nullable=False)
    status = Column(String(20), nullable=False, default="applied", index=True)
    date_applied = Column(Date, nullable=False)
    job_url = Column(String(2000), nullable=True)
    location = Column(String(500), nullable=True)
    interview_date = Column(DateTime, nullable=True)
    match_analysis = Column(JSON, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    notes = relationship(
        "Note",
        back_populates="application",
        cascade="all, delete-orphan",
    )


class Note(Base):
    __tablename__ = "notes"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    application_id = Column(
        String, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    reminder_date = Column(Date, nullable=True, index=True)
    reminder_sent = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now())

    application = relationship("Application", back_populates="notes")
