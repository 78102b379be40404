"""
User and Profile Models

A User is created on first sign-in through an OAuth identity provider.
Each user has exactly one Profile (same primary key) holding display data,
storage paths for avatar/resume, and the cached resume analysis.
"""

from sqlalchemy import Column, String, JSON, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from jobtracker.database import Base
import uuid


class User(Base):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("provider", "provider_subject", name="uq_user_identity"),)

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(320), nullable=True)
    display_name = Column(String(500), nullable=True)
    provider = Column(String(50), nullable=False)
    provider_subject = Column(String(255), nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class Profile(Base):
    """
    Per-user profile.

    Attributes:
        full_name: Editable display name
        avatar_path: Object path inside the "avatars" bucket
        resume_path: Object path inside the "resumes" bucket
        resume_analysis: {"summary": str, "skills": [str], "experienceYears": num}
    """

    __tablename__ = "user_profiles"

    id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    full_name = Column(String(500), nullable=False, default="")
    avatar_path = Column(String(1000), nullable=True)
    resume_path = Column(String(1000), nullable=True)
    resume_analysis = Column(JSON, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
