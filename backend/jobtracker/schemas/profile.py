from pydantic import BaseModel, Field
from typing import Optional


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=500)


class ResumeAnalysis(BaseModel):
    summary: str = ""
    skills: list[str] = []
    experience_years: Optional[float] = Field(None, alias="experienceYears")

    class Config:
        populate_by_name = True


class ProfileResponse(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: str = ""
    avatar_path: Optional[str] = None
    resume_path: Optional[str] = None
    resume_analysis: Optional[dict] = None

    class Config:
        from_attributes = True


class SignedUrlResponse(BaseModel):
    signed_url: str
    expires_in: int
