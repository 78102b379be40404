from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Literal, Optional, get_args

ApplicationStatus = Literal["saved", "applied", "interview", "offer", "rejected"]
APPLICATION_STATUSES: tuple[str, ...] = get_args(ApplicationStatus)


class ApplicationBase(BaseModel):
    company: str = Field(..., min_length=1, max_length=500)
    position: str = Field(..., min_length=1, max_length=500)
    status: ApplicationStatus = "applied"
    job_url: Optional[str] = None
    location: Optional[str] = None
    interview_date: Optional[datetime] = None


class ApplicationCreate(ApplicationBase):
    # Defaults to today when omitted
    date_applied: Optional[date] = None


class ApplicationUpdate(BaseModel):
    company: Optional[str] = Field(None, min_length=1, max_length=500)
    position: Optional[str] = Field(None, min_length=1, max_length=500)
    status: Optional[ApplicationStatus] = None
    date_applied: Optional[date] = None
    job_url: Optional[str] = None
    location: Optional[str] = None
    interview_date: Optional[datetime] = None


class ApplicationResponse(ApplicationBase):
    id: str
    user_id: str
    date_applied: date
    match_analysis: Optional[dict] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MatchAnalysis(BaseModel):
    match_score: float = Field(..., alias="matchScore", ge=0, le=100)
    summary: str = ""
    suggestions: list[str] = []

    class Config:
        populate_by_name = True
