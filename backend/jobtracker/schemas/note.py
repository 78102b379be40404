from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from typing import Optional


class NoteCreate(BaseModel):
    content: str = Field(..., max_length=10000)
    reminder_date: Optional[date] = None

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Note content must not be empty")
        return v


class NoteResponse(BaseModel):
    id: str
    application_id: str
    content: str
    reminder_date: Optional[date] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
