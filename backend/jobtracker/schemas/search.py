from pydantic import BaseModel, Field
from typing import Optional


class JobSearchRequest(BaseModel):
    search_term: Optional[str] = Field(None, alias="searchTerm")
    engine: Optional[str] = None

    class Config:
        populate_by_name = True


class ExternalJob(BaseModel):
    """A search hit normalized across providers."""

    id: str
    company: str
    position: str
    location: Optional[str] = None
    url: str
    tags: list[str] = []


class JobSearchResponse(BaseModel):
    jobs: list[ExternalJob]


class MatchRequest(BaseModel):
    application_id: Optional[str] = Field(None, alias="applicationId")

    class Config:
        populate_by_name = True


class AnalysisResponse(BaseModel):
    success: bool
    analysis: dict
