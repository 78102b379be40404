"""
Outbound Proxy Handlers - job search and AI analysis

Stateless request/response translators over third-party APIs. Any failure
becomes ``{"error": message}`` with a non-2xx status via the TrackerError
handler registered in main.py.

Endpoints:
    POST /functions/job-search       - SerpApi ({searchTerm, engine?})
    POST /functions/adzuna-search    - Adzuna ({searchTerm})
    POST /functions/remoteok-search  - RemoteOK ({searchTerm})
    POST /functions/analyze-resume   - PDF.co + Hugging Face resume summary
    POST /functions/job-matcher      - OpenAI resume/job match score ({applicationId})
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from jobtracker.auth import get_current_user
from jobtracker.database import get_db
from jobtracker.exceptions import MalformedPayloadError, PreconditionError, TrackerError
from jobtracker.middleware import track_upstream
from jobtracker.models import User
from jobtracker.schemas import AnalysisResponse, JobSearchRequest, JobSearchResponse, MatchRequest
from jobtracker.services.analysis import analyze_resume, score_match
from jobtracker.services.job_sources import get_job_source
from jobtracker.services.storage import FileStorage, get_storage

logger = logging.getLogger(__name__)
router = APIRouter()


async def _search(source_name: str, request: JobSearchRequest) -> JobSearchResponse:
    if not request.search_term or not request.search_term.strip():
        raise PreconditionError("Search term is required.")

    source = get_job_source(source_name)
    async with track_upstream(source_name):
        try:
            jobs = await source.search(request.search_term.strip(), engine=request.engine)
        except TrackerError:
            raise
        except Exception as e:
            logger.exception(f"{source_name} search failed unexpectedly")
            raise MalformedPayloadError(f"Unexpected response from {source_name}.") from e
    return JobSearchResponse(jobs=jobs)


@router.post("/job-search", response_model=JobSearchResponse)
async def job_search(request: JobSearchRequest, _: User = Depends(get_current_user)):
    return await _search("serpapi", request)


@router.post("/adzuna-search", response_model=JobSearchResponse)
async def adzuna_search(request: JobSearchRequest, _: User = Depends(get_current_user)):
    return await _search("adzuna", request)


@router.post("/remoteok-search", response_model=JobSearchResponse)
async def remoteok_search(request: JobSearchRequest, _: User = Depends(get_current_user)):
    return await _search("remoteok", request)


@router.post("/analyze-resume", response_model=AnalysisResponse)
async def analyze_resume_sync(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    storage: FileStorage = Depends(get_storage),
):
    async with track_upstream("resume-analysis"):
        analysis = await analyze_resume(db, user.id, storage)
    return AnalysisResponse(success=True, analysis=analysis)


@router.post("/job-matcher", response_model=AnalysisResponse)
async def job_matcher(
    request: MatchRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not request.application_id:
        raise PreconditionError("Application ID is required.")

    async with track_upstream("job-matcher"):
        analysis = await score_match(db, user.id, request.application_id)
    return AnalysisResponse(success=True, analysis=analysis)
