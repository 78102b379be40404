"""
Resume and Match Analysis - orchestration of the AI proxy handlers

Resume analysis:
    1. Look up the caller's stored resume path
    2. Sign a 60 second URL for it
    3. PDF.co converts the document to text (first 15000 chars)
    4. Hugging Face generates a JSON summary from a fixed instruction
    5. The parsed object is stored on the profile

Match analysis:
    1. Load the caller's stored resume analysis
    2. Load the caller's application (position, company)
    3. An OpenAI chat model returns {matchScore, summary, suggestions}
    4. The result is stored on the application

Both flows also run as background tasks; the client then polls the record
until the analysis field is filled in.
"""

import logging
from typing import Optional

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jobtracker.database import async_session
from jobtracker.exceptions import MalformedPayloadError, PreconditionError, TrackerError
from jobtracker.models import Application, Profile
from jobtracker.schemas import ResumeAnalysis
from jobtracker.services.generation import extract_json_object, generate_text
from jobtracker.services.match_scorer import MatchScorer, get_match_scorer
from jobtracker.services.pdf_text import extract_text
from jobtracker.services.storage import FileStorage, get_storage

logger = logging.getLogger(__name__)

RESUME_URL_TTL_SECONDS = 60

RESUME_PROMPT = (
    "[INST] You are an expert HR analyst. Analyze the following resume text and extract "
    "the information in a valid JSON format. Your response MUST be only the JSON object. "
    'The JSON keys must be "summary" (string), "skills" (array of strings), and '
    '"experienceYears" (number). Resume text: {resume_text} [/INST]'
)


async def analyze_resume(db: AsyncSession, user_id: str, storage: FileStorage) -> dict:
    profile = await db.get(Profile, user_id)
    if not profile or not profile.resume_path:
        raise PreconditionError("No resume found. Please upload one first.")

    signed_url = storage.create_signed_url("resumes", profile.resume_path, RESUME_URL_TTL_SECONDS)
    resume_text = await extract_text(signed_url)
    generated = await generate_text(RESUME_PROMPT.format(resume_text=resume_text))

    try:
        analysis = ResumeAnalysis.model_validate(extract_json_object(generated))
    except ValidationError as e:
        raise MalformedPayloadError("Resume analysis has an unexpected shape.") from e

    profile.resume_analysis = analysis.model_dump(by_alias=True)
    await db.commit()
    logger.info(f"Stored resume analysis for user {user_id}")
    return profile.resume_analysis


async def score_match(
    db: AsyncSession,
    user_id: str,
    application_id: str,
    scorer: Optional[MatchScorer] = None,
) -> dict:
    profile = await db.get(Profile, user_id)
    if not profile or not profile.resume_analysis:
        raise PreconditionError("Resume analysis not found. Please upload a resume first.")

    result = await db.execute(
        select(Application).where(
            Application.id == application_id,
            Application.user_id == user_id,
        )
    )
    application = result.scalar_one_or_none()
    if not application:
        raise TrackerError("Job application not found.", status_code=404)

    scorer = scorer or get_match_scorer()
    analysis = await scorer.score(profile.resume_analysis, application.position, application.company)

    application.match_analysis = analysis
    await db.commit()
    logger.info(f"Stored match analysis for application {application_id}")
    return analysis


async def run_resume_analysis(user_id: str) -> None:
    """Background entry point: failures are logged, the client's poll just keeps waiting."""
    async with async_session() as db:
        try:
            await analyze_resume(db, user_id, get_storage())
        except TrackerError as e:
            logger.error(f"Background resume analysis failed for {user_id}: {e.message}")


async def run_match_analysis(user_id: str, application_id: str) -> None:
    async with async_session() as db:
        try:
            await score_match(db, user_id, application_id)
        except TrackerError as e:
            logger.error(f"Background match analysis failed for {application_id}: {e.message}")
