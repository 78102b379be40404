"""
Match Scorer - LLM comparison of a resume analysis against one application

Sends the stored resume analysis plus the target position/company to an
OpenAI chat model and expects a JSON object back:

    {"matchScore": 0-100, "summary": "...", "suggestions": ["...", "...", "..."]}

Usage:
    from openai import AsyncOpenAI
    scorer = MatchScorer(openai_client=AsyncOpenAI(api_key=...))
    analysis = await scorer.score(resume_analysis, "Engineer", "Acme")
"""

import json
import logging
from typing import Any, Optional

from pydantic import ValidationError

from jobtracker.config import get_settings
from jobtracker.exceptions import ConfigurationError, MalformedPayloadError, UpstreamError
from jobtracker.schemas import MatchAnalysis

logger = logging.getLogger(__name__)

MATCH_PROMPT = """You are an expert career coach. A candidate's resume analysis shows these skills and summary: {analysis}. They are applying for the position of "{position}" at "{company}".

Based on this, provide the following in a JSON format:
- a "matchScore" from 0 to 100.
- a short "summary" explaining why it's a good or bad match.
- an array of 3 concrete "suggestions" for the candidate to improve their alignment with the job.

Your response MUST be only the JSON object, with no extra text or explanations."""


class MatchScorer:
    """
    Attributes:
        client: Async OpenAI client
        model: Chat model name
    """

    def __init__(self, openai_client: Any, model: str = "gpt-4o-mini"):
        self.client = openai_client
        self.model = model

    async def score(self, resume_analysis: dict, position: str, company: str) -> dict:
        prompt = MATCH_PROMPT.format(
            analysis=json.dumps(resume_analysis),
            position=position,
            company=company,
        )

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": "Return only valid JSON."},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.2,
                max_tokens=800,
            )
        except Exception as e:
            logger.error(f"Match scoring API call failed: {e}")
            raise UpstreamError("Match analysis request failed.") from e

        content = response.choices[0].message.content
        return self._parse_llm_response(content)

    def _parse_llm_response(self, content: Optional[str]) -> dict:
        if not content:
            raise MalformedPayloadError("Match analysis response was empty.")

        content = content.strip()
        # Handle markdown code blocks
        if content.startswith("```"):
            lines = content.split("\n")
            content = "\n".join(lines[1:-1])

        try:
            data = json.loads(content)
            analysis = MatchAnalysis.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Failed to parse match analysis: {content[:100]}")
            raise MalformedPayloadError("Match analysis response was not valid JSON.") from e

        return analysis.model_dump(by_alias=True)


_match_scorer: Optional[MatchScorer] = None


def get_match_scorer() -> MatchScorer:
    global _match_scorer
    if _match_scorer is None:
        from openai import AsyncOpenAI

        settings = get_settings()
        if not settings.openai_api_key:
            raise ConfigurationError("OpenAI API key is not set.")
        client = AsyncOpenAI(api_key=settings.openai_api_key)
        _match_scorer = MatchScorer(openai_client=client, model=settings.openai_model)
    return _match_scorer
