import httpx
import logging
from typing import Optional
from jobtracker.config import get_settings
from jobtracker.exceptions import ConfigurationError, MalformedPayloadError, UpstreamError

logger = logging.getLogger(__name__)

PDFCO_URL = "https://api.pdf.co/v1/pdf/convert/to/text-simple"
MAX_RESUME_CHARS = 15000


async def extract_text(document_url: str, api_key: Optional[str] = None) -> str:
    """
    Convert a document reachable at ``document_url`` to plain text via PDF.co.

    Returns at most MAX_RESUME_CHARS characters.
    """
    api_key = api_key if api_key is not None else get_settings().pdfco_api_key
    if not api_key:
        raise ConfigurationError("PDF.co API key is not set.")

    async with httpx.AsyncClient() as client:
        try:
            response = await client.post(
                PDFCO_URL,
                headers={"x-api-key": api_key},
                json={"url": document_url, "inline": True},
                timeout=60.0,
            )
        except httpx.HTTPError as e:
            logger.error(f"PDF.co request failed: {e}")
            raise UpstreamError("PDF.co API request failed.") from e

    if response.status_code >= 400:
        raise UpstreamError(f"PDF.co API request failed: {response.text[:500]}")

    try:
        result = response.json()
    except ValueError as e:
        raise MalformedPayloadError("PDF.co returned invalid JSON.") from e
    if not isinstance(result, dict):
        raise MalformedPayloadError("PDF.co returned an unexpected payload.")
    if result.get("error"):
        raise UpstreamError(f"PDF.co Error: {result.get('message')}")
    body = result.get("body")
    if not isinstance(body, str):
        raise MalformedPayloadError("PDF.co response has no text body.")
    return body[:MAX_RESUME_CHARS]
