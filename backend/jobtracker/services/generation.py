"""
Hugging Face Text Generation - hosted inference with cold-start handling

Hosted models that have been idle answer ``503`` with
``{"error": "Model ... is currently loading", "estimated_time": 23.4}``.
``generate_text`` waits for the suggested time and retries exactly once;
every other failure is raised immediately.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import httpx

from jobtracker.config import get_settings
from jobtracker.exceptions import ConfigurationError, MalformedPayloadError, UpstreamError

logger = logging.getLogger(__name__)

HF_INFERENCE_URL = "https://api-inference.huggingface.co/models/{model}"


def _is_cold_start(response: httpx.Response, body: Any) -> bool:
    return (
        response.status_code == 503
        and isinstance(body, dict)
        and "is currently loading" in str(body.get("error", ""))
    )


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


async def query_model(
    payload: Dict[str, Any],
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    sleep=asyncio.sleep,
) -> Any:
    settings = get_settings()
    api_key = api_key if api_key is not None else settings.huggingface_api_key
    if not api_key:
        raise ConfigurationError("Hugging Face API Key is not set.")
    url = HF_INFERENCE_URL.format(model=model or settings.huggingface_model)
    headers = {"Authorization": f"Bearer {api_key}"}

    async with httpx.AsyncClient(timeout=120.0) as client:
        try:
            response = await client.post(url, headers=headers, json=payload)
            body = _safe_json(response)

            if _is_cold_start(response, body):
                wait_time = body.get("estimated_time") or settings.cold_start_default_wait
                logger.info(f"Model is loading. Waiting for {wait_time} seconds...")
                await sleep(float(wait_time))

                response = await client.post(url, headers=headers, json=payload)
                if response.status_code >= 400:
                    raise UpstreamError(f"Hugging Face retry request failed: {response.text[:500]}")
                body = _safe_json(response)
                if body is None:
                    raise MalformedPayloadError("Hugging Face returned invalid JSON.")
                return body
        except httpx.HTTPError as e:
            logger.error(f"Hugging Face request failed: {e}")
            raise UpstreamError("Hugging Face API request failed.") from e

    if response.status_code >= 400:
        raise UpstreamError(f"Hugging Face API request failed: {json.dumps(body)[:500]}")
    return body


async def generate_text(prompt: str, max_new_tokens: int = 512, **kwargs) -> str:
    result = await query_model(
        {
            "inputs": prompt,
            "parameters": {"max_new_tokens": max_new_tokens, "return_full_text": False},
        },
        **kwargs,
    )
    try:
        return result[0]["generated_text"]
    except (IndexError, KeyError, TypeError) as e:
        raise MalformedPayloadError("Hugging Face returned no generated text.") from e


def extract_json_object(text: str) -> dict:
    """Parse the outermost ``{...}`` span of generated text."""
    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end < start:
        raise MalformedPayloadError("Generated text contains no JSON object.")
    try:
        data = json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse generated JSON: {text[:100]}")
        raise MalformedPayloadError("Generated text is not valid JSON.") from e
    if not isinstance(data, dict):
        raise MalformedPayloadError("Generated JSON is not an object.")
    return data
