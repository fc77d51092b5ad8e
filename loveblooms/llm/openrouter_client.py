# loveblooms/llm/openrouter_client.py
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..errors import AIError
from ..settings import settings

logger = logging.getLogger(__name__)

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
RETRY_STATUS = {429, 500, 502, 503, 504}
RETRY_BACKOFF_SECONDS = 0.5


def is_configured() -> bool:
    return bool(settings.openrouter_api_key)


async def chat_completion(
    messages: List[Dict[str, Any]],
    model: str | None = None,
    temperature: float = 0.2,
    max_tokens: int = 600,
    response_format: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Call OpenRouter chat completions and return a slim dict
    ({"content", "model", "usage"}). Transport errors, 429 and 5xx are
    retried up to AI_MAX_RETRIES times; anything else fails straight away.
    """
    api_key = settings.openrouter_api_key
    if not api_key:
        raise AIError("OPENROUTER_API_KEY is not configured")

    model = model or settings.openrouter_model

    headers = {
        "Authorization": f"Bearer {api_key}",
        "HTTP-Referer": settings.site_url,
        "X-Title": "LoveBlooms-Admin-Assistant",
        "Content-Type": "application/json",
    }

    payload: Dict[str, Any] = {
        "model": model,
        "messages": messages,
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
    if response_format:
        payload["response_format"] = response_format

    attempts = max(0, settings.ai_max_retries) + 1
    last_error = ""
    for attempt in range(1, attempts + 1):
        try:
            async with httpx.AsyncClient(timeout=settings.ai_timeout_seconds) as client:
                resp = await client.post(OPENROUTER_URL, json=payload, headers=headers)
                resp.raise_for_status()
                data = resp.json()
            break
        except httpx.HTTPStatusError as exc:
            code = exc.response.status_code
            last_error = f"OpenRouter API error {code}: {exc.response.text[:200]}"
            if code not in RETRY_STATUS:
                logger.error(last_error)
                raise AIError(last_error) from exc
        except httpx.RequestError as exc:
            last_error = f"OpenRouter request failed: {exc}"
        if attempt < attempts:
            logger.warning("%s (attempt %d/%d, retrying)", last_error, attempt, attempts)
            await asyncio.sleep(RETRY_BACKOFF_SECONDS * attempt)
    else:
        logger.error(last_error)
        raise AIError(last_error)

    choice = (data.get("choices") or [{}])[0]
    content = (choice.get("message") or {}).get("content") or ""
    return {
        "content": content,
        "model": data.get("model", model),
        "usage": data.get("usage", {}),
    }
