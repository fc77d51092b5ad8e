# loveblooms/services/product_assistant.py
"""
AI helpers for the admin product form and the storefront concierge chat.
Everything goes through the OpenRouter chat-completions client; nothing here
touches the store.
"""
from __future__ import annotations

import json
import logging
import secrets
from collections import OrderedDict
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError

from ..errors import AIError
from ..llm import openrouter_client
from ..settings import settings

logger = logging.getLogger(__name__)

CATEGORIES = ("Romance", "Sympathy", "Celebration", "Seasonal", "Everyday")
FALLBACK_COPY = "Beautiful arrangement."
MAX_SESSIONS = 500
MAX_HISTORY_MESSAGES = 20

IMAGE_PROMPT = (
    "Analyze this image of a floral arrangement. Act as a high-end florist copywriter. "
    "Reply with a single JSON object with these keys:\n"
    "- name: a creative, elegant name for the bouquet.\n"
    "- description: a sophisticated 2-sentence description for a luxury e-commerce site.\n"
    "- price: an estimated price in GBP (number only) based on complexity and flower types.\n"
    f"- category: one of [{', '.join(CATEGORIES)}].\n"
    "- tags: an array of 3-5 strings naming the main flowers or colours."
)

CONCIERGE_PROMPT = (
    "You are Floris, a knowledgeable and elegant floral design consultant for Love Blooms. "
    "You help customers choose the perfect arrangement based on occasion, relationship and "
    "sentiment. Speak in a warm, sophisticated and helpful tone. Keep responses under 60 words "
    "unless asked for more detail. Focus on the emotional impact of flowers."
)


class ProductSuggestion(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    category: Literal["Romance", "Sympathy", "Celebration", "Seasonal", "Everyday"]
    tags: List[str] = Field(..., min_length=3, max_length=5)


def _strip_data_url(image: str) -> str:
    """'data:image/png;base64,AAAA' -> 'AAAA'. Bare base64 passes through."""
    image = (image or "").strip()
    if image.startswith("data:") and "," in image:
        return image.split(",", 1)[1]
    return image


def _parse_json(content: str) -> Dict[str, Any]:
    text = (content or "").strip()
    # some models wrap JSON in a markdown fence even when asked not to
    if text.startswith("```"):
        text = text.strip("`")
        if text.lower().startswith("json"):
            text = text[4:]
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise AIError("AI returned invalid JSON") from e
    if not isinstance(data, dict):
        raise AIError("AI returned invalid JSON")
    return data


async def analyze_product_image(image: str, mime_type: str = "image/jpeg") -> ProductSuggestion:
    data = _strip_data_url(image)
    if not data:
        raise ValueError("image is required")

    messages = [{
        "role": "user",
        "content": [
            {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{data}"}},
            {"type": "text", "text": IMAGE_PROMPT},
        ],
    }]
    out = await openrouter_client.chat_completion(
        messages,
        model=settings.openrouter_vision_model,
        temperature=0.4,
        response_format={"type": "json_object"},
    )
    raw = _parse_json(out["content"])
    try:
        return ProductSuggestion(**raw)
    except ValidationError as e:
        logger.error("image analysis returned an unusable suggestion: %s", e)
        raise AIError("AI suggestion did not match the product form") from e


async def generate_marketing_copy(name: str, tags: List[str]) -> str:
    """Short blurb for a product; never fails, the form always gets some text."""
    if not openrouter_client.is_configured():
        return FALLBACK_COPY
    prompt = (
        f'Write a short, poetic marketing blurb (max 20 words) for a flower bouquet named '
        f'"{name}" containing these elements: {", ".join(tags)}.'
    )
    try:
        out = await openrouter_client.chat_completion(
            [{"role": "user", "content": prompt}], temperature=0.8, max_tokens=120
        )
    except AIError as e:
        logger.warning("marketing copy fell back: %s", e)
        return FALLBACK_COPY
    return out["content"].strip() or FALLBACK_COPY


class AssistantSession:
    """One concierge conversation. History is kept so follow-ups have context."""

    def __init__(self, system_prompt: str = CONCIERGE_PROMPT):
        self.id = secrets.token_urlsafe(16)
        self.system_prompt = system_prompt
        self.history: List[Dict[str, str]] = []

    async def send(self, message: str) -> str:
        message = (message or "").strip()
        if not message:
            raise ValueError("message is required")
        messages = [{"role": "system", "content": self.system_prompt}, *self.history,
                    {"role": "user", "content": message}]
        out = await openrouter_client.chat_completion(messages, temperature=0.7, max_tokens=300)
        reply = out["content"].strip()
        # only record the turn once the model answered
        self.history.append({"role": "user", "content": message})
        self.history.append({"role": "assistant", "content": reply})
        del self.history[:-MAX_HISTORY_MESSAGES]
        return reply


_sessions: OrderedDict[str, AssistantSession] = OrderedDict()


def get_session(session_id: Optional[str] = None) -> AssistantSession:
    """
    Resume a known session or start one under a fresh server-side id.
    Ids the server never issued are not adopted. The least recently used
    session is dropped once MAX_SESSIONS are held.
    """
    if session_id and session_id in _sessions:
        _sessions.move_to_end(session_id)
        return _sessions[session_id]
    session = AssistantSession()
    _sessions[session.id] = session
    while len(_sessions) > MAX_SESSIONS:
        _sessions.popitem(last=False)
    return session


def reset_sessions() -> None:
    _sessions.clear()
