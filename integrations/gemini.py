import json
import logging
import re

import google.generativeai as genai

from responses import ExternalServiceError
from settings import GEMINI_API_KEY, GEMINI_MODEL

logger = logging.getLogger(__name__)

if GEMINI_API_KEY:
    genai.configure(api_key=GEMINI_API_KEY)

FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


def is_configured() -> bool:
    return bool(GEMINI_API_KEY)


def clean_reply(text: str) -> str:
    """Strip markdown code fences and stray backticks around a JSON reply."""
    return FENCE_RE.sub("", text or "").strip().strip("`").strip()


def parse_json(text: str):
    cleaned = clean_reply(text)
    try:
        parsed = json.loads(cleaned)
    except ValueError:
        raise ExternalServiceError("gemini", "AI reply is not valid JSON")
    if isinstance(parsed, str):
        raise ExternalServiceError("gemini", "AI reply is not a JSON object or array")
    return parsed


def generate_text(prompt: str) -> str:
    if not GEMINI_API_KEY:
        raise ExternalServiceError("gemini", "Gemini is not configured", status_code=503)
    model = genai.GenerativeModel(GEMINI_MODEL)
    try:
        response = model.generate_content(prompt)
        return response.text
    except Exception as e:
        logger.error("Gemini request failed: %s", e)
        raise ExternalServiceError("gemini", f"AI request failed: {e}")


def generate_json(prompt: str):
    return parse_json(generate_text(prompt))
