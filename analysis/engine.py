# analysis/engine.py

import json
import logging

from google import genai

from analysis.prompts import ANALYSIS_SCHEMA, build_analysis_prompt
from common.config import DEFAULT_MODEL
from common.errors import ServiceError, UpstreamError, ValidationError
from session.models import CLINICAL_FIELDS, is_blank, parse_age

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "GEMINI_API_KEY is missing or invalid. Please provide a key in your .env file."
GENERIC_FAILURE_MESSAGE = (
    "Could not generate analysis. Please ensure your API key is valid and restart the server."
)


def create_client(api_key: str | None):
    """
    Returns a Gemini client, or None when no key is configured.
    Callers treat None as "analysis unavailable" (503), not as a crash.
    """
    if not api_key:
        return None
    return genai.Client(api_key=api_key)


def generate_analysis(child_data: dict, *, client, model: str = DEFAULT_MODEL) -> dict:
    """
    Ask the provider for therapy goals and activities.

    - child_data: request body; the five clinical fields are required
    - client: genai.Client or None
    - returns the parsed JSON object verbatim

    Raises ServiceError (no client), ValidationError (missing fields) or
    UpstreamError (provider raised, empty text, invalid JSON).
    """
    if client is None:
        logger.error("Skipping AI call: No valid GEMINI_API_KEY provided.")
        raise ServiceError(MISSING_KEY_MESSAGE)

    missing = [name for name in CLINICAL_FIELDS if is_blank(child_data.get(name))]
    if "childAge" not in missing and parse_age(child_data.get("childAge")) is None:
        missing.append("childAge")
    if missing:
        raise ValidationError("Missing required child data", missing=missing)

    prompt = build_analysis_prompt(child_data)

    try:
        response = client.models.generate_content(
            model=model,
            contents=prompt,
            config={
                "response_mime_type": "application/json",
                "response_schema": ANALYSIS_SCHEMA,
                "temperature": 0.2,
            },
        )
    except Exception as e:
        logger.error(f"Error in /analyze: {e}")
        raise UpstreamError(GENERIC_FAILURE_MESSAGE, detail=str(e) or "Unknown error") from e

    text = (response.text or "").strip()
    if not text:
        raise UpstreamError(GENERIC_FAILURE_MESSAGE, detail="Empty JSON response from AI model.")

    logger.info(f"Raw AI JSON response: {text}")

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.error(f"Unparseable AI response: {e}")
        raise UpstreamError(GENERIC_FAILURE_MESSAGE, detail=str(e)) from e
