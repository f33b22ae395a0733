# analysis/emotion.py

import json
import logging

from google.genai import types

from analysis.prompts import EMOTION_SCHEMA, build_emotion_prompt
from common.config import DEFAULT_MODEL
from common.errors import ServiceError, UpstreamError, ValidationError
from session.models import EmotionResult, clamp_percent

logger = logging.getLogger(__name__)


def detect_emotion(photo: bytes, mime_type: str, *, client, model: str = DEFAULT_MODEL) -> dict:
    """
    Classify the facial expression in one photo.
    Returns the normalized payload (see EmotionResult.to_payload).
    """
    if client is None:
        raise ServiceError("GEMINI_API_KEY is missing. Emotion analysis is unavailable.")

    if not photo:
        raise ValidationError("No photo uploaded", error="No photo uploaded")

    if not (mime_type or "").startswith("image/"):
        raise ValidationError("Uploaded file is not an image", error="Uploaded file is not an image")

    try:
        response = client.models.generate_content(
            model=model,
            contents=[
                types.Part.from_bytes(data=photo, mime_type=mime_type),
                build_emotion_prompt(),
            ],
            config={
                "response_mime_type": "application/json",
                "response_schema": EMOTION_SCHEMA,
                "temperature": 0.2,
            },
        )
    except Exception as e:
        logger.error(f"Error in /analyze-emotion: {e}")
        raise UpstreamError("Emotion analysis failed", detail=str(e) or "Unknown error") from e

    text = (response.text or "").strip()
    if not text:
        raise UpstreamError("Emotion analysis failed", detail="Empty JSON response from AI model.")

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise UpstreamError("Emotion analysis failed", detail=str(e)) from e

    if not isinstance(parsed, dict):
        raise UpstreamError("Emotion analysis failed", detail="Expected a JSON object.")

    return normalize_emotion(parsed)


def normalize_emotion(raw: dict) -> dict:
    """
    Clamp percentages to 0..100 and fill a missing primary emotion
    from the highest-scoring label.
    """
    emotions = raw.get("emotions")
    if not isinstance(emotions, dict):
        emotions = {}

    data = dict(raw, emotions=emotions)

    if not data.get("primaryEmotion") and emotions:
        data["primaryEmotion"] = max(emotions, key=lambda label: clamp_percent(emotions[label]))

    if data.get("confidence") is None and data.get("primaryEmotion") in emotions:
        data["confidence"] = emotions[data["primaryEmotion"]]

    return EmotionResult.from_payload(data).to_payload()
