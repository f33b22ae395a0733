# client/api.py

import logging

import requests

from common.errors import (
    PersistenceError,
    ServiceError,
    UpstreamError,
    ValidationError,
)
from session.models import EmotionResult, Observation
from session.records import build_record

logger = logging.getLogger(__name__)


def _envelope(response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {"message": response.text}
    return body if isinstance(body, dict) else {}


def _message(response, default: str) -> str:
    body = _envelope(response)
    return body.get("message") or body.get("error") or default


class _BackendClient:
    """Shared plumbing: base URL + one requests.Session per client."""

    def __init__(self, base_url: str, session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.http = session or requests.Session()

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"


class AnalysisClient(_BackendClient):
    """
    POST /analyze.
    Completeness is the caller's job; this client does not re-check it.
    """

    def analyze(self, observation: Observation) -> dict:
        try:
            response = self.http.post(self.url("/analyze"), json=observation.to_payload())
        except requests.RequestException as e:
            logger.error(f"Analysis request failed: {e}")
            raise ServiceError("Analysis failed. Check if backend is running.", detail=str(e)) from e

        if response.status_code == 400:
            raise ValidationError(_message(response, "Missing required child data"))

        if response.status_code == 503:
            raise ServiceError(_message(response, "Analysis service is unavailable."))

        if not response.ok:
            body = _envelope(response)
            raise UpstreamError(
                body.get("message") or body.get("error") or "Analysis failed.",
                detail=body.get("detailedError"),
            )

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError("Analysis returned an unreadable response.", detail=str(e)) from e


class EmotionClient(_BackendClient):
    """
    POST /analyze-emotion (multipart, field `photo`).
    Single attempt per call.
    """

    def analyze(self, photo: bytes, filename: str = "photo.jpg", mimetype: str = "image/jpeg") -> EmotionResult:
        if not photo:
            raise ValidationError("Please select a photo first")

        try:
            response = self.http.post(
                self.url("/analyze-emotion"),
                files={"photo": (filename or "photo.jpg", photo, mimetype or "image/jpeg")},
            )
        except requests.RequestException as e:
            logger.error(f"Emotion request failed: {e}")
            raise ServiceError(
                "Failed to connect to server. Make sure backend is running.",
                detail=str(e),
            ) from e

        data = _envelope(response)
        if not data.get("success"):
            raise ServiceError(data.get("error") or "Analysis failed", detail=data.get("detailedError"))

        return EmotionResult.from_payload(data)


class PersistenceClient(_BackendClient):
    """
    POST /save-conversation.
    Emotion data is never part of the payload.
    """

    def save(self, observation: Observation, analysis: dict) -> str:
        payload = observation.to_payload()
        payload["therapyGoals"] = analysis.get("therapyGoals")
        payload["suggestedActivities"] = analysis.get("suggestedActivities")

        # Raises ValidationError before any network call
        record = build_record(payload)

        try:
            response = self.http.post(self.url("/save-conversation"), json=record)
        except requests.RequestException as e:
            raise PersistenceError("Failed to save data", detail=str(e)) from e

        if not response.ok:
            raise PersistenceError(_message(response, "Failed to save data"))

        body = _envelope(response)
        if not body.get("id"):
            raise PersistenceError("Save response did not include an id.")
        return body["id"]
