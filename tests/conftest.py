"""Shared fixtures for the screening tests."""
import json
from concurrent.futures import Future
from types import SimpleNamespace

import pytest

from common.config import Settings


ALEX = {
    "childName": "Alex",
    "childAge": 5,
    "eyeContact": "Good",
    "speechLevel": "Average",
    "socialResponse": "Moderate Interaction",
    "sensoryReactions": "Mild Sensitivity",
}

ALEX_ANALYSIS = {
    "therapyGoals": [
        "Maintain eye contact for 3 seconds during 4 of 5 greetings.",
        "Use two-word requests for preferred items 10 times per session.",
        "Take turns in a structured game for 5 minutes with one prompt.",
    ],
    "suggestedActivities": [
        "Bubble play with pauses that invite a request.",
        "Picture-card snack routine with a visual schedule.",
    ],
}

EMOTION_PAYLOAD = {
    "success": True,
    "primaryEmotion": "happy",
    "confidence": 87.5,
    "emotions": {"happy": 87.5, "neutral": 9.0, "sad": 3.5},
    "eyeContact": "Looking at the camera",
    "engagement": "Engaged",
    "notes": "Relaxed smile.",
}


class FakeModels:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


class FakeGenAI:
    """Stands in for genai.Client; only `models.generate_content` is used."""

    def __init__(self, text=None, error=None):
        self.models = FakeModels(text=text, error=error)


class FakeStore:
    def __init__(self, error=None):
        self.records = []
        self.error = error

    def save(self, record):
        if self.error is not None:
            raise self.error
        self.records.append(record)
        return f"doc-{len(self.records)}"


class ImmediateExecutor:
    """Runs submitted work inline and hands back a finished Future."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


class DeferredExecutor:
    """Holds submitted work until run_all(); proves nothing waits on it."""

    def __init__(self):
        self.pending = []

    def submit(self, fn, *args, **kwargs):
        future = Future()
        self.pending.append((future, fn, args, kwargs))
        return future

    def run_all(self):
        for future, fn, args, kwargs in self.pending:
            try:
                future.set_result(fn(*args, **kwargs))
            except Exception as e:
                future.set_exception(e)
        self.pending = []


@pytest.fixture
def make_genai():
    def _make(payload=None, *, text=None, error=None):
        if payload is not None:
            text = json.dumps(payload)
        return FakeGenAI(text=text, error=error)
    return _make


@pytest.fixture
def settings(tmp_path):
    return Settings(
        api_base_url="http://backend.test",
        gemini_api_key=None,
        firebase_credentials=None,
        dead_letter_db=tmp_path / "dead_letter.db",
        secret_key="test-secret",
    )


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def app(settings, make_genai, store):
    from app import create_app

    app = create_app(settings)
    app.config["TESTING"] = True
    app.config["GENAI_CLIENT"] = make_genai(ALEX_ANALYSIS)
    app.config["ASSESSMENT_STORE"] = store
    return app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client
