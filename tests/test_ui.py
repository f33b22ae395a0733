"""Tests for the server-rendered screening pages."""
import io
from unittest.mock import MagicMock

import pytest

from client.orchestrator import ScreeningOrchestrator
from common.errors import ServiceError
from session.models import EmotionResult

from conftest import ALEX, ALEX_ANALYSIS, ImmediateExecutor


FORM = {name: str(value) for name, value in ALEX.items()}


@pytest.fixture
def backend():
    backend = MagicMock()
    backend.analysis.analyze.return_value = dict(ALEX_ANALYSIS)
    backend.emotion.analyze.return_value = EmotionResult(
        primary_emotion="happy", confidence=80.0, emotions={"happy": 80.0, "neutral": 20.0},
    )
    backend.persistence.save.return_value = "doc-1"
    return backend


@pytest.fixture
def ui(app, backend):
    def make_orchestrator(ctx):
        return ScreeningOrchestrator(
            ctx,
            analysis_client=backend.analysis,
            emotion_client=backend.emotion,
            persistence_client=backend.persistence,
            executor=ImmediateExecutor(),
            dead_letter=app.config["DEAD_LETTER"],
        )

    app.config["ORCHESTRATOR_FACTORY"] = make_orchestrator
    with app.test_client() as client:
        yield client


def test_form_page(ui):
    html = ui.get("/").get_data(as_text=True)

    assert "Enter Child Observations" in html
    assert "Analyze with AI" in html
    assert "Responds to Directives" in html


def test_submit_shows_results(ui, backend):
    response = ui.post("/screening", data=FORM)
    assert response.status_code == 302

    html = ui.get("/").get_data(as_text=True)

    assert "Therapy Goals" in html
    assert ALEX_ANALYSIS["suggestedActivities"][0] in html
    assert "Check Another Child" in html
    backend.persistence.save.assert_called_once()


def test_incomplete_submit_stays_on_form(ui, backend):
    ui.post("/screening", data=dict(FORM, speechLevel=""))

    html = ui.get("/").get_data(as_text=True)

    assert "Please fill in all the fields before analyzing." in html
    assert "Enter Child Observations" in html
    backend.analysis.analyze.assert_not_called()


def test_analysis_failure_shows_message(ui, backend):
    backend.analysis.analyze.side_effect = ServiceError("Analysis failed. Check if backend is running.")

    ui.post("/screening", data=FORM)
    html = ui.get("/").get_data(as_text=True)

    assert "Analysis failed. Check if backend is running." in html
    assert "Enter Child Observations" in html


def test_reset_returns_to_empty_form(ui):
    ui.post("/screening", data=FORM)
    ui.post("/screening/reset")

    html = ui.get("/").get_data(as_text=True)

    assert "Enter Child Observations" in html
    assert 'value="Alex"' not in html


def test_report_download(ui):
    ui.post("/screening", data=FORM)

    response = ui.get("/screening/report.pdf")

    assert response.status_code == 200
    assert response.mimetype == "application/pdf"
    assert "Alex_Assessment.pdf" in response.headers["Content-Disposition"]
    assert response.data.startswith(b"%PDF")


def test_report_without_results_redirects(ui):
    assert ui.get("/screening/report.pdf").status_code == 302


def test_photo_without_file(ui, backend):
    ui.post("/screening/photo", data={}, content_type="multipart/form-data")

    html = ui.get("/").get_data(as_text=True)

    assert "Please select a photo first" in html
    backend.emotion.analyze.assert_not_called()


def test_photo_keeps_form_and_shows_emotion(ui, backend):
    data = dict(ALEX, photo=(io.BytesIO(b"img"), "face.jpg", "image/jpeg"))
    ui.post("/screening/photo", data=data, content_type="multipart/form-data")

    html = ui.get("/").get_data(as_text=True)

    assert "Emotional Assessment" in html
    assert 'value="Alex"' in html
    backend.emotion.analyze.assert_called_once_with(b"img", "face.jpg", "image/jpeg")

    ui.post("/screening/photo/clear")
    assert "Emotional Assessment" not in ui.get("/").get_data(as_text=True)


def test_reset_releases_session(app, ui):
    ui.post("/screening", data=FORM)
    assert len(app.extensions["screening_sessions"]) == 1

    ui.post("/screening/reset")

    assert app.extensions["screening_sessions"] == {}
    assert "Enter Child Observations" in ui.get("/").get_data(as_text=True)
    assert len(app.extensions["screening_sessions"]) == 1
