# client/orchestrator.py

import logging
import sqlite3
import threading
from functools import partial

from client.report import render_report, report_filename
from common.errors import ReportError, ScreeningError
from session.models import Page

logger = logging.getLogger(__name__)

INCOMPLETE_MESSAGE = "Please fill in all the fields before analyzing."
EMPTY_ANALYSIS_MESSAGE = "No analysis returned from AI."
NO_RESULTS_MESSAGE = "No analysis results to download."

EXPECTED_GOALS = 3
EXPECTED_ACTIVITIES = 2


class ScreeningOrchestrator:
    """
    Drives one screening session through two pages: form -> results.

    Submit sequence:
    1. reject an incomplete form (no network call)
    2. one analysis call; on failure stay on the form
    3. merge the cached emotion result under `emotionData`
    4. schedule the save on the executor, never awaited
    5. switch to the results page
    """

    def __init__(
        self,
        context,
        *,
        analysis_client,
        emotion_client,
        persistence_client,
        executor,
        dead_letter=None,
        renderer=render_report,
    ):
        self.context = context
        self.analysis_client = analysis_client
        self.emotion_client = emotion_client
        self.persistence_client = persistence_client
        self.executor = executor
        self.dead_letter = dead_letter
        self.renderer = renderer
        self._lock = threading.Lock()

    # -------------------------------------------------
    # Form
    # -------------------------------------------------

    def update_form(self, values):
        self.context.update_fields(values)

    def submit(self):
        """
        Returns the persistence Future when the page moved to results,
        None otherwise (the reason is in context.error).
        """
        ctx = self.context

        with self._lock:
            if ctx.loading:
                logger.info("Submit ignored: an analysis is already in flight.")
                return None

            if not ctx.is_complete():
                ctx.error = INCOMPLETE_MESSAGE
                return None

            observation = ctx.observation()
            ctx.loading = True
            ctx.error = None

        try:
            analysis = self.analysis_client.analyze(observation)
        except ScreeningError as e:
            logger.error(f"Analysis failed: {e.message} ({e.detail})")
            ctx.error = e.message
            return None
        finally:
            ctx.loading = False

        if not isinstance(analysis, dict) or not analysis:
            ctx.error = EMPTY_ANALYSIS_MESSAGE
            return None

        _warn_on_cardinality(analysis)

        result = dict(analysis)
        result["emotionData"] = ctx.emotion.to_payload() if ctx.emotion else None

        future = self._save_in_background(observation, dict(analysis))

        ctx.submitted = observation
        ctx.analysis = result
        ctx.page = Page.RESULTS
        return future

    def _save_in_background(self, observation, analysis):
        payload = observation.to_payload()
        payload["therapyGoals"] = analysis.get("therapyGoals")
        payload["suggestedActivities"] = analysis.get("suggestedActivities")

        future = self.executor.submit(self.persistence_client.save, observation, analysis)
        future.add_done_callback(partial(self._on_saved, payload))
        return future

    def _on_saved(self, payload, future):
        error = future.exception()
        if error is None:
            logger.info(f"Assessment saved with id {future.result()}")
            return

        logger.error(f"Failed to save assessment: {error}")
        if self.dead_letter is None:
            return
        try:
            self.dead_letter.record_failure(payload, str(error))
        except sqlite3.Error as e:
            logger.error(f"Dead-letter write failed, assessment lost: {e}")

    # -------------------------------------------------
    # Photo
    # -------------------------------------------------

    def analyze_photo(self, photo, filename=None, mimetype=None) -> bool:
        ctx = self.context
        ctx.emotion_error = None

        try:
            ctx.emotion = self.emotion_client.analyze(photo, filename, mimetype)
        except ScreeningError as e:
            logger.error(f"Emotion analysis failed: {e.message}")
            ctx.emotion = None
            ctx.emotion_error = e.message
            return False
        return True

    def clear_photo(self):
        self.context.emotion = None
        self.context.emotion_error = None

    # -------------------------------------------------
    # Results
    # -------------------------------------------------

    def reset(self):
        """results -> form. Clears observation, analysis and emotion data."""
        self.context.reset()

    def download_report(self):
        """
        Returns (filename, pdf bytes), or None with context.report_error set.
        Renders the Observation that was sent, not the live form.
        """
        ctx = self.context
        if not ctx.analysis or ctx.submitted is None:
            ctx.report_error = NO_RESULTS_MESSAGE
            return None

        try:
            pdf = self.renderer(ctx.submitted.to_payload(), ctx.analysis)
        except ReportError as e:
            ctx.report_error = e.message
            return None

        ctx.report_error = None
        return report_filename(ctx.submitted.child_name), pdf


def _warn_on_cardinality(analysis):
    goals = analysis.get("therapyGoals")
    activities = analysis.get("suggestedActivities")
    goal_count = len(goals) if isinstance(goals, list) else 0
    activity_count = len(activities) if isinstance(activities, list) else 0

    if goal_count != EXPECTED_GOALS or activity_count != EXPECTED_ACTIVITIES:
        logger.warning(
            f"Analysis returned {goal_count} goals and {activity_count} activities "
            f"(asked for {EXPECTED_GOALS} and {EXPECTED_ACTIVITIES})."
        )
