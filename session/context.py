import json
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from common.errors import ValidationError
from session.models import (
    OBSERVATION_FIELDS,
    EmotionResult,
    Observation,
    Page,
    parse_age,
)


@dataclass(frozen=True)
class ScreeningView:
    """
    Read-only snapshot of a ScreeningContext.
    Templates render this, never the live context.
    """
    page: Page
    form: Mapping[str, str]
    analysis: Optional[Mapping[str, object]]
    emotion: Optional[EmotionResult]
    submitted: Optional[Mapping[str, object]]
    loading: bool
    error: Optional[str]
    emotion_error: Optional[str]
    report_error: Optional[str]

    @property
    def analysis_json(self) -> str:
        if self.analysis is None:
            return "No analysis yet"
        return json.dumps(dict(self.analysis), indent=2, ensure_ascii=False)


class ScreeningContext:
    """
    Screening-session state.
    Must persist across requests of the same browser session.
    """

    def __init__(self):
        # Raw form values as typed by the user
        self.form = {name: "" for name in OBSERVATION_FIELDS}

        # "form" | "results"
        self.page = Page.FORM

        # Analysis output plus the merged `emotionData` field
        self.analysis = None

        # Emotion result captured before submit, display only
        self.emotion = None

        # The Observation the analysis was generated from
        self.submitted = None

        # Submit control is disabled while an analysis is in flight
        self.loading = False

        self.error = None
        self.emotion_error = None
        self.report_error = None

    @property
    def form_locked(self) -> bool:
        return self.loading or self.page == Page.RESULTS

    def update_field(self, name: str, value) -> None:
        """Ignored while an analysis is in flight or results are shown."""
        if name not in self.form:
            raise ValidationError(f"Unknown field: {name}")
        if self.form_locked:
            return
        self.form[name] = "" if value is None else str(value)

    def update_fields(self, values: Mapping[str, object]) -> None:
        for name in OBSERVATION_FIELDS:
            if name in values:
                self.update_field(name, values[name])

    def missing_fields(self) -> list[str]:
        missing = [name for name in OBSERVATION_FIELDS if not self.form[name].strip()]
        if "childAge" not in missing and parse_age(self.form["childAge"]) is None:
            missing.append("childAge")
        return missing

    def is_complete(self) -> bool:
        return not self.missing_fields()

    def observation(self) -> Observation:
        missing = self.missing_fields()
        if missing:
            raise ValidationError(
                "Please fill in all the fields before analyzing.",
                missing=missing,
            )
        return Observation.from_payload(self.form)

    def reset(self) -> None:
        """
        Full reset: observation, analysis and emotion data all go.
        """
        for name in self.form:
            self.form[name] = ""
        self.page = Page.FORM
        self.analysis = None
        self.emotion = None
        self.submitted = None
        self.loading = False
        self.error = None
        self.emotion_error = None
        self.report_error = None

    def snapshot(self) -> ScreeningView:
        return ScreeningView(
            page=self.page,
            form=MappingProxyType(dict(self.form)),
            analysis=MappingProxyType(dict(self.analysis)) if self.analysis is not None else None,
            emotion=self.emotion,
            submitted=MappingProxyType(self.submitted.to_payload()) if self.submitted is not None else None,
            loading=self.loading,
            error=self.error,
            emotion_error=self.emotion_error,
            report_error=self.report_error,
        )
