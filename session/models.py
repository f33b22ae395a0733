from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


class Page(str, Enum):
    FORM = "form"
    RESULTS = "results"


# Form field name -> label shown on the form and in the report.
FIELD_LABELS = {
    "childName": "Name",
    "childAge": "Age",
    "eyeContact": "Eye Contact",
    "speechLevel": "Speech Level",
    "socialResponse": "Social Response",
    "sensoryReactions": "Sensory Reactions",
}

OBSERVATION_FIELDS = tuple(FIELD_LABELS)

# The five fields the analysis prompt is built from. The name is not sent
# to the provider.
CLINICAL_FIELDS = (
    "childAge",
    "eyeContact",
    "speechLevel",
    "socialResponse",
    "sensoryReactions",
)

# Display options for the select fields. The API does not enforce them.
FIELD_OPTIONS = {
    "eyeContact": ("Consistent", "Moderate", "Minimal/Avoidant"),
    "speechLevel": ("Age-Appropriate", "Limited Vocabulary", "No Speech"),
    "socialResponse": ("Initiates Interaction", "Responds to Directives", "Unresponsive"),
    "sensoryReactions": (
        "Typical",
        "Overreactive (to sounds, lights, textures)",
        "Underreactive (seeks intense stimuli)",
    ),
}

EMOTION_LABELS = ("neutral", "happy", "sad", "angry", "fear", "surprise", "disgust")


def is_blank(value) -> bool:
    """
    Missing-value test shared by the API routes.
    Empty lists count as present; zero does not.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, bool):
        return not value
    if isinstance(value, (int, float)):
        return value == 0
    return False


def parse_age(value) -> Optional[float]:
    """
    Returns the age as a positive number, or None if it is not one.
    Whole ages come back as int so they render as "5", not "5.0".
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        age = float(str(value).strip())
    except ValueError:
        return None
    if age != age or age <= 0:
        return None
    return int(age) if age.is_integer() else age


@dataclass(frozen=True)
class Observation:
    """
    The structured input collected from the form.
    Frozen: once built for a submission it is never mutated.
    """
    child_name: str
    child_age: float
    eye_contact: str
    speech_level: str
    social_response: str
    sensory_reactions: str

    def to_payload(self) -> Dict[str, object]:
        return {
            "childName": self.child_name,
            "childAge": self.child_age,
            "eyeContact": self.eye_contact,
            "speechLevel": self.speech_level,
            "socialResponse": self.social_response,
            "sensoryReactions": self.sensory_reactions,
        }

    @classmethod
    def from_payload(cls, data: Dict[str, object]) -> "Observation":
        return cls(
            child_name=str(data["childName"]).strip(),
            child_age=parse_age(data["childAge"]),
            eye_contact=str(data["eyeContact"]).strip(),
            speech_level=str(data["speechLevel"]).strip(),
            social_response=str(data["socialResponse"]).strip(),
            sensory_reactions=str(data["sensoryReactions"]).strip(),
        )


@dataclass(frozen=True)
class EmotionResult:
    """
    Facial-expression inference for one photo.
    Display only: it is never persisted and never rendered into a report.
    """
    primary_emotion: str
    confidence: float                       # 0..100
    emotions: Dict[str, float] = field(default_factory=dict)   # label -> 0..100
    eye_contact: Optional[str] = None
    engagement: Optional[str] = None
    notes: Optional[str] = None

    def to_payload(self) -> Dict[str, object]:
        payload = {
            "primaryEmotion": self.primary_emotion,
            "confidence": self.confidence,
            "emotions": dict(self.emotions),
        }
        if self.eye_contact:
            payload["eyeContact"] = self.eye_contact
        if self.engagement:
            payload["engagement"] = self.engagement
        if self.notes:
            payload["notes"] = self.notes
        return payload

    @classmethod
    def from_payload(cls, data: Dict[str, object]) -> "EmotionResult":
        emotions = data.get("emotions") or {}
        return cls(
            primary_emotion=str(data.get("primaryEmotion") or "neutral"),
            confidence=clamp_percent(data.get("confidence")),
            emotions={
                str(label).lower(): clamp_percent(value)
                for label, value in emotions.items()
            },
            eye_contact=data.get("eyeContact") or None,
            engagement=data.get("engagement") or None,
            notes=data.get("notes") or None,
        )


def clamp_percent(value) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if number != number:
        return 0.0
    return round(min(100.0, max(0.0, number)), 1)
