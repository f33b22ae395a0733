# analysis/prompts.py

from session.models import EMOTION_LABELS


ANALYSIS_PROMPT = """
You are a professional child development therapist specializing in autism. Analyze the child's behavioral and developmental profile based on the following details:
- Age: {childAge}
- Eye Contact: {eyeContact}
- Speech Level: {speechLevel}
- Social Response: {socialResponse}
- Sensory Reactions: {sensoryReactions}

Based on this profile, suggest exactly 3 short, measurable therapy goals and exactly 2 practical, structured activities.
"""

# Cardinality lives in the descriptions only. The provider does not enforce it.
ANALYSIS_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "therapyGoals": {
            "type": "ARRAY",
            "description": "Exactly 3 short, measurable therapy goals.",
            "items": {"type": "STRING"},
        },
        "suggestedActivities": {
            "type": "ARRAY",
            "description": "Exactly 2 practical, structured activities.",
            "items": {"type": "STRING"},
        },
    },
    "required": ["therapyGoals", "suggestedActivities"],
}


EMOTION_PROMPT = """
You are assisting a child development therapist. Look at the child's face in this photo and assess the facial expression.

Return:
- primaryEmotion: the dominant emotion, one of: {labels}
- confidence: how confident you are in the primary emotion, 0 to 100
- emotions: a percentage (0 to 100) for each of: {labels}
- eyeContact: a short description of gaze direction and eye contact
- engagement: a short description of the apparent engagement level
- notes: one or two sentences of neutral, non-diagnostic observations

Describe only what is visible. Do not make medical or developmental claims.
"""

EMOTION_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "primaryEmotion": {"type": "STRING", "enum": list(EMOTION_LABELS)},
        "confidence": {"type": "NUMBER"},
        "emotions": {
            "type": "OBJECT",
            "properties": {label: {"type": "NUMBER"} for label in EMOTION_LABELS},
        },
        "eyeContact": {"type": "STRING"},
        "engagement": {"type": "STRING"},
        "notes": {"type": "STRING"},
    },
    "required": ["primaryEmotion", "confidence", "emotions"],
}


def build_analysis_prompt(child_data: dict) -> str:
    return ANALYSIS_PROMPT.format(
        childAge=child_data["childAge"],
        eyeContact=child_data["eyeContact"],
        speechLevel=child_data["speechLevel"],
        socialResponse=child_data["socialResponse"],
        sensoryReactions=child_data["sensoryReactions"],
    )


def build_emotion_prompt() -> str:
    return EMOTION_PROMPT.format(labels=", ".join(EMOTION_LABELS))
