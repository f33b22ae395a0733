from common.errors import ValidationError
from session.models import OBSERVATION_FIELDS, is_blank, parse_age

ANALYSIS_FIELDS = ("therapyGoals", "suggestedActivities")
RECORD_FIELDS = OBSERVATION_FIELDS + ANALYSIS_FIELDS


def build_record(payload: dict) -> dict:
    """
    Validate a save payload and keep only the persisted fields.

    Record invariant:
    - flat: six observation fields + two string lists
    - anything else in the payload (e.g. emotionData) is dropped
    """
    missing = [name for name in OBSERVATION_FIELDS if is_blank(payload.get(name))]

    if "childAge" not in missing and parse_age(payload.get("childAge")) is None:
        missing.append("childAge")

    for name in ANALYSIS_FIELDS:
        if not isinstance(payload.get(name), list):
            missing.append(name)

    if missing:
        raise ValidationError(
            "Missing required fields: " + ", ".join(missing),
            missing=missing,
            error="Missing required fields",
        )

    record = {name: str(payload[name]).strip() for name in OBSERVATION_FIELDS}
    record["childAge"] = parse_age(payload["childAge"])
    for name in ANALYSIS_FIELDS:
        record[name] = [str(item) for item in payload[name]]
    return record
