# client/report.py

import json
import logging
import re
from datetime import date

from common.errors import ReportError
from session.models import FIELD_LABELS, Observation

logger = logging.getLogger(__name__)

REPORT_TITLE = "Child Behavioral Assessment Report"
FAILURE_MESSAGE = "PDF generation failed. Please try again."

# Keys the report renders on their own, or must never render.
_SECTION_KEYS = ("therapyGoals", "suggestedActivities")
_EXCLUDED_KEYS = ("emotionData",)

_FENCE = re.compile(r"```json|```")

# Core PDF fonts are latin-1 only.
_PUNCTUATION = str.maketrans({
    "‘": "'", "’": "'", "“": '"', "”": '"',
    "–": "-", "—": "-", "•": "-", "…": "...",
})


def sanitize_text(value) -> str:
    return _FENCE.sub("", str(value)).strip() if value else ""


def _latin1(text) -> str:
    return str(text).translate(_PUNCTUATION).encode("latin-1", "replace").decode("latin-1")


def report_filename(child_name: str | None) -> str:
    base = re.sub(r"\s+", "_", (child_name or "").strip()) or "analysis"
    return f"{base}_Assessment.pdf"


def report_sections(analysis: dict | None) -> dict:
    """
    What goes under "AI Analysis and Recommendations".
    Emotion data is dropped here regardless of what the caller passes.
    """
    if not analysis:
        return {}

    sections = {}
    for key, title in (("therapyGoals", "Therapy Goals"), ("suggestedActivities", "Suggested Activities")):
        items = analysis.get(key)
        if isinstance(items, list) and items:
            sections[title] = [str(item) for item in items]

    remaining = {
        key: value
        for key, value in analysis.items()
        if key not in _SECTION_KEYS and key not in _EXCLUDED_KEYS
    }
    if remaining:
        sections["Other Details"] = sanitize_text(json.dumps(remaining, indent=2, ensure_ascii=False))

    return sections


def _load_fpdf():
    try:
        from fpdf import FPDF, XPos, YPos
    except ImportError as e:
        logger.error(f"PDF library failed to load: {e}")
        raise ReportError(FAILURE_MESSAGE, detail=str(e)) from e
    return FPDF, XPos, YPos


def render_report(observation, analysis: dict | None, *, generated_on: date | None = None) -> bytes:
    """
    Build the printable assessment.

    - observation: Observation or a mapping of the camelCase form fields
    - analysis: in-memory result; emotionData in it is ignored
    - returns the PDF bytes
    """
    FPDF, XPos, YPos = _load_fpdf()
    nl = {"new_x": XPos.LMARGIN, "new_y": YPos.NEXT}
    cont = {"new_x": XPos.RIGHT, "new_y": YPos.TOP}

    fields = observation.to_payload() if isinstance(observation, Observation) else dict(observation or {})
    generated_on = generated_on or date.today()

    try:
        pdf = FPDF(format="A4")
        pdf.set_auto_page_break(auto=True, margin=15)
        pdf.add_page()

        pdf.set_font("Helvetica", "B", 18)
        pdf.cell(0, 10, REPORT_TITLE, 0, **nl)
        pdf.set_font("Helvetica", "", 10)
        pdf.cell(0, 6, f"Report generated on: {generated_on.strftime('%B %d, %Y')}", 0, **nl)
        pdf.ln(4)

        _heading(pdf, "Child Information", nl)
        for name, label in FIELD_LABELS.items():
            value = fields.get(name)
            if name == "childName":
                value = value or "Child"
            pdf.set_font("Helvetica", "B", 11)
            pdf.set_fill_color(249, 249, 249)
            pdf.cell(50, 8, label, 1, **cont, fill=True)
            pdf.set_font("Helvetica", "", 11)
            pdf.cell(0, 8, _latin1(value if value not in (None, "") else "N/A"), 1, **nl)
        pdf.ln(4)

        _heading(pdf, "AI Analysis and Recommendations", nl)
        sections = report_sections(analysis)
        if not analysis:
            pdf.set_font("Helvetica", "", 11)
            pdf.cell(0, 8, "No AI analysis available.", 0, **nl)

        for title, content in sections.items():
            pdf.set_font("Helvetica", "B", 12)
            pdf.cell(0, 8, title, 0, **nl)
            if isinstance(content, list):
                pdf.set_font("Helvetica", "", 11)
                for item in content:
                    pdf.multi_cell(0, 6, _latin1(f"-  {item}"), 0, **nl)
            else:
                pdf.set_font("Courier", "", 9)
                pdf.set_fill_color(240, 240, 240)
                pdf.multi_cell(0, 5, _latin1(content), 0, **nl, fill=True)
            pdf.ln(2)

        return bytes(pdf.output())
    except Exception as e:
        logger.error(f"PDF generation error: {e}")
        raise ReportError(FAILURE_MESSAGE, detail=str(e)) from e


def _heading(pdf, title, nl):
    pdf.set_font("Helvetica", "B", 14)
    pdf.set_text_color(51, 51, 51)
    pdf.cell(0, 9, title, 0, **nl)
    pdf.set_text_color(0, 0, 0)
