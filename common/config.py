# common/config.py

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).resolve().parents[1]

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_COLLECTION = "assessments"


@dataclass(frozen=True)
class Settings:
    """
    Runtime configuration, read once from the environment.

    - api_base_url: where the screening UI reaches the backend API
    - gemini_api_key: None means /analyze answers 503
    - firebase_credentials: path to a service account JSON file
    """
    api_base_url: str = "http://localhost:5000"
    gemini_api_key: str | None = None
    gemini_model: str = DEFAULT_MODEL
    firebase_credentials: str | None = None
    firestore_collection: str = DEFAULT_COLLECTION
    dead_letter_db: Path = ROOT_DIR / "data" / "dead_letter.db"
    secret_key: str = "dev-secret"
    port: int = 5000

    @property
    def analysis_configured(self) -> bool:
        return bool(self.gemini_api_key)


def _clean(value):
    if value is None:
        return None
    value = value.strip()
    return value or None


def load_settings() -> Settings:
    load_dotenv()

    api_key = _clean(os.getenv("GEMINI_API_KEY"))
    if not api_key:
        logger.warning("GEMINI_API_KEY is not set. /analyze will answer 503.")

    port = int(os.getenv("PORT", "5000"))

    return Settings(
        api_base_url=(_clean(os.getenv("API_BASE_URL")) or f"http://localhost:{port}").rstrip("/"),
        gemini_api_key=api_key,
        gemini_model=_clean(os.getenv("GEMINI_MODEL")) or DEFAULT_MODEL,
        firebase_credentials=_clean(os.getenv("FIREBASE_CREDENTIALS")),
        firestore_collection=_clean(os.getenv("FIRESTORE_COLLECTION")) or DEFAULT_COLLECTION,
        dead_letter_db=Path(_clean(os.getenv("DEAD_LETTER_DB")) or ROOT_DIR / "data" / "dead_letter.db"),
        secret_key=os.getenv("FLASK_SECRET_KEY", "dev-secret"),
        port=port,
    )
