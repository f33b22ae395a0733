# storage/assessments.py

import logging
from datetime import datetime, timezone

import firebase_admin
from firebase_admin import credentials, firestore

from common.errors import PersistenceError

logger = logging.getLogger(__name__)


class FirestoreAssessmentStore:
    """
    Write-once store for screening results.
    No update or delete path.
    """

    def __init__(self, db, collection: str = "assessments"):
        self.db = db
        self.collection = collection

    @classmethod
    def from_credentials(cls, credentials_path: str | None, collection: str = "assessments"):
        if not credentials_path:
            raise PersistenceError("FIREBASE_CREDENTIALS is not configured.")

        try:
            try:
                app = firebase_admin.get_app()
            except ValueError:
                app = firebase_admin.initialize_app(credentials.Certificate(credentials_path))
            db = firestore.client(app)
        except Exception as e:
            logger.error(f"Firestore setup failed: {e}")
            raise PersistenceError("Could not connect to the assessment store.", detail=str(e)) from e

        return cls(db, collection)

    def save(self, record: dict) -> str:
        """
        Write one flat record (see session.records.build_record).
        Returns the store-generated document id.
        """
        document = dict(record)
        document["timestamp"] = firestore.SERVER_TIMESTAMP
        document["createdAt"] = datetime.now(timezone.utc).isoformat()

        try:
            _, ref = self.db.collection(self.collection).add(document)
        except Exception as e:
            logger.error(f"Firestore write failed: {e}")
            raise PersistenceError("Could not save the assessment.", detail=str(e)) from e

        logger.info(f"Saved assessment {ref.id} to '{self.collection}'")
        return ref.id
