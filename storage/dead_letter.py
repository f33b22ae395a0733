# storage/dead_letter.py

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path


class DeadLetterStore:
    """
    Local sink for save payloads that never reached the document store.
    Rows are kept for an operator to replay; nothing here retries.
    """

    def __init__(self, db_path):
        self.db_path = Path(db_path)

    def get_conn(self):
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self):
        conn = self.get_conn()
        cur = conn.cursor()

        cur.execute("""
        CREATE TABLE IF NOT EXISTS failed_saves (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            payload TEXT NOT NULL,
            error TEXT,
            created_at TEXT NOT NULL
        )
        """)

        conn.commit()
        conn.close()

    def record_failure(self, payload: dict, error: str):
        conn = self.get_conn()
        cur = conn.cursor()

        cur.execute("""
            INSERT INTO failed_saves (payload, error, created_at)
            VALUES (?, ?, ?)
        """, (
            json.dumps(payload, ensure_ascii=False),
            error,
            datetime.now(timezone.utc).isoformat(),
        ))

        conn.commit()
        conn.close()

    def get_failures(self, limit=None):
        conn = self.get_conn()
        cur = conn.cursor()

        query = "SELECT id, payload, error, created_at FROM failed_saves ORDER BY id DESC"
        params = []
        if limit:
            query += " LIMIT ?"
            params.append(limit)

        cur.execute(query, params)
        rows = cur.fetchall()
        conn.close()

        return [
            {
                "id": r["id"],
                "payload": json.loads(r["payload"]),
                "error": r["error"],
                "created_at": r["created_at"],
            }
            for r in rows
        ]
