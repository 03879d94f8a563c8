import json
import logging
import sqlite3
import time

from synergy.database import DB_PATH, get_db_connection, init_db

logger = logging.getLogger(__name__)


def _sort_key(field):
    return lambda doc: doc.get(field) or ""


class SqliteTransaction:
    """Document access bound to one SQLite connection."""

    def __init__(self, conn):
        self.conn = conn

    def get(self, kind, user_id, doc_id):
        row = self.conn.execute(
            "SELECT data FROM documents WHERE kind = ? AND user_id = ? AND doc_id = ?",
            (kind, user_id, str(doc_id)),
        ).fetchone()
        return json.loads(row["data"]) if row else None

    def set(self, kind, user_id, doc_id, data, merge=False):
        if merge:
            existing = self.get(kind, user_id, doc_id) or {}
            existing.update(data)
            data = existing
        self.conn.execute(
            """
            INSERT OR REPLACE INTO documents (kind, user_id, doc_id, data, updated_at)
            VALUES (?, ?, ?, ?, CURRENT_TIMESTAMP)
            """,
            (kind, user_id, str(doc_id), json.dumps(data)),
        )

    def delete(self, kind, user_id, doc_id):
        self.conn.execute(
            "DELETE FROM documents WHERE kind = ? AND user_id = ? AND doc_id = ?",
            (kind, user_id, str(doc_id)),
        )

    def query(self, kind, user_id, order_by=None, descending=False, limit=None):
        rows = self.conn.execute(
            "SELECT data FROM documents WHERE kind = ? AND user_id = ? ORDER BY doc_id",
            (kind, user_id),
        ).fetchall()
        docs = [json.loads(row["data"]) for row in rows]
        if order_by:
            docs.sort(key=_sort_key(order_by), reverse=descending)
        elif descending:
            docs.reverse()
        if limit is not None:
            docs = docs[:limit]
        return docs


class SqliteStore:
    """Local document store. `BEGIN IMMEDIATE` gives each transaction the write lock up front."""

    def __init__(self, path=DB_PATH, max_retries=5):
        self.path = path
        self.max_retries = max_retries
        init_db(path)

    def run_transaction(self, fn):
        for attempt in range(1, self.max_retries + 1):
            conn = get_db_connection(self.path)
            try:
                conn.execute("BEGIN IMMEDIATE")
                result = fn(SqliteTransaction(conn))
                conn.execute("COMMIT")
                return result
            except sqlite3.OperationalError as e:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                if "locked" in str(e) and attempt < self.max_retries:
                    logger.warning("Database locked, retrying transaction (attempt %d)", attempt)
                    time.sleep(0.05 * attempt)
                    continue
                raise
            except Exception:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
            finally:
                conn.close()

    def read(self, fn):
        conn = get_db_connection(self.path)
        try:
            return fn(SqliteTransaction(conn))
        finally:
            conn.close()
