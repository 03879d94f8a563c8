import logging
import os
import sqlite3

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# Default path if env var not set
DB_PATH = os.getenv("DATABASE_PATH", "data/synergy.db")
DB_BACKEND = os.getenv("DB_BACKEND", "sqlite").lower()

# Document kinds, one per logical collection
KINDS = (
    "profiles",
    "daily_logs",
    "habits",
    "habit_entries",
    "quests",
    "user_rewards",
    "meals",
    "weights",
    "journal_entries",
)

_STORE = None


def get_db_connection(path=None):
    """Create a connection to the SQLite database in autocommit mode."""
    path = path or DB_PATH
    # Ensure data directory exists
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)

    conn = sqlite3.connect(path, timeout=5, isolation_level=None)
    conn.row_factory = sqlite3.Row  # Return rows as dictionaries
    return conn


def init_db(path=None):
    """Initialize the document table."""
    conn = get_db_connection(path)
    try:
        # One row per document; `data` holds the JSON body
        conn.execute('''
            CREATE TABLE IF NOT EXISTS documents (
                kind TEXT NOT NULL,
                user_id TEXT NOT NULL,
                doc_id TEXT NOT NULL,
                data TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (kind, user_id, doc_id)
            )
        ''')
    finally:
        conn.close()
    return True


def get_store():
    """Return the configured store (SQLite by default, MongoDB when DB_BACKEND=mongo)."""
    global _STORE
    if _STORE is None:
        if DB_BACKEND == "mongo":
            from synergy.db_mongo import MongoStore
            _STORE = MongoStore.from_env()
        else:
            from synergy.db_sqlite import SqliteStore
            _STORE = SqliteStore(DB_PATH)
        logger.info("Using %s store", DB_BACKEND)
    return _STORE
