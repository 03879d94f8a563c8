import logging
import os

from dotenv import load_dotenv
from pymongo import ASCENDING, DESCENDING, MongoClient

from synergy.database import KINDS

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_DB_NAME = "synergy"
_META_FIELDS = ("_id", "user_id", "doc_id")


def _doc_key(user_id, doc_id):
    return f"{user_id}:{doc_id}"


def _strip(doc):
    if doc is None:
        return None
    return {k: v for k, v in doc.items() if k not in _META_FIELDS}


class MongoTransaction:
    """Document access through one collection per kind; every call joins `session` when given."""

    def __init__(self, db, session=None):
        self.db = db
        self.session = session

    def get(self, kind, user_id, doc_id):
        doc = self.db[kind].find_one({"_id": _doc_key(user_id, doc_id)}, session=self.session)
        return _strip(doc)

    def set(self, kind, user_id, doc_id, data, merge=False):
        key = _doc_key(user_id, doc_id)
        body = dict(data, user_id=user_id, doc_id=str(doc_id))
        if merge:
            self.db[kind].update_one({"_id": key}, {"$set": body}, upsert=True, session=self.session)
        else:
            self.db[kind].replace_one({"_id": key}, body, upsert=True, session=self.session)

    def delete(self, kind, user_id, doc_id):
        self.db[kind].delete_one({"_id": _doc_key(user_id, doc_id)}, session=self.session)

    def query(self, kind, user_id, order_by=None, descending=False, limit=None):
        cursor = self.db[kind].find({"user_id": user_id}, session=self.session)
        cursor = cursor.sort(order_by or "doc_id", DESCENDING if descending else ASCENDING)
        if limit is not None:
            cursor = cursor.limit(limit)
        return [_strip(doc) for doc in cursor]


class MongoStore:
    """MongoDB-backed store. Transactions need a replica set (Atlas clusters are one)."""

    def __init__(self, client, db_name=DEFAULT_DB_NAME):
        self.client = client
        self.db = client[db_name]

    @classmethod
    def from_env(cls):
        uri = os.getenv("MONGO_URI")
        if not uri:
            raise RuntimeError("MONGO_URI not found in .env")
        client = MongoClient(uri)
        # Default DB name or from URI
        db_name = client.get_default_database(default=DEFAULT_DB_NAME).name
        store = cls(client, db_name)
        store.init_db()
        return store

    def init_db(self):
        """Create every collection up front; collections cannot be created implicitly inside older transactions."""
        for kind in KINDS:
            self.db[kind].create_index("user_id")
        logger.info("MongoDB collections ready in %s", self.db.name)
        return True

    def run_transaction(self, fn):
        # with_transaction retries the callback on transient errors and unknown commit results
        with self.client.start_session() as session:
            return session.with_transaction(lambda s: fn(MongoTransaction(self.db, s)))

    def read(self, fn):
        return fn(MongoTransaction(self.db))
