"""One collection of small JSON documents, keyed by a ``type`` field.

Lock-state changes and audit records share the collection. Backends:

  - ``JsonFileStore``: a JSON array on disk. Every insert is a load -> append
    -> save cycle, serialised with a thread lock.
  - ``MongoStore``: a pymongo collection.
  - ``NullStore``: used when no store is configured or it failed to connect.
    Every call raises ``StoreUnavailableError``.

Usage::

    store = open_store("file://data/editor_log.json")
    store.insert({"type": "lock-state", "locked": True, "timestamp": now_iso()})
    store.latest("lock-state")
"""

from __future__ import annotations

import json
import logging
import os
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from pymongo import MongoClient
from pymongo.errors import PyMongoError


logger = logging.getLogger(__name__)


class StoreUnavailableError(Exception):
    """The document store is not connected or a backend call failed."""


def now_iso() -> str:
    # Fixed width with a trailing Z so plain string order is time order.
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def parse_iso(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


class DocumentStore:
    connected = True
    description = "store"

    def insert(self, doc: Dict[str, Any]) -> None:
        raise NotImplementedError

    def latest(self, doc_type: str) -> Optional[Dict[str, Any]]:
        """Newest document of ``doc_type`` by timestamp, or None."""
        raise NotImplementedError

    def find(self, doc_types: Iterable[str], limit: int = 20) -> List[Dict[str, Any]]:
        """Newest-first documents whose type is in ``doc_types``."""
        raise NotImplementedError

    def close(self) -> None:
        pass


class NullStore(DocumentStore):
    connected = False

    def __init__(self, reason: str = "no store configured"):
        self.reason = reason
        self.description = f"not connected ({reason})"

    def insert(self, doc):
        raise StoreUnavailableError(self.reason)

    def latest(self, doc_type):
        raise StoreUnavailableError(self.reason)

    def find(self, doc_types, limit=20):
        raise StoreUnavailableError(self.reason)


class JsonFileStore(DocumentStore):
    def __init__(self, path: str):
        self.path = path
        self.description = f"file:{path}"
        self._lock = threading.Lock()

    def _load(self) -> List[dict]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            raise StoreUnavailableError(f"Failed to load {self.path}: {exc}") from exc
        return data if isinstance(data, list) else []

    def _save(self, docs: List[dict]) -> None:
        try:
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(docs, f, indent=2)
                f.write("\n")
        except OSError as exc:
            raise StoreUnavailableError(f"Failed to save {self.path}: {exc}") from exc

    def insert(self, doc):
        with self._lock:
            docs = self._load()
            docs.append(dict(doc))
            self._save(docs)

    def latest(self, doc_type):
        found = self.find([doc_type], limit=1)
        return found[0] if found else None

    def find(self, doc_types, limit=20):
        wanted = set(doc_types)
        with self._lock:
            docs = [d for d in self._load() if isinstance(d, dict) and d.get("type") in wanted]
        # Later inserts first when timestamps tie.
        docs.reverse()
        docs.sort(key=lambda d: str(d.get("timestamp", "")), reverse=True)
        return docs[:limit]


class MongoStore(DocumentStore):
    def __init__(self, collection, client=None):
        self._collection = collection
        self._client = client
        self.description = f"mongodb:{getattr(collection, 'full_name', collection)}"

    @classmethod
    def connect(cls, url: str, collection_name: str, timeout_ms: int = 5000) -> "MongoStore":
        client = MongoClient(url, serverSelectionTimeoutMS=timeout_ms)
        try:
            client.admin.command("ping")
            db = client.get_default_database(default="editor")
        except PyMongoError:
            client.close()
            raise
        return cls(db[collection_name], client=client)

    def _call(self, label: str, fn, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except PyMongoError as exc:
            raise StoreUnavailableError(f"MongoDB {label} failed: {exc}") from exc

    def insert(self, doc):
        # insert_one mutates its argument with an _id.
        self._call("insert", self._collection.insert_one, dict(doc))

    def latest(self, doc_type):
        return self._call(
            "find_one",
            self._collection.find_one,
            {"type": doc_type},
            {"_id": 0},
            sort=[("timestamp", -1), ("_id", -1)],
        )

    def find(self, doc_types, limit=20):
        cursor = self._call(
            "find",
            self._collection.find,
            {"type": {"$in": list(doc_types)}},
            {"_id": 0},
            sort=[("timestamp", -1), ("_id", -1)],
            limit=limit,
        )
        return self._call("find", list, cursor)

    def close(self):
        if self._client is not None:
            self._client.close()


def open_store(url: str, collection: str = "editor_log") -> DocumentStore:
    """Open the store named by ``url``; never raises.

    ``mongodb://`` / ``mongodb+srv://`` -> MongoStore, ``file://path`` or a
    bare path -> JsonFileStore, empty -> NullStore. Connection failures are
    logged and also give a NullStore so the app keeps serving.
    """
    url = (url or "").strip()
    if not url:
        logger.warning("⚠️ STORE_URL not set; lock state and audit log will not persist")
        return NullStore()

    if url.startswith(("mongodb://", "mongodb+srv://")):
        try:
            store = MongoStore.connect(url, collection)
        except PyMongoError as exc:
            logger.error("❌ Could not connect to MongoDB: %s", exc)
            return NullStore(f"connect failed: {exc}")
        logger.info("✅ Connected to %s", store.description)
        return store

    path = url[len("file://"):] if url.startswith("file://") else url
    return JsonFileStore(path)


__all__ = [
    "DocumentStore",
    "JsonFileStore",
    "MongoStore",
    "NullStore",
    "StoreUnavailableError",
    "now_iso",
    "open_store",
    "parse_iso",
]
