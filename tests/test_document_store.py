from __future__ import annotations

import json

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from store import document_store
from store.document_store import (
    JsonFileStore,
    MongoStore,
    NullStore,
    StoreUnavailableError,
    open_store,
    parse_iso,
)


def test_json_store_latest_and_find_order(json_store):
    json_store.insert({"type": "lock-state", "locked": True, "timestamp": "2026-10-18T10:00:00.000000Z"})
    json_store.insert({"type": "edit", "detail": {"bytes": 3}, "timestamp": "2026-10-18T11:00:00.000000Z"})
    json_store.insert({"type": "lock-state", "locked": False, "timestamp": "2026-10-18T12:00:00.000000Z"})
    json_store.insert({"type": "admin", "detail": {"action": "lock"}, "timestamp": "2026-10-18T09:00:00.000000Z"})

    assert json_store.latest("lock-state")["locked"] is False
    assert [d["type"] for d in json_store.find(["edit", "admin"])] == ["edit", "admin"]
    assert len(json_store.find(["edit", "admin", "lock-state"], limit=2)) == 2
    assert json_store.latest("missing") is None


def test_json_store_persists_across_instances(tmp_path):
    path = tmp_path / "nested" / "log.json"
    JsonFileStore(str(path)).insert({"type": "edit", "timestamp": "2026-10-18T10:00:00.000000Z"})

    assert json.loads(path.read_text(encoding="utf-8"))[0]["type"] == "edit"
    assert JsonFileStore(str(path)).latest("edit") is not None


def test_json_store_corrupt_file_is_unavailable(tmp_path):
    path = tmp_path / "log.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(StoreUnavailableError):
        JsonFileStore(str(path)).latest("edit")


def test_null_store_refuses_everything():
    store = NullStore("offline")
    assert not store.connected
    with pytest.raises(StoreUnavailableError):
        store.insert({"type": "edit"})
    with pytest.raises(StoreUnavailableError):
        store.latest("lock-state")
    with pytest.raises(StoreUnavailableError):
        store.find(["edit"])


def test_open_store_dispatch(tmp_path):
    assert isinstance(open_store(""), NullStore)

    by_url = open_store(f"file://{tmp_path}/a.json")
    assert isinstance(by_url, JsonFileStore)
    assert by_url.path == f"{tmp_path}/a.json"

    bare = open_store(str(tmp_path / "b.json"))
    assert isinstance(bare, JsonFileStore)


def test_open_store_mongo_failure_falls_back(monkeypatch):
    def refuse(url, collection, timeout_ms=5000):
        raise ServerSelectionTimeoutError("no servers")

    monkeypatch.setattr(document_store.MongoStore, "connect", staticmethod(refuse))
    store = open_store("mongodb://localhost:1/editor")
    assert isinstance(store, NullStore)
    assert "no servers" in store.reason


class FakeCollection:
    full_name = "editor.editor_log"

    def __init__(self):
        self.inserted = []
        self.queries = []

    def insert_one(self, doc):
        doc["_id"] = len(self.inserted)
        self.inserted.append(doc)

    def find_one(self, filter, projection, sort=None):
        self.queries.append(("find_one", filter, projection, sort))
        return {"type": "lock-state", "locked": True, "timestamp": "2026-10-18T10:00:00.000000Z"}

    def find(self, filter, projection, sort=None, limit=0):
        self.queries.append(("find", filter, projection, sort, limit))
        return iter([{"type": "edit", "timestamp": "2026-10-18T10:00:00.000000Z"}])


def test_mongo_store_queries():
    collection = FakeCollection()
    store = MongoStore(collection)
    doc = {"type": "edit", "timestamp": "2026-10-18T10:00:00.000000Z"}

    store.insert(doc)
    assert "_id" not in doc
    assert collection.inserted[0]["type"] == "edit"

    assert store.latest("lock-state")["locked"] is True
    assert collection.queries[0] == ("find_one", {"type": "lock-state"}, {"_id": 0}, [("timestamp", -1), ("_id", -1)])

    assert store.find(("edit", "admin"), limit=5) == [{"type": "edit", "timestamp": "2026-10-18T10:00:00.000000Z"}]
    assert collection.queries[1][1] == {"type": {"$in": ["edit", "admin"]}}
    assert collection.queries[1][4] == 5


def test_mongo_errors_become_store_unavailable():
    class Down(FakeCollection):
        def insert_one(self, doc):
            raise ServerSelectionTimeoutError("down")

    with pytest.raises(StoreUnavailableError, match="down"):
        MongoStore(Down()).insert({"type": "edit"})


def test_timestamps_sort_as_strings():
    earlier = document_store.now_iso()
    later = document_store.now_iso()
    assert earlier <= later
    assert parse_iso(earlier).tzinfo is not None
