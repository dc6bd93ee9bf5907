from __future__ import annotations

import hashlib
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from editor_config import Settings
from github_file.errors import ConflictError, NotFoundError
from github_file.github_models import RemoteFile
from health import create_app
from store.document_store import JsonFileStore


class FakeFileClient:
    """Stands in for GitHubFileClient; rejects writes with a stale sha."""

    def __init__(self, content: str = "hello\n", path: str = "notes.md"):
        self.files = {path: content}
        self.version = 0
        self.overwrites = []
        self.fetch_error = None
        self.modified_error = None
        self.overwrite_error = None
        self.modified_at = datetime.now(timezone.utc) - timedelta(seconds=42)

    def _sha(self, path: str) -> str:
        return hashlib.sha1(f"{path}:{self.version}:{self.files[path]}".encode()).hexdigest()

    def fetch_file(self, path):
        if self.fetch_error:
            raise self.fetch_error
        if path not in self.files:
            raise NotFoundError(f"{path} not found", 404)
        return RemoteFile(path=path, content=self.files[path], sha=self._sha(path))

    def fetch_last_modified_time(self, path):
        if self.modified_error:
            raise self.modified_error
        return self.modified_at

    def overwrite_file(self, path, new_content, sha, message=None):
        self.overwrites.append((path, new_content, sha))
        if self.overwrite_error:
            raise self.overwrite_error
        if sha != self._sha(path):
            raise ConflictError(f"{path} does not match {sha}", 409)
        self.files[path] = new_content
        self.version += 1
        return self._sha(path)

    def clear_file(self, path, message=None):
        return self.overwrite_file(path, "", self.fetch_file(path).sha, message=message)

    def close(self):
        pass


class BrokenStore(JsonFileStore):
    """A store that connected but fails every write."""

    def __init__(self, path, exc: Exception):
        super().__init__(path)
        self.exc = exc

    def insert(self, doc):
        raise self.exc


@pytest.fixture
def settings():
    return Settings(
        github_token="test-token",
        github_repo="octo/notes",
        github_file_path="notes.md",
        admin_password="hunter2",
        store_url="",
    )


@pytest.fixture
def file_client():
    return FakeFileClient()


@pytest.fixture
def json_store(tmp_path):
    return JsonFileStore(str(tmp_path / "editor_log.json"))


@pytest.fixture
def make_client(settings, file_client):
    """Factory: TestClient over an app wired to the given store."""
    opened = []

    def _make(store):
        app = create_app(settings, file_client=file_client, store=store)
        client = TestClient(app)
        client.__enter__()
        opened.append(client)
        return client

    yield _make

    for client in opened:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client, json_store):
    return make_client(json_store)

