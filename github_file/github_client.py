"""Read and overwrite a single file through the GitHub contents API.

Writes are conditional: every PUT carries the sha from the read that
preceded it, and GitHub rejects the write with 409 when the file moved on
in between. Nothing here retries or merges; a conflict goes back to the
caller as ``ConflictError``.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from github_file.errors import NotFoundError, RemoteFileError, error_for_status
from github_file.github_models import RemoteFile, decode_content, encode_content


logger = logging.getLogger(__name__)

DEFAULT_COMMIT_MESSAGE = "Updated via GitHub Web Editor"


def _parse_timestamp(value: str) -> datetime:
    # Python < 3.11 can't parse a trailing "Z".
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


class GitHubFileClient:
    def __init__(
        self,
        token: str,
        repo: str,
        *,
        branch: str = "",
        api_url: str = "https://api.github.com",
        timeout: float = 15.0,
        commit_message: str = DEFAULT_COMMIT_MESSAGE,
        session: Optional[requests.Session] = None,
    ):
        self.repo = repo
        self.branch = branch
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.commit_message = commit_message or DEFAULT_COMMIT_MESSAGE
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            }
        )

    def close(self) -> None:
        self._session.close()

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    def _contents_url(self, path: str) -> str:
        return f"{self.api_url}/repos/{self.repo}/contents/{quote(path.lstrip('/'))}"

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            resp = self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise RemoteFileError(f"GitHub request failed: {exc}") from exc

        if resp.status_code not in (200, 201):
            try:
                detail = resp.json().get("message") or resp.text
            except ValueError:
                detail = resp.text
            message = f"GitHub {method} {resp.status_code}: {str(detail)[:200]}"
            raise error_for_status(resp.status_code, message)

        try:
            return resp.json()
        except ValueError as exc:
            raise RemoteFileError(f"GitHub returned invalid JSON: {exc}", resp.status_code) from exc

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def fetch_file(self, path: str) -> RemoteFile:
        """Current content and sha of ``path``."""
        params = {"ref": self.branch} if self.branch else None
        data = self._request("GET", self._contents_url(path), params=params)
        if not isinstance(data, dict) or data.get("type", "file") != "file":
            raise NotFoundError(f"{path} is not a file", 404)

        # Files over 1 MB come back with encoding "none" and no content.
        encoding = data.get("encoding")
        if encoding is not None and encoding != "base64":
            raise RemoteFileError(f"{path} is too large for the contents API (encoding: {encoding})")

        try:
            content = decode_content(data.get("content", ""))
        except (ValueError, UnicodeDecodeError) as exc:
            raise RemoteFileError(f"Could not decode {path}: {exc}") from exc

        return RemoteFile(path=path, content=content, sha=data["sha"])

    def fetch_last_modified_time(self, path: str) -> datetime:
        """Committer date of the most recent commit touching ``path``."""
        params: Dict[str, Any] = {"path": path.lstrip("/"), "per_page": 1}
        if self.branch:
            params["sha"] = self.branch
        commits = self._request("GET", f"{self.api_url}/repos/{self.repo}/commits", params=params)
        if not commits:
            raise NotFoundError(f"No commits found for {path}", 404)

        try:
            return _parse_timestamp(commits[0]["commit"]["committer"]["date"])
        except (KeyError, TypeError, ValueError) as exc:
            raise RemoteFileError(f"Unexpected commit payload for {path}: {exc}") from exc

    def overwrite_file(
        self,
        path: str,
        new_content: str,
        sha: str,
        message: Optional[str] = None,
    ) -> str:
        """Write ``new_content`` if ``sha`` is still current; returns the new sha."""
        payload: Dict[str, Any] = {
            "message": message or self.commit_message,
            "content": encode_content(new_content),
            "sha": sha,
        }
        if self.branch:
            payload["branch"] = self.branch

        data = self._request("PUT", self._contents_url(path), json=payload)
        new_sha = (data.get("content") or {}).get("sha", "")
        logger.info("✅ Wrote %s to %s (%s -> %s)", path, self.repo, sha[:7], new_sha[:7])
        return new_sha

    def clear_file(self, path: str, message: Optional[str] = None) -> str:
        current = self.fetch_file(path)
        return self.overwrite_file(path, "", current.sha, message=message or f"Cleared {path}")


__all__ = ["GitHubFileClient", "DEFAULT_COMMIT_MESSAGE"]
