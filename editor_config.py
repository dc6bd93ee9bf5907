"""Runtime settings for the file editor.

Everything comes from the environment. A local ``.env`` is loaded first, so
development setups can keep their token there; deploys only need env vars.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List

from dotenv import load_dotenv

from github_file.github_client import DEFAULT_COMMIT_MESSAGE


logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_STORE_URL = "file://data/editor_log.json"
DEFAULT_STORE_COLLECTION = "editor_log"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("⚠️ Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("⚠️ Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


@dataclass(frozen=True)
class Settings:
    github_token: str = ""
    github_repo: str = ""
    github_file_path: str = ""
    github_branch: str = ""
    github_api_url: str = DEFAULT_API_URL
    github_timeout: float = 15.0
    commit_message: str = DEFAULT_COMMIT_MESSAGE
    store_url: str = DEFAULT_STORE_URL
    store_collection: str = DEFAULT_STORE_COLLECTION
    admin_password: str = ""
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            github_token=os.getenv("GITHUB_TOKEN", ""),
            github_repo=os.getenv("GITHUB_REPO", ""),
            github_file_path=os.getenv("GITHUB_FILE_PATH", ""),
            github_branch=os.getenv("GITHUB_BRANCH", ""),
            github_api_url=os.getenv("GITHUB_API_URL", "") or DEFAULT_API_URL,
            github_timeout=_env_float("GITHUB_TIMEOUT", 15.0),
            commit_message=os.getenv("COMMIT_MESSAGE", "") or DEFAULT_COMMIT_MESSAGE,
            store_url=os.getenv("STORE_URL", DEFAULT_STORE_URL),
            store_collection=os.getenv("STORE_COLLECTION", "") or DEFAULT_STORE_COLLECTION,
            admin_password=os.getenv("ADMIN_PASSWORD", ""),
            host=os.getenv("HOST", "") or "0.0.0.0",
            port=_env_int("PORT", 3000),
            log_level=(os.getenv("LOG_LEVEL", "") or "INFO").upper(),
        )

    def missing(self) -> List[str]:
        """Names of the GitHub variables that still need a value."""
        required = {
            "GITHUB_TOKEN": self.github_token,
            "GITHUB_REPO": self.github_repo,
            "GITHUB_FILE_PATH": self.github_file_path,
        }
        return [name for name, value in required.items() if not value]


__all__ = ["Settings"]
