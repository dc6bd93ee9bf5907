"""FastAPI dependency providers.

Each one hands out a single per-app object created in health.py's lifespan
and kept on ``app.state``. Tests swap them with ``app.dependency_overrides``
or by passing their own objects to ``create_app``.
"""

from __future__ import annotations

from pathlib import Path

from fastapi import Request
from fastapi.templating import Jinja2Templates

import editor_templates
from audit_log import AuditLog
from editor_config import Settings
from github_file.github_client import GitHubFileClient
from lock_state import LockStateStore


# The .html files ship as package data of editor_templates.
TEMPLATES_DIR = Path(editor_templates.__file__).resolve().parent
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_file_client(request: Request) -> GitHubFileClient:
    return request.app.state.file_client


def get_lock_store(request: Request) -> LockStateStore:
    return request.app.state.lock_store


def get_audit_log(request: Request) -> AuditLog:
    return request.app.state.audit_log


def client_label(request: Request) -> str:
    return request.client.host if request.client else "unknown"
