"""
Editor routes

Endpoints:
- GET  /        : textarea with the file's current content
- POST /update  : overwrite the file with form field ``content``
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from audit_log import AuditLog
from editor_config import Settings
from editor_deps import (
    client_label,
    get_audit_log,
    get_file_client,
    get_lock_store,
    get_settings,
    templates,
)
from github_file.errors import ConflictError, RemoteFileError
from github_file.github_client import GitHubFileClient
from lock_state import LockStateStore


logger = logging.getLogger(__name__)

router = APIRouter(tags=["editor"])


def _updated_ago(client: GitHubFileClient, path: str, now: Optional[datetime] = None) -> str:
    try:
        modified = client.fetch_last_modified_time(path)
    except RemoteFileError as exc:
        logger.warning("⚠️ Could not read last modified time for %s: %s", path, exc)
        return "N/A"

    now = now or datetime.now(timezone.utc)
    seconds = max(0, int((now - modified).total_seconds()))
    return f"{seconds} seconds ago"


@router.get("/", response_class=HTMLResponse)
def editor_page(
    request: Request,
    settings: Settings = Depends(get_settings),
    client: GitHubFileClient = Depends(get_file_client),
    lock: LockStateStore = Depends(get_lock_store),
):
    path = settings.github_file_path
    try:
        remote = client.fetch_file(path)
    except RemoteFileError as exc:
        logger.error("❌ Failed to load %s: %s", path, exc)
        raise HTTPException(status_code=500, detail=f"Failed to load file: {exc}")

    return templates.TemplateResponse(
        request,
        "editor.html",
        {
            "path": path,
            "repo": settings.github_repo,
            "content": remote.content,
            "sha": remote.sha,
            "updated_ago": _updated_ago(client, path),
            "locked": lock.locked,
        },
    )


@router.post("/update")
def update_file(
    request: Request,
    background_tasks: BackgroundTasks,
    content: str = Form(...),
    sha: str = Form(""),
    settings: Settings = Depends(get_settings),
    client: GitHubFileClient = Depends(get_file_client),
    lock: LockStateStore = Depends(get_lock_store),
    audit: AuditLog = Depends(get_audit_log),
):
    if lock.locked:
        raise HTTPException(status_code=403, detail="Editing is disabled by an admin")

    path = settings.github_file_path
    try:
        current = client.fetch_file(path)

        # The form carries the sha the page was rendered with; if the file has
        # moved since, refuse rather than overwrite someone else's change.
        if sha and sha != current.sha:
            raise ConflictError(f"{path} changed since it was loaded ({sha[:7]} -> {current.sha[:7]})", 409)

        # Browsers submit textarea newlines as CRLF.
        if "\r\n" not in current.content:
            content = content.replace("\r\n", "\n")

        new_sha = client.overwrite_file(path, content, current.sha)
    except ConflictError as exc:
        logger.warning("⚠️ Update conflict on %s: %s", path, exc)
        raise HTTPException(status_code=409, detail=f"Update failed: {exc}. Reload the page and try again.")
    except RemoteFileError as exc:
        logger.error("❌ Update of %s failed: %s", path, exc)
        raise HTTPException(status_code=500, detail=f"Update failed: {exc}")

    background_tasks.add_task(
        audit.append,
        "edit",
        {
            "path": path,
            "bytes": len(content.encode("utf-8")),
            "sha": new_sha,
            "previous_sha": current.sha,
            "client": client_label(request),
        },
    )
    return RedirectResponse("/", status_code=303)
