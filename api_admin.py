"""
Admin routes

Endpoints:
- GET  /admin : lock status and recent audit records
- POST /admin : form fields ``password`` and ``action`` (lock | unlock | clear)
"""

from __future__ import annotations

import logging
import secrets

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

router = APIRouter(prefix="/admin", tags=["admin"])

ADMIN_ACTIONS = ("lock", "unlock", "clear")
RECENT_LIMIT = 20


def _password_ok(expected: str, supplied: str) -> bool:
    # No configured password means nobody gets in.
    if not expected:
        return False
    return secrets.compare_digest(expected.encode("utf-8"), (supplied or "").encode("utf-8"))


@router.get("", response_class=HTMLResponse)
def admin_page(
    request: Request,
    settings: Settings = Depends(get_settings),
    lock: LockStateStore = Depends(get_lock_store),
    audit: AuditLog = Depends(get_audit_log),
):
    return templates.TemplateResponse(
        request,
        "admin.html",
        {
            "path": settings.github_file_path,
            "state": lock.state,
            "records": audit.recent(RECENT_LIMIT),
            "actions": ADMIN_ACTIONS,
            "admin_enabled": bool(settings.admin_password),
        },
    )


@router.post("")
def admin_action(
    request: Request,
    background_tasks: BackgroundTasks,
    password: str = Form(""),
    action: str = Form(""),
    settings: Settings = Depends(get_settings),
    client: GitHubFileClient = Depends(get_file_client),
    lock: LockStateStore = Depends(get_lock_store),
    audit: AuditLog = Depends(get_audit_log),
):
    if not _password_ok(settings.admin_password, password):
        logger.warning("⚠️ Rejected admin request from %s", client_label(request))
        raise HTTPException(status_code=401, detail="Invalid admin password")

    action = (action or "").strip().lower()
    detail = {"action": action, "client": client_label(request)}

    if action in ("lock", "unlock"):
        state = lock.set_locked(action == "lock")
        detail["durable"] = state.durable
        logger.info("🔒 Editing %s by %s", "locked" if state.locked else "unlocked", detail["client"])
    elif action == "clear":
        path = settings.github_file_path
        try:
            detail["sha"] = client.clear_file(path)
        except ConflictError as exc:
            logger.warning("⚠️ Clear conflict on %s: %s", path, exc)
            raise HTTPException(status_code=409, detail=f"Clear failed: {exc}")
        except RemoteFileError as exc:
            logger.error("❌ Clear of %s failed: %s", path, exc)
            raise HTTPException(status_code=500, detail=f"Clear failed: {exc}")
        detail["path"] = path
        logger.info("🧹 Cleared %s", path)
    else:
        raise HTTPException(status_code=400, detail=f"Unknown action: {action or '(none)'}")

    background_tasks.add_task(audit.append, "admin", detail)
    return RedirectResponse("/admin", status_code=303)
