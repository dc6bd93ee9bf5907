import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from pydantic import BaseModel

from api_admin import router as admin_router
from api_editor import router as editor_router
from audit_log import AuditLog
from editor_config import Settings
from github_file.github_client import GitHubFileClient
from lock_state import LockStateStore
from store.document_store import DocumentStore, open_store


logger = logging.getLogger(__name__)


class HealthStatus(BaseModel):
    status: str = "ok"
    locked: bool
    store: bool


def _build_file_client(settings: Settings) -> GitHubFileClient:
    return GitHubFileClient(
        settings.github_token,
        settings.github_repo,
        branch=settings.github_branch,
        api_url=settings.github_api_url,
        timeout=settings.github_timeout,
        commit_message=settings.commit_message,
    )


def create_app(
    settings: Optional[Settings] = None,
    *,
    file_client=None,
    store: Optional[DocumentStore] = None,
) -> FastAPI:
    """Build the editor app.

    Anything not passed in is created at startup from ``settings``; objects
    that are passed in are left open at shutdown for the caller to close.
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = []

        missing = settings.missing()
        if missing:
            logger.warning("⚠️ Missing configuration: %s", ", ".join(missing))

        if app.state.store is None:
            app.state.store = open_store(settings.store_url, settings.store_collection)
            owned.append(app.state.store)
        if app.state.file_client is None:
            app.state.file_client = _build_file_client(settings)
            owned.append(app.state.file_client)

        app.state.lock_store = LockStateStore(app.state.store)
        app.state.lock_store.restore()
        app.state.audit_log = AuditLog(app.state.store)
        logger.info("✅ Editor ready for %s/%s (store: %s)", settings.github_repo, settings.github_file_path, app.state.store.description)

        try:
            yield
        finally:
            for resource in owned:
                try:
                    resource.close()
                except Exception as exc:
                    logger.warning("⚠️ Error closing %s: %s", type(resource).__name__, exc)

    app = FastAPI(title="GitHub File Editor", lifespan=lifespan)
    app.state.settings = settings
    app.state.file_client = file_client
    app.state.store = store

    app.include_router(editor_router)
    app.include_router(admin_router)

    @app.get("/health", response_model=HealthStatus)
    def health():
        lock_store = getattr(app.state, "lock_store", None)
        return HealthStatus(
            locked=bool(lock_store and lock_store.locked),
            store=bool(app.state.store and app.state.store.connected),
        )

    return app


def run_server(settings: Optional[Settings] = None) -> None:
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = uvicorn.Config(create_app(settings), host=settings.host, port=settings.port)
    server = uvicorn.Server(config)
    server.run()


if __name__ == "__main__":
    run_server()
