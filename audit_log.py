"""Audit log writer for edits and admin actions.

Records go into the same document store as the lock state, as ``edit`` or
``admin`` documents. Writes are best-effort: ``append`` never raises, and a
record that cannot be stored is dropped with a log line. Routes run it as a
background task after the response, so a slow or offline store never holds
up a save. Records may be silently lost; nothing reads them back to
reconstruct state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List

from store.document_store import DocumentStore, StoreUnavailableError, now_iso, parse_iso


logger = logging.getLogger(__name__)

AUDIT_KINDS = ("edit", "admin")


@dataclass(frozen=True)
class AuditRecord:
    kind: str  # "edit" | "admin"
    detail: Dict[str, Any] = field(default_factory=dict)
    recorded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class AuditLog:
    def __init__(self, store: DocumentStore):
        self._store = store

    def append(self, kind: str, detail: Dict[str, Any]) -> bool:
        """Store one record; returns False when it was dropped."""
        if kind not in AUDIT_KINDS:
            logger.warning("⚠️ Dropping audit record with unknown kind %r", kind)
            return False

        doc = {"type": kind, "detail": dict(detail or {}), "timestamp": now_iso()}
        if not self._store.connected:
            logger.debug("Audit store not connected; dropped %s record", kind)
            return False

        try:
            self._store.insert(doc)
        except StoreUnavailableError as exc:
            logger.warning("⚠️ Audit record dropped (%s): %s", kind, exc)
            return False
        except Exception as exc:
            # Never let an audit write surface in the request that triggered it.
            logger.warning("⚠️ Audit write failed (%s): %s", kind, exc)
            return False
        return True

    def recent(self, limit: int = 20) -> List[AuditRecord]:
        try:
            docs = self._store.find(AUDIT_KINDS, limit=limit)
        except StoreUnavailableError as exc:
            logger.debug("Audit store unavailable: %s", exc)
            return []

        records: List[AuditRecord] = []
        for doc in docs:
            try:
                recorded_at = parse_iso(str(doc.get("timestamp", "")))
            except ValueError:
                continue
            records.append(
                AuditRecord(kind=doc.get("type", ""), detail=doc.get("detail") or {}, recorded_at=recorded_at)
            )
        return records


__all__ = ["AUDIT_KINDS", "AuditLog", "AuditRecord"]
