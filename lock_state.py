"""Admin lock that disables edits.

The lock is a single boolean owned by ``LockStateStore``. Every change is
appended to the document store as a ``lock-state`` document, and the newest
one is read back at startup, so the flag survives restarts. Nothing is
ever deleted from that history.

There is no compare-and-set: two admins flipping the lock at once race and
the last insert wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from store.document_store import DocumentStore, StoreUnavailableError, now_iso, parse_iso


logger = logging.getLogger(__name__)

LOCK_STATE_TYPE = "lock-state"


@dataclass(frozen=True)
class LockState:
    locked: bool
    recorded_at: datetime
    durable: bool = True


def _unlocked() -> LockState:
    return LockState(locked=False, recorded_at=datetime.now(timezone.utc), durable=False)


class LockStateStore:
    def __init__(self, store: DocumentStore):
        self._store = store
        self._state = _unlocked()

    @property
    def locked(self) -> bool:
        return self._state.locked

    @property
    def state(self) -> LockState:
        return self._state

    def restore(self) -> LockState:
        """Load the newest persisted lock state; UNLOCKED when there is none."""
        try:
            doc = self._store.latest(LOCK_STATE_TYPE)
        except StoreUnavailableError as exc:
            logger.warning("⚠️ Could not restore lock state, defaulting to unlocked: %s", exc)
            doc = None

        if not doc:
            self._state = _unlocked()
            return self._state

        try:
            recorded_at = parse_iso(str(doc["timestamp"]))
        except (KeyError, ValueError):
            recorded_at = datetime.now(timezone.utc)

        self._state = LockState(locked=bool(doc.get("locked")), recorded_at=recorded_at)
        logger.info("🔒 Restored lock state: %s", "locked" if self._state.locked else "unlocked")
        return self._state

    def set_locked(self, locked: bool) -> LockState:
        """Persist a new lock state, then make it current.

        If the insert fails the in-memory flag still changes, but the returned
        state has ``durable=False``: it will be lost on restart.
        """
        timestamp = now_iso()
        durable = True
        try:
            self._store.insert({"type": LOCK_STATE_TYPE, "locked": bool(locked), "timestamp": timestamp})
        except StoreUnavailableError as exc:
            logger.warning("⚠️ Lock state not persisted: %s", exc)
            durable = False

        self._state = LockState(locked=bool(locked), recorded_at=parse_iso(timestamp), durable=durable)
        return self._state


__all__ = ["LOCK_STATE_TYPE", "LockState", "LockStateStore"]
