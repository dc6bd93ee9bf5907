from __future__ import annotations

import base64
from dataclasses import dataclass


@dataclass(frozen=True)
class RemoteFile:
    path: str
    content: str
    sha: str  # revision hash; changes on every successful write

    @property
    def size(self) -> int:
        return len(self.content.encode("utf-8"))


def encode_content(text: str) -> str:
    """UTF-8 text -> base64 string for the contents API."""
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_content(encoded: str) -> str:
    # GitHub wraps the base64 payload at 60 columns.
    raw = "".join((encoded or "").split())
    return base64.b64decode(raw).decode("utf-8")
