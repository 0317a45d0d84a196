"""Artifact storage for task outputs too large to inline.

Files are content-addressed: the same bytes under the same name always map
to the same URI.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Storage(Protocol):
    """Host-provided file storage."""

    def put(self, data: bytes, filename: str) -> str:
        """Store bytes and return a URI the host can resolve."""
        ...


class LocalStorage:
    """Storage backed by a local directory.

    Layout: ``<root>/<sha256 of data>/<filename>``.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def put(self, data: bytes, filename: str) -> str:
        name = Path(filename).name
        if not name:
            raise ValueError(f"Invalid filename: {filename!r}")

        digest = hashlib.sha256(data).hexdigest()
        path = self.root / digest / name
        if not path.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
            logger.debug(f"Stored {len(data)} bytes at {path}")
        return path.resolve().as_uri()


def to_json_lines(rows: Iterable[Any]) -> bytes:
    """Serialize rows as JSON Lines."""
    lines = [json.dumps(row, default=str, sort_keys=True) for row in rows]
    return ("\n".join(lines) + "\n").encode() if lines else b""
