"""Durable storage slot for the ledger (JSON + fcntl.flock + atomic write)."""

import fcntl
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol


class StorageSlot(Protocol):
    """A single named slot holding one JSON-compatible document."""

    def read(self) -> Any | None:
        ...

    def write(self, document: dict) -> None:
        ...


class JsonFileSlot:
    """Stores the whole document in one JSON file, overwritten wholesale.

    ``read`` returns None when the file does not exist and lets
    ``json.JSONDecodeError`` propagate for malformed content. ``write``
    raises ``OSError`` when the file cannot be replaced.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def read(self) -> Any | None:
        if not self.path.exists():
            return None
        with open(self.path, encoding="utf-8") as f:
            fcntl.flock(f, fcntl.LOCK_SH)
            try:
                return json.load(f)
            finally:
                fcntl.flock(f, fcntl.LOCK_UN)

    def write(self, document: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w", dir=self.path.parent, delete=False, suffix=".json", encoding="utf-8"
        ) as tmp:
            try:
                json.dump(document, tmp, indent=2)
            except Exception:
                tmp.close()
                os.unlink(tmp.name)
                raise
        os.replace(tmp.name, self.path)

    def __repr__(self) -> str:
        return f"JsonFileSlot({str(self.path)!r})"
