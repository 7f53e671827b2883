from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .base import Store


@dataclass
class FilesystemStore(Store):
    root: Path

    def abspath(self, path: str) -> Path:
        # treat input as posix-like relative path
        rel = Path(path)
        return (self.root / rel).resolve()

    def read_bytes(self, path: str) -> bytes:
        return self.abspath(path).read_bytes()
