from __future__ import annotations

from pathlib import Path


class OpenshipError(Exception):
    """Base class for errors raised by openship_discovery."""


class ArtifactAccessError(OpenshipError):
    """The graph artifact could not be opened or read. Fatal for the whole read."""

    def __init__(self, path: str | Path, reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"cannot read artifact {self.path}: {reason}")
