from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class Store(ABC):
    @abstractmethod
    def abspath(self, path: str) -> Path: ...

    @abstractmethod
    def read_bytes(self, path: str) -> bytes: ...
