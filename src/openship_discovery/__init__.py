"""Openship discovery service: runtime identity + deduplicated dependency graph."""

__version__ = "0.1.0"
