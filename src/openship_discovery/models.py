# openship_discovery/models.py
from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, Field


class RuntimeInfo(BaseModel):
    name: str
    version: str


class FrameworkInfo(BaseModel):
    name: str


class OpenshipInfo(BaseModel):
    version: str = "beta"
    protocols: List[str] = Field(default_factory=lambda: ["osh1"])


class ApplicationInfo(BaseModel):
    name: str
    version: str
    # graph records are passed through verbatim
    graph: List[Dict[str, Any]] = Field(default_factory=list)


class DiscoveryResponse(BaseModel):
    runtime: RuntimeInfo
    framework: FrameworkInfo
    openship: OpenshipInfo
    application: ApplicationInfo
