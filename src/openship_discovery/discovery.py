# openship_discovery/discovery.py
from __future__ import annotations

import platform
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import orjson

from openship_discovery.io.ndjson import ErrorHook, read_deduplicated
from openship_discovery.models import (
    ApplicationInfo,
    DiscoveryResponse,
    FrameworkInfo,
    OpenshipInfo,
    RuntimeInfo,
)
from openship_discovery.stores.base import Store


def runtime_info() -> RuntimeInfo:
    return RuntimeInfo(
        name=platform.python_implementation().lower(),
        version=platform.python_version(),
    )


def framework_info(settings: Dict[str, Any]) -> FrameworkInfo:
    return FrameworkInfo(name=str(settings["framework"]["name"]))


def load_manifest(store: Store, path: str) -> Tuple[str, str]:
    """Read (name, version) from a JSON manifest such as package.json."""
    data = orjson.loads(store.read_bytes(path))
    if not isinstance(data, dict):
        raise ValueError(f"manifest {path!r} must be a JSON object")
    name = data.get("name")
    version = data.get("version")
    if not isinstance(name, str) or not isinstance(version, str):
        raise ValueError(f"manifest {path!r} has no string name/version")
    return name, version


def application_identity(settings: Dict[str, Any], stores: Dict[str, Store]) -> Tuple[str, str]:
    app = settings["application"]
    name = str(app.get("name") or "").strip()
    version = str(app.get("version") or "").strip()
    if name and version:
        return name, version

    mf = app["manifest"]
    return load_manifest(stores[mf["store"]], mf["path"])


def resolve_graph_path(settings: Dict[str, Any], stores: Dict[str, Store]) -> Path:
    g = settings["inputs"]["graph"]
    return stores[g["store"]].abspath(g["path"])


async def build_discovery_payload(
    settings: Dict[str, Any],
    stores: Dict[str, Store],
    *,
    on_error: Optional[ErrorHook] = None,
) -> DiscoveryResponse:
    """
    Assemble the discovery document.

    The graph is read in full before the response is built, so a caller
    either gets the complete deduplicated graph or an ArtifactAccessError.
    """
    name, version = application_identity(settings, stores)
    graph = await read_deduplicated(resolve_graph_path(settings, stores), on_error=on_error)

    osh = settings["openship"]
    return DiscoveryResponse(
        runtime=runtime_info(),
        framework=framework_info(settings),
        openship=OpenshipInfo(version=str(osh["version"]), protocols=list(osh["protocols"])),
        application=ApplicationInfo(name=name, version=version, graph=graph),
    )
