# openship_discovery/settings.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Set

import hashlib
import json

import yaml

SettingsDict = Dict[str, Any]

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


# =========================
# Public API
# =========================
def load_settings(path: str | Path) -> SettingsDict:
    """
    Load YAML -> normalized nested dict settings.

    Guarantees:
    - defaults are applied (so required nested maps exist)
    - validation is executed (ValueError with clear messages)
    - runtime metadata is attached into settings["_meta"]
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError("config root must be a mapping (YAML dict)")

    s = apply_defaults(raw)
    validate_settings(s)

    s.setdefault("_meta", {})
    s["_meta"]["config_path"] = str(path)
    s["_meta"]["config_hash"] = hash_settings(s, exclude_keys={"_meta"})
    return s


def apply_defaults(raw: SettingsDict) -> SettingsDict:
    """
    Apply defaults aligned to `configs/openship.yaml`.

    Supported top-level blocks:
      - service.host / service.port
      - logging.level
      - stores.*
      - inputs.graph.{store, path}
      - application.{name, version, manifest.{store, path}}
      - framework.name
      - openship.{version, protocols}
    """
    s: SettingsDict = _deep_copy_dict(raw)

    # ---- service ----
    s.setdefault("service", {})
    _must_be_mapping(s["service"], "service")
    svc = s["service"]
    svc.setdefault("host", "0.0.0.0")
    svc.setdefault("port", 8000)

    # ---- logging ----
    s.setdefault("logging", {})
    _must_be_mapping(s["logging"], "logging")
    s["logging"].setdefault("level", "INFO")

    # ---- stores ----
    s.setdefault("stores", {})
    _must_be_mapping(s["stores"], "stores")

    # ---- inputs ----
    s.setdefault("inputs", {})
    _must_be_mapping(s["inputs"], "inputs")

    s["inputs"].setdefault("graph", {})
    _must_be_mapping(s["inputs"]["graph"], "inputs.graph")
    g = s["inputs"]["graph"]
    g.setdefault("store", "")
    g.setdefault("path", ".openship/graph")

    # ---- application ----
    s.setdefault("application", {})
    _must_be_mapping(s["application"], "application")
    app = s["application"]
    app.setdefault("name", "")
    app.setdefault("version", "")
    app.setdefault("manifest", {})
    _must_be_mapping(app["manifest"], "application.manifest")
    app["manifest"].setdefault("store", "")
    app["manifest"].setdefault("path", "package.json")

    # ---- framework ----
    s.setdefault("framework", {})
    _must_be_mapping(s["framework"], "framework")
    s["framework"].setdefault("name", "fastapi")

    # ---- openship protocol block ----
    s.setdefault("openship", {})
    _must_be_mapping(s["openship"], "openship")
    osh = s["openship"]
    osh.setdefault("version", "beta")
    osh.setdefault("protocols", ["osh1"])

    return s


def validate_settings(s: SettingsDict) -> None:
    """
    Validate normalized settings dict (after apply_defaults).
    Raises ValueError with explicit messages.
    """
    # ---- service ----
    svc = s.get("service")
    if not isinstance(svc, dict):
        raise ValueError("service must be a mapping (YAML dict)")
    _require_nonempty_str(svc.get("host"), "service.host")
    _as_int(svc.get("port"), "service.port", min_value=1, max_value=65535)

    # ---- logging ----
    lg = s.get("logging")
    if not isinstance(lg, dict):
        raise ValueError("logging must be a mapping (YAML dict)")
    _validate_enum(str(lg.get("level")).upper(), LOG_LEVELS, "logging.level")

    # ---- stores ----
    if not s.get("stores"):
        raise ValueError("stores is required")
    _must_be_mapping(s["stores"], "stores")

    # ---- inputs.graph ----
    inp = s.get("inputs")
    if not isinstance(inp, dict):
        raise ValueError("inputs must be a mapping (YAML dict)")
    g = inp.get("graph")
    if not isinstance(g, dict):
        raise ValueError("inputs.graph must be a mapping (YAML dict)")
    _require_nonempty_str(g.get("store"), "inputs.graph.store")
    _require_nonempty_str(g.get("path"), "inputs.graph.path")

    # ---- application ----
    app = s.get("application")
    if not isinstance(app, dict):
        raise ValueError("application must be a mapping (YAML dict)")
    mf = app.get("manifest")
    if not isinstance(mf, dict):
        raise ValueError("application.manifest must be a mapping (YAML dict)")
    has_name = bool(str(app.get("name") or "").strip())
    has_version = bool(str(app.get("version") or "").strip())
    has_manifest = bool(str(mf.get("store") or "").strip())
    if has_name != has_version:
        raise ValueError("application.name and application.version must be set together")
    if not has_name and not has_manifest:
        raise ValueError("application.name/version or application.manifest.store is required")
    if has_manifest:
        _require_nonempty_str(mf.get("path"), "application.manifest.path")

    # ---- framework ----
    fw = s.get("framework")
    if not isinstance(fw, dict):
        raise ValueError("framework must be a mapping (YAML dict)")
    _require_nonempty_str(fw.get("name"), "framework.name")

    # ---- openship ----
    osh = s.get("openship")
    if not isinstance(osh, dict):
        raise ValueError("openship must be a mapping (YAML dict)")
    _require_nonempty_str(osh.get("version"), "openship.version")
    protocols = osh.get("protocols")
    if not isinstance(protocols, list) or not protocols:
        raise ValueError("openship.protocols must be a non-empty list")
    for i, p in enumerate(protocols):
        if not isinstance(p, str) or not p.strip():
            raise ValueError(f"openship.protocols[{i}] must be a non-empty string")

    # ---- referenced stores exist ----
    referenced: Set[str] = set()
    referenced.add(str(g.get("store", "") or ""))
    referenced.add(str(mf.get("store", "") or ""))
    referenced.discard("")
    missing = [name for name in sorted(referenced) if name not in s["stores"]]
    if missing:
        raise ValueError(f"stores missing definitions for: {missing}")


def hash_settings(s: SettingsDict, *, exclude_keys: Optional[Set[str]] = None) -> str:
    """Stable hash for settings dict (used as config fingerprint)."""
    exclude_keys = exclude_keys or set()
    filtered = {k: v for k, v in s.items() if k not in exclude_keys}
    blob = json.dumps(filtered, sort_keys=True, ensure_ascii=False).encode("utf-8")
    return hashlib.sha256(blob).hexdigest()


# =========================
# Internal helpers
# =========================
def _deep_copy_dict(d: SettingsDict) -> SettingsDict:
    return json.loads(json.dumps(d, ensure_ascii=False))


def _must_be_mapping(v: Any, path: str) -> None:
    if not isinstance(v, dict):
        raise ValueError(f"{path} must be a mapping (YAML dict)")


def _require_nonempty_str(v: Any, path: str) -> str:
    vv = str(v or "")
    if not vv.strip():
        raise ValueError(f"{path} is required")
    return vv


def _validate_enum(v: str, allowed: Set[str], path: str) -> None:
    if v not in allowed:
        raise ValueError(f"{path} must be one of {sorted(allowed)}, got {v!r}")


def _as_int(v: Any, path: str, *, min_value: Optional[int] = None, max_value: Optional[int] = None) -> int:
    try:
        x = int(v)
    except Exception as e:
        raise ValueError(f"{path} must be int-like, got {v!r}") from e
    if min_value is not None and x < min_value:
        raise ValueError(f"{path} must be >= {min_value}, got {x}")
    if max_value is not None and x > max_value:
        raise ValueError(f"{path} must be <= {max_value}, got {x}")
    return x
