from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import pytest
import yaml

from openship_discovery.settings import apply_defaults, hash_settings, load_settings, validate_settings


def _minimal() -> Dict[str, Any]:
    return {
        "stores": {"fs_local": {"kind": "filesystem", "root": "."}},
        "inputs": {"graph": {"store": "fs_local"}},
        "application": {"name": "shop", "version": "1.2.3"},
    }


def _dump(tmp_path: Path, cfg: Dict[str, Any]) -> Path:
    p = tmp_path / "openship.yaml"
    p.write_text(yaml.safe_dump(cfg), encoding="utf-8")
    return p


def test_load_settings_applies_defaults_and_meta(tmp_path: Path) -> None:
    p = _dump(tmp_path, _minimal())
    s = load_settings(p)

    assert s["service"] == {"host": "0.0.0.0", "port": 8000}
    assert s["logging"]["level"] == "INFO"
    assert s["inputs"]["graph"]["path"] == ".openship/graph"
    assert s["framework"]["name"] == "fastapi"
    assert s["openship"] == {"version": "beta", "protocols": ["osh1"]}
    assert s["_meta"]["config_path"] == str(p)
    assert len(s["_meta"]["config_hash"]) == 64


def test_shipped_config_validates() -> None:
    root = Path(__file__).resolve().parents[1]
    s = load_settings(root / "configs" / "openship.yaml")
    assert s["application"]["manifest"]["store"] == "fs_local"


def test_apply_defaults_does_not_mutate_input() -> None:
    raw = _minimal()
    apply_defaults(raw)
    assert "service" not in raw


def test_empty_yaml_fails_on_missing_stores(tmp_path: Path) -> None:
    p = tmp_path / "empty.yaml"
    p.write_text("", encoding="utf-8")
    with pytest.raises(ValueError, match="stores is required"):
        load_settings(p)


def test_root_must_be_mapping(tmp_path: Path) -> None:
    p = tmp_path / "list.yaml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError, match="config root must be a mapping"):
        load_settings(p)


def test_graph_store_required() -> None:
    cfg = _minimal()
    cfg["inputs"]["graph"]["store"] = ""
    with pytest.raises(ValueError, match="inputs.graph.store is required"):
        validate_settings(apply_defaults(cfg))


def test_referenced_store_must_exist() -> None:
    cfg = _minimal()
    cfg["inputs"]["graph"]["store"] = "s3_remote"
    with pytest.raises(ValueError, match="stores missing definitions for: \\['s3_remote'\\]"):
        validate_settings(apply_defaults(cfg))


def test_port_range_checked() -> None:
    cfg = _minimal()
    cfg["service"] = {"port": 70000}
    with pytest.raises(ValueError, match="service.port must be <= 65535"):
        validate_settings(apply_defaults(cfg))


def test_log_level_enum() -> None:
    cfg = _minimal()
    cfg["logging"] = {"level": "chatty"}
    with pytest.raises(ValueError, match="logging.level must be one of"):
        validate_settings(apply_defaults(cfg))


def test_log_level_is_case_insensitive() -> None:
    cfg = _minimal()
    cfg["logging"] = {"level": "debug"}
    validate_settings(apply_defaults(cfg))


def test_application_identity_or_manifest_required() -> None:
    cfg = _minimal()
    cfg["application"] = {}
    with pytest.raises(ValueError, match="application.name/version or application.manifest.store is required"):
        validate_settings(apply_defaults(cfg))


def test_application_name_without_version_rejected() -> None:
    cfg = _minimal()
    cfg["application"] = {"name": "shop"}
    with pytest.raises(ValueError, match="must be set together"):
        validate_settings(apply_defaults(cfg))


def test_manifest_store_alone_is_enough() -> None:
    cfg = _minimal()
    cfg["application"] = {"manifest": {"store": "fs_local"}}
    s = apply_defaults(cfg)
    validate_settings(s)
    assert s["application"]["manifest"]["path"] == "package.json"


def test_protocols_must_be_nonempty_strings() -> None:
    cfg = _minimal()
    cfg["openship"] = {"protocols": []}
    with pytest.raises(ValueError, match="openship.protocols must be a non-empty list"):
        validate_settings(apply_defaults(cfg))

    cfg["openship"] = {"protocols": ["osh1", ""]}
    with pytest.raises(ValueError, match="openship.protocols\\[1\\]"):
        validate_settings(apply_defaults(cfg))


def test_block_must_be_mapping() -> None:
    cfg = _minimal()
    cfg["framework"] = "fastapi"
    with pytest.raises(ValueError, match="framework must be a mapping"):
        apply_defaults(cfg)


def test_hash_settings_is_stable_and_ignores_excluded_keys() -> None:
    a = {"x": 1, "y": {"b": 2, "a": 1}, "_meta": {"config_path": "a"}}
    b = {"y": {"a": 1, "b": 2}, "x": 1, "_meta": {"config_path": "b"}}
    assert hash_settings(a, exclude_keys={"_meta"}) == hash_settings(b, exclude_keys={"_meta"})
    assert hash_settings(a) != hash_settings(b)
