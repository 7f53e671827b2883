from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict

from openship_discovery.stores.base import Store
from openship_discovery.stores.filesystem import FilesystemStore

StoreFactory = Callable[[str, Dict[str, Any]], Store]


def _filesystem(name: str, sc: Dict[str, Any]) -> Store:
    root = str(sc.get("root") or ".")
    return FilesystemStore(Path(root).expanduser())


# kind -> factory(name, store_cfg)
STORE_KINDS: Dict[str, StoreFactory] = {
    "filesystem": _filesystem,
}


def build_store_registry(settings: Dict[str, Any]) -> Dict[str, Store]:
    """Build the named stores that inputs.graph / application.manifest point at.

    Example:
      stores:
        fs_local:
          kind: filesystem
          root: .          # project root holding .openship/graph and package.json
    """
    stores_cfg = settings.get("stores")
    if not isinstance(stores_cfg, dict):
        raise ValueError("settings['stores'] must be a dict")
    out: Dict[str, Store] = {}
    for name, sc in stores_cfg.items():
        if not isinstance(sc, dict):
            raise ValueError(f"stores.{name} must be a dict")
        factory = STORE_KINDS.get(str(sc.get("kind")))
        if factory is None:
            raise ValueError(
                f"Unsupported store kind: {sc.get('kind')!r} (store={name}); "
                f"expected one of {sorted(STORE_KINDS)}"
            )
        out[name] = factory(name, sc)
    return out
