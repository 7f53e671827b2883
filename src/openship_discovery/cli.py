from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import anyio

from openship_discovery.discovery import resolve_graph_path
from openship_discovery.errors import ArtifactAccessError
from openship_discovery.io.ndjson import dumps_jsonl, read_deduplicated
from openship_discovery.server import configure_logging, run_server
from openship_discovery.settings import load_settings
from openship_discovery.stores.registry import build_store_registry

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="openship")
    ap.add_argument("cmd", choices=["serve", "graph"], help="Run service, or dump the deduplicated graph")
    ap.add_argument("--config", required=True, help="Path to configs/openship.yaml")
    args = ap.parse_args(argv)

    settings = load_settings(Path(args.config))

    if args.cmd == "serve":
        run_server(settings)
        return 0

    configure_logging(settings)
    stores = build_store_registry(settings)
    path = resolve_graph_path(settings, stores)
    try:
        records = anyio.run(read_deduplicated, path)
    except ArtifactAccessError as e:
        logger.error("%s", e)
        return 1

    sys.stdout.buffer.write(dumps_jsonl(records))
    sys.stdout.flush()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
