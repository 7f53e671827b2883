# openship_discovery/server.py
from __future__ import annotations

import logging
from typing import Any, Dict

import uvicorn
from fastapi import FastAPI

from openship_discovery import __version__
from openship_discovery.errors import ArtifactAccessError
from openship_discovery.routes import artifact_error_handler, router as api_router
from openship_discovery.stores.registry import build_store_registry


def configure_logging(settings: Dict[str, Any]) -> None:
    level = str(settings["logging"]["level"]).upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(settings: Dict[str, Any]) -> FastAPI:
    app = FastAPI(title="openship-discovery", version=__version__)
    app.state.settings = settings
    app.state.stores = build_store_registry(settings)
    app.include_router(api_router)
    app.add_exception_handler(ArtifactAccessError, artifact_error_handler)
    return app


def run_server(settings: Dict[str, Any]) -> None:
    host = str(settings["service"]["host"])
    port = int(settings["service"]["port"])

    configure_logging(settings)
    app = create_app(settings)
    uvicorn.run(app, host=host, port=port)
