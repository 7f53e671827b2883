# openship_discovery/routes.py
from __future__ import annotations

import logging
from typing import Dict

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from openship_discovery.discovery import build_discovery_payload
from openship_discovery.errors import ArtifactAccessError
from openship_discovery.models import DiscoveryResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/.openship", response_model=DiscoveryResponse)
async def discovery(request: Request) -> DiscoveryResponse:
    state = request.app.state
    return await build_discovery_payload(state.settings, state.stores)


@router.get("/healthz")
def healthz() -> Dict[str, str]:
    return {"status": "ok"}


async def artifact_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # a failed read never returns a partial graph
    logger.error("discovery failed for %s: %s", request.url.path, exc)
    path = exc.path if isinstance(exc, ArtifactAccessError) else ""
    return JSONResponse(
        status_code=500,
        content={"error": "artifact_unavailable", "detail": str(exc), "path": path},
    )
