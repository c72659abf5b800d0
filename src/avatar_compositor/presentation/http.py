"""HTTP entry point for composite requests."""

import json

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from avatar_compositor import __version__
from avatar_compositor.application.factories import create_orchestrator
from avatar_compositor.application.orchestrator import CompositeJobOrchestrator
from avatar_compositor.infrastructure.config import ConfigLoader
from avatar_compositor.shared.logging import setup_logger


def create_app(orchestrator: CompositeJobOrchestrator) -> FastAPI:
    """
    Build the FastAPI app around an orchestrator.

    Only ``POST /`` is routed, so any other method on ``/`` gets 405.
    """
    app = FastAPI(
        title="Avatar Compositor",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.orchestrator = orchestrator

    @app.post("/")
    async def process_video(request: Request) -> JSONResponse:
        try:
            payload = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            # An unreadable body is answered like an empty one: 400
            payload = None

        # Jobs block on downloads, ffmpeg and uploads; keep them off the event loop
        response = await run_in_threadpool(app.state.orchestrator.handle, payload)
        return JSONResponse(status_code=response.status_code, content=response.body)

    return app


def create_app_from_config() -> FastAPI:
    """
    App factory for ``uvicorn --factory``; reads config from ``config.yaml``
    (if present) and the environment.
    """
    config = ConfigLoader().load()
    setup_logger('avatar_compositor', level=config.log_level)
    return create_app(create_orchestrator(config))
