"""
FastAPI application factory for the perception session aggregator.

Routes:
- /api/status -> controller state and per-modality counters
- /api/session/start, /api/session/stop -> lifecycle
- /api/session/summary[/text] -> live or windowed summary
- /api/session/export -> export artifact (GET returns it, POST writes a file)
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from runtime.controller import SessionController
from .routes import api


def create_app(controller: SessionController, frame_source: Optional[Any] = None) -> FastAPI:
    """Create the FastAPI app around an explicitly owned controller."""
    app = FastAPI(
        title="Perception Session Aggregator",
        version="0.1.0",
        description="Aggregates object, face and hand detections into queryable session summaries",
    )

    # CORS for development (browser dashboards)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.controller = controller
    app.state.frame_source = frame_source

    app.include_router(api.router, prefix="/api")

    return app
