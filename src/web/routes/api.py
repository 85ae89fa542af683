from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from runtime.controller import SessionController
from runtime.errors import InvalidStateError, NoActiveOrRecentSessionError
from ..api_models import (
    ExportFileResponse,
    SessionStatusResponse,
    SessionSummaryResponse,
    StartResponse,
    StopResponse,
    SummaryTextResponse,
)

router = APIRouter()


def get_controller(request: Request) -> SessionController:
    return request.app.state.controller


def _to_http_error(e: Exception) -> HTTPException:
    """
    Map controller errors to HTTP errors:
    - NoActiveOrRecentSessionError -> 404
    - other InvalidStateError -> 409
    - ValueError (bad query parameters) -> 400
    """
    if isinstance(e, NoActiveOrRecentSessionError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, InvalidStateError):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


@router.get("/status", response_model=SessionStatusResponse)
def session_status(controller: SessionController = Depends(get_controller)):
    return controller.status().to_dict()


@router.post("/session/start", response_model=StartResponse)
def start_session(request: Request, controller: SessionController = Depends(get_controller)):
    frame_source = getattr(request.app.state, "frame_source", None)
    try:
        started_at = controller.start(frame_source)
    except InvalidStateError as e:
        raise _to_http_error(e)
    return {
        "ok": True,
        "started_at": started_at,
        "modalities": [m.value for m in controller.ready_modalities()],
    }


@router.post("/session/stop", response_model=StopResponse)
def stop_session(controller: SessionController = Depends(get_controller)):
    try:
        controller.stop()
    except InvalidStateError as e:
        raise _to_http_error(e)
    return {"ok": True}


@router.get("/session/summary", response_model=SessionSummaryResponse)
def session_summary(
    window_minutes: Optional[float] = Query(None, ge=0, description="Trailing window; omit for entire session"),
    controller: SessionController = Depends(get_controller),
):
    try:
        return controller.query_summary(window_minutes).to_dict()
    except (InvalidStateError, ValueError) as e:
        raise _to_http_error(e)


@router.get("/session/summary/text", response_model=SummaryTextResponse)
def session_summary_text(
    window_minutes: Optional[float] = Query(None, ge=0),
    controller: SessionController = Depends(get_controller),
):
    try:
        return {"text": controller.render_summary(window_minutes)}
    except (InvalidStateError, ValueError) as e:
        raise _to_http_error(e)


@router.get("/session/export")
def export_session(controller: SessionController = Depends(get_controller)) -> Dict[str, Any]:
    try:
        return controller.export_all()
    except InvalidStateError as e:
        raise _to_http_error(e)


@router.post("/session/export", response_model=ExportFileResponse)
def export_session_to_file(controller: SessionController = Depends(get_controller)):
    try:
        path = controller.export_to_file()
    except InvalidStateError as e:
        raise _to_http_error(e)
    except OSError as e:
        logging.error(f"Export write failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return {"ok": True, "path": path}
