# agent_overlay/dependencies.py
import logging
from typing import Optional

from fastapi import HTTPException, Request, WebSocket, status

from .engine.builder import OverlayEngine

logger = logging.getLogger(__name__)


def get_engine(request: Request) -> OverlayEngine:
    """The engine built by the application lifespan; 503 until it exists."""
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        logger.error("API: Request received before the engine was started.")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Overlay engine is not running.",
        )
    return engine


def get_engine_for_websocket(websocket: WebSocket) -> Optional[OverlayEngine]:
    engine = getattr(websocket.app.state, "engine", None)
    if engine is None:
        logger.warning("WS: Viewer connected before the engine was started.")
    return engine
