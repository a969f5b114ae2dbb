# agent_overlay/api/endpoints.py
import logging
from fastapi import APIRouter, Body, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
from typing import Annotated, Any, Dict

from pydantic import ValidationError

from ..dependencies import get_engine, get_engine_for_websocket
from ..engine.builder import OverlayEngine
from ..storage.models import DEFAULT_REDIRECT_URI, VoiceCredentials
from .models import EMPTY_CONFIG, OperationResult, StatusResponse

logger = logging.getLogger(__name__)

api_router = APIRouter(prefix="/api", tags=["Overlay API"])
viewer_router = APIRouter(tags=["Overlay Viewers"])


@api_router.get("/mapping", response_model=Dict[str, str])
async def get_mapping_endpoint(engine: Annotated[OverlayEngine, Depends(get_engine)]):
    """Manual voice name -> in-game name overrides."""
    return await engine.settings_store.get_overrides()


@api_router.post("/mapping", response_model=OperationResult)
async def save_mapping_endpoint(
    overrides: Annotated[Dict[str, str], Body(description="Complete override table; replaces the saved one.")],
    engine: Annotated[OverlayEngine, Depends(get_engine)]
):
    """Replace the override table and refresh the overlay straight away."""
    logger.info(f"API: Saving {len(overrides)} name overrides.")
    try:
        await engine.settings_store.save_overrides(overrides)
    except OSError as e:
        logger.error(f"API: Could not save name overrides: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    engine.loop.trigger_cycle()
    return OperationResult(success=True)


@api_router.get("/config")
async def get_config_endpoint(engine: Annotated[OverlayEngine, Depends(get_engine)]) -> Dict[str, Any]:
    """Saved voice credentials with the secret masked."""
    credentials = await engine.settings_store.get_session_credentials()
    if credentials is None:
        return dict(EMPTY_CONFIG)
    return credentials.masked()


@api_router.post("/config", response_model=OperationResult)
async def save_config_endpoint(
    payload: Annotated[Dict[str, Any], Body()],
    engine: Annotated[OverlayEngine, Depends(get_engine)]
):
    """Save voice credentials. clientId and clientSecret are required."""
    if not payload.get("clientId") or not payload.get("clientSecret"):
        logger.warning("API: Rejected voice credentials with missing fields.")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing fields")
    if not payload.get("redirectUri"):
        payload["redirectUri"] = DEFAULT_REDIRECT_URI

    try:
        credentials = VoiceCredentials.model_validate(payload)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid fields: {e.error_count()} errors")
    try:
        await engine.settings_store.save_session_credentials(credentials)
    except OSError as e:
        logger.error(f"API: Could not save voice credentials: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    logger.info(f"API: Voice credentials saved for client '{credentials.client_id}'. Reconnecting.")
    engine.loop.request_voice_reconnect()
    return OperationResult(success=True, message="Saved. Reconnecting to the voice platform.")


@api_router.get("/status", response_model=StatusResponse)
async def get_status_endpoint(engine: Annotated[OverlayEngine, Depends(get_engine)]):
    return StatusResponse(
        valorant=engine.session_manager.is_established,
        discord=engine.voice_client.connected,
        loop_state=engine.loop.state.value,
        connections=engine.hub.connection_count,
    )


@viewer_router.websocket("/ws")
async def viewer_socket(websocket: WebSocket):
    """Overlay viewers only listen; anything they send is ignored."""
    engine = get_engine_for_websocket(websocket)
    if engine is None:
        await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER)
        return
    await engine.hub.connect(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        engine.hub.disconnect(websocket)
