# agent_overlay/main.py
from fastapi import FastAPI
from contextlib import asynccontextmanager
import logging
from typing import Any, Dict, Optional

from .settings import Settings, get_settings
from .api.endpoints import api_router, viewer_router
from .engine.builder import OverlayEngine, build_engine

settings = get_settings()

# Configure logging based on debug mode setting
if not logging.getLogger().hasHandlers():
    logging.basicConfig(
        level="DEBUG" if settings.debug_mode else settings.log_level.upper(),
        format='%(asctime)s - %(name)s [%(levelname)s] - %(message)s'
    )

logger = logging.getLogger(__name__)


def create_app(engine: Optional[OverlayEngine] = None, app_settings: Optional[Settings] = None,
               run_engine: bool = True) -> FastAPI:
    """
    Build the application. A prepared engine can be passed in; otherwise one
    is built from settings during startup. With `run_engine=False` the engine
    is attached but its background tasks are never started.
    """
    app_settings = app_settings or (engine.settings if engine is not None else settings)

    @asynccontextmanager
    async def overlay_app_lifespan(app_instance: FastAPI):
        logger.info("Application startup initiated.")
        app_engine = engine or build_engine(app_settings)
        app_instance.state.engine = app_engine
        if run_engine:
            try:
                await app_engine.start()
            except Exception as e:
                logger.error(f"Error during engine startup: {e}", exc_info=True)
                raise
        yield
        logger.info("Application shutdown initiated.")
        if run_engine:
            await app_engine.shutdown()
        app_instance.state.engine = None
        logger.info("All components torn down.")

    app = FastAPI(
        title=app_settings.app_name,
        debug=app_settings.debug_mode,
        version="1.0.0",
        lifespan=overlay_app_lifespan
    )

    @app.get("/")
    async def root_api():
        return {"message": f"Welcome to {app_settings.app_name}!"}

    @app.get("/health")
    async def health_api():
        """Liveness plus a summary of the upstream connections."""
        app_engine: Optional[OverlayEngine] = getattr(app.state, "engine", None)
        if app_engine is None:
            return {"status": "starting", "details": {}}
        details: Dict[str, Any] = {
            "game_session": "established" if app_engine.session_manager.is_established else "waiting",
            "voice": "connected" if app_engine.voice_client.connected else "disconnected",
            "agent_icons": len(app_engine.catalog),
            "loop_state": app_engine.loop.state.value,
            "completed_cycles": app_engine.loop.completed_cycles,
            "skipped_ticks": app_engine.loop.skipped_ticks,
        }
        healthy = app_engine.session_manager.is_established and app_engine.voice_client.connected
        return {"status": "healthy" if healthy else "degraded", "details": details}

    app.include_router(api_router)
    app.include_router(viewer_router)
    return app


app = create_app()

logger.info(f"{settings.app_name} initialized. Serving on {settings.server_host}:{settings.server_port}.")
