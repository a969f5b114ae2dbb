# agent_overlay/settings.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional
import logging
import os
import sys
from pathlib import Path

# Configure logging for settings module
logger = logging.getLogger(__name__)
if not logging.getLogger().hasHandlers():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s SETTINGS.PY - [%(levelname)s] - %(message)s'
    )

# This settings.py file is at <project>/agent_overlay/settings.py
PROJECT_ROOT = Path(__file__).parent.parent.resolve()
DOTENV_PATH = PROJECT_ROOT / ".env"

# Platform blob the game client sends with every request (PC / Windows 10)
DEFAULT_CLIENT_PLATFORM = (
    "ew0KCSJwbGF0Zm9ybVR5cGUiOiAiUEMiLA0KCSJwbGF0Zm9ybU9TIjogIldpbmRvd3MiLA0KCSJwbGF0Zm9ybU9TVmVyc2lvbiI6ICIx"
    "MC4wLjE5MDQyLjEuMjU2LjY0Yml0IiwNCgkicGxhdGZvcm1DaGlwc2V0IjogIlVua25vd24iDQp9"
)


def _roaming_app_data() -> Path:
    """Per-user settings directory, following the same conventions as the desktop client."""
    appdata = os.getenv("APPDATA")
    if appdata:
        return Path(appdata)
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Preferences"
    return Path.home() / ".local" / "share"


def _local_app_data() -> Path:
    local = os.getenv("LOCALAPPDATA")
    if local:
        return Path(local)
    return Path.home() / "AppData" / "Local"


def _default_data_dir() -> Path:
    return _roaming_app_data() / "ValorantOverlay"


def _default_lockfile_path() -> Path:
    return _local_app_data() / "Riot Games" / "Riot Client" / "Config" / "lockfile"


def _default_game_log_path() -> Path:
    return _local_app_data() / "VALORANT" / "Saved" / "Logs" / "ShooterGame.log"


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    app_name: str = "Agent Overlay"
    debug_mode: bool = False
    log_level: str = "INFO"

    # HTTP surface serving the overlay viewers
    server_host: str = "127.0.0.1"
    server_port: int = 3000

    # Correlation loop cadence and bounds
    poll_interval_seconds: float = Field(default=1.0, gt=0)
    voice_roster_timeout_seconds: float = Field(default=2.0, gt=0)
    http_timeout_seconds: float = Field(default=5.0, gt=0)
    voice_event_queue_size: int = Field(default=256, gt=0)
    voice_reconnect_interval_seconds: float = Field(default=15.0, ge=0)

    # Local files written by the game client and by this application
    data_dir: Path = Field(
        default_factory=_default_data_dir,
        description="Directory holding mapping.json and config.json."
    )
    riot_lockfile_path: Path = Field(
        default_factory=_default_lockfile_path,
        description="Handshake file the game client writes while it is running."
    )
    game_log_path: Path = Field(
        default_factory=_default_game_log_path,
        description="Game log scanned for the regional game server host."
    )

    # Vendor endpoints
    public_api_base_url: str = "https://valorant-api.com/v1"
    default_client_version: str = "release-05.04-shipping-9-752985"
    client_platform_token: str = DEFAULT_CLIENT_PLATFORM

    model_config = SettingsConfigDict(
        env_file=DOTENV_PATH if DOTENV_PATH.exists() else None,
        extra="ignore",
        env_file_encoding='utf-8'
    )


_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first access."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
        logger.info(f"SETTINGS.PY: Loaded settings - debug_mode: {_settings_instance.debug_mode}, "
                    f"data_dir: '{_settings_instance.data_dir}', "
                    f"poll_interval_seconds: {_settings_instance.poll_interval_seconds}")
        if DOTENV_PATH.exists():
            logger.info(f"SETTINGS.PY: .env file FOUND at explicit path: {DOTENV_PATH}")
        else:
            logger.info(f"SETTINGS.PY: No .env at {DOTENV_PATH}. Using OS env vars or defaults.")
    return _settings_instance
