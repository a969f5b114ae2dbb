# agent_overlay/storage/json_settings_store.py
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .models import VoiceCredentials
from .storage_interfaces import AbstractSettingsStore

logger = logging.getLogger(__name__)

MAPPING_FILE_NAME = "mapping.json"
CONFIG_FILE_NAME = "config.json"


class JsonFileSettingsStore(AbstractSettingsStore):
    """
    Settings kept as JSON files in the per-user data directory so they survive
    moving the application around.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.mapping_path = self.data_dir / MAPPING_FILE_NAME
        self.config_path = self.data_dir / CONFIG_FILE_NAME

    async def initialize(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        if not self.mapping_path.exists():
            self.mapping_path.write_text("{}", encoding="utf-8")
        logger.info(f"JsonFileSettingsStore initialized at {self.data_dir}")

    def _read_json(self, path: Path) -> Optional[Any]:
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"JsonFileSettingsStore: Could not read {path}: {e}")
            return None

    def _write_json(self, path: Path, data: Any) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        # Write-then-rename so readers never see a half-written file
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=4), encoding="utf-8")
        tmp_path.replace(path)

    async def get_overrides(self) -> Dict[str, str]:
        data = self._read_json(self.mapping_path)
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items() if isinstance(v, str)}

    async def save_overrides(self, overrides: Dict[str, str]) -> None:
        self._write_json(self.mapping_path, dict(overrides))
        logger.info(f"JsonFileSettingsStore: Saved {len(overrides)} name overrides.")

    async def get_session_credentials(self) -> Optional[VoiceCredentials]:
        data = self._read_json(self.config_path)
        if not isinstance(data, dict):
            return None
        try:
            return VoiceCredentials.model_validate(data)
        except ValidationError as e:
            logger.warning(f"JsonFileSettingsStore: Ignoring invalid {self.config_path}: {e.error_count()} errors")
            return None

    async def save_session_credentials(self, credentials: VoiceCredentials) -> None:
        self._write_json(self.config_path, credentials.model_dump(by_alias=True))
        logger.info("JsonFileSettingsStore: Saved voice credentials (clientSecret: ********).")
