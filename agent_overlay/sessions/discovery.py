# agent_overlay/sessions/discovery.py
import base64
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .session_data import LockfileData

logger = logging.getLogger(__name__)

GLZ_URL_PATTERN = re.compile(r"https://glz-(.+?)-1.(.+?).a.pvp.net")
DEPLOYMENT_ARGUMENT = "-ares-deployment"
GAME_PRODUCT_ID = "valorant"

DEFAULT_REGION = "eu"
DEFAULT_SHARD = "eu"


class LockfileError(Exception):
    """Raised when the handshake file is missing or cannot be parsed."""


def parse_lockfile(content: str) -> LockfileData:
    """Parse `name:pid:port:password:protocol` into a LockfileData."""
    parts = content.strip().split(":")
    if len(parts) < 5:
        raise LockfileError(f"Expected 5 ':'-separated fields in lockfile, got {len(parts)}.")
    name, pid, port, password, protocol = parts[:5]
    try:
        return LockfileData(name=name, pid=int(pid), port=int(port), password=password, protocol=protocol)
    except ValueError as e:
        raise LockfileError(f"Lockfile contains a non-numeric pid or port: {e}") from e


def read_lockfile(path: Path) -> LockfileData:
    if not path.exists():
        raise LockfileError(f"Lockfile not found at {path}")
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise LockfileError(f"Could not read lockfile at {path}: {e}") from e
    return parse_lockfile(content)


def build_local_auth_header(password: str) -> str:
    encoded = base64.b64encode(f"riot:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {encoded}"


def find_deployment_region(external_sessions: Dict[str, Any]) -> Optional[str]:
    """Extract the `-ares-deployment=<region>` launch argument of the game product session."""
    if not isinstance(external_sessions, dict):
        return None
    for session in external_sessions.values():
        if not isinstance(session, dict) or session.get("productId") != GAME_PRODUCT_ID:
            continue
        launch_config = session.get("launchConfiguration") or {}
        for argument in launch_config.get("arguments") or []:
            if isinstance(argument, str) and DEPLOYMENT_ARGUMENT in argument and "=" in argument:
                return argument.split("=", 1)[1] or None
    return None


def region_to_shard(region: Optional[str]) -> Tuple[str, str]:
    """
    Map a deployment region to the (region, shard) pair used for remote hosts.

    na/latam/br share the na shard, ap and kr have their own, everything else
    is served from eu. A missing region is treated as eu.
    """
    if not region:
        return DEFAULT_REGION, DEFAULT_SHARD
    if region in ("na", "latam", "br"):
        return region, "na"
    if region in ("ap", "kr"):
        return region, region
    return region, DEFAULT_SHARD


def scrape_glz_url(log_path: Path) -> Optional[str]:
    """Return the first regional game server URL mentioned in the game log, if any."""
    if not log_path.exists():
        return None
    try:
        content = log_path.read_text(encoding="utf-8", errors="ignore")
    except OSError as e:
        logger.info(f"DISCOVERY: Could not read game log at {log_path}: {e}")
        return None
    match = GLZ_URL_PATTERN.search(content)
    if match:
        logger.info(f"DISCOVERY: Found game server URL in logs: {match.group(0)}")
        return match.group(0)
    return None
