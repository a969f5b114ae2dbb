# agent_overlay/cli/config.py
import os
from dotenv import load_dotenv
from pathlib import Path

# This cli/config.py file is at <project>/agent_overlay/cli/config.py
project_root = Path(__file__).parent.parent.parent.resolve()

# Values in .env take precedence over the process environment
load_dotenv(dotenv_path=project_root / '.env', override=True)

# Where the running overlay server listens
OVERLAY_CLI_API_BASE_URL = os.getenv("OVERLAY_CLI_API_BASE_URL", "http://127.0.0.1:3000")

OVERLAY_CLI_TIMEOUT_SECONDS = float(os.getenv("OVERLAY_CLI_TIMEOUT_SECONDS", "10"))
