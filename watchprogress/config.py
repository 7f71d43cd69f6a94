import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Base Paths
BASE_DIR = Path(__file__).parent.parent
DB_PATH = Path(os.getenv("WATCHPROGRESS_DB_PATH", str(BASE_DIR / "watchprogress.db")))

# Progress Settings
WATCHED_THRESHOLD = float(os.getenv("WATCHED_THRESHOLD", "0.95"))  # 95% watched marks as watched
AUTO_SAVE_INTERVAL = float(os.getenv("AUTO_SAVE_INTERVAL", "5"))  # seconds of playback between saves

# Logging Settings
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "true").lower() not in ("0", "false", "no")
LOG_FILE = Path(os.getenv("LOG_FILE", "watchprogress.log"))

# API Settings
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", "8765"))
