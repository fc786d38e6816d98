import os
from dotenv import load_dotenv
from loguru import logger


DOTENV_PATH = os.getenv("DOTENV_PATH", ".env")
if os.path.exists(DOTENV_PATH):
    load_dotenv(dotenv_path=DOTENV_PATH)
else:
    logger.debug(f"No .env file found at {DOTENV_PATH}, using defaults/environment variables")


DEFAULT_API_ENDPOINT = "https://api.b2s.xyz"
DEFAULT_REFRESH_INTERVAL_MS = 30000
DEFAULT_THEME = "dark"

# Dashboard
CONTRACT_ADDRESS = os.getenv("B2S_CONTRACT_ADDRESS", "")
API_ENDPOINT = os.getenv("B2S_API_ENDPOINT", DEFAULT_API_ENDPOINT)
REFRESH_INTERVAL_MS = int(os.getenv("B2S_REFRESH_INTERVAL_MS", str(DEFAULT_REFRESH_INTERVAL_MS)))
THEME = os.getenv("B2S_THEME", DEFAULT_THEME).lower()

# Serve the built-in static metrics instead of calling the API
USE_MOCK_SOURCE = os.getenv("B2S_USE_MOCK_SOURCE", "True").lower() in ("1", "true", "yes", "on")
REQUEST_TIMEOUT = float(os.getenv("B2S_REQUEST_TIMEOUT", "10"))

# Renderer
UI_REFRESH_INTERVAL = float(os.getenv("B2S_UI_REFRESH_INTERVAL", "0.5"))  # seconds
SNAPSHOT_QUEUE_SIZE = 5

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE") or None

# Health settings
LAUNCH_HEALTH = os.getenv("LAUNCH_HEALTH") == "True"
HEALTH_HOST = os.getenv("HEALTH_HOST", "0.0.0.0")
HEALTH_PORT = int(os.getenv("HEALTH_PORT", 9000))
HEALTH_ENDPOINT = os.getenv("HEALTH_ENDPOINT", "/health")
METRICS_ENDPOINT = os.getenv("METRICS_ENDPOINT", "/metrics")
