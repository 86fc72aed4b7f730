import os

CATALOG_SERVICE_URI = os.getenv("CATALOG_SERVICE_URI", "http://localhost:9001")
CATALOG_TIMEOUT_SECONDS = float(os.getenv("CATALOG_TIMEOUT_SECONDS", "3"))
CATALOG_MAX_RETRIES = int(os.getenv("CATALOG_MAX_RETRIES", "3"))
CATALOG_INITIAL_BACKOFF_MS = int(os.getenv("CATALOG_INITIAL_BACKOFF_MS", "100"))
# unset -> no cap on the backoff delay
_max_backoff_ms = os.getenv("CATALOG_MAX_BACKOFF_MS")
CATALOG_MAX_BACKOFF_MS = int(_max_backoff_ms) if _max_backoff_ms else None

# unset -> in-memory store
DATABASE_URL = os.getenv("DATABASE_URL")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "9002"))
