"""
Configuration settings for the User Directory backend
"""

import os
import logging

logger = logging.getLogger(__name__)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Remote demo API configuration
USER_API_BASE_URL = os.getenv("USER_API_BASE_URL", "https://jsonplaceholder.typicode.com").rstrip("/")
USERS_RESOURCE_PATH = "/" + os.getenv("USERS_RESOURCE_PATH", "/users").strip("/")

# Local snapshot configuration
SNAPSHOT_PATH = os.getenv("SNAPSHOT_PATH", os.path.join(os.getcwd(), "user_snapshot.json"))
SNAPSHOT_KEY = os.getenv("SNAPSHOT_KEY", "users")

# Reconciliation behaviour
ID_STRATEGY = os.getenv("ID_STRATEGY", "floor").strip().lower()  # floor or sequential
OPTIMISTIC_WRITES = _env_flag("OPTIMISTIC_WRITES")
SERIALIZE_OPERATIONS = _env_flag("SERIALIZE_OPERATIONS")

# Identifiers up to this value exist on the demo API
REMOTE_ID_CEILING = 10
# First identifier handed out to locally created users under the floor strategy
LOCAL_ID_FLOOR = 100

# Server configuration
PORT = int(os.getenv("PORT", 8080))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# CORS settings
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]

# Validate configuration
if ID_STRATEGY not in ("floor", "sequential"):
    raise ValueError(f"ID_STRATEGY must be 'floor' or 'sequential', got '{ID_STRATEGY}'")
if not SNAPSHOT_KEY:
    raise ValueError("SNAPSHOT_KEY must not be empty")

logger.info(f"User API: {USER_API_BASE_URL}{USERS_RESOURCE_PATH}")
logger.info(f"Snapshot slot: {SNAPSHOT_PATH} [{SNAPSHOT_KEY}]")
