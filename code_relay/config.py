"""
Environment configuration for the code-relay backend.
Values come from the process environment, optionally seeded from a .env file.
"""

import os
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _get(key: str, default: str = "") -> str:
    return (os.getenv(key) or default).strip()


# Piston-style execution service
PISTON_API_URL = _get("PISTON_API_URL", "http://localhost:2000/api/v2/piston").rstrip("/")
PISTON_REQUEST_TIMEOUT = float(_get("PISTON_REQUEST_TIMEOUT", "30"))

# Runtime directory cache lifetime (seconds)
RUNTIME_CACHE_TTL = float(_get("RUNTIME_CACHE_TTL", "3600"))

# Web layer
LOG_LEVEL = _get("LOG_LEVEL", "INFO").upper()


def cors_origins() -> List[str]:
    raw = _get("CORS_ORIGINS", "http://localhost:5173")  # Vite default port
    return [origin.strip() for origin in raw.split(",") if origin.strip()]
