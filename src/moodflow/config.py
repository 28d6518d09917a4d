"""Environment-driven settings shared by the CLI, the GUI and the relay server."""

from __future__ import annotations

import os


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# ---------- Storage ----------
DATA_ENV_VAR = "MOODFLOW_DATA"
STORAGE_KEY = "mf_mood_entries_v1"

# ---------- Relay client ----------
RELAY_URL = os.getenv("MOODFLOW_RELAY_URL", "http://localhost:3000/ai-response")
RELAY_TIMEOUT_SECONDS = _env_float("MOODFLOW_RELAY_TIMEOUT", 20.0)

# ---------- Relay server ----------
APP_NAME = os.getenv("MOODFLOW_APP_NAME", "MoodFlow Relay")
HOST = os.getenv("MOODFLOW_HOST", "127.0.0.1")
PORT = int(os.getenv("MOODFLOW_PORT", "3000"))
# Comma-separated list of allowed origins for the browser/desktop front ends.
ALLOWED_ORIGINS_RAW = os.getenv("MOODFLOW_CORS_ORIGINS", "*")
ALLOWED_ORIGINS = [o.strip() for o in ALLOWED_ORIGINS_RAW.split(",") if o.strip()] or ["*"]

# ---------- Generative-text boundary ----------
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL = os.getenv("MOODFLOW_GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_TIMEOUT_SECONDS = _env_float("MOODFLOW_GEMINI_TIMEOUT", 30.0)
