"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Keeps the rest of the app decoupled from how config is sourced.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Authentication / personalisation component (login, profile data, search history)
APC_URL: str = (
    os.getenv("APC_URL", "http://gdv.fh-erfurt.de/i-search/apc-dummy/index.php").strip()
    or "http://gdv.fh-erfurt.de/i-search/apc-dummy/index.php"
)

# Multimodal query formulator (query item ingestion and query submission)
MQF_URL: str = (
    os.getenv("MQF_URL", "http://gdv.fh-erfurt.de/i-search/mqf-dummy/handle.php").strip()
    or "http://gdv.fh-erfurt.de/i-search/mqf-dummy/handle.php"
)

# Open-Meteo weather API (no key required). Archive for past days, forecast for recent ones.
OPEN_METEO_ARCHIVE: str = "https://archive-api.open-meteo.com/v1/archive"
OPEN_METEO_FORECAST: str = "https://api.open-meteo.com/v1/forecast"
# The archive lags a few days behind real time
WEATHER_ARCHIVE_LAG_DAYS: int = 5

# API timeouts (seconds)
HTTP_TIMEOUT: float = float(os.getenv("HTTP_TIMEOUT", "30"))
WEATHER_TIMEOUT: float = 15.0

# Local temporary storage for uploads and sketches, served under TMP_URL
TMP_DIR: str = os.getenv("TMP_DIR", "data/tmp").strip() or "data/tmp"
TMP_URL: str = "/tmp"
# Stored query items older than this (seconds) are purged when new ones arrive
TMP_MAX_AGE: float = float(os.getenv("TMP_MAX_AGE", "86400"))

# Session cookie
SESSION_COOKIE: str = "musebag.sid"
# Idle time (seconds) after which a session expires
SESSION_TTL: float = float(os.getenv("SESSION_TTL", "3600"))

# Guest profile defaults
GUEST_ID: str = "guest"
GUEST_SETTINGS: str = '{"maxResults" : 100, "clusterType" : "3D"}'
