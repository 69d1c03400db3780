import os

# Database configuration
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./management.db")

# Shared secrets. An empty value disables the corresponding credential.
SYNC_TOKEN = os.getenv("SYNC_TOKEN", "").strip()
ADMIN_TOKEN = os.getenv("ADMIN_TOKEN", "").strip()

# Optional HTTP Basic credentials for the admin API (both must be set)
ADMIN_BASIC_USER = os.getenv("ADMIN_BASIC_USER", "").strip() or None
ADMIN_BASIC_PASSWORD = os.getenv("ADMIN_BASIC_PASSWORD", "").strip() or None

# Honour X-Forwarded-For when running behind a reverse proxy
TRUST_PROXY = os.getenv("TRUST_PROXY", "false").lower() == "true"

# MaxMind City database used to enrich device records
GEOIP_DB_PATH = os.getenv("GEOIP_DB_PATH") or None

SYNC_RATE_LIMIT = os.getenv("SYNC_RATE_LIMIT", "120/minute")

# Built admin console bundle, served at /admin when present
UI_DIST_DIR = os.getenv("UI_DIST_DIR", "ui/dist")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "").split(",")
    if origin.strip()
]

SNAPSHOT_LIST_LIMIT = 20
