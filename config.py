"""Global configuration values."""

import os
import secrets
from pathlib import Path

# Data directory (SQLite lives here unless DB_PATH is set)
DATA_DIR = Path(os.environ.get("DATA_DIR", "data"))

DB_PATH = Path(os.environ.get("DB_PATH", str(DATA_DIR / "app.db")))

# Signing secret for session/invite/reset tokens.
# Without TOKEN_SECRET a random one is generated and tokens die with the process.
TOKEN_SECRET = os.environ.get("TOKEN_SECRET") or secrets.token_hex(32)

# Invitation token lifetime in hours (0 = never expires)
INVITE_TTL_HOURS = int(os.environ.get("INVITE_TTL_HOURS", "0"))

# Password reset token lifetime in hours
RESET_TOKEN_TTL_HOURS = int(os.environ.get("RESET_TOKEN_TTL_HOURS", "1"))

PASSWORD_MIN_LENGTH = int(os.environ.get("PASSWORD_MIN_LENGTH", "8"))

# OAuth client id; also the expected audience of Google ID tokens
GOOGLE_CLIENT_ID = os.environ.get("GOOGLE_CLIENT_ID", "")

# Frontend base URL used in invitation / reset links
CLIENT_URL = os.environ.get("CLIENT_URL", "http://localhost:3000").rstrip("/")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
