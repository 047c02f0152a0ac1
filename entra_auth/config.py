"""Configuration and settings."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Paths (plan: ~/.entra-auth holds settings, token cache files and logs)
DATA_DIR = Path(os.getenv("ENTRA_AUTH_HOME", str(Path.home() / ".entra-auth")))
SETTINGS_PATH = Path(os.getenv("ENTRA_AUTH_SETTINGS_PATH", str(DATA_DIR / "settings.yaml")))
DEFAULT_TOKEN_CACHE_FILE = DATA_DIR / "token_cache.json"

# Ensure directories exist
DATA_DIR.mkdir(parents=True, exist_ok=True)

# Logging
LOG_DIR = DATA_DIR / "logs"
LOG_FILE = LOG_DIR / "entra_auth.jsonl"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
VERBOSE_LOGGING = os.getenv("VERBOSE_LOGGING", "false").lower() == "true"

# Ensure log directory exists
LOG_DIR.mkdir(parents=True, exist_ok=True)

# Entra ID
AUTHORITY_HOST = os.getenv("AUTHORITY_HOST", "https://login.microsoftonline.com").rstrip("/")
COMMON_ENDPOINT = f"{AUTHORITY_HOST}/common"
ORGANIZATIONS_ENDPOINT = f"{AUTHORITY_HOST}/organizations"
DEFAULT_APP_ID = os.getenv("DEFAULT_APP_ID", "cf47ff49-7da6-4603-b339-f4475176432b")

# Interactive login: fixed loopback redirect
REDIRECT_PORT = int(os.getenv("REDIRECT_PORT", "51355"))
DEFAULT_REDIRECT_URL = f"http://localhost:{REDIRECT_PORT}/"
INTERACTIVE_LOGIN_TIMEOUT_SECONDS = int(os.getenv("INTERACTIVE_LOGIN_TIMEOUT_SECONDS", "600"))

# Polling interval used while waiting on a cancellable blocking call
CANCEL_POLL_INTERVAL_SECONDS = float(os.getenv("CANCEL_POLL_INTERVAL_SECONDS", "0.2"))
# Upper bound on waiting for a canceled call to release what it holds (e.g. the redirect port)
CANCEL_JOIN_TIMEOUT_SECONDS = float(os.getenv("CANCEL_JOIN_TIMEOUT_SECONDS", "5"))

# Token cache files larger than this cannot plausibly hold a token
MAX_TOKEN_CACHE_FILE_BYTES = int(os.getenv("MAX_TOKEN_CACHE_FILE_BYTES", str(1000 * 1000)))

# Encryption of secret settings fields (Fernet key; falls back to the OS keyring when empty)
SETTINGS_ENCRYPTION_KEY = os.getenv("SETTINGS_ENCRYPTION_KEY", "")
KEYRING_SERVICE_NAME = os.getenv("KEYRING_SERVICE_NAME", "entra_auth")
