"""Test environment: isolated data dir and a fixed settings encryption key."""

import os
import sys
import tempfile
from pathlib import Path

from cryptography.fernet import Fernet

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))
sys.path.insert(0, str(Path(__file__).resolve().parent))

# Must be set before entra_auth.config is imported
os.environ["ENTRA_AUTH_HOME"] = tempfile.mkdtemp(prefix="entra-auth-tests-")
os.environ["SETTINGS_ENCRYPTION_KEY"] = Fernet.generate_key().decode("ascii")
os.environ.setdefault("LOG_LEVEL", "WARNING")
