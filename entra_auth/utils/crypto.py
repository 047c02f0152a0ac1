"""Fernet encryption for secret settings fields (passwords, client secrets, token caches)."""

from __future__ import annotations

from typing import Final

import keyring
from cryptography.fernet import Fernet, InvalidToken
from keyring.errors import KeyringError

from entra_auth import config
from entra_auth.errors import ConfigError
from entra_auth.utils.logger import get_logger

logger = get_logger("entra_auth.utils.crypto")

SETTINGS_KEY_NAME: Final[str] = "settings_encryption_key"


def get_or_create_fernet_key(
    key_name: str = SETTINGS_KEY_NAME, *, service_name: str | None = None
) -> bytes:
    """Return the configured Fernet key, or fetch/create one in the OS keyring."""
    if config.SETTINGS_ENCRYPTION_KEY:
        return config.SETTINGS_ENCRYPTION_KEY.encode("utf-8")

    service = service_name or config.KEYRING_SERVICE_NAME
    try:
        existing = keyring.get_password(service, key_name)
    except KeyringError as exc:
        logger.error("crypto.keyring.fetch_failed", error=str(exc))
        raise

    if existing:
        return existing.encode("utf-8")

    key = Fernet.generate_key()
    try:
        keyring.set_password(service, key_name, key.decode("utf-8"))
    except KeyringError as exc:
        logger.error("crypto.keyring.store_failed", error=str(exc))
        raise

    logger.info("crypto.keyring.key_created", key_name=key_name)
    return key


def encrypt_string(value: str, key_name: str = SETTINGS_KEY_NAME) -> str:
    """Encrypt a settings value. Empty strings stay empty so unset fields remain recognizable."""
    if not value:
        return ""
    fernet = Fernet(get_or_create_fernet_key(key_name))
    return fernet.encrypt(value.encode("utf-8")).decode("ascii")


def decrypt_string(token: str, key_name: str = SETTINGS_KEY_NAME) -> str:
    """Decrypt a value produced by encrypt_string."""
    if not token:
        return ""
    fernet = Fernet(get_or_create_fernet_key(key_name))
    try:
        return fernet.decrypt(token.encode("ascii")).decode("utf-8")
    except (InvalidToken, ValueError) as e:
        raise ConfigError("Could not decrypt a secret settings field (wrong encryption key?)") from e
