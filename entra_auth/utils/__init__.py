"""Utility modules."""

from entra_auth.utils.cancellation import run_cancellable
from entra_auth.utils.logger import get_logger, mask_secret

__all__ = [
    "run_cancellable",
    "get_logger",
    "mask_secret",
]
