"""Credential lookup for values kept out of the config file.

Secrets are read from a Docker Secrets directory first (one file per
secret, named after the key), then from the upper-cased environment
variable. Only the Home Assistant token goes through here today.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_SECRETS_PATH = "/run/secrets"


class SecretsManager:
    """Resolve named secrets, caching each value after the first hit.

    Attributes:
        secrets_path: Directory holding one file per secret
    """

    def __init__(self, secrets_path: Path | None = None) -> None:
        self.secrets_path = secrets_path or Path(
            os.getenv("SECRETS_PATH", DEFAULT_SECRETS_PATH)
        )
        self._cache: dict[str, str] = {}

    def _from_file(self, key: str) -> str | None:
        path = self.secrets_path / key
        if not path.is_file():
            return None
        try:
            return path.read_text(encoding="utf-8").strip() or None
        except OSError as e:
            logger.error(f"Failed to read Docker Secret '{key}': {e}")
            return None

    def _from_env(self, key: str) -> str | None:
        return os.getenv(key.upper()) or None

    def get_secret(self, key: str, required: bool = True) -> str | None:
        """Look up a secret.

        Args:
            key: Secret name, e.g. ``ha_token``
            required: Raise instead of returning None when nothing is found

        Returns:
            Secret value, or None if not found and not required

        Raises:
            ValueError: If required and neither source has the secret
        """
        if key in self._cache:
            return self._cache[key]

        lookups: list[tuple[str, Callable[[str], str | None]]] = [
            ("Docker Secrets", self._from_file),
            ("environment", self._from_env),
        ]
        for source, lookup in lookups:
            value = lookup(key)
            if value:
                self._cache[key] = value
                logger.info(f"Loaded secret '{key}' from {source}")
                return value

        if required:
            raise ValueError(
                f"Secret '{key}' not found: create {self.secrets_path / key} "
                f"or set {key.upper()}"
            )
        return None

    def clear_cache(self) -> None:
        """Forget cached values so rotated secrets are re-read."""
        self._cache.clear()


_secrets_manager: SecretsManager | None = None


def get_secrets_manager() -> SecretsManager:
    """Process-wide SecretsManager, created on first use."""
    global _secrets_manager
    if _secrets_manager is None:
        _secrets_manager = SecretsManager()
    return _secrets_manager
