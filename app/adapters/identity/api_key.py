"""Identity verifier backed by a static set of API keys."""

from __future__ import annotations

import hmac
import logging
from typing import Iterable

from app.adapters.identity.base import AbstractIdentityVerifier
from app.core.errors import AuthenticationAppError
from app.core.logging import fingerprint

logger = logging.getLogger(__name__)


def parse_api_keys(keys_string: str | None) -> set[str]:
    """Parse comma-separated API keys into a set.

    Examples:
        >>> parse_api_keys("key1, key2 , key3 ") == {"key1", "key2", "key3"}
        True
        >>> parse_api_keys(None)
        set()
    """
    if not keys_string:
        return set()

    return {key.strip() for key in keys_string.split(",") if key.strip()}


class ApiKeyIdentityVerifier(AbstractIdentityVerifier):
    """Accepts configured API keys; the identity is a digest of the key.

    The digest keeps identities stable across restarts without ever storing
    or logging the key itself.
    """

    def __init__(self, api_keys: Iterable[str]) -> None:
        self._api_keys = frozenset(api_keys)

    async def verify(self, credential: str) -> str:
        if not self._api_keys:
            logger.error(
                "auth.verification_failed",
                extra={"reason": "api_keys_not_configured"},
            )
            raise AuthenticationAppError(
                code="api_keys_not_configured",
                message="API key authentication is enabled but no valid keys are configured",
                details={"hint": "Set APP_API_KEYS or disable auth with APP_API_KEY_REQUIRED=false"},
            )

        if not any(hmac.compare_digest(credential.encode(), key.encode()) for key in self._api_keys):
            logger.warning(
                "auth.verification_failed",
                extra={"reason": "invalid_api_key", "credential_hash": fingerprint(credential)},
            )
            raise AuthenticationAppError(
                code="invalid_credential",
                message="Invalid or expired credential",
            )

        return f"key_{fingerprint(credential)}"
