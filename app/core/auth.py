"""Caller authentication.

Credentials are taken, in order, from:
- ``Authorization: Bearer <token>``
- ``X-API-Key: <key>``
- the ``session`` or ``__session`` cookie

and resolved to a stable identity by the configured identity verifier
(``app.state.identity_verifier``). The identity namespaces rate limits and
history records. Failed attempts are throttled per client IP through the
``auth`` limiter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import unquote

from fastapi import Request

from app.adapters.identity.base import AbstractIdentityVerifier
from app.core.config import settings
from app.core.errors import AuthenticationAppError, RateLimitAppError
from app.core.limiters import AUTH_LIMITER, get_limiter_registry
from app.core.logging import fingerprint

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAMES = ("session", "__session")


@dataclass(frozen=True)
class Caller:
    """Authenticated (or anonymous) principal behind a request."""

    identity: str
    client_ip: str
    authenticated: bool = True


def parse_cookies(cookie_header: str | None) -> dict[str, str]:
    """Parse a raw Cookie header into a dict.

    Examples:
        >>> parse_cookies("a=1; session=abc%3D")
        {'a': '1', 'session': 'abc='}
        >>> parse_cookies("")
        {}
    """
    cookies: dict[str, str] = {}
    for part in (cookie_header or "").split(";"):
        part = part.strip()
        if not part:
            continue
        name, sep, value = part.partition("=")
        cookies[unquote(name)] = unquote(value) if sep else ""
    return cookies


def extract_credential(request: Request) -> str | None:
    """Return the first credential found on the request, or None."""
    authorization = request.headers.get("Authorization", "")
    if authorization.startswith("Bearer "):
        token = authorization[len("Bearer "):].strip()
        if token:
            return token

    api_key = request.headers.get("X-API-Key")
    if api_key:
        return api_key.strip() or None

    cookies = parse_cookies(request.headers.get("Cookie"))
    for name in SESSION_COOKIE_NAMES:
        if cookies.get(name):
            return cookies[name]

    return None


def get_identity_verifier(request: Request) -> AbstractIdentityVerifier:
    return request.app.state.identity_verifier


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _record_failed_attempt(request: Request, client_ip: str) -> None:
    if not settings.app.rate_limit_enabled:
        return
    try:
        registry = get_limiter_registry(request)
        registry[AUTH_LIMITER].is_allowed(registry.key_for(AUTH_LIMITER, client_ip))
    except Exception:
        logger.exception("rate_limit.auth_throttle_failed", extra={"operation": "record"})


def _ensure_attempts_left(request: Request, client_ip: str) -> None:
    if not settings.app.rate_limit_enabled:
        return
    try:
        registry = get_limiter_registry(request)
        limiter = registry[AUTH_LIMITER]
        info = limiter.get_info(registry.key_for(AUTH_LIMITER, client_ip))
        if info.allowed:
            return
        retry_after = info.retry_after_seconds(limiter.now())
    except Exception:
        # Throttling fails open like the feature limiters
        logger.exception("rate_limit.auth_throttle_failed", extra={"operation": "check"})
        return

    logger.warning(
        "auth.throttled",
        extra={"client_ip_hash": fingerprint(client_ip), "retry_after_s": retry_after},
    )
    raise RateLimitAppError(
        code="auth_rate_limited",
        message="Too many failed authentication attempts. Try again later.",
        details={"limiter": AUTH_LIMITER, "retry_after": retry_after},
    )


async def verify_caller(request: Request) -> Caller:
    """FastAPI dependency resolving the caller behind a request.

    When ``APP_API_KEY_REQUIRED=false`` every request is accepted as an
    anonymous caller keyed by client IP.

    Raises:
        AuthenticationAppError: 401 when the credential is missing or invalid.
        RateLimitAppError: 429 when this IP has exhausted failed attempts.
    """
    client_ip = _client_ip(request)

    if not settings.app.api_key_required:
        logger.debug("auth.skipped", extra={"reason": "auth_required_false"})
        return Caller(identity=f"anon_{fingerprint(client_ip)}", client_ip=client_ip, authenticated=False)

    _ensure_attempts_left(request, client_ip)

    credential = extract_credential(request)
    if not credential:
        _record_failed_attempt(request, client_ip)
        logger.warning("auth.missing_credential", extra={"client_ip_hash": fingerprint(client_ip)})
        raise AuthenticationAppError(
            code="missing_credential",
            message="Missing credential. Provide a Bearer token, X-API-Key header or session cookie.",
        )

    try:
        identity = await get_identity_verifier(request).verify(credential)
    except AuthenticationAppError:
        _record_failed_attempt(request, client_ip)
        raise

    logger.info("auth.success", extra={"identity": identity})
    return Caller(identity=identity, client_ip=client_ip)
