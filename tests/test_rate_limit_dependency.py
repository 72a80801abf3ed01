"""Tests for the rate limiting FastAPI dependencies and limiter registry."""

import asyncio
from unittest.mock import Mock, patch

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from app.adapters.identity import ApiKeyIdentityVerifier
from app.adapters.rate_limit.base import LimiterPolicy
from app.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.limiters import LIMITER_NAMES, LimiterRegistry
from app.core.logging import fingerprint
from app.core.rate_limit import cleanup_interval_seconds, enforce_rate_limit, run_periodic_cleanup

API_KEY = "test-api-key-123"
OTHER_KEY = "test-api-key-456"


def _registry(clock: Mock, **limits: int) -> LimiterRegistry:
    return LimiterRegistry(
        {
            name: InMemorySlidingWindowRateLimiter(
                policy=LimiterPolicy(window_ms=60_000, max_requests=limits.get(name, 100)),
                name=name,
                clock=clock,
            )
            for name in LIMITER_NAMES
        }
    )


def _app(registry: LimiterRegistry) -> FastAPI:
    app = FastAPI()
    app.state.limiters = registry
    app.state.identity_verifier = ApiKeyIdentityVerifier({API_KEY, OTHER_KEY})
    setup_exception_handlers(app)

    @app.post("/chat", dependencies=[Depends(enforce_rate_limit("chat"))])
    async def chat() -> dict:
        return {"ok": True}

    @app.post("/summarize", dependencies=[Depends(enforce_rate_limit("summarize"))])
    async def summarize() -> dict:
        return {"ok": True}

    return app


@pytest.fixture
def clock() -> Mock:
    return Mock(return_value=1_000_000)


class TestEnforceRateLimit:
    def test_allowed_request_carries_headers(self, clock: Mock) -> None:
        client = TestClient(_app(_registry(clock, chat=3)))

        response = client.post("/chat", headers={"X-API-Key": API_KEY})

        assert response.status_code == 200
        assert response.headers["X-RateLimit-Limit"] == "3"
        assert response.headers["X-RateLimit-Remaining"] == "2"
        assert response.headers["X-RateLimit-Reset"] == str((1_000_000 + 60_000) // 1000)
        assert "Retry-After" not in response.headers

    def test_blocks_when_feature_limit_exceeded(self, clock: Mock) -> None:
        client = TestClient(_app(_registry(clock, chat=2)))
        headers = {"X-API-Key": API_KEY}

        assert client.post("/chat", headers=headers).status_code == 200
        clock.return_value = 1_005_000
        assert client.post("/chat", headers=headers).status_code == 200

        blocked = client.post("/chat", headers=headers)

        assert blocked.status_code == 429
        error = blocked.json()["error"]
        assert error["code"] == "rate_limit_exceeded"
        assert error["details"]["limiter"] == "chat"
        assert error["details"]["retry_after"] == 55
        assert blocked.headers["Retry-After"] == "55"
        assert blocked.headers["X-RateLimit-Remaining"] == "0"

    def test_window_slides_after_oldest_request_expires(self, clock: Mock) -> None:
        client = TestClient(_app(_registry(clock, chat=1)))
        headers = {"X-API-Key": API_KEY}

        assert client.post("/chat", headers=headers).status_code == 200
        assert client.post("/chat", headers=headers).status_code == 429

        clock.return_value = 1_060_000
        assert client.post("/chat", headers=headers).status_code == 200

    def test_global_limit_checked_before_feature(self, clock: Mock) -> None:
        registry = _registry(clock, chat=10, summarize=10, **{"global": 2})
        client = TestClient(_app(registry))
        headers = {"X-API-Key": API_KEY}

        assert client.post("/chat", headers=headers).status_code == 200
        assert client.post("/summarize", headers=headers).status_code == 200

        blocked = client.post("/chat", headers=headers)

        assert blocked.status_code == 429
        assert blocked.json()["error"]["details"]["limiter"] == "global"
        assert "Global rate limit" in blocked.json()["error"]["message"]
        # Rejected by global: the chat limiter did not count the attempt
        chat_info = registry["chat"].get_info(registry.key_for("chat", f"key_{fingerprint(API_KEY)}"))
        assert chat_info.remaining_requests == 9

    def test_limits_are_per_identity(self, clock: Mock) -> None:
        client = TestClient(_app(_registry(clock, chat=1)))

        assert client.post("/chat", headers={"X-API-Key": API_KEY}).status_code == 200
        assert client.post("/chat", headers={"X-API-Key": API_KEY}).status_code == 429
        assert client.post("/chat", headers={"Authorization": f"Bearer {OTHER_KEY}"}).status_code == 200

    def test_features_have_independent_state(self, clock: Mock) -> None:
        client = TestClient(_app(_registry(clock, chat=1, summarize=1)))
        headers = {"X-API-Key": API_KEY}

        assert client.post("/chat", headers=headers).status_code == 200
        assert client.post("/summarize", headers=headers).status_code == 200
        assert client.post("/chat", headers=headers).status_code == 429

    def test_limiter_failure_fails_open(self, clock: Mock) -> None:
        registry = _registry(clock)
        broken = Mock()
        broken.is_allowed.side_effect = RuntimeError("store unavailable")
        registry._limiters["chat"] = broken
        client = TestClient(_app(registry))

        response = client.post("/chat", headers={"X-API-Key": API_KEY})

        assert response.status_code == 200
        assert "X-RateLimit-Limit" not in response.headers

    @patch("app.core.rate_limit.settings")
    def test_disabled_skips_limiting(self, mock_settings, clock: Mock) -> None:
        mock_settings.app.rate_limit_enabled = False
        client = TestClient(_app(_registry(clock, chat=1)))
        headers = {"X-API-Key": API_KEY}

        for _ in range(3):
            response = client.post("/chat", headers=headers)
            assert response.status_code == 200
            assert "X-RateLimit-Limit" not in response.headers

    @patch("app.core.rate_limit.settings")
    def test_headers_can_be_disabled(self, mock_settings, clock: Mock) -> None:
        mock_settings.app.rate_limit_enabled = True
        mock_settings.app.rate_limit_include_headers = False
        client = TestClient(_app(_registry(clock, chat=1)))
        headers = {"X-API-Key": API_KEY}

        assert "X-RateLimit-Limit" not in client.post("/chat", headers=headers).headers
        blocked = client.post("/chat", headers=headers)
        assert blocked.status_code == 429
        assert "Retry-After" not in blocked.headers

    def test_unauthenticated_request_is_not_counted(self, clock: Mock) -> None:
        registry = _registry(clock, chat=1)
        client = TestClient(_app(registry))

        assert client.post("/chat").status_code == 401
        assert client.post("/chat", headers={"X-API-Key": API_KEY}).status_code == 200

    def test_unknown_feature_rejected_at_definition(self) -> None:
        with pytest.raises(ValueError):
            enforce_rate_limit("video")


class TestLimiterRegistry:
    def test_from_settings_uses_configured_limits(self) -> None:
        registry = LimiterRegistry.from_settings(settings.app)

        assert registry["image"].policy.max_requests == settings.app.rate_limit_image
        assert registry["voice"].policy.max_requests == settings.app.rate_limit_voice
        assert registry["chat"].policy.max_requests == settings.app.rate_limit_chat
        assert registry["summarize"].policy.max_requests == settings.app.rate_limit_summarize
        assert registry["auth"].policy.max_requests == settings.app.rate_limit_auth
        assert registry["global"].policy.max_requests == settings.app.rate_limit_global
        assert sorted(registry.names()) == sorted(LIMITER_NAMES)

    def test_missing_limiter_rejected(self, clock: Mock) -> None:
        limiter = InMemorySlidingWindowRateLimiter(policy=LimiterPolicy(), clock=clock)

        with pytest.raises(ValueError):
            LimiterRegistry({"chat": limiter})

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("image", "img:user"),
            ("voice", "stt:user"),
            ("chat", "chat:user"),
            ("summarize", "sum:user"),
            ("auth", "auth:user"),
            ("global", "global:user"),
        ],
    )
    def test_key_namespaces(self, clock: Mock, name: str, expected: str) -> None:
        assert _registry(clock).key_for(name, "user") == expected

    def test_cleanup_continues_after_failing_limiter(self, clock: Mock) -> None:
        registry = _registry(clock)
        broken = Mock()
        broken.cleanup.side_effect = RuntimeError("boom")
        registry._limiters["image"] = broken

        registry["chat"].is_allowed("chat:user")
        clock.return_value = 1_000_000 + 60_000

        assert registry.cleanup() == 1

    def test_cleanup_interval_defaults_to_shortest_window(self, clock: Mock) -> None:
        registry = _registry(clock)

        with patch("app.core.rate_limit.settings") as mock_settings:
            mock_settings.app.rate_limit_cleanup_interval_seconds = None
            assert cleanup_interval_seconds(registry) == 60.0

            mock_settings.app.rate_limit_cleanup_interval_seconds = 5
            assert cleanup_interval_seconds(registry) == 5


@pytest.mark.asyncio
async def test_periodic_cleanup_sweeps_until_cancelled(clock: Mock) -> None:
    registry = _registry(clock)
    registry["chat"].is_allowed("chat:user")
    clock.return_value = 1_000_000 + 60_000

    task = asyncio.create_task(run_periodic_cleanup(registry, 0.01))
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert "chat:user" not in registry["chat"].store
