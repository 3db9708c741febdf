"""Tests for per-provider authentication checkers."""

import asyncio

import aiohttp
import pytest

from src.credentials.checkers import (
    AnthropicChecker,
    BearerModelsChecker,
    GoogleChecker,
    OpenAIChecker,
    OpenRouterChecker,
    create_checker,
    default_checkers,
)
from src.credentials.config import ProviderType
from src.credentials.exceptions import ValidationRejected, ValidationTransientFailure


# ── Fake aiohttp session ──────────────────────────────────────────────


class FakeResponse:
    def __init__(self, status=200, body=None, headers=None):
        self.status = status
        self.headers = headers or {}
        self._body = body

    async def json(self, content_type=None):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body if self._body is not None else {}


class _RequestContext:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error

    async def __aenter__(self):
        if self.error is not None:
            raise self.error
        return self.response

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Records requests and replays one canned response or error."""

    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse()
        self.error = error
        self.requests = []

    def request(self, method, url, headers=None, timeout=None):
        self.requests.append({"method": method, "url": url, "headers": headers, "timeout": timeout})
        return _RequestContext(self.response, self.error)


# ═══════════════════════════════════════════════════════════════════════
# Factory
# ═══════════════════════════════════════════════════════════════════════


class TestCheckerFactory:
    def test_every_provider_has_a_checker(self):
        checkers = default_checkers()
        assert set(checkers) == set(ProviderType)
        for provider, checker in checkers.items():
            assert checker.provider_type == provider

    def test_specialised_checkers(self):
        assert isinstance(create_checker(ProviderType.OPENAI), OpenAIChecker)
        assert isinstance(create_checker(ProviderType.ANTHROPIC), AnthropicChecker)
        assert isinstance(create_checker(ProviderType.GOOGLE), GoogleChecker)
        assert isinstance(create_checker(ProviderType.OPENROUTER), OpenRouterChecker)
        assert isinstance(create_checker(ProviderType.GROQ), BearerModelsChecker)

    def test_user_agent_passed_through(self):
        checker = create_checker(ProviderType.MISTRAL, user_agent="Test/2.0")
        assert checker.user_agent == "Test/2.0"


# ═══════════════════════════════════════════════════════════════════════
# Requests
# ═══════════════════════════════════════════════════════════════════════


class TestRequestShape:
    @pytest.mark.asyncio
    async def test_openai_bearer_request(self):
        session = FakeSession(FakeResponse(200, {"data": [{"id": "a"}, {"id": "b"}]}))
        check = await create_checker(ProviderType.OPENAI).check_auth(session, "sk-test", 5)
        req = session.requests[0]
        assert req["method"] == "GET"
        assert req["url"] == "https://api.openai.com/v1/models"
        assert req["headers"]["Authorization"] == "Bearer sk-test"
        assert req["headers"]["User-Agent"] == "Keyforge/1.0"
        assert isinstance(req["timeout"], aiohttp.ClientTimeout)
        assert req["timeout"].total == 5
        assert check.details["models_count"] == 2

    @pytest.mark.asyncio
    async def test_openai_organization_header(self):
        session = FakeSession(FakeResponse(200, {"data": []}, {"openai-organization": "org-1"}))
        check = await create_checker(ProviderType.OPENAI).check_auth(session, "sk-test", 5)
        assert check.details["organization_id"] == "org-1"

    @pytest.mark.asyncio
    async def test_anthropic_headers(self):
        session = FakeSession(FakeResponse(200, {"data": [{"id": "claude"}]}))
        await create_checker(ProviderType.ANTHROPIC).check_auth(session, "sk-ant-x", 5)
        headers = session.requests[0]["headers"]
        assert headers["x-api-key"] == "sk-ant-x"
        assert headers["anthropic-version"] == "2023-06-01"
        assert "Authorization" not in headers

    @pytest.mark.asyncio
    async def test_google_key_in_header_not_url(self):
        session = FakeSession(FakeResponse(200, {"models": [{}, {}, {}]}))
        check = await create_checker(ProviderType.GOOGLE).check_auth(session, "AIzaSecret", 5)
        req = session.requests[0]
        assert "AIzaSecret" not in req["url"]
        assert req["headers"]["x-goog-api-key"] == "AIzaSecret"
        assert check.details["models_count"] == 3

    @pytest.mark.asyncio
    async def test_openrouter_key_endpoint(self):
        body = {"data": {"label": "my key", "usage": 1.5, "limit": None, "extra": "x"}}
        session = FakeSession(FakeResponse(200, body))
        check = await create_checker(ProviderType.OPENROUTER).check_auth(session, "sk-or-x", 5)
        assert session.requests[0]["url"] == "https://openrouter.ai/api/v1/key"
        assert check.details == {"label": "my key", "usage": 1.5, "limit": None}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("provider,url", [
        (ProviderType.DEEPSEEK, "https://api.deepseek.com/v1/models"),
        (ProviderType.TOGETHERAI, "https://api.together.xyz/v1/models"),
        (ProviderType.GROQ, "https://api.groq.com/openai/v1/models"),
        (ProviderType.MISTRAL, "https://api.mistral.ai/v1/models"),
    ])
    async def test_bearer_model_endpoints(self, provider, url):
        session = FakeSession(FakeResponse(200, {"data": []}))
        await create_checker(provider).check_auth(session, "key", 5)
        assert session.requests[0]["url"] == url

    @pytest.mark.asyncio
    async def test_non_json_body_tolerated(self):
        session = FakeSession(FakeResponse(200, ValueError("not json")))
        check = await create_checker(ProviderType.GROQ).check_auth(session, "key", 5)
        assert check.details["models_count"] == 0


# ═══════════════════════════════════════════════════════════════════════
# Classification
# ═══════════════════════════════════════════════════════════════════════


class TestClassification:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_auth_failures_rejected(self, status):
        session = FakeSession(FakeResponse(status))
        with pytest.raises(ValidationRejected, match="Invalid API key"):
            await create_checker(ProviderType.OPENAI).check_auth(session, "sk-bad", 5)

    @pytest.mark.asyncio
    async def test_other_4xx_rejected(self):
        session = FakeSession(FakeResponse(404))
        with pytest.raises(ValidationRejected, match="404"):
            await create_checker(ProviderType.MISTRAL).check_auth(session, "key", 5)

    @pytest.mark.asyncio
    async def test_rate_limit_is_transient(self):
        session = FakeSession(FakeResponse(429))
        with pytest.raises(ValidationTransientFailure, match="Rate limit"):
            await create_checker(ProviderType.OPENAI).check_auth(session, "key", 5)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [500, 502, 503, 529])
    async def test_server_errors_are_transient(self, status):
        session = FakeSession(FakeResponse(status))
        with pytest.raises(ValidationTransientFailure):
            await create_checker(ProviderType.ANTHROPIC).check_auth(session, "key", 5)

    @pytest.mark.asyncio
    async def test_google_400_uses_error_message(self):
        body = {"error": {"code": 400, "message": "API key not valid. Please pass a valid API key."}}
        session = FakeSession(FakeResponse(400, body))
        with pytest.raises(ValidationRejected, match="API key not valid"):
            await create_checker(ProviderType.GOOGLE).check_auth(session, "AIzaBad", 5)

    @pytest.mark.asyncio
    async def test_google_400_without_body(self):
        session = FakeSession(FakeResponse(400, ValueError("empty")))
        with pytest.raises(ValidationRejected, match="Invalid API key"):
            await create_checker(ProviderType.GOOGLE).check_auth(session, "AIzaBad", 5)

    @pytest.mark.asyncio
    async def test_google_400_with_string_error(self):
        session = FakeSession(FakeResponse(400, {"error": "API_KEY_INVALID"}))
        with pytest.raises(ValidationRejected, match="Invalid API key"):
            await create_checker(ProviderType.GOOGLE).check_auth(session, "AIzaBad", 5)

    @pytest.mark.asyncio
    async def test_connection_error_is_transient(self):
        session = FakeSession(error=aiohttp.ClientConnectionError("connection refused"))
        with pytest.raises(ValidationTransientFailure, match="Network error"):
            await create_checker(ProviderType.GROQ).check_auth(session, "key", 5)

    @pytest.mark.asyncio
    async def test_timeout_is_transient(self):
        session = FakeSession(error=asyncio.TimeoutError())
        with pytest.raises(ValidationTransientFailure, match="timed out"):
            await create_checker(ProviderType.GROQ).check_auth(session, "key", 5)

    @pytest.mark.asyncio
    async def test_error_messages_never_echo_key_or_url(self):
        err = aiohttp.ClientConnectionError("https://example.test/?key=AIzaSecret")
        session = FakeSession(error=err)
        with pytest.raises(ValidationTransientFailure) as exc_info:
            await create_checker(ProviderType.GOOGLE).check_auth(session, "AIzaSecret", 5)
        assert "AIzaSecret" not in str(exc_info.value)
        assert exc_info.value.provider == ProviderType.GOOGLE
