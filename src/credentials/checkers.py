"""Per-provider authentication checks.

Each checker performs the cheapest authenticated call its provider
exposes (usually "list models") and either returns an ``AuthCheck`` or
raises ``ValidationRejected`` / ``ValidationTransientFailure``.
"""

from __future__ import annotations

import abc
import asyncio
from dataclasses import dataclass, field
from typing import Any, Optional

import aiohttp

from src.credentials.config import ProviderType
from src.credentials.exceptions import ValidationRejected, ValidationTransientFailure


@dataclass
class AuthCheck:
    """Successful authentication probe."""

    status: int = 200
    details: dict[str, Any] = field(default_factory=dict)


class BaseAuthChecker(abc.ABC):
    """Interface every provider checker implements.

    Subclasses build the request; the base class owns status
    classification and maps transport errors to transient failures.
    Error messages never echo the key or request URL.
    """

    provider_type: ProviderType

    def __init__(self, user_agent: str = "Keyforge/1.0"):
        self.user_agent = user_agent

    @abc.abstractmethod
    async def check_auth(
        self,
        session: aiohttp.ClientSession,
        api_key: str,
        timeout: float,
    ) -> AuthCheck:
        """Probe the provider with ``api_key``.

        Raises:
            ValidationRejected: the provider refused the key.
            ValidationTransientFailure: the provider could not be reached
                or answered with a retryable status.
        """

    # ── Shared helpers ────────────────────────────────────────────────

    async def _send(
        self,
        session: aiohttp.ClientSession,
        method: str,
        url: str,
        timeout: float,
        headers: dict[str, str],
    ) -> tuple[int, dict[str, str], Any]:
        """Issue one request and return ``(status, headers, json_body)``."""
        headers = {"User-Agent": self.user_agent, **headers}
        try:
            async with session.request(
                method,
                url,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as resp:
                body = await self._read_json(resp)
                return resp.status, dict(resp.headers), body
        except asyncio.TimeoutError:
            raise ValidationTransientFailure(
                self.provider_type, "Request timed out; try again later"
            ) from None
        except aiohttp.ClientError as exc:
            raise ValidationTransientFailure(
                self.provider_type,
                f"Network error ({type(exc).__name__}); try again later",
            ) from None

    @staticmethod
    async def _read_json(resp) -> Any:
        try:
            return await resp.json(content_type=None)
        except ValueError:
            return {}

    def _raise_for_status(self, status: int, body: Any = None) -> None:
        """Classify a non-2xx status into rejected or transient."""
        if 200 <= status < 300:
            return
        if status == 429:
            raise ValidationTransientFailure(
                self.provider_type, "Rate limit exceeded; try again later"
            )
        if status >= 500:
            raise ValidationTransientFailure(
                self.provider_type,
                f"Provider unavailable (HTTP {status}); try again later",
            )
        if status in (401, 403):
            raise ValidationRejected(self.provider_type, "Invalid API key")
        raise ValidationRejected(self.provider_type, f"API error: {status}")

    @staticmethod
    def _count(items: Optional[list]) -> int:
        return len(items) if isinstance(items, list) else 0


class BearerModelsChecker(BaseAuthChecker):
    """``GET <models_url>`` with a bearer token (OpenAI-compatible APIs)."""

    def __init__(self, provider_type: ProviderType, models_url: str, user_agent: str = "Keyforge/1.0"):
        super().__init__(user_agent)
        self.provider_type = provider_type
        self.models_url = models_url

    async def check_auth(self, session, api_key, timeout) -> AuthCheck:
        status, _, body = await self._send(
            session, "GET", self.models_url, timeout,
            {"Authorization": f"Bearer {api_key}"},
        )
        self._raise_for_status(status, body)
        data = body.get("data") if isinstance(body, dict) else None
        return AuthCheck(status=status, details={"models_count": self._count(data)})


class OpenAIChecker(BearerModelsChecker):
    def __init__(self, user_agent: str = "Keyforge/1.0"):
        super().__init__(ProviderType.OPENAI, "https://api.openai.com/v1/models", user_agent)

    async def check_auth(self, session, api_key, timeout) -> AuthCheck:
        status, headers, body = await self._send(
            session, "GET", self.models_url, timeout,
            {"Authorization": f"Bearer {api_key}"},
        )
        self._raise_for_status(status, body)
        data = body.get("data") if isinstance(body, dict) else None
        details = {"models_count": self._count(data)}
        org = headers.get("openai-organization")
        if org:
            details["organization_id"] = org
        return AuthCheck(status=status, details=details)


class OpenRouterChecker(BaseAuthChecker):
    """OpenRouter's model list is public, so probe the key endpoint instead."""

    provider_type = ProviderType.OPENROUTER
    key_url = "https://openrouter.ai/api/v1/key"

    async def check_auth(self, session, api_key, timeout) -> AuthCheck:
        status, _, body = await self._send(
            session, "GET", self.key_url, timeout,
            {"Authorization": f"Bearer {api_key}"},
        )
        self._raise_for_status(status, body)
        data = body.get("data", {}) if isinstance(body, dict) else {}
        details = {
            k: data[k]
            for k in ("label", "usage", "limit", "limit_remaining", "is_free_tier")
            if k in data
        }
        return AuthCheck(status=status, details=details)


class AnthropicChecker(BaseAuthChecker):
    provider_type = ProviderType.ANTHROPIC
    models_url = "https://api.anthropic.com/v1/models"
    api_version = "2023-06-01"

    async def check_auth(self, session, api_key, timeout) -> AuthCheck:
        status, headers, body = await self._send(
            session, "GET", self.models_url, timeout,
            {"x-api-key": api_key, "anthropic-version": self.api_version},
        )
        self._raise_for_status(status, body)
        data = body.get("data") if isinstance(body, dict) else None
        details = {"models_count": self._count(data)}
        limit = headers.get("anthropic-ratelimit-requests-limit")
        if limit:
            details["rate_limit"] = limit
        return AuthCheck(status=status, details=details)


class GoogleChecker(BaseAuthChecker):
    """Gemini API. The key travels in a header, never in the query string."""

    provider_type = ProviderType.GOOGLE
    models_url = "https://generativelanguage.googleapis.com/v1beta/models"

    async def check_auth(self, session, api_key, timeout) -> AuthCheck:
        status, _, body = await self._send(
            session, "GET", self.models_url, timeout,
            {"x-goog-api-key": api_key},
        )
        if status == 400:
            # Gemini reports bad keys as 400 INVALID_ARGUMENT
            error = body.get("error") if isinstance(body, dict) else None
            message = error.get("message") if isinstance(error, dict) else None
            raise ValidationRejected(self.provider_type, message or "Invalid API key")
        self._raise_for_status(status, body)
        models = body.get("models") if isinstance(body, dict) else None
        return AuthCheck(status=status, details={"models_count": self._count(models)})


_BEARER_MODELS_URLS: dict[ProviderType, str] = {
    ProviderType.DEEPSEEK: "https://api.deepseek.com/v1/models",
    ProviderType.TOGETHERAI: "https://api.together.xyz/v1/models",
    ProviderType.GROQ: "https://api.groq.com/openai/v1/models",
    ProviderType.MISTRAL: "https://api.mistral.ai/v1/models",
}


# ── Factory ───────────────────────────────────────────────────────────


def create_checker(provider: ProviderType, user_agent: str = "Keyforge/1.0") -> BaseAuthChecker:
    """Instantiate the checker for a provider."""
    if provider == ProviderType.OPENAI:
        return OpenAIChecker(user_agent)
    elif provider == ProviderType.ANTHROPIC:
        return AnthropicChecker(user_agent)
    elif provider == ProviderType.GOOGLE:
        return GoogleChecker(user_agent)
    elif provider == ProviderType.OPENROUTER:
        return OpenRouterChecker(user_agent)
    elif provider in _BEARER_MODELS_URLS:
        return BearerModelsChecker(provider, _BEARER_MODELS_URLS[provider], user_agent)
    else:
        raise ValueError(f"No checker for provider: {provider}")


def default_checkers(user_agent: str = "Keyforge/1.0") -> dict[ProviderType, BaseAuthChecker]:
    """One checker per supported provider."""
    return {p: create_checker(p, user_agent) for p in ProviderType}
