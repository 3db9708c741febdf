"""Key Validator.

Checks a raw API key against its provider and classifies the result as
valid, invalid or a transient failure. Nothing here touches storage.
"""

import asyncio
import logging
from typing import Iterable, Optional

import aiohttp

from src.credentials.checkers import BaseAuthChecker, default_checkers
from src.credentials.config import (
    DEFAULT_CREDENTIALS_CONFIG,
    CredentialsConfig,
    ProviderType,
    ValidationOutcome,
    ValidationResult,
    ValidationSummary,
)
from src.credentials.exceptions import ValidationRejected, ValidationTransientFailure
from src.logging_config import LogContext, PerformanceTimer

logger = logging.getLogger(__name__)


class KeyValidator:
    """Validates raw keys with one authenticated call per attempt.

    Every attempt is bounded by ``validation_timeout_seconds``; a provider
    that hangs yields a transient failure. No retries.

    Example:
        validator = KeyValidator()
        result = await validator.validate(ProviderType.OPENAI, "sk-...")
        if result.is_transient:
            ...  # ask the user to try again later
    """

    def __init__(
        self,
        checkers: Optional[dict[ProviderType, BaseAuthChecker]] = None,
        config: Optional[CredentialsConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.config = config or DEFAULT_CREDENTIALS_CONFIG
        self.checkers = checkers or default_checkers(self.config.user_agent)
        self._session = session

    async def validate(self, provider: ProviderType, raw_key: str) -> ValidationResult:
        """Validate ``raw_key`` against ``provider``. Never raises for
        provider-side problems; those are folded into the result."""
        provider = ProviderType.parse(provider)
        if not raw_key or not raw_key.strip():
            return ValidationResult(
                provider=provider,
                outcome=ValidationOutcome.INVALID,
                error="API key is empty",
            )

        checker = self.checkers.get(provider)
        if checker is None:
            return ValidationResult(
                provider=provider,
                outcome=ValidationOutcome.INVALID,
                error=f"Validation not supported for provider: {provider.value}",
            )

        timeout = self.config.validation_timeout_seconds
        with LogContext(provider=provider.value):
            timer = PerformanceTimer(f"validate:{provider.value}")
            try:
                with timer:
                    check = await asyncio.wait_for(
                        self._run(checker, raw_key.strip(), timeout), timeout=timeout
                    )
            except asyncio.TimeoutError:
                return self._transient(
                    provider, "Request timed out; try again later", timer.duration_ms
                )
            except ValidationTransientFailure as exc:
                return self._transient(provider, exc.message, timer.duration_ms)
            except ValidationRejected as exc:
                logger.info(
                    "Key rejected by %s",
                    provider.value,
                    extra={"error_kind": "rejected", "outcome": "invalid"},
                )
                return ValidationResult(
                    provider=provider,
                    outcome=ValidationOutcome.INVALID,
                    error=exc.message,
                    response_time_ms=timer.duration_ms,
                )

        logger.info("Key accepted by %s", provider.value, extra={"outcome": "valid"})
        return ValidationResult(
            provider=provider,
            outcome=ValidationOutcome.VALID,
            response_time_ms=timer.duration_ms,
            details=check.details,
        )

    async def validate_many(
        self, pairs: Iterable[tuple[ProviderType, str]]
    ) -> list[ValidationResult]:
        """Validate several keys concurrently; results follow input order."""
        semaphore = asyncio.Semaphore(self.config.max_concurrent_validations)

        async def _bounded(provider: ProviderType, raw_key: str) -> ValidationResult:
            async with semaphore:
                return await self.validate(provider, raw_key)

        return list(await asyncio.gather(*(_bounded(p, k) for p, k in pairs)))

    @staticmethod
    def summarize(results: list[ValidationResult]) -> ValidationSummary:
        if not results:
            return ValidationSummary()
        return ValidationSummary(
            total=len(results),
            valid=sum(1 for r in results if r.is_valid),
            invalid=sum(1 for r in results if r.outcome == ValidationOutcome.INVALID),
            transient=sum(1 for r in results if r.is_transient),
            average_response_time_ms=sum(r.response_time_ms for r in results) / len(results),
        )

    # ── Internals ─────────────────────────────────────────────────────

    async def _run(self, checker: BaseAuthChecker, raw_key: str, timeout: float):
        if self._session is not None:
            return await checker.check_auth(self._session, raw_key, timeout)
        async with aiohttp.ClientSession() as session:
            return await checker.check_auth(session, raw_key, timeout)

    @staticmethod
    def _transient(provider: ProviderType, message: str, duration_ms: float) -> ValidationResult:
        logger.warning(
            "Validation for %s could not complete: %s",
            provider.value,
            message,
            extra={"error_kind": "transient_failure", "outcome": "transient_failure"},
        )
        return ValidationResult(
            provider=provider,
            outcome=ValidationOutcome.TRANSIENT_FAILURE,
            error=message,
            response_time_ms=duration_ms,
        )
