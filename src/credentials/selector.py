"""Model selection over resolved provider snapshots.

Nothing here raises for "nothing available"; callers get ``None`` or an
empty list and decide how to prompt the user.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Union

from src.credentials.config import (
    ModelCapability,
    ModelChoice,
    ModelDescriptor,
    ProviderSnapshot,
    ProviderType,
)
from src.credentials.resolver import ProviderConfigResolver


@dataclass(frozen=True)
class PatternChain:
    """Named, ordered list of model-id substrings for an auxiliary task."""

    name: str
    patterns: tuple[str, ...]


# Cheap, fast models for rewriting a user's prompt
PROMPT_ENHANCEMENT_CHAIN = PatternChain(
    name="prompt_enhancement",
    patterns=("kimi-k2", "gemini-2.5-flash-lite", "gpt-5-mini", "mistral-small"),
)

TITLE_GENERATION_CHAIN = PatternChain(
    name="title_generation",
    patterns=("gemini-2.5-flash-lite", "kimi-k2", "gpt-5-mini"),
)


def pick_by_pattern(
    models: Sequence[ModelDescriptor],
    patterns: Union[PatternChain, Sequence[str]],
) -> Optional[ModelDescriptor]:
    """First model matching the earliest pattern, else the first model.

    Pattern order dominates model order: every model is scanned for the
    first pattern before the second pattern is tried.
    """
    if isinstance(patterns, PatternChain):
        patterns = patterns.patterns
    for pattern in patterns:
        for model in models:
            if pattern in model.id:
                return model
    return models[0] if models else None


def choose_default(snapshots: Sequence[ProviderSnapshot]) -> Optional[ModelChoice]:
    """Default (provider, model) from usable snapshots in declaration order.

    A user's stored preference wins over provider order; otherwise the
    first usable provider with any model supplies its first model.
    """
    usable = [s for s in snapshots if s.is_usable]
    for snapshot in usable:
        if snapshot.default_model and any(
            m.id == snapshot.default_model for m in snapshot.available_models
        ):
            return ModelChoice(snapshot.provider, snapshot.default_model)
    for snapshot in usable:
        if snapshot.available_models:
            return ModelChoice(snapshot.provider, snapshot.available_models[0].id)
    return None


class ModelSelector:
    """Stateless selection algorithms on top of the resolver.

    Example:
        selector = ModelSelector(resolver)
        choice = await selector.get_default_model("user_1")
        if choice is None:
            ...  # setup incomplete
    """

    def __init__(self, resolver: ProviderConfigResolver):
        self.resolver = resolver

    async def get_available_providers(self, user_id: str) -> list[ProviderType]:
        """Usable providers (enabled with a valid key), declaration order."""
        return [s.provider for s in await self._usable_snapshots(user_id)]

    async def get_available_models(
        self, user_id: str, provider: ProviderType
    ) -> list[ModelDescriptor]:
        snapshot = await self.resolver.resolve(user_id, provider)
        return list(snapshot.available_models) if snapshot.is_usable else []

    async def get_default_model(self, user_id: str) -> Optional[ModelChoice]:
        return choose_default(await self.resolver.resolve_all(user_id))

    async def select_by_pattern(
        self, user_id: str, patterns: Union[PatternChain, Sequence[str]]
    ) -> Optional[ModelDescriptor]:
        return pick_by_pattern(await self._all_available_models(user_id), patterns)

    async def select_by_capability(
        self, user_id: str, capability: ModelCapability
    ) -> Optional[ModelDescriptor]:
        for model in await self._all_available_models(user_id):
            if model.supports(capability):
                return model
        return None

    async def _usable_snapshots(self, user_id: str) -> list[ProviderSnapshot]:
        snapshots = await self.resolver.resolve_all(user_id)
        return [s for s in snapshots if s.is_usable]

    async def _all_available_models(self, user_id: str) -> list[ModelDescriptor]:
        snapshots = await self._usable_snapshots(user_id)
        return [m for s in snapshots for m in s.available_models]
