"""Tests for model selection."""

import pytest

from src.credentials.config import (
    ModelCapability,
    ModelChoice,
    ModelDescriptor,
    ProviderSnapshot,
    ProviderType,
)
from src.credentials.selector import (
    PROMPT_ENHANCEMENT_CHAIN,
    TITLE_GENERATION_CHAIN,
    PatternChain,
    choose_default,
    pick_by_pattern,
)


def _model(model_id, provider=ProviderType.OPENROUTER):
    return ModelDescriptor(id=model_id, provider=provider, display_name=model_id)


# ═══════════════════════════════════════════════════════════════════════
# Pure helpers
# ═══════════════════════════════════════════════════════════════════════


class TestPickByPattern:
    def test_first_pattern_wins(self):
        models = [_model("gpt-4"), _model("kimi-k2-7b"), _model("mistral-small")]
        picked = pick_by_pattern(models, ["kimi-k2", "mistral-small"])
        assert picked.id == "kimi-k2-7b"

    def test_pattern_priority_dominates_model_order(self):
        models = [_model("mistral-small-latest"), _model("moonshot/kimi-k2")]
        picked = pick_by_pattern(models, ["kimi-k2", "mistral-small"])
        assert picked.id == "moonshot/kimi-k2"

    def test_first_model_for_a_pattern(self):
        models = [_model("kimi-k2-a"), _model("kimi-k2-b")]
        assert pick_by_pattern(models, ["kimi-k2"]).id == "kimi-k2-a"

    def test_fallback_to_first_model(self):
        models = [_model("gpt-4"), _model("claude")]
        assert pick_by_pattern(models, ["kimi-k2"]).id == "gpt-4"

    def test_no_models(self):
        assert pick_by_pattern([], ["kimi-k2"]) is None

    def test_accepts_pattern_chain(self):
        models = [_model("gpt-4"), _model("gemini-2.5-flash-lite-preview-06-17")]
        assert pick_by_pattern(models, PROMPT_ENHANCEMENT_CHAIN).id == (
            "gemini-2.5-flash-lite-preview-06-17"
        )

    def test_preset_chains(self):
        assert PROMPT_ENHANCEMENT_CHAIN.patterns[0] == "kimi-k2"
        assert TITLE_GENERATION_CHAIN.patterns[0] == "gemini-2.5-flash-lite"
        assert isinstance(TITLE_GENERATION_CHAIN, PatternChain)


class TestChooseDefault:
    def _snapshot(self, provider, models, default_model=None, usable=True):
        return ProviderSnapshot(
            provider=provider,
            is_enabled=usable,
            has_api_key=usable,
            api_key_valid=usable,
            default_model=default_model,
            available_models=[_model(m, provider) for m in models],
        )

    def test_preference_beats_provider_order(self):
        snapshots = [
            self._snapshot(ProviderType.OPENAI, ["gpt-4.1-mini"]),
            self._snapshot(ProviderType.GROQ, ["llama-3.3-70b-versatile"], "llama-3.3-70b-versatile"),
        ]
        assert choose_default(snapshots) == ModelChoice(ProviderType.GROQ, "llama-3.3-70b-versatile")

    def test_stale_preference_ignored(self):
        snapshots = [
            self._snapshot(ProviderType.OPENAI, ["gpt-4.1-mini"], default_model="gpt-3"),
        ]
        assert choose_default(snapshots) == ModelChoice(ProviderType.OPENAI, "gpt-4.1-mini")

    def test_unusable_providers_skipped(self):
        snapshots = [
            self._snapshot(ProviderType.OPENAI, ["gpt-4.1-mini"], "gpt-4.1-mini", usable=False),
            self._snapshot(ProviderType.MISTRAL, ["mistral-large-latest"]),
        ]
        assert choose_default(snapshots) == ModelChoice(ProviderType.MISTRAL, "mistral-large-latest")

    def test_usable_provider_without_models_skipped(self):
        snapshots = [
            self._snapshot(ProviderType.OPENAI, []),
            self._snapshot(ProviderType.MISTRAL, ["mistral-large-latest"]),
        ]
        assert choose_default(snapshots).provider == ProviderType.MISTRAL

    def test_nothing_usable(self):
        assert choose_default([]) is None


# ═══════════════════════════════════════════════════════════════════════
# Selector over the resolver
# ═══════════════════════════════════════════════════════════════════════


class TestModelSelector:
    @pytest.mark.asyncio
    async def test_empty_user(self, selector):
        assert await selector.get_available_providers("nobody") == []
        assert await selector.get_available_models("nobody", ProviderType.OPENAI) == []
        assert await selector.get_default_model("nobody") is None
        assert await selector.select_by_pattern("nobody", PROMPT_ENHANCEMENT_CHAIN) is None
        assert await selector.select_by_capability("nobody", ModelCapability.VISION) is None

    @pytest.mark.asyncio
    async def test_default_model_is_deterministic(self, selector, resolver):
        await resolver.save_api_key("u1", ProviderType.MISTRAL, "m-key")
        await resolver.save_api_key("u1", ProviderType.ANTHROPIC, "sk-ant")
        first = await selector.get_default_model("u1")
        second = await selector.get_default_model("u1")
        assert first == second == ModelChoice(ProviderType.ANTHROPIC, "claude-sonnet-4-20250514")

    @pytest.mark.asyncio
    async def test_default_model_preference(self, selector, resolver):
        await resolver.save_api_key("u1", ProviderType.ANTHROPIC, "sk-ant")
        await resolver.save_api_key("u1", ProviderType.MISTRAL, "m-key")
        await resolver.update_preferences(
            "u1", ProviderType.MISTRAL, default_model="mistral-large-latest"
        )
        assert await selector.get_default_model("u1") == ModelChoice(
            ProviderType.MISTRAL, "mistral-large-latest"
        )

    @pytest.mark.asyncio
    async def test_available_providers(self, selector, resolver, fake_checkers):
        await resolver.save_api_key("u1", ProviderType.GROQ, "gsk_key")
        await resolver.save_api_key("u1", ProviderType.OPENAI, "sk-key")
        fake_checkers[ProviderType.GOOGLE].mode = "invalid"
        await resolver.save_api_key("u1", ProviderType.GOOGLE, "AIza-bad")
        providers = await selector.get_available_providers("u1")
        assert providers == [ProviderType.OPENAI, ProviderType.GROQ]

    @pytest.mark.asyncio
    async def test_disabled_provider_has_no_models(self, selector, resolver):
        await resolver.save_api_key("u1", ProviderType.OPENAI, "sk-key")
        await resolver.update_preferences("u1", ProviderType.OPENAI, is_enabled=False)
        assert await selector.get_available_models("u1", ProviderType.OPENAI) == []

    @pytest.mark.asyncio
    async def test_select_by_pattern_with_custom_model(self, selector, resolver, repository):
        await resolver.save_api_key("u1", ProviderType.OPENAI, "sk-key")
        await resolver.save_api_key("u1", ProviderType.GROQ, "gsk_key")
        await repository.add_custom_model(
            "u1", ProviderType.GROQ, {"model_id": "moonshotai/kimi-k2-instruct"}
        )
        picked = await selector.select_by_pattern("u1", PROMPT_ENHANCEMENT_CHAIN)
        assert picked.id == "moonshotai/kimi-k2-instruct"
        assert picked.provider == ProviderType.GROQ

    @pytest.mark.asyncio
    async def test_select_by_pattern_falls_back(self, selector, resolver):
        await resolver.save_api_key("u1", ProviderType.DEEPSEEK, "ds-key")
        picked = await selector.select_by_pattern("u1", ["kimi-k2"])
        assert picked.id == "deepseek-reasoner"

    @pytest.mark.asyncio
    async def test_select_by_capability(self, selector, resolver):
        await resolver.save_api_key("u1", ProviderType.DEEPSEEK, "ds-key")
        await resolver.save_api_key("u1", ProviderType.TOGETHERAI, "t-key")
        picked = await selector.select_by_capability("u1", ModelCapability.VISION)
        assert picked.id == "meta-llama/Llama-4-Maverick-17B-128E-Instruct-FP8"
        assert await selector.select_by_capability("u1", ModelCapability.AUDIO) is None
