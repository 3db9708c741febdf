"""Model catalog: static per-provider defaults plus user custom models."""

import logging
from typing import Any, Optional

from src.credentials.config import ModelCapability, ModelDescriptor, ProviderType
from src.credentials.store import CredentialRepository

logger = logging.getLogger(__name__)


# ── Static catalog ────────────────────────────────────────────────────
# Costs are USD per 1K tokens. List order is the order models are offered in.

MODEL_CATALOG: dict[ProviderType, list[ModelDescriptor]] = {
    ProviderType.OPENAI: [
        ModelDescriptor(
            id="gpt-4.1-mini",
            provider=ProviderType.OPENAI,
            display_name="GPT 4.1 Mini",
            description="Most cost-efficient GPT-4 model",
            max_tokens=128_000,
            supports_vision=True,
            supports_tools=True,
            cost_per_1k_input=0.0004,
            cost_per_1k_output=0.0016,
        ),
        ModelDescriptor(
            id="gpt-4.1",
            provider=ProviderType.OPENAI,
            display_name="GPT 4.1",
            description="Latest model from OpenAI",
            max_tokens=128_000,
            supports_vision=True,
            supports_tools=True,
            cost_per_1k_input=0.002,
            cost_per_1k_output=0.008,
        ),
        ModelDescriptor(
            id="o4-mini",
            provider=ProviderType.OPENAI,
            display_name="o4 Mini",
            description="Intelligent reasoning and coding model",
            max_tokens=128_000,
            supports_vision=True,
            supports_tools=True,
            cost_per_1k_input=0.0011,
            cost_per_1k_output=0.0044,
        ),
    ],
    ProviderType.ANTHROPIC: [
        ModelDescriptor(
            id="claude-sonnet-4-20250514",
            provider=ProviderType.ANTHROPIC,
            display_name="Claude 4 Sonnet",
            description="Strong reasoning and coding capabilities",
            max_tokens=200_000,
            supports_vision=True,
            supports_tools=True,
            supports_document=True,
            cost_per_1k_input=0.003,
            cost_per_1k_output=0.015,
        ),
        ModelDescriptor(
            id="claude-opus-4-20250514",
            provider=ProviderType.ANTHROPIC,
            display_name="Claude Opus 4",
            description="Strong reasoning and coding capabilities",
            max_tokens=200_000,
            supports_vision=True,
            supports_tools=True,
            supports_document=True,
            cost_per_1k_input=0.015,
            cost_per_1k_output=0.075,
        ),
        ModelDescriptor(
            id="claude-3-5-haiku-20241022",
            provider=ProviderType.ANTHROPIC,
            display_name="Claude 3.5 Haiku",
            description="Fast and efficient Claude model",
            max_tokens=200_000,
            supports_vision=True,
            supports_tools=True,
            supports_document=True,
            cost_per_1k_input=0.0008,
            cost_per_1k_output=0.004,
        ),
    ],
    ProviderType.GOOGLE: [
        ModelDescriptor(
            id="gemini-2.5-pro",
            provider=ProviderType.GOOGLE,
            display_name="Gemini 2.5 Pro",
            description="Best-in-class Gemini model with multi-modal capabilities",
            max_tokens=1_048_576,
            supports_vision=True,
            supports_tools=True,
            supports_audio=True,
            supports_video=True,
            supports_document=True,
            cost_per_1k_input=0.00125,
            cost_per_1k_output=0.01,
        ),
        ModelDescriptor(
            id="gemini-2.5-flash",
            provider=ProviderType.GOOGLE,
            display_name="Gemini 2.5 Flash",
            description="Cost-efficient Gemini model with multi-modal capabilities",
            max_tokens=1_048_576,
            supports_vision=True,
            supports_tools=True,
            supports_audio=True,
            supports_video=True,
            supports_document=True,
            cost_per_1k_input=0.0003,
            cost_per_1k_output=0.0025,
        ),
        ModelDescriptor(
            id="gemini-2.5-flash-lite-preview-06-17",
            provider=ProviderType.GOOGLE,
            display_name="Gemini 2.5 Flash-Lite Preview",
            description="Extremely cost-efficient Gemini model with multi-modal capabilities",
            max_tokens=1_048_576,
            supports_vision=True,
            supports_tools=True,
            supports_audio=True,
            supports_video=True,
            supports_document=True,
            cost_per_1k_input=0.0001,
            cost_per_1k_output=0.0004,
        ),
    ],
    ProviderType.OPENROUTER: [
        ModelDescriptor(
            id="anthropic/claude-sonnet-4",
            provider=ProviderType.OPENROUTER,
            display_name="Claude 4 Sonnet",
            description="Strong reasoning and coding capabilities",
            max_tokens=200_000,
            supports_vision=True,
            supports_tools=True,
            supports_document=True,
            cost_per_1k_input=0.003,
            cost_per_1k_output=0.015,
        ),
        ModelDescriptor(
            id="google/gemini-2.5-pro",
            provider=ProviderType.OPENROUTER,
            display_name="Gemini 2.5 Pro",
            description="Best-in-class Gemini model with multi-modal capabilities",
            max_tokens=1_048_576,
            supports_vision=True,
            supports_tools=True,
            supports_audio=True,
            supports_video=True,
            supports_document=True,
            cost_per_1k_input=0.00125,
            cost_per_1k_output=0.01,
        ),
        ModelDescriptor(
            id="qwen/qwen2.5-vl-72b-instruct",
            provider=ProviderType.OPENROUTER,
            display_name="Qwen 2.5 VL 72B",
            description="Best open source model with vision capabilities",
            max_tokens=32_000,
            supports_vision=True,
            supports_tools=True,
            supports_audio=True,
            supports_video=True,
            supports_document=True,
            cost_per_1k_input=0.00025,
            cost_per_1k_output=0.00075,
        ),
        ModelDescriptor(
            id="minimax/minimax-m1",
            provider=ProviderType.OPENROUTER,
            display_name="Minimax M1",
            description="Large, open model for long context and fast inference",
            max_tokens=1_000_000,
            cost_per_1k_input=0.0003,
            cost_per_1k_output=0.00165,
        ),
    ],
    ProviderType.DEEPSEEK: [
        ModelDescriptor(
            id="deepseek-reasoner",
            provider=ProviderType.DEEPSEEK,
            display_name="DeepSeek R1 0528",
            description="Affordable and powerful reasoning model",
            max_tokens=200_000,
            cost_per_1k_input=0.00055,
            cost_per_1k_output=0.00219,
        ),
        ModelDescriptor(
            id="deepseek-chat",
            provider=ProviderType.DEEPSEEK,
            display_name="DeepSeek V3 0324",
            description="SoTA Non-reasoning model",
            max_tokens=200_000,
            cost_per_1k_input=0.00027,
            cost_per_1k_output=0.0011,
        ),
    ],
    ProviderType.TOGETHERAI: [
        ModelDescriptor(
            id="meta-llama/Llama-4-Maverick-17B-128E-Instruct-FP8",
            provider=ProviderType.TOGETHERAI,
            display_name="Llama 4 Maverick",
            description="Latest model from Meta",
            max_tokens=200_000,
            supports_vision=True,
            cost_per_1k_input=0.00027,
            cost_per_1k_output=0.00085,
        ),
        ModelDescriptor(
            id="Qwen/Qwen3-235B-A22B-fp8-tput",
            provider=ProviderType.TOGETHERAI,
            display_name="Qwen 3 235B",
            description="Largest model from Qwen",
            max_tokens=200_000,
            cost_per_1k_input=0.0002,
            cost_per_1k_output=0.0006,
        ),
    ],
    ProviderType.GROQ: [
        ModelDescriptor(
            id="llama-3.3-70b-versatile",
            provider=ProviderType.GROQ,
            display_name="Llama 3.3 70B",
            description="Last-gen model from Meta",
            max_tokens=132_000,
            cost_per_1k_input=0.00059,
            cost_per_1k_output=0.00079,
        ),
    ],
    ProviderType.MISTRAL: [
        ModelDescriptor(
            id="magistral-medium-latest",
            provider=ProviderType.MISTRAL,
            display_name="Magistral Medium",
            description="Latest reasoning model from Mistral",
            max_tokens=40_000,
            cost_per_1k_input=0.002,
            cost_per_1k_output=0.005,
        ),
        ModelDescriptor(
            id="mistral-large-latest",
            provider=ProviderType.MISTRAL,
            display_name="Mistral Large",
            description="Largest model from Mistral",
            max_tokens=32_000,
            cost_per_1k_input=0.002,
            cost_per_1k_output=0.006,
        ),
    ],
}


def get_model_info(
    model_id: str, provider: Optional[ProviderType] = None
) -> Optional[ModelDescriptor]:
    """Look up a static catalog entry. Returns None if unknown."""
    providers = [provider] if provider else list(ProviderType)
    for p in providers:
        for model in MODEL_CATALOG.get(p, []):
            if model.id == model_id:
                return model
    return None


def list_all_models() -> list[ModelDescriptor]:
    """Every static model, in provider declaration order."""
    return [m for p in ProviderType for m in MODEL_CATALOG.get(p, [])]


def filter_by_capability(
    models: list[ModelDescriptor], capability: ModelCapability
) -> list[ModelDescriptor]:
    return [m for m in models if m.supports(capability)]


def estimate_cost(model: ModelDescriptor, input_tokens: int, output_tokens: int) -> float:
    """Estimated USD cost of one call."""
    return (
        input_tokens / 1000 * model.cost_per_1k_input
        + output_tokens / 1000 * model.cost_per_1k_output
    )


def descriptor_from_row(provider: ProviderType, row: dict[str, Any]) -> ModelDescriptor:
    """Build a custom-model descriptor from a repository row."""
    model_id = row.get("model_id") or row.get("id")
    return ModelDescriptor(
        id=model_id,
        provider=provider,
        display_name=row.get("display_name") or model_id,
        description=row.get("description") or "",
        max_tokens=int(row.get("max_tokens") or 0),
        supports_vision=bool(row.get("supports_vision")),
        supports_tools=bool(row.get("supports_tools")),
        supports_audio=bool(row.get("supports_audio")),
        supports_video=bool(row.get("supports_video")),
        supports_document=bool(row.get("supports_document")),
        cost_per_1k_input=float(row.get("cost_per_1k_input") or 0.0),
        cost_per_1k_output=float(row.get("cost_per_1k_output") or 0.0),
        is_custom=True,
    )


class ModelCatalog:
    """Static catalog plus per-user custom models from the repository.

    Example:
        catalog = ModelCatalog(repository)
        models = await catalog.all_for("user_1", ProviderType.OPENAI)
    """

    def __init__(self, repository: CredentialRepository):
        self.repository = repository

    def static_models(self, provider: ProviderType) -> list[ModelDescriptor]:
        return list(MODEL_CATALOG.get(provider, []))

    async def custom_models(self, user_id: str, provider: ProviderType) -> list[ModelDescriptor]:
        rows = await self.repository.list_models(user_id, provider)
        models = []
        for row in rows:
            if not (row.get("model_id") or row.get("id")):
                logger.warning("Skipping custom model row without an id for %s", provider.value)
                continue
            models.append(descriptor_from_row(provider, row))
        return models

    async def all_for(self, user_id: str, provider: ProviderType) -> list[ModelDescriptor]:
        """Static models first, then the user's custom ones."""
        return self.static_models(provider) + await self.custom_models(user_id, provider)
