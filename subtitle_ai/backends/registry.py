"""Curated registry of whisper.cpp GGML model variants.

Used by the CLI for model listing and by provisioning to name and locate
the weights file.
"""

from .base import ModelInfo

DEFAULT_MODEL = "large-v3"

# Hugging Face repository hosting the GGML conversions
MODEL_REPO_ID = "ggerganov/whisper.cpp"

MODEL_REGISTRY: dict[str, ModelInfo] = {
    "tiny": ModelInfo(
        model_id="tiny",
        description="Tiny (75 MB) - fastest, lowest accuracy",
    ),
    "tiny.en": ModelInfo(
        model_id="tiny.en",
        description="Tiny English-only (75 MB)",
        english_only=True,
    ),
    "base": ModelInfo(
        model_id="base",
        description="Base (142 MB) - fast, usable for clear speech",
    ),
    "base.en": ModelInfo(
        model_id="base.en",
        description="Base English-only (142 MB)",
        english_only=True,
    ),
    "small": ModelInfo(
        model_id="small",
        description="Small (466 MB) - good speed/accuracy balance",
    ),
    "small.en": ModelInfo(
        model_id="small.en",
        description="Small English-only (466 MB)",
        english_only=True,
    ),
    "medium": ModelInfo(
        model_id="medium",
        description="Medium (1.5 GB) - high accuracy",
    ),
    "medium.en": ModelInfo(
        model_id="medium.en",
        description="Medium English-only (1.5 GB)",
        english_only=True,
    ),
    "large-v1": ModelInfo(
        model_id="large-v1",
        description="Large v1 (2.9 GB)",
    ),
    "large-v2": ModelInfo(
        model_id="large-v2",
        description="Large v2 (2.9 GB)",
    ),
    # Default - best multilingual accuracy
    "large-v3": ModelInfo(
        model_id="large-v3",
        description="Large v3 (2.9 GB) - best accuracy, 100+ languages",
        aliases=["large", "v3"],
    ),
    "large-v3-turbo": ModelInfo(
        model_id="large-v3-turbo",
        description="Large v3 Turbo (1.5 GB) - near large-v3 accuracy, much faster",
        aliases=["turbo"],
    ),
}


def list_models(english_only: bool | None = None) -> list[ModelInfo]:
    """List all curated models, optionally filtered by language coverage.

    Args:
        english_only: True for English-only variants, False for
            multilingual ones, None for all.

    Returns:
        List of ModelInfo for matching models.
    """
    models = list(MODEL_REGISTRY.values())
    if english_only is not None:
        models = [m for m in models if m.english_only == english_only]
    return models


def resolve_model(model_id: str) -> ModelInfo:
    """Resolve a variant name or alias to ModelInfo.

    Raises:
        ValueError: If the name is not found in the registry.
    """
    if model_id in MODEL_REGISTRY:
        return MODEL_REGISTRY[model_id]

    for info in MODEL_REGISTRY.values():
        if model_id in info.aliases:
            return info

    supported = sorted(MODEL_REGISTRY.keys())
    aliases = sorted(
        alias for info in MODEL_REGISTRY.values() for alias in info.aliases
    )

    raise ValueError(
        f"Unknown model: '{model_id}'. "
        f"Supported models: {supported}. "
        f"Aliases: {aliases}."
    )


def model_url(info: ModelInfo) -> str:
    """Download URL of the GGML weights for ``info``."""
    from huggingface_hub import hf_hub_url

    return hf_hub_url(repo_id=MODEL_REPO_ID, filename=info.filename)
