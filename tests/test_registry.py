"""Tests for the GGML model registry and resolution."""

import pytest

from subtitle_ai.backends.base import ModelInfo
from subtitle_ai.backends.registry import (
    DEFAULT_MODEL,
    MODEL_REGISTRY,
    MODEL_REPO_ID,
    list_models,
    model_url,
    resolve_model,
)


class TestModelRegistry:
    """Tests for the MODEL_REGISTRY constant."""

    def test_registry_has_default(self):
        assert DEFAULT_MODEL in MODEL_REGISTRY

    def test_all_entries_are_model_info(self):
        for model_id, info in MODEL_REGISTRY.items():
            assert isinstance(info, ModelInfo)
            assert info.model_id == model_id

    def test_aliases_are_unique(self):
        aliases = [alias for info in MODEL_REGISTRY.values() for alias in info.aliases]
        assert len(aliases) == len(set(aliases))
        assert not set(aliases) & set(MODEL_REGISTRY)

    def test_filename_pattern(self):
        assert MODEL_REGISTRY["large-v3"].filename == "ggml-large-v3.bin"
        assert MODEL_REGISTRY["base.en"].filename == "ggml-base.en.bin"


class TestListModels:
    """Tests for list_models function."""

    def test_returns_all_models_by_default(self):
        assert len(list_models()) == len(MODEL_REGISTRY)

    def test_filters_english_only(self):
        models = list_models(english_only=True)
        assert models
        assert all(m.model_id.endswith(".en") for m in models)

    def test_filters_multilingual(self):
        models = list_models(english_only=False)
        assert all(not m.english_only for m in models)
        assert len(models) + len(list_models(english_only=True)) == len(MODEL_REGISTRY)


class TestResolveModel:
    """Tests for resolve_model function."""

    def test_resolves_exact_id(self):
        assert resolve_model("medium").model_id == "medium"

    @pytest.mark.parametrize("alias", ["large", "v3"])
    def test_resolves_default_aliases(self, alias):
        assert resolve_model(alias).model_id == "large-v3"

    def test_resolves_turbo_alias(self):
        assert resolve_model("turbo").model_id == "large-v3-turbo"

    def test_unknown_model_raises(self):
        with pytest.raises(ValueError, match="Unknown model: 'enormous'"):
            resolve_model("enormous")

    def test_error_lists_aliases(self):
        with pytest.raises(ValueError, match="turbo"):
            resolve_model("nope")


class TestModelUrl:
    """Tests for model_url."""

    def test_points_at_ggml_repo(self):
        url = model_url(MODEL_REGISTRY["large-v3"])
        assert MODEL_REPO_ID in url
        assert url.endswith("/ggml-large-v3.bin")
