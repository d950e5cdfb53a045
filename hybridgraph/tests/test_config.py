import pytest
import importlib

from hybridgraph.config import Settings, settings
from hybridgraph.embedding.embedding_service import EmbeddingService, HashEmbeddingProvider, OllamaEmbeddingProvider
from hybridgraph.store import InMemoryGraphStore, JsonGraphStore, create_graph_store


class TestRequirements:
    """Test that the runtime stack is importable."""

    @pytest.mark.parametrize("module_name", [
        "numpy", "pydantic", "pydantic_settings", "loguru", "requests", "fastapi", "uvicorn",
    ])
    def test_core_dependencies(self, module_name):
        assert importlib.import_module(module_name) is not None


class TestSettings:
    """Test configuration defaults and overrides."""

    def test_defaults(self):
        config = Settings(_env_file=None)
        assert config.embedding_dimension == 768
        assert config.neighbor_count == 5
        assert config.chunk_size == 500
        assert config.embedding_provider == "hash"
        assert (config.default_vector_weight, config.default_graph_weight) == (0.7, 0.3)

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("NEIGHBOR_COUNT", "3")
        monkeypatch.setenv("CHUNK_SIZE", "250")
        monkeypatch.setenv("STORAGE_BACKEND", "json")

        config = Settings(_env_file=None)

        assert config.neighbor_count == 3
        assert config.chunk_size == 250
        assert config.storage_backend == "json"


class TestFactories:
    """Test settings-driven component selection."""

    def test_memory_store(self, monkeypatch):
        monkeypatch.setattr(settings, "storage_backend", "memory")
        assert isinstance(create_graph_store(), InMemoryGraphStore)

    def test_json_store(self, monkeypatch, tmp_path):
        monkeypatch.setattr(settings, "storage_backend", "json")
        monkeypatch.setattr(settings, "graph_storage_path", str(tmp_path / "store.json"))
        assert isinstance(create_graph_store(), JsonGraphStore)

    def test_unknown_store(self, monkeypatch):
        monkeypatch.setattr(settings, "storage_backend", "postgres")
        with pytest.raises(ValueError):
            create_graph_store()

    def test_hash_provider(self, monkeypatch):
        monkeypatch.setattr(settings, "embedding_provider", "hash")
        service = EmbeddingService()
        assert isinstance(service.provider, HashEmbeddingProvider)
        assert service.get_dimension() == settings.embedding_dimension

    def test_ollama_provider(self, monkeypatch):
        monkeypatch.setattr(settings, "embedding_provider", "ollama")
        monkeypatch.setattr(settings, "ollama_model", "custom-model")
        service = EmbeddingService()
        assert isinstance(service.provider, OllamaEmbeddingProvider)
        assert service.provider.model == "custom-model"

    def test_unknown_provider(self, monkeypatch):
        monkeypatch.setattr(settings, "embedding_provider", "word2vec")
        with pytest.raises(ValueError):
            EmbeddingService()
