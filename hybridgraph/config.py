from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Embedding Configuration
    embedding_provider: str = Field(default="hash", description="Embedding provider: 'hash' or 'ollama'")
    embedding_dimension: int = Field(default=768, description="Dimension D of every node and query embedding")

    ollama_host: str = Field(default="http://localhost:11434")
    ollama_model: str = Field(default="nomic-embed-text")
    ollama_timeout: float = Field(default=30.0)

    # Graph Configuration
    neighbor_count: int = Field(default=5, description="K outgoing semantic edges per node")
    max_workers: int = Field(default=4, description="Thread pool size for embedding and top-K rows")

    # File Processing Configuration
    chunk_size: int = Field(default=500, description="Fixed window length in characters")

    # Search Configuration
    default_top_k: int = Field(default=10)
    default_vector_weight: float = Field(default=0.7)
    default_graph_weight: float = Field(default=0.3)
    query_timeout_seconds: Optional[float] = Field(default=10.0, description="Deadline for the vector scan; None disables it")

    # Storage Configuration
    storage_backend: str = Field(default="memory", description="Structured store: 'memory' or 'json'")
    graph_storage_path: str = Field(default="data/graph_store.json")
    blob_storage_root: str = Field(default="data/uploads")

    # API Configuration
    api_host: str = Field(default="localhost")
    api_port: int = Field(default=8000)

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_file: str = Field(default="logs/app.log")

    @property
    def log_dir(self) -> Path:
        """Get log directory path."""
        return Path(self.log_file).parent

    def ensure_directories(self):
        """Ensure necessary directories exist."""
        self.log_dir.mkdir(parents=True, exist_ok=True)


settings = Settings()
settings.ensure_directories()
