"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # Chunking (all sizes in characters)
    chunk_target_size: int = Field(default=1500, description="Soft cap of a segment")
    chunk_hard_cap: int = Field(default=2000, description="Paragraphs above this are split further")
    chunk_overlap: int = Field(default=200, description="Trailing characters carried into the next segment")
    chunk_min_size: int = Field(default=100, description="Buffers at or below this size are never emitted")

    # Ingestion
    max_file_size_bytes: int = 10 * 1024 * 1024
    ingest_max_workers: int = Field(
        default=1,
        description="Files processed concurrently per batch; 1 keeps ingestion sequential",
    )

    # Registry
    registry_db_path: str = Field(
        default="",
        description="SQLite file backing the document registry. Leave empty for an in-memory registry.",
    )

    # Vector store
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = "doc_rag"
    chroma_distance: str = "cosine"

    # Embedding
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"

    # LLM
    openai_api_key: str = Field(default="", description="OpenAI API key (or dummy value for local vLLM)")
    llm_model_name: str = Field(default="gpt-4o-mini", description="LLM model identifier")
    llm_base_url: str = Field(
        default="",
        description=(
            "Base URL for an OpenAI-compatible API. Leave empty to use OpenAI cloud, "
            "e.g. 'http://localhost:8001/v1' for a local vLLM server"
        ),
    )
    llm_temperature: float = 0.0

    # Query
    query_top_k: int = 5
    query_similarity_threshold: float = 0.3

    # Logging
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton: import `settings` wherever needed.
settings = Settings()
