"""Application settings via pydantic-settings."""

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Global configuration for docsift.

    Values can be set via environment variables prefixed with DOCSIFT_,
    e.g. DOCSIFT_CHUNK_SIZE=250000.
    """

    model_config = {"env_prefix": "DOCSIFT_"}

    # Chunking (characters, not tokens)
    chunk_size: int = 500_000
    chunk_overlap: int = 5_000

    # Indexing
    max_file_bytes: int = 50 * 1024 * 1024
    max_text_file_bytes: int = 10 * 1024 * 1024

    # Search
    engine_timeout_seconds: float = 10.0
    default_result_size: int = 20
    index_name: str = "files"

    # Highlighting
    highlight_fragment_size: int = 150
    highlight_fragments: int = 3

    # Logging (--verbose on the CLI overrides this with DEBUG)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
