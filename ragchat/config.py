"""
Runtime configuration.

Settings are read from the process environment every time ``get_settings()``
is called, so keys and URLs can change between requests without a restart.
A local ``.env`` file is loaded once on import.
"""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()  # loads .env in local dev; no effect in Docker if env vars provided

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str]
    base_url: str
    chat_model: str
    embed_model: str
    embed_batch_size: int
    qdrant_url: str
    qdrant_api_key: Optional[str]
    upload_dir: str
    max_file_size_bytes: int
    chunk_size: int
    chunk_overlap: int
    top_k: int
    max_top_k: int
    temperature: float
    log_level: str
    json_logs: bool


def env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def get_settings() -> Settings:
    """Build a fresh ``Settings`` snapshot from the environment."""
    return Settings(
        api_key=os.getenv("OPENAI_API_KEY") or os.getenv("GOOGLE_AI_API_KEY"),
        base_url=os.getenv("OPENAI_BASE_URL", DEFAULT_BASE_URL),
        chat_model=os.getenv("CHAT_MODEL", "gemini-2.5-flash"),
        embed_model=os.getenv("EMBED_MODEL", "text-embedding-004"),
        embed_batch_size=int(os.getenv("EMBED_BATCH_SIZE", "100")),
        qdrant_url=os.getenv("QDRANT_URL", "http://localhost:6333"),
        qdrant_api_key=os.getenv("QDRANT_API_KEY") or None,
        upload_dir=os.getenv("UPLOAD_DIR", "uploads"),
        max_file_size_bytes=int(os.getenv("MAX_FILE_SIZE_MB", "10")) * 1024 * 1024,
        chunk_size=int(os.getenv("CHUNK_SIZE", "1000")),
        chunk_overlap=int(os.getenv("CHUNK_OVERLAP", "200")),
        top_k=int(os.getenv("RETRIEVAL_TOP_K", "10")),
        max_top_k=int(os.getenv("MAX_TOP_K", "125")),
        temperature=float(os.getenv("LLM_TEMPERATURE", "0.2")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        json_logs=env_bool("JSON_LOGS"),
    )
