from typing import List

from openai import OpenAIError

from .config import get_settings
from .exceptions import UpstreamServiceError
from .logging_config import logger
from .openai_client import get_client


def embed_texts(texts: List[str]) -> List[List[float]]:
    """Embed texts with the remote embedding model, batching large inputs."""
    if not texts:
        return []

    settings = get_settings()
    client = get_client()
    batch_size = max(1, settings.embed_batch_size)

    vectors: List[List[float]] = []
    for start in range(0, len(texts), batch_size):
        batch = texts[start:start + batch_size]
        try:
            response = client.embeddings.create(model=settings.embed_model, input=batch)
        except OpenAIError as e:
            raise UpstreamServiceError(f"Embedding request failed: {e}") from e
        # Responses carry an index per input; do not rely on ordering
        vectors.extend(item.embedding for item in sorted(response.data, key=lambda d: d.index))

    logger.info("Embedded texts", count=len(texts), model=settings.embed_model)
    return vectors


def embed_query(text: str) -> List[float]:
    return embed_texts([text])[0]
