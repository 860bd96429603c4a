"""
Qdrant access layer.

Points are stored with a LangChain-compatible payload
(``page_content`` + ``metadata``) so collections can also be opened with
``langchain_qdrant`` if needed.
"""
import uuid
from functools import lru_cache
from typing import Dict, List, Optional, Sequence

from langchain_core.documents import Document
from qdrant_client import QdrantClient, models
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse

from .config import get_settings
from .exceptions import CollectionNotFoundError, UpstreamServiceError
from .logging_config import logger

UPSERT_BATCH_SIZE = 256

_CLIENT_ERRORS = (UnexpectedResponse, ResponseHandlingException)


@lru_cache(maxsize=8)
def _client_for(url: str, api_key: Optional[str]) -> QdrantClient:
    if url == ":memory:":
        return QdrantClient(location=":memory:")
    return QdrantClient(url=url, api_key=api_key)


def get_client() -> QdrantClient:
    settings = get_settings()
    return _client_for(settings.qdrant_url, settings.qdrant_api_key)


def collection_exists(name: str) -> bool:
    try:
        return get_client().collection_exists(collection_name=name)
    except _CLIENT_ERRORS as e:
        raise UpstreamServiceError(f"Vector database unavailable: {e}") from e


def ensure_collection(name: str, vector_size: int) -> None:
    """Create the collection with cosine distance unless it already exists."""
    if collection_exists(name):
        return
    try:
        get_client().create_collection(
            collection_name=name,
            vectors_config=models.VectorParams(size=vector_size, distance=models.Distance.COSINE),
        )
    except _CLIENT_ERRORS as e:
        raise UpstreamServiceError(f"Could not create collection '{name}': {e}") from e
    logger.info("Created collection", collection=name, vector_size=vector_size)


def upsert_chunks(name: str, documents: Sequence[Document], vectors: Sequence[List[float]]) -> int:
    """
    Write one point per chunk. Ids are random, so re-ingesting the same
    source appends a second copy of every chunk.

    Returns:
        Number of points written
    """
    if len(documents) != len(vectors):
        raise ValueError("documents and vectors must have the same length")
    if not documents:
        return 0

    ensure_collection(name, len(vectors[0]))

    points = [
        models.PointStruct(
            id=str(uuid.uuid4()),
            vector=list(vec),
            payload={"page_content": doc.page_content, "metadata": dict(doc.metadata)},
        )
        for doc, vec in zip(documents, vectors)
    ]

    client = get_client()
    try:
        for start in range(0, len(points), UPSERT_BATCH_SIZE):
            client.upsert(collection_name=name, points=points[start:start + UPSERT_BATCH_SIZE], wait=True)
    except _CLIENT_ERRORS as e:
        raise UpstreamServiceError(f"Could not write to collection '{name}': {e}") from e

    logger.info("Upserted chunks", collection=name, points=len(points))
    return len(points)


def search(name: str, vector: List[float], limit: int) -> List[Dict]:
    """
    Nearest-neighbour search. No score threshold and no re-ranking.

    Returns:
        List of {"content", "metadata", "score"} dicts, best match first
    """
    if not collection_exists(name):
        raise CollectionNotFoundError(name)
    try:
        response = get_client().query_points(
            collection_name=name,
            query=vector,
            limit=limit,
            with_payload=True,
        )
    except _CLIENT_ERRORS as e:
        raise UpstreamServiceError(f"Search in '{name}' failed: {e}") from e

    results = []
    for point in response.points:
        payload = point.payload or {}
        results.append({
            "content": payload.get("page_content", ""),
            "metadata": payload.get("metadata") or {},
            "score": float(point.score),
        })
    return results


def delete_collection(name: str) -> None:
    if not collection_exists(name):
        raise CollectionNotFoundError(name)
    try:
        get_client().delete_collection(collection_name=name)
    except _CLIENT_ERRORS as e:
        raise UpstreamServiceError(f"Could not delete collection '{name}': {e}") from e
    logger.info("Deleted collection", collection=name)
