from time import perf_counter
from typing import Dict, List

from . import vector_store
from .embedding import embed_query
from .logging_config import logger


def search_similar(query: str, collection_name: str, top_k: int = 10) -> List[Dict]:
    """
        Search a collection for the chunks closest to the query.

        Parameters:
        query (str): The query string to search for.
        collection_name (str): The collection produced by an ingestion call.
        top_k (int): The number of chunks to return. Defaults to 10.

        Returns:
        List[Dict]: Chunks with 'content', 'metadata' and 'score' keys.

        Raises:
        CollectionNotFoundError: The collection does not exist (checked by the store).
    """
    qv = embed_query(query)
    t = perf_counter()
    rows = vector_store.search(collection_name, qv, top_k)
    logger.info("Search for similar chunks in %.2f ms" % ((perf_counter() - t) * 1000),
                collection=collection_name, hits=len(rows))
    return rows
