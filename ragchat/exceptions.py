"""
Domain exceptions raised by the service layer.

Routes translate these into HTTP status codes:
InvalidSourceError -> 400, CollectionNotFoundError -> 404,
UpstreamServiceError -> 500.
"""


class InvalidSourceError(ValueError):
    """The caller supplied input we cannot ingest or query."""


class CollectionNotFoundError(LookupError):
    """The named vector collection does not exist."""

    def __init__(self, collection_name: str):
        super().__init__(f"Collection '{collection_name}' not found")
        self.collection_name = collection_name


class UpstreamServiceError(RuntimeError):
    """A remote dependency (LLM, embeddings, vector DB, web host) failed."""
