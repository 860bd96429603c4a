"""
Utility helper functions.
"""
from typing import Dict, List


def source_label(metadata: Dict) -> str:
    """Human-readable origin of a chunk, e.g. ``report.pdf (p. 3)``."""
    source = metadata.get("source") or "unknown"
    if metadata.get("page") is not None:
        return f"{source} (p. {metadata['page']})"
    return str(source)


def dedupe_sources(chunks: List[Dict]) -> List[Dict]:
    """
    Deduplicate source documents from retrieved chunks.

    For each unique ``metadata.source``, keeps the highest scoring chunk and
    includes a preview of the content that was used.
    Returns sources sorted by score (descending).

    Args:
        chunks: List of chunks with 'metadata', 'score', and 'content' keys

    Returns:
        List of deduplicated sources with source, type, score, and content preview

    Example:
        >>> chunks = [
        ...     {"metadata": {"source": "a.pdf", "type": "pdf"}, "score": 0.8, "content": "Long text..."},
        ...     {"metadata": {"source": "a.pdf", "type": "pdf"}, "score": 0.6, "content": "Other text..."},
        ...     {"metadata": {"source": "https://x.io", "type": "website"}, "score": 0.7, "content": "More"},
        ... ]
        >>> [s["source"] for s in dedupe_sources(chunks)]
        ['a.pdf', 'https://x.io']
    """
    source_map = {}

    for chunk in chunks:
        metadata = chunk.get("metadata") or {}
        source = metadata.get("source") or "unknown"
        score = float(chunk["score"])

        if source not in source_map or score > source_map[source]["score"]:
            source_map[source] = {
                "score": score,
                "type": metadata.get("type"),
                "content": chunk.get("content", ""),
            }

    sources = []
    for name, data in sorted(source_map.items(), key=lambda x: x[1]["score"], reverse=True):
        preview = data["content"][:200].strip()
        if len(data["content"]) > 200:
            preview += "..."

        sources.append({
            "source": name,
            "type": data["type"],
            "score": round(data["score"], 3),
            "preview": preview,
        })

    return sources
