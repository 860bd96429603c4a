"""
Ingestion service.
Loads a source, splits it into overlapping chunks, embeds the chunks and
writes them into the source's collection.
"""
import asyncio
import os
from time import perf_counter
from typing import Dict, List, Optional

from langchain_core.documents import Document
from langchain_text_splitters import RecursiveCharacterTextSplitter

from .. import naming, vector_store
from ..config import get_settings
from ..embedding import embed_texts
from ..exceptions import InvalidSourceError
from ..logging_config import logger
from ..text_extraction import load_pdf, load_website, load_youtube, validate_url


def split_documents(docs: List[Document]) -> List[Document]:
    """
    Split documents into fixed-size overlapping chunks.
    Each chunk keeps its parent's metadata plus a running ``chunk_index``.
    """
    settings = get_settings()
    splitter = RecursiveCharacterTextSplitter(
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
    )
    chunks = splitter.split_documents(docs)
    for i, chunk in enumerate(chunks):
        chunk.metadata = {**chunk.metadata, "chunk_index": i}
    return chunks


def index_documents(docs: List[Document], collection_name: str) -> int:
    """
    Split → embed → upsert.

    Not transactional: if embedding or the upsert fails part way, whatever
    was already written stays in the collection.

    Returns:
        Number of chunks written
    """
    t = perf_counter()
    chunks = split_documents(docs)
    if not chunks:
        raise InvalidSourceError("No text content to index")

    logger.info("Created chunks", collection=collection_name, chunk_count=len(chunks))

    vectors = embed_texts([c.page_content for c in chunks])
    written = vector_store.upsert_chunks(collection_name, chunks, vectors)

    logger.info("Indexing completed", collection=collection_name, chunks=written,
                time_ms=round((perf_counter() - t) * 1000, 2))
    return written


def resolve_upload_path(filepath: str) -> str:
    """
    Resolve a path returned by the upload endpoint.
    Paths outside the upload directory are rejected.
    """
    upload_dir = os.path.realpath(get_settings().upload_dir)
    resolved = os.path.realpath(filepath)
    if os.path.commonpath([upload_dir, resolved]) != upload_dir:
        raise InvalidSourceError("File is not in the upload directory")
    if not os.path.isfile(resolved):
        raise InvalidSourceError(f"Uploaded file not found: {os.path.basename(filepath)}")
    return resolved


def ingest_pdf(filepath: str, filename: Optional[str] = None) -> Dict:
    path = resolve_upload_path(filepath)
    server_filename = filename or os.path.basename(path)
    collection_name = naming.pdf_collection(server_filename)

    logger.info("Indexing PDF", filename=server_filename, collection=collection_name)

    pages = load_pdf(path, server_filename)
    if not pages:
        raise InvalidSourceError(f"No extractable text in '{server_filename}'")

    chunks_count = index_documents(pages, collection_name)
    return {
        "collectionName": collection_name,
        "chunksCount": chunks_count,
        "pagesCount": len(pages),
    }


async def ingest_url(url: str) -> Dict:
    url = validate_url(url)
    collection_name = naming.website_collection(url)
    logger.info("URL processing request received", url=url, collection=collection_name)

    docs = await load_website(url)
    chunks_count = await asyncio.to_thread(index_documents, docs, collection_name)
    return {
        "collectionName": collection_name,
        "chunksCount": chunks_count,
        "url": url,
    }


async def ingest_youtube(url: str) -> Dict:
    logger.info("YouTube processing request received", url=url)

    doc, video_id = await asyncio.to_thread(load_youtube, url)
    collection_name = naming.youtube_collection(video_id)
    chunks_count = await asyncio.to_thread(index_documents, [doc], collection_name)
    return {
        "collectionName": collection_name,
        "chunksCount": chunks_count,
        "videoId": video_id,
        "url": url.strip(),
        "transcriptLength": len(doc.page_content),
    }


def delete_source(collection_name: str) -> None:
    logger.info("Deleting collection", collection=collection_name)
    vector_store.delete_collection(collection_name)
