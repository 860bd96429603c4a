"""
Source management API routes.
Handles file upload, indexing of PDFs, web pages and YouTube transcripts,
and collection deletion.
"""
import os
import shutil
import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, File, HTTPException, UploadFile

from ..config import get_settings
from ..exceptions import CollectionNotFoundError, InvalidSourceError
from ..logging_config import logger
from ..schemas import DeleteRequest, IndexingRequest, UploadResponse, UrlRequest
from ..services import ingestion_service

router = APIRouter(prefix="/api/files", tags=["documents"])


# ==================== Upload ====================

@router.post("/upload", response_model=UploadResponse)
def upload_file(file: Optional[UploadFile] = File(None)):
    """
    Store an uploaded file in the upload directory.

    The server filename is ``<epoch-ms>-<original name>``. Nothing is
    recorded server-side; the client keeps the returned handle and passes
    ``filepath`` to ``/indexing``.
    """
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    settings = get_settings()

    # Check file size before writing
    file.file.seek(0, os.SEEK_END)
    size_bytes = file.file.tell()
    file.file.seek(0)

    if size_bytes > settings.max_file_size_bytes:
        raise HTTPException(
            status_code=400,
            detail=(
                f"File '{file.filename}' is too large. "
                f"Max size is {settings.max_file_size_bytes // (1024 * 1024)} MB."
            ),
        )

    original_name = os.path.basename(file.filename.replace("\\", "/"))
    server_filename = f"{int(time.time() * 1000)}-{original_name}"

    try:
        os.makedirs(settings.upload_dir, exist_ok=True)
        filepath = os.path.join(settings.upload_dir, server_filename)
        with open(filepath, "wb") as out:
            shutil.copyfileobj(file.file, out)
    except OSError as e:
        logger.error("Upload error", exc_info=e, filename=original_name)
        raise HTTPException(status_code=500, detail="Failed to upload file")

    logger.info("File uploaded", filename=server_filename, size=size_bytes,
                content_type=file.content_type)

    return UploadResponse(
        filename=server_filename,
        original_name=original_name,
        filepath=filepath,
        size=size_bytes,
        type=file.content_type or "",
        uploaded_at=datetime.now(timezone.utc).isoformat(),
    )


# ==================== Indexing ====================

@router.post("/indexing")
def index_pdf(payload: IndexingRequest):
    """
    Index a previously uploaded PDF into its own collection.

    Process:
    1. Load the PDF page by page
    2. Split pages into overlapping chunks
    3. Embed the chunks
    4. Upsert them into the collection named after the file
    """
    try:
        result = ingestion_service.ingest_pdf(payload.filepath, payload.filename)
    except InvalidSourceError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Error indexing documents", exc_info=e, filepath=payload.filepath)
        raise HTTPException(status_code=500, detail="Internal server error")

    return {"message": "Indexing completed successfully", **result}


@router.post("/url")
async def index_url(payload: UrlRequest):
    """Index the text of a web page."""
    if not payload.url.strip():
        raise HTTPException(status_code=400, detail="URL is required")

    try:
        result = await ingestion_service.ingest_url(payload.url)
    except InvalidSourceError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Error processing URL", exc_info=e, url=payload.url)
        raise HTTPException(status_code=500, detail="Failed to process URL")

    return {"message": "URL indexed successfully", **result}


@router.post("/youtube")
async def index_youtube(payload: UrlRequest):
    """Index the transcript of a YouTube video."""
    if not payload.url.strip():
        raise HTTPException(status_code=400, detail="YouTube URL is required")

    try:
        result = await ingestion_service.ingest_youtube(payload.url)
    except InvalidSourceError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Error processing YouTube video", exc_info=e, url=payload.url)
        raise HTTPException(status_code=500, detail="Failed to process YouTube video")

    return {"message": "YouTube video indexed successfully", **result}


# ==================== Deletion ====================

@router.delete("/delete")
def delete_collection(payload: DeleteRequest):
    """
    Drop a whole collection.
    Deleting a collection that does not exist is an error.
    """
    try:
        ingestion_service.delete_source(payload.target)
    except CollectionNotFoundError as e:
        logger.warning("Collection not found for deletion", collection=payload.target)
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Error removing collection", exc_info=e, collection=payload.target)
        raise HTTPException(status_code=500, detail="Internal server error")

    return {"message": "Collection removed successfully"}
