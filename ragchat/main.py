"""
Main FastAPI application entry point.
Responsibilities: App setup, router registration, startup/shutdown hooks.
"""
import os

from fastapi import FastAPI

from .config import get_settings
from .logging_config import logger
from .routes import chat, documents

# -------------------------------------------------
# App setup
# -------------------------------------------------

app = FastAPI(title="RAG Chat", version="1.0.0")

# Register routers
app.include_router(documents.router)
app.include_router(chat.router)


@app.on_event("startup")
async def startup_event():
    """Prepare the upload directory and report the active configuration."""
    settings = get_settings()
    os.makedirs(settings.upload_dir, exist_ok=True)
    logger.info(
        "Application starting",
        upload_dir=settings.upload_dir,
        qdrant_url=settings.qdrant_url,
        chat_model=settings.chat_model,
        embed_model=settings.embed_model,
    )
    if not settings.api_key:
        logger.warning("OPENAI_API_KEY is not set; indexing and chat requests will fail")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info("Application shutting down")


@app.get("/health")
async def health():
    return {"status": "ok"}
