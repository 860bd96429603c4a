"""
Source loaders.

Each loader turns one source (an uploaded PDF, a web page, a YouTube
transcript) into LangChain ``Document`` objects carrying ``source`` and
``type`` metadata. Splitting happens later in the ingestion service.
"""
import asyncio
import re
from typing import Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urlparse

import aiohttp
from bs4 import BeautifulSoup
from langchain_core.documents import Document
from pypdf import PdfReader
from pypdf.errors import PdfReadError
from youtube_transcript_api import YouTubeTranscriptApi

from .exceptions import InvalidSourceError, UpstreamServiceError
from .logging_config import logger

FETCH_TIMEOUT_SECONDS = 30
USER_AGENT = "Mozilla/5.0 (compatible; ragchat/1.0; +https://github.com/)"

_STRIP_TAGS = ("script", "style", "noscript", "template")

_VIDEO_ID_RE = re.compile(r"^[a-zA-Z0-9_-]{11}$")
_YOUTUBE_HOSTS = {"youtube.com", "www.youtube.com", "m.youtube.com"}
_SHORT_HOSTS = {"youtu.be", "www.youtu.be"}
_ID_PATH_PREFIXES = ("embed", "shorts", "live")


# ==================== PDF ====================

def load_pdf(file_path: str, source_name: str) -> List[Document]:
    """
    Load a PDF page by page.

    Pages without extractable text are skipped; page numbers stay 1-based
    and refer to the original document.
    """
    try:
        pdf = PdfReader(file_path)
        total_pages = len(pdf.pages)
        docs = []
        for number, page in enumerate(pdf.pages, start=1):
            text = (page.extract_text() or "").strip()
            if not text:
                continue
            docs.append(Document(
                page_content=text,
                metadata={
                    "source": source_name,
                    "type": "pdf",
                    "page": number,
                    "total_pages": total_pages,
                },
            ))
    except (PdfReadError, ValueError) as e:
        raise InvalidSourceError(f"Could not read PDF '{source_name}': {e}") from e

    logger.info("Loaded PDF", source=source_name, pages=total_pages, text_pages=len(docs))
    return docs


# ==================== Websites ====================

def validate_url(url: str) -> str:
    """Return the stripped URL or raise if it is not an absolute http(s) URL."""
    url = (url or "").strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidSourceError("Invalid URL format")
    return url


def html_to_text(html: str) -> Tuple[str, Optional[str]]:
    """
    Extract readable text and the page title from an HTML document.
    Only the <body> is used when the page has one.
    """
    soup = BeautifulSoup(html, "html.parser")
    title = soup.title.get_text(strip=True) if soup.title else None

    for tag in soup(_STRIP_TAGS):
        tag.decompose()

    root = soup.body or soup
    raw = root.get_text("\n", strip=True)

    # Normalize spaces within lines but keep line structure for the splitter
    lines = (" ".join(line.split()) for line in raw.split("\n"))
    text = "\n".join(line for line in lines if line)
    return text, title


async def fetch_html(url: str) -> str:
    timeout = aiohttp.ClientTimeout(total=FETCH_TIMEOUT_SECONDS)
    try:
        async with aiohttp.ClientSession(timeout=timeout, headers={"User-Agent": USER_AGENT}) as session:
            async with session.get(url) as resp:
                if resp.status >= 400:
                    raise UpstreamServiceError(f"{url} returned HTTP {resp.status}")
                return await resp.text(errors="replace")
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise UpstreamServiceError(f"Could not fetch {url}: {e}") from e


async def load_website(url: str) -> List[Document]:
    url = validate_url(url)
    html = await fetch_html(url)
    text, title = html_to_text(html)

    if not text:
        raise InvalidSourceError("No content could be extracted from the URL")

    metadata = {"source": url, "url": url, "type": "website"}
    if title:
        metadata["title"] = title

    logger.info("Loaded web page", url=url, content_length=len(text))
    return [Document(page_content=text, metadata=metadata)]


# ==================== YouTube ====================

def extract_video_id(url: str) -> Optional[str]:
    """
    Pull the 11-character video ID out of a YouTube URL.

    Supports watch, youtu.be, embed, shorts and live links on YouTube hosts
    as well as a bare ID. Other hosts never match, even if the URL embeds
    a YouTube link in its query.
    Returns None when nothing matches.
    """
    url = (url or "").strip()
    if _VIDEO_ID_RE.fullmatch(url):
        return url

    try:
        parsed = urlparse(url if "://" in url else f"https://{url}")
        host = (parsed.hostname or "").lower()
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https"):
        return None
    parts = [p for p in parsed.path.split("/") if p]

    candidate = ""
    if host in _SHORT_HOSTS and parts:
        candidate = parts[0]
    elif host in _YOUTUBE_HOSTS:
        if parts == ["watch"]:
            candidate = parse_qs(parsed.query).get("v", [""])[0]
        elif len(parts) >= 2 and parts[0] in _ID_PATH_PREFIXES:
            candidate = parts[1]

    return candidate if _VIDEO_ID_RE.fullmatch(candidate) else None


def format_timestamp(seconds: float) -> str:
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_transcript(segments: List[Dict]) -> str:
    """Join transcript segments as ``[HH:MM:SS] text`` separated by spaces."""
    return " ".join(
        f"[{format_timestamp(seg.get('start', 0))}] {seg.get('text', '').strip()}"
        for seg in segments
    )


def fetch_transcript(video_id: str) -> List[Dict]:
    """
    Fetch the transcript segments for a video.
    Blocking call; run it in a worker thread from async code.
    """
    try:
        segments = YouTubeTranscriptApi().fetch(video_id).to_raw_data()
    except Exception as e:
        logger.warning("Transcript fetch failed", video_id=video_id, error=str(e))
        raise InvalidSourceError(
            "Could not fetch transcript. The video might not have captions available."
        ) from e

    if not segments:
        raise InvalidSourceError("No transcript found for this video")
    return segments


def load_youtube(url: str) -> Tuple[Document, str]:
    video_id = extract_video_id(url)
    if not video_id:
        raise InvalidSourceError("Invalid YouTube URL format")

    segments = fetch_transcript(video_id)
    transcript = format_transcript(segments)

    logger.info("Loaded transcript", video_id=video_id, segments=len(segments),
                transcript_length=len(transcript))

    doc = Document(
        page_content=transcript,
        metadata={
            "source": url.strip(),
            "videoId": video_id,
            "type": "youtube",
            "segmentCount": len(segments),
        },
    )
    return doc, video_id
