"""
Collection naming.

Every ingestion path derives its collection name here and returns it to the
client, so the chat endpoint only ever receives names produced by this module.
"""
import re

MAX_NAME_LENGTH = 50

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_INVALID_CHARS_RE = re.compile(r"[^a-zA-Z0-9]")


def sanitize_name(text: str) -> str:
    """
    Turn an arbitrary identifier into a collection name.

    >>> sanitize_name("https://example.com/doc")
    'example_com_doc'
    """
    stripped = _SCHEME_RE.sub("", text.strip())
    return _INVALID_CHARS_RE.sub("_", stripped)[:MAX_NAME_LENGTH].lower()


def website_collection(url: str) -> str:
    return sanitize_name(url)


def youtube_collection(video_id: str) -> str:
    return f"youtube_{video_id}".lower()


def pdf_collection(server_filename: str) -> str:
    return sanitize_name(server_filename)
