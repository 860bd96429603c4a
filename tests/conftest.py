"""
Pytest configuration for the ragchat test suite.

Configures:
- an in-process Qdrant (":memory:") and a throwaway upload directory
- deterministic fake embeddings so no remote API is called
- a FastAPI TestClient
"""
import os

os.environ["QDRANT_URL"] = ":memory:"
os.environ["OPENAI_API_KEY"] = "test-key"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import string
from typing import List
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from ragchat import vector_store
from ragchat.main import app


def fake_vector(text: str) -> List[float]:
    """Letter-frequency vector; the trailing 1.0 keeps it non-zero."""
    lowered = text.lower()
    return [float(lowered.count(ch)) for ch in string.ascii_lowercase] + [1.0]


def fake_embed_texts(texts: List[str]) -> List[List[float]]:
    return [fake_vector(t) for t in texts]


def make_pdf(pages: List[str]) -> bytes:
    """Build a minimal valid PDF with one line of Helvetica text per page."""
    objects = []
    page_count = len(pages)
    kids = " ".join(f"{3 + i * 2} 0 R" for i in range(page_count))
    font_id = 3 + page_count * 2

    objects.append(b"<< /Type /Catalog /Pages 2 0 R >>")
    objects.append(f"<< /Type /Pages /Kids [{kids}] /Count {page_count} >>".encode())
    for i, text in enumerate(pages):
        content_id = 4 + i * 2
        objects.append((
            f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            f"/Contents {content_id} 0 R /Resources << /Font << /F1 {font_id} 0 R >> >> >>"
        ).encode())
        stream = f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET".encode()
        objects.append(
            b"<< /Length " + str(len(stream)).encode() + b" >>\nstream\n" + stream + b"\nendstream"
        )
    objects.append(b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>")

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"

    xref_at = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_at}\n%%EOF\n".encode()
    return bytes(out)


@pytest.fixture(autouse=True)
def fresh_qdrant():
    """Every test gets its own empty in-memory Qdrant."""
    vector_store._client_for.cache_clear()
    yield
    vector_store._client_for.cache_clear()


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setenv("UPLOAD_DIR", str(path))
    return path


@pytest.fixture
def fake_embeddings():
    """Patch every embedding entry point with the letter-frequency fake."""
    with patch("ragchat.services.ingestion_service.embed_texts", side_effect=fake_embed_texts) as texts, \
         patch("ragchat.retrieval.embed_query", side_effect=fake_vector) as query:
        yield texts, query


@pytest.fixture
def pdf_bytes():
    return make_pdf(["Qdrant stores vectors for retrieval.", "The second page talks about bananas."])


@pytest.fixture
def client():
    return TestClient(app)
