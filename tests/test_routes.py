import inspect
from unittest.mock import AsyncMock, patch

from langchain_core.documents import Document

from ragchat.exceptions import UpstreamServiceError
from ragchat.routes import documents


def _upload(client, pdf_bytes, name="guide.pdf"):
    return client.post("/api/files/upload", files={"file": (name, pdf_bytes, "application/pdf")})


class TestUpload:
    def test_upload_returns_handle(self, client, pdf_bytes, upload_dir):
        response = _upload(client, pdf_bytes)

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "File uploaded successfully"
        assert data["filename"].endswith("-guide.pdf")
        assert data["originalName"] == "guide.pdf"
        assert data["size"] == len(pdf_bytes)
        assert data["type"] == "application/pdf"
        assert "uploadedAt" in data
        assert (upload_dir / data["filename"]).read_bytes() == pdf_bytes

    def test_upload_strips_directories_from_name(self, client, pdf_bytes, upload_dir):
        data = _upload(client, pdf_bytes, name="../../etc/evil.pdf").json()
        assert data["originalName"] == "evil.pdf"
        assert (upload_dir / data["filename"]).exists()

    def test_missing_file(self, client):
        response = client.post("/api/files/upload")
        assert response.status_code == 400
        assert response.json()["detail"] == "No file uploaded"

    def test_too_large(self, client, monkeypatch):
        monkeypatch.setenv("MAX_FILE_SIZE_MB", "0")
        response = _upload(client, b"%PDF-1.4 tiny")
        assert response.status_code == 400
        assert "too large" in response.json()["detail"]

    def test_upload_runs_in_threadpool(self):
        # Sync endpoints are dispatched to a worker thread, so the disk copy never blocks the loop
        assert not inspect.iscoroutinefunction(documents.upload_file)


class TestIndexing:
    def test_upload_then_index(self, client, pdf_bytes, fake_embeddings):
        upload = _upload(client, pdf_bytes).json()

        response = client.post("/api/files/indexing",
                               json={"filename": upload["filename"], "filepath": upload["filepath"]})

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Indexing completed successfully"
        assert data["collectionName"].endswith("_guide_pdf")
        assert data["chunksCount"] == 2
        assert data["pagesCount"] == 2

    def test_unknown_file(self, client, upload_dir):
        response = client.post("/api/files/indexing", json={"filepath": str(upload_dir / "nope.pdf")})
        assert response.status_code == 400

    def test_upstream_failure_is_500(self, client, pdf_bytes):
        upload = _upload(client, pdf_bytes).json()
        with patch("ragchat.services.ingestion_service.embed_texts",
                   side_effect=UpstreamServiceError("embedding API down")):
            response = client.post("/api/files/indexing", json={"filepath": upload["filepath"]})

        assert response.status_code == 500
        assert response.json()["detail"] == "Internal server error"


class TestUrl:
    def test_index_url(self, client, fake_embeddings):
        docs = [Document(page_content="Example body", metadata={"source": "https://example.com/doc",
                                                                "type": "website"})]
        with patch("ragchat.services.ingestion_service.load_website", new=AsyncMock(return_value=docs)):
            response = client.post("/api/files/url", json={"url": "https://example.com/doc"})

        assert response.status_code == 200
        assert response.json() == {
            "message": "URL indexed successfully",
            "collectionName": "example_com_doc",
            "chunksCount": 1,
            "url": "https://example.com/doc",
        }

    def test_missing_url(self, client):
        assert client.post("/api/files/url", json={"url": "  "}).status_code == 400

    def test_invalid_url(self, client):
        response = client.post("/api/files/url", json={"url": "example.com/doc"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid URL format"

    def test_fetch_failure(self, client):
        with patch("ragchat.text_extraction.fetch_html",
                   new=AsyncMock(side_effect=UpstreamServiceError("HTTP 503"))):
            response = client.post("/api/files/url", json={"url": "https://example.com/doc"})
        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to process URL"


class TestYoutube:
    def test_malformed_url(self, client):
        with patch("ragchat.text_extraction.YouTubeTranscriptApi") as api:
            response = client.post("/api/files/youtube", json={"url": "https://example.com/watch?v=abc"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid YouTube URL format"
        api.assert_not_called()

    def test_lookalike_host_is_rejected(self, client):
        with patch("ragchat.text_extraction.YouTubeTranscriptApi") as api:
            response = client.post("/api/files/youtube",
                                   json={"url": "https://notyoutube.com/watch?v=dQw4w9WgXcQ"})

        assert response.status_code == 400
        api.assert_not_called()

    def test_index_youtube(self, client, fake_embeddings):
        segments = [{"text": "welcome to the video", "start": 0.0, "duration": 2.0}]
        with patch("ragchat.text_extraction.YouTubeTranscriptApi") as api:
            api.return_value.fetch.return_value.to_raw_data.return_value = segments
            response = client.post("/api/files/youtube", json={"url": "https://youtu.be/dQw4w9WgXcQ"})

        assert response.status_code == 200
        data = response.json()
        assert data["collectionName"] == "youtube_dqw4w9wgxcq"
        assert data["videoId"] == "dQw4w9WgXcQ"
        assert data["chunksCount"] == 1
        assert data["transcriptLength"] == len("[00:00:00] welcome to the video")


class TestDelete:
    def test_delete_never_created(self, client):
        response = client.request("DELETE", "/api/files/delete", json={"filename": "never_created"})
        assert response.status_code == 404

    def test_delete_requires_a_name(self, client):
        response = client.request("DELETE", "/api/files/delete", json={})
        assert response.status_code == 422

    def test_blank_collection_name_falls_back_to_filename(self, client):
        response = client.request("DELETE", "/api/files/delete",
                                  json={"collectionName": "  ", "filename": "never_created"})
        assert response.status_code == 404
        assert "never_created" in response.json()["detail"]

    def test_blank_names_are_rejected(self, client):
        response = client.request("DELETE", "/api/files/delete",
                                  json={"collectionName": "  ", "filename": " "})
        assert response.status_code == 422

    def test_index_then_delete(self, client, fake_embeddings):
        docs = [Document(page_content="Body", metadata={})]
        with patch("ragchat.services.ingestion_service.load_website", new=AsyncMock(return_value=docs)):
            name = client.post("/api/files/url", json={"url": "https://example.com/doc"}).json()["collectionName"]

        response = client.request("DELETE", "/api/files/delete", json={"collectionName": name})
        assert response.status_code == 200
        assert response.json() == {"message": "Collection removed successfully"}

        again = client.request("DELETE", "/api/files/delete", json={"filename": name})
        assert again.status_code == 404


class TestChat:
    def _index(self, client):
        docs = [Document(page_content="The launch is scheduled for May.",
                         metadata={"source": "https://example.com/doc", "type": "website"})]
        with patch("ragchat.services.ingestion_service.load_website", new=AsyncMock(return_value=docs)):
            return client.post("/api/files/url", json={"url": "https://example.com/doc"}).json()["collectionName"]

    def test_chat(self, client, fake_embeddings):
        name = self._index(client)
        with patch("ragchat.services.rag_service.complete_chat", return_value="In May."):
            response = client.post("/api/files/chat",
                                   json={"userQuery": "When is the launch?", "collectionName": name})

        assert response.status_code == 200
        data = response.json()
        assert data["result"] == "In May."
        assert data["sources"] == 1
        assert data["metadata"]["collectionName"] == name
        assert data["metadata"]["documents"][0]["source"] == "https://example.com/doc"

    def test_chat_unknown_collection(self, client, fake_embeddings):
        response = client.post("/api/files/chat", json={"userQuery": "hi", "collectionName": "missing"})
        assert response.status_code == 404

    def test_blank_query(self, client):
        response = client.post("/api/files/chat", json={"userQuery": "   ", "collectionName": "x"})
        assert response.status_code == 422

    def test_llm_failure_is_500(self, client, fake_embeddings):
        name = self._index(client)
        with patch("ragchat.services.rag_service.complete_chat", side_effect=UpstreamServiceError("down")):
            response = client.post("/api/files/chat", json={"userQuery": "q", "collectionName": name})
        assert response.status_code == 500

    def test_chat_stream(self, client, fake_embeddings):
        name = self._index(client)
        with patch("ragchat.services.rag_service.stream_chat", return_value=iter(["In ", "May."])):
            response = client.post("/api/files/chat/stream",
                                   json={"userQuery": "When?", "collectionName": name})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert '"type": "final"' in response.text
        assert '"text": "In May."' in response.text


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
