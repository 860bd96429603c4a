from ragchat.utils.helpers import dedupe_sources, source_label


def test_dedupe_keeps_best_chunk_per_source():
    chunks = [
        {"metadata": {"source": "a.pdf", "type": "pdf"}, "score": 0.61, "content": "low"},
        {"metadata": {"source": "b.pdf", "type": "pdf"}, "score": 0.7, "content": "mid"},
        {"metadata": {"source": "a.pdf", "type": "pdf"}, "score": 0.9, "content": "high"},
    ]

    sources = dedupe_sources(chunks)

    assert sources == [
        {"source": "a.pdf", "type": "pdf", "score": 0.9, "preview": "high"},
        {"source": "b.pdf", "type": "pdf", "score": 0.7, "preview": "mid"},
    ]


def test_dedupe_truncates_preview():
    sources = dedupe_sources([{"metadata": {"source": "x"}, "score": 1, "content": "y" * 300}])
    assert sources[0]["preview"] == "y" * 200 + "..."


def test_dedupe_handles_missing_metadata():
    assert dedupe_sources([{"score": 0.5, "content": "c"}])[0]["source"] == "unknown"


def test_source_label():
    assert source_label({"source": "doc.pdf", "page": 4}) == "doc.pdf (p. 4)"
    assert source_label({"source": "https://x.io"}) == "https://x.io"
    assert source_label({}) == "unknown"
