"""Retrieval-augmented chat over uploaded PDFs, web pages and YouTube transcripts."""

__version__ = "1.0.0"
