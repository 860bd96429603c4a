"""
RAG (Retrieval-Augmented Generation) service.
Handles chunk retrieval, prompt building and answer generation.
"""
import json
import time
from typing import Dict, Iterator, List, Optional

from ..config import get_settings
from ..logging_config import logger
from ..openai_client import complete_chat, stream_chat
from ..retrieval import search_similar
from ..schemas import ChatTurn
from ..utils.helpers import dedupe_sources, source_label

SYSTEM_PROMPT = """
You are an AI assistant who resolves user queries based on the context
available to you from an indexed source (a PDF file, a web page or a video
transcript). Each context entry is numbered and labelled with its origin.

Only answer based on the available context. If the context does not contain
the answer, say that you could not find anything about it in the source.

Context:
{context}
"""

NO_CONTEXT = "(No relevant content was found in the source for this question.)"


def resolve_top_k(top_k: Optional[int] = None) -> int:
    settings = get_settings()
    if top_k is None:
        return settings.top_k
    return max(1, min(top_k, settings.max_top_k))


def build_context(chunks: List[Dict]) -> str:
    """
    Concatenate every retrieved chunk, best match first.
    No size limit is applied, so a large top-K can exceed the model's context window.
    """
    if not chunks:
        return NO_CONTEXT

    context_parts = []
    for i, chunk in enumerate(chunks, start=1):
        label = source_label(chunk.get("metadata") or {})
        context_parts.append(f"[{i}] ({label})\n{chunk['content']}")

    return "\n\n---\n\n".join(context_parts)


def build_messages(question: str, context: str, history: Optional[List[ChatTurn]] = None) -> List[Dict]:
    messages = [{"role": "system", "content": SYSTEM_PROMPT.format(context=context)}]

    if history:
        for turn in history:
            messages.append({"role": turn.role, "content": turn.content})

    messages.append({"role": "user", "content": question})
    return messages


def _prepare(question: str, collection_name: str, top_k: Optional[int],
             history: Optional[List[ChatTurn]]):
    k = resolve_top_k(top_k)
    chunks = search_similar(question, collection_name, top_k=k)
    logger.info("Retrieved chunks", collection=collection_name, count=len(chunks), top_k=k)

    context = build_context(chunks)
    messages = build_messages(question, context, history)
    metadata = {
        "collectionName": collection_name,
        "model": get_settings().chat_model,
        "topK": k,
        "documents": dedupe_sources(chunks),
    }

    logger.info("Sending to LLM",
                question=question,
                context_length=len(context),
                history_turns=len(history) if history else 0,
                sources_count=len(chunks))
    return chunks, messages, metadata


def answer_question(question: str, collection_name: str, top_k: Optional[int] = None,
                    history: Optional[List[ChatTurn]] = None) -> Dict:
    """
    Answer a question against one collection.

    A collection with no matching chunks still produces an answer; the model
    is told there is no context and replies accordingly.

    Returns:
        {"result": str, "sources": int, "metadata": dict}
    """
    start_time = time.time()
    chunks, messages, metadata = _prepare(question, collection_name, top_k, history)

    result = complete_chat(messages)

    elapsed_ms = round((time.time() - start_time) * 1000, 2)
    logger.info("Query completed", collection=collection_name, time_ms=elapsed_ms)
    return {"result": result, "sources": len(chunks), "metadata": metadata}


def _sse(event: Dict) -> str:
    return f"data: {json.dumps(event)}\n\n"


def stream_answer(question: str, collection_name: str, top_k: Optional[int] = None,
                  history: Optional[List[ChatTurn]] = None) -> Iterator[str]:
    """
    Streaming variant of ``answer_question``.

    Retrieval runs before this returns, so a missing collection raises here
    instead of after the response has started.

    Returns:
        Iterator of SSE-formatted strings: one ``meta`` event, ``delta``
        events while the model writes, one ``final`` event and a closing ``done``
    """
    start_time = time.time()
    chunks, messages, metadata = _prepare(question, collection_name, top_k, history)
    return _stream_events(chunks, messages, metadata, collection_name, start_time)


def _stream_events(chunks: List[Dict], messages: List[Dict], metadata: Dict,
                   collection_name: str, start_time: float) -> Iterator[str]:
    yield _sse({"type": "meta", "sources": len(chunks), "metadata": metadata})

    full_response = ""
    try:
        for delta in stream_chat(messages):
            full_response += delta
            yield _sse({"type": "delta", "text": delta})
    except Exception as e:
        # Headers are already sent; report the failure in-band
        logger.error("Error while streaming answer", exc_info=e, collection=collection_name)
        yield _sse({"type": "error", "message": "Error generating answer"})
        yield _sse({"type": "done"})
        return

    yield _sse({
        "type": "final",
        "text": full_response.strip(),
        "sources": len(chunks),
        "metadata": metadata,
    })
    yield _sse({"type": "done"})

    elapsed_ms = round((time.time() - start_time) * 1000, 2)
    logger.info("Streamed query completed", collection=collection_name, time_ms=elapsed_ms)
