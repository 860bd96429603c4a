"""
Chat API routes.
Answers questions against one indexed collection.
"""
from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

from ..exceptions import CollectionNotFoundError
from ..logging_config import logger
from ..schemas import ChatRequest, ChatResponse
from ..services.rag_service import answer_question, stream_answer

router = APIRouter(prefix="/api/files", tags=["chat"])


@router.post("/chat", response_model=ChatResponse)
def chat(payload: ChatRequest):
    """
    Retrieve the top-K chunks from the collection and answer with the LLM.

    Returns the model's text, the number of chunks used and request metadata.
    """
    try:
        return answer_question(
            payload.user_query,
            payload.collection_name,
            top_k=payload.top_k,
            history=payload.history,
        )
    except CollectionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Error answering question", exc_info=e, collection=payload.collection_name)
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/chat/stream")
def chat_stream(payload: ChatRequest):
    """
    Streaming chat endpoint using Server-Sent Events (SSE).

    Events: meta (sources) → delta* → final → done.
    """
    try:
        events = stream_answer(
            payload.user_query,
            payload.collection_name,
            top_k=payload.top_k,
            history=payload.history,
        )
    except CollectionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Error in RAG streaming", exc_info=e, collection=payload.collection_name)
        raise HTTPException(status_code=500, detail="Error processing query")

    return StreamingResponse(events, media_type="text/event-stream")
