"""
Chat API endpoints - Coaching replies for one chat turn.
"""

import json
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from ..coaching import CoachingService
from ..config import settings
from ..llm.factory import create_llm_provider
from ..models import ChatRequest, ChatResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])

STREAM_ERROR_MESSAGE = "Sorry, I'm having a hiccup processing that. Try again in a moment."


def get_coaching_service() -> CoachingService:
    """Build the coaching service from settings (LLM may be unconfigured)."""
    api_key = settings.llm_api_key or settings.openai_api_key
    llm_provider = create_llm_provider(
        provider=settings.llm_provider,
        api_key=api_key or "",
        model=settings.llm_model,
        base_url=settings.llm_base_url,
        timeout=settings.llm_timeout,
    )
    return CoachingService(
        llm_provider,
        api_mode=settings.llm_api_mode,
        temperature=settings.llm_temperature,
    )


def _validate(request: ChatRequest) -> None:
    if not request.message.strip() or not request.topic.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Message and topic are required"
        )


@router.post("", response_model=ChatResponse, response_model_exclude_none=True)
async def send_message(
    request: ChatRequest,
    coach: CoachingService = Depends(get_coaching_service),
):
    """
    Get a coaching reply for a message.

    Args:
        request: Message, topic, prior history and optional conversation id

    Returns:
        ChatResponse: ``message`` holds the reply; ``error`` is set instead
        when no reply could be produced
    """
    _validate(request)
    return await coach.respond(request)


@router.post("/stream")
async def stream_message(
    request: ChatRequest,
    coach: CoachingService = Depends(get_coaching_service),
):
    """
    Stream a coaching reply as Server-Sent Events.

    Events: ``{"delta": "..."}`` per chunk, ``{"completed": true}`` at the end,
    ``{"error": "..."}`` on failure, always followed by ``[DONE]``.
    """
    _validate(request)

    async def event_generator():
        try:
            async for chunk in coach.stream(request):
                yield f"data: {json.dumps({'delta': chunk}, ensure_ascii=False)}\n\n"
            yield f"data: {json.dumps({'completed': True})}\n\n"
        except Exception as e:
            logger.error(f"Error in streaming chat: {e}", exc_info=True)
            yield f"data: {json.dumps({'error': STREAM_ERROR_MESSAGE})}\n\n"
        yield "data: [DONE]\n\n"

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        }
    )
