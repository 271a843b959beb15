"""
AI tutor endpoints.

``/ask`` streams the answer as server-sent events when ``stream`` is true
(the default) and otherwise returns it in one JSON body.
"""

from typing import List
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from mathtutor.agents.tutor_agent import TutorAgent, get_tutor_agent
from mathtutor.core.exceptions import TutorGatewayError
from mathtutor.models.curriculum import QuizQuestion
from mathtutor.models.tutor import (
    GraphData, GraphDataRequest, QuizRequest, TutorAnswer, TutorQuestion
)
from mathtutor.utils.streaming import SSE_HEADERS, sse_from_deltas

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tutor"])


def get_tutor() -> TutorAgent:
    """Dependency to get the tutor agent (503 when AI is not configured)."""
    return get_tutor_agent()


def gateway_error(e: Exception) -> TutorGatewayError:
    """Translate a model provider failure into a client-facing status."""
    text = str(e).lower()
    if "429" in text or "rate limit" in text or "resource_exhausted" in text:
        return TutorGatewayError("Rate limit exceeded. Please try again later.", status_code=429)
    if "quota" in text or "billing" in text:
        return TutorGatewayError("AI usage limit reached. Please try again later.", status_code=402)
    return TutorGatewayError(f"AI service error: {e}")


@router.post("/ask", response_model=TutorAnswer)
async def ask_tutor(
    question: TutorQuestion,
    tutor: TutorAgent = Depends(get_tutor)
):
    """Answer a question about a lesson or solution step."""
    if question.stream:
        return StreamingResponse(
            sse_from_deltas(tutor.stream_answer(question)),
            media_type="text/event-stream",
            headers=SSE_HEADERS
        )

    try:
        answer = await tutor.ask(question)
    except Exception as e:
        logger.error(f"❌ Tutor answer failed: {e}")
        raise gateway_error(e)
    return TutorAnswer(answer=answer)


@router.post("/graph-data", response_model=GraphData)
async def generate_graph_data(
    request: GraphDataRequest,
    tutor: TutorAgent = Depends(get_tutor)
):
    """
    Parabola parameters for the step being viewed.

    Answers 400 when the model says there is nothing to draw and 502 when
    its reply cannot be parsed.
    """
    try:
        graph = await tutor.generate_graph_data(request)
    except ValueError as e:
        logger.warning(f"⚠️ Unparseable graph reply: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": "Failed to parse graph data", "message": str(e)}
        )
    except Exception as e:
        logger.error(f"❌ Graph data generation failed: {e}")
        raise gateway_error(e)

    if graph is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "No graph data available", "message": "This step has nothing to plot"}
        )
    return graph


@router.post("/quiz", response_model=List[QuizQuestion])
async def generate_quiz(
    request: QuizRequest,
    tutor: TutorAgent = Depends(get_tutor)
):
    try:
        return await tutor.generate_quiz(request)
    except Exception as e:
        logger.error(f"❌ Quiz generation failed: {e}")
        raise gateway_error(e)
