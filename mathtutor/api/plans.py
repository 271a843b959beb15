"""
Learning plan endpoints.

A plan belongs to the caller's session; generating one creates the session
if the caller has none yet.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from arango.database import StandardDatabase

from mathtutor.agents.plan_orchestrator import PlanOrchestrator, create_plan_orchestrator
from mathtutor.agents.planner_agent import get_planner_agent
from mathtutor.core.exceptions import PlanGenerationError, PlanNotFound
from mathtutor.core.session import get_or_create_session, require_session
from mathtutor.db.database import get_db
from mathtutor.models.plan import (
    PlanGenerationBody, PlanGenerationRequest, PlanGenerationResponse, PlanView
)

router = APIRouter(tags=["plans"])


def get_plan_orchestrator(db: StandardDatabase = Depends(get_db)) -> PlanOrchestrator:
    """Dependency to get a plan orchestrator bound to the database."""
    return create_plan_orchestrator(db, planner=get_planner_agent())


@router.post("", response_model=PlanGenerationResponse)
async def generate_plan(
    body: PlanGenerationBody,
    session_id: str = Depends(get_or_create_session),
    orchestrator: PlanOrchestrator = Depends(get_plan_orchestrator)
):
    """
    Generate a day-by-day study plan for the session.

    If the session already has a plan and ``replace_existing`` is false,
    nothing is created and the existing plan is reported (source
    ``existing``). With ``replace_existing`` the old plan, its tasks and its
    progress are deleted first.
    """
    request = PlanGenerationRequest(session_id=session_id, **body.model_dump())

    try:
        result = await orchestrator.generate_plan(request)
    except PlanGenerationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())

    return PlanGenerationResponse(session_id=session_id, **result.model_dump())


@router.get("/current", response_model=PlanView)
async def get_current_plan(
    session_id: str = Depends(require_session),
    orchestrator: PlanOrchestrator = Depends(get_plan_orchestrator)
):
    """The session's plan with its tasks ordered by day."""
    try:
        return await orchestrator.fetch_plan(session_id)
    except PlanNotFound as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to load learning plan: {str(e)}"
        )


@router.delete("/current")
async def delete_current_plan(
    session_id: str = Depends(require_session),
    orchestrator: PlanOrchestrator = Depends(get_plan_orchestrator)
):
    """Delete the session's plan together with its tasks and progress."""
    try:
        deleted = orchestrator.delete_plan(session_id)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete learning plan: {str(e)}"
        )
    return {"deleted": deleted}
