"""
Mistake log endpoints.

Records are scoped to the caller's session. Writes never fail the request:
storage errors are logged and reported as ``saved: false``.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from mathtutor.api.curriculum import get_mistake_crud
from mathtutor.core.session import require_session
from mathtutor.crud.mistake import MistakeCRUD
from mathtutor.models.mistake import MistakeCreate, MistakeKind, MistakeRecord, MistakeStats
from mathtutor.services import mistake_analytics

router = APIRouter(tags=["mistakes"])


@router.get("", response_model=List[MistakeRecord])
async def list_mistakes(
    kind: Optional[MistakeKind] = None,
    topic_id: Optional[str] = None,
    days: Optional[int] = Query(None, ge=1, le=365, description="Only the trailing N days"),
    session_id: str = Depends(require_session),
    mistake_crud: MistakeCRUD = Depends(get_mistake_crud)
):
    """Mistakes newest first, optionally filtered by kind, topic or window."""
    since = None
    if days:
        since = datetime.now(timezone.utc) - timedelta(days=days)
    return mistake_crud.list_mistakes(session_id=session_id, kind=kind, topic_id=topic_id, since=since)


@router.post("")
async def add_mistake(
    mistake: MistakeCreate,
    session_id: str = Depends(require_session),
    mistake_crud: MistakeCRUD = Depends(get_mistake_crud)
):
    record = mistake_crud.add(mistake, session_id=session_id)
    return {"saved": record is not None, "mistake": record}


@router.get("/stats", response_model=MistakeStats)
async def get_mistake_stats(
    session_id: str = Depends(require_session),
    mistake_crud: MistakeCRUD = Depends(get_mistake_crud)
):
    """Totals, week-over-week improvement, streak, patterns and daily counts."""
    records = mistake_crud.list_mistakes(session_id=session_id)
    return mistake_analytics.summarize(records, datetime.now(timezone.utc))


@router.delete("/{mistake_id}")
async def delete_mistake(
    mistake_id: str,
    session_id: str = Depends(require_session),
    mistake_crud: MistakeCRUD = Depends(get_mistake_crud)
):
    if not mistake_crud.delete(mistake_id, session_id=session_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Mistake '{mistake_id}' not found"
        )
    return {"deleted": True}


@router.delete("")
async def clear_mistakes(
    session_id: str = Depends(require_session),
    mistake_crud: MistakeCRUD = Depends(get_mistake_crud)
):
    return {"deleted": mistake_crud.clear(session_id=session_id)}
