"""
Session endpoints.

Clients call ``GET /session`` on load to learn (or be issued) their id and
``DELETE /session`` to start over.
"""

from fastapi import APIRouter, Request, Response

from mathtutor.core.session import bind_session, clear_session, locator_for_request

router = APIRouter(tags=["session"])


@router.get("")
async def get_session(request: Request, response: Response):
    """Resolve the caller's session, creating one when none is found."""
    locator = locator_for_request(request)
    session_id = locator.get_or_create()
    bind_session(response, session_id)
    return {"session_id": session_id, "source": locator.source}


@router.delete("")
async def reset_session(request: Request, response: Response):
    """Forget the current session id; learning data is left untouched."""
    locator = locator_for_request(request)
    previous = locator.get_session()
    locator.reset()
    clear_session(response)
    return {"cleared": previous is not None}
