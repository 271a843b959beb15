from fastapi import APIRouter
from mathtutor.api.plans import router as plans_router
from mathtutor.api.tasks import router as tasks_router
from mathtutor.api.curriculum import router as curriculum_router
from mathtutor.api.mistakes import router as mistakes_router
from mathtutor.api.tutor import router as tutor_router
from mathtutor.api.session import router as session_router

api_router = APIRouter()

# Include all route modules
api_router.include_router(session_router, prefix="/session", tags=["session"])
api_router.include_router(plans_router, prefix="/plans", tags=["plans"])
api_router.include_router(tasks_router, prefix="/tasks", tags=["tasks"])
api_router.include_router(curriculum_router, prefix="/curriculum", tags=["curriculum"])
api_router.include_router(mistakes_router, prefix="/mistakes", tags=["mistakes"])
api_router.include_router(tutor_router, prefix="/tutor", tags=["tutor"])
