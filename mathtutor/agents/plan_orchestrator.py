"""
Plan Orchestrator.

Coordinates study plan generation with LangGraph's StateGraph. Every step
runs strictly after its predecessor has finished:

    START
      ↓
    validate ─────────────→ END (MissingFields / InvalidDate / UnknownTopic)
      ↓
    check_existing ───────→ END (plan exists, not replacing: benign success;
      ↓                         PlanLookupFailed)
    draft_remote ──┐
      ↓ (failed)   │
    draft_local    │
      ↓ ←──────────┘
    persist ──────────────→ END (InsertFailed)
      ↓
    verify ───────────────→ END (VerificationFailed)
      ↓
    END

Remote and local drafts are never mixed: whichever path produced the
drafts decides the whole plan, and the result is tagged with its source.
"""

from typing import TypedDict, Optional, Dict, Any, List, Callable, Awaitable
from datetime import date
import asyncio
import logging

from langgraph.graph import StateGraph, END

from mathtutor.core.config import settings
from mathtutor.core.exceptions import (
    PlanGenerationError, MissingFields, InvalidDate, UnknownTopic,
    InsertFailed, VerificationFailed, RemoteGenerationFailed, PlanNotFound,
    PlanLookupFailed
)
from mathtutor.core.logging import short_session
from mathtutor.crud.plan import PlanCRUD
from mathtutor.data import curriculum
from mathtutor.models.curriculum import CurriculumTopic
from mathtutor.models.plan import (
    LearningPlan, LearningPlanCreate, PlanGenerationRequest,
    PlanGenerationResult, PlanSource, PlanView, TaskDraft
)
from mathtutor.services import plan_builder
from mathtutor.utils.retry import retry_call

logger = logging.getLogger(__name__)


# ============================================================================
# STATE DEFINITION
# ============================================================================

class PlanState(TypedDict, total=False):
    """State flowing through the generation graph."""
    request: PlanGenerationRequest
    today: date

    # Resolved by validate
    topic: Optional[CurriculumTopic]
    days: int

    # Drafting
    drafts: Optional[List[TaskDraft]]
    source: Optional[PlanSource]

    # Persistence
    plan: Optional[LearningPlan]
    task_count: int
    plan_attempts: int
    task_attempts: int

    # Terminal outcome
    result: Optional[PlanGenerationResult]
    error: Optional[PlanGenerationError]


# ============================================================================
# ORCHESTRATOR CLASS
# ============================================================================

class PlanOrchestrator:
    """
    Generates, replaces and loads learning plans.

    Responsibilities:
    - Validate the request before touching storage
    - Short-circuit when the session already has a plan
    - Draft remotely first, locally on any remote failure
    - Persist plan then tasks with fixed-delay retries, deleting the plan
      again if its tasks cannot be stored
    - Re-read the plan as an existence check
    """

    def __init__(
        self,
        plan_crud: PlanCRUD,
        planner=None,
        max_attempts: int = settings.PERSIST_MAX_ATTEMPTS,
        retry_delay: float = settings.PERSIST_RETRY_DELAY_SECONDS,
        remote_timeout: float = settings.REMOTE_PLAN_TIMEOUT_SECONDS,
        today: Callable[[], date] = date.today,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None
    ):
        self.plan_crud = plan_crud
        self.planner = planner
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.remote_timeout = remote_timeout
        self.today = today
        self.sleep = sleep
        self.compiled_workflow = None

        self.build_workflow()

    def build_workflow(self):
        """Build and compile the generation StateGraph."""
        workflow = StateGraph(PlanState)

        workflow.add_node("validate", self._validate_node)
        workflow.add_node("check_existing", self._check_existing_node)
        workflow.add_node("draft_remote", self._draft_remote_node)
        workflow.add_node("draft_local", self._draft_local_node)
        workflow.add_node("persist", self._persist_node)
        workflow.add_node("verify", self._verify_node)

        workflow.set_entry_point("validate")
        workflow.add_conditional_edges(
            "validate", self._continue_unless_done, {"continue": "check_existing", "end": END}
        )
        workflow.add_conditional_edges(
            "check_existing", self._continue_unless_done, {"continue": "draft_remote", "end": END}
        )
        workflow.add_conditional_edges(
            "draft_remote",
            self._route_after_remote,
            {"persist": "persist", "draft_local": "draft_local"}
        )
        workflow.add_conditional_edges(
            "draft_local", self._continue_unless_done, {"continue": "persist", "end": END}
        )
        workflow.add_conditional_edges(
            "persist", self._continue_unless_done, {"continue": "verify", "end": END}
        )
        workflow.add_edge("verify", END)

        self.compiled_workflow = workflow.compile()

    # ========================================================================
    # ROUTING
    # ========================================================================

    def _continue_unless_done(self, state: PlanState) -> str:
        if state.get("error") is not None or state.get("result") is not None:
            return "end"
        return "continue"

    def _route_after_remote(self, state: PlanState) -> str:
        return "persist" if state.get("drafts") else "draft_local"

    # ========================================================================
    # WORKFLOW NODES
    # ========================================================================

    def _validate_node(self, state: PlanState) -> Dict[str, Any]:
        """Reject incomplete, past-dated or unknown-topic requests."""
        request = state["request"]
        today = state["today"]

        missing = [
            name for name in ("grade", "topic_id", "test_date", "session_id")
            if not getattr(request, name)
        ]
        if missing:
            return {"error": MissingFields(missing)}

        if request.test_date <= today:
            return {"error": InvalidDate("Please select a future date for your test.")}

        # The catalog name is canonical; a caller-supplied topic_name is display only
        topic = curriculum.find_topic(request.grade, request.topic_id)
        if topic is None:
            return {"error": UnknownTopic(request.grade, request.topic_id)}

        days = plan_builder.days_until_test(today, request.test_date)
        if days < 1:
            return {"error": InvalidDate("Please select a test date that's at least 1 day in the future.")}

        return {"topic": topic, "days": days}

    async def _check_existing_node(self, state: PlanState) -> Dict[str, Any]:
        request = state["request"]
        try:
            existing, _ = await retry_call(
                self.plan_crud.get_plan_by_session,
                request.session_id,
                attempts=self.max_attempts,
                delay=self.retry_delay,
                what="Existing plan lookup",
                sleep=self.sleep
            )
        except Exception as e:
            logger.error(f"❌ Existing plan lookup failed after {self.max_attempts} attempts: {e}")
            return {"error": PlanLookupFailed(self.max_attempts, e)}

        if existing is None:
            return {"plan": None}

        if request.replace_existing:
            logger.info(f"🔁 Replacing plan {existing.key} for session {short_session(request.session_id)}")
            return {"plan": None}

        try:
            task_count, _ = await retry_call(
                self.plan_crud.count_tasks,
                existing.key,
                attempts=self.max_attempts,
                delay=self.retry_delay,
                what="Task count",
                sleep=self.sleep
            )
        except Exception as e:
            logger.error(f"❌ Task count for plan {existing.key} failed after {self.max_attempts} attempts: {e}")
            return {"error": PlanLookupFailed(self.max_attempts, e)}

        logger.info(f"📋 Plan already exists for session {short_session(request.session_id)}, nothing created")
        return {
            "plan": existing,
            "result": PlanGenerationResult(
                source=PlanSource.EXISTING,
                plan_id=existing.key,
                task_count=task_count,
                message="You already have a learning plan."
            )
        }

    async def _draft_remote_node(self, state: PlanState) -> Dict[str, Any]:
        """Ask the AI planner; any failure leaves drafts empty for the local path."""
        if self.planner is None:
            return {"drafts": None}

        request = state["request"]
        topic = state["topic"]
        try:
            tasks = await asyncio.wait_for(
                self.planner.draft_tasks(
                    grade=request.grade,
                    topic_name=topic.name,
                    test_date=request.test_date,
                    days=state["days"]
                ),
                timeout=self.remote_timeout
            )
            drafts = plan_builder.schedule_planner_tasks(tasks, state["today"], state["days"])
            if not drafts:
                raise RemoteGenerationFailed("Planner response had no usable tasks")
        except asyncio.TimeoutError:
            logger.warning(f"⏱️ Remote planner timed out after {self.remote_timeout}s, using local plan")
            return {"drafts": None}
        except Exception as e:
            logger.warning(f"⚠️ Remote planner failed ({type(e).__name__}: {e}), using local plan")
            return {"drafts": None}

        return {"drafts": drafts, "source": PlanSource.REMOTE}

    def _draft_local_node(self, state: PlanState) -> Dict[str, Any]:
        topic = state["topic"]
        try:
            drafts = plan_builder.build_local_tasks(
                topic.name,
                plan_builder.resolve_subtopics(topic),
                state["today"],
                state["request"].test_date
            )
        except InvalidDate as e:
            return {"error": e}

        return {"drafts": drafts, "source": PlanSource.LOCAL}

    async def _persist_node(self, state: PlanState) -> Dict[str, Any]:
        """Delete → insert plan → insert tasks, each insert retried."""
        request = state["request"]
        topic = state["topic"]
        drafts = state["drafts"]

        try:
            removed = self.plan_crud.delete_session_plans(request.session_id)
            if removed:
                logger.info(f"🗑️ Deleted {removed} previous plan(s) for session {short_session(request.session_id)}")
        except Exception as e:
            logger.warning(f"⚠️ Could not delete existing plans: {e}")

        plan_create = LearningPlanCreate(
            session_id=request.session_id,
            grade=request.grade,
            topic_id=topic.id,
            topic_name=topic.name,
            test_date=request.test_date,
            source=state["source"]
        )

        try:
            plan, plan_attempts = await retry_call(
                self.plan_crud.create_plan,
                plan_create,
                attempts=self.max_attempts,
                delay=self.retry_delay,
                what="Plan insert",
                sleep=self.sleep
            )
        except Exception as e:
            logger.error(f"❌ Plan insert failed after {self.max_attempts} attempts: {e}")
            return {"error": InsertFailed("learning plan", self.max_attempts, e)}

        try:
            tasks, task_attempts = await retry_call(
                self.plan_crud.insert_tasks,
                plan.key,
                drafts,
                attempts=self.max_attempts,
                delay=self.retry_delay,
                what="Task insert",
                sleep=self.sleep
            )
        except Exception as e:
            logger.error(f"❌ Task insert failed after {self.max_attempts} attempts, removing plan {plan.key}: {e}")
            try:
                self.plan_crud.delete_plan(plan.key)
            except Exception as cleanup_error:
                logger.error(f"❌ Could not remove orphaned plan {plan.key}: {cleanup_error}")
            return {"error": InsertFailed("study tasks", self.max_attempts, e)}

        return {
            "plan": plan,
            "task_count": len(tasks),
            "plan_attempts": plan_attempts,
            "task_attempts": task_attempts
        }

    async def _verify_node(self, state: PlanState) -> Dict[str, Any]:
        request = state["request"]
        try:
            stored, _ = await retry_call(
                self.plan_crud.get_plan_by_session,
                request.session_id,
                attempts=self.max_attempts,
                delay=self.retry_delay,
                what="Plan verification read",
                sleep=self.sleep
            )
        except Exception as e:
            logger.error(f"❌ Could not read back plan for session {short_session(request.session_id)}: {e}")
            return {"error": VerificationFailed(request.session_id, e)}

        if stored is None:
            logger.error(f"❌ Plan for session {short_session(request.session_id)} missing after insert")
            return {"error": VerificationFailed(request.session_id)}

        task_count = state["task_count"]
        logger.info(
            f"✅ Created {state['source'].value} plan {stored.key} with {task_count} tasks "
            f"for session {short_session(request.session_id)}"
        )
        return {
            "result": PlanGenerationResult(
                source=state["source"],
                plan_id=stored.key,
                task_count=task_count,
                plan_attempts=state["plan_attempts"],
                task_attempts=state["task_attempts"],
                message=f"Your personalized {task_count}-day study plan is ready."
            )
        }

    # ========================================================================
    # PUBLIC API
    # ========================================================================

    async def generate_plan(self, request: PlanGenerationRequest) -> PlanGenerationResult:
        """
        Run the generation workflow.

        Args:
            request: Grade, topic, test date, session and replace flag

        Returns:
            Result tagged with the path that produced the plan

        Raises:
            PlanGenerationError: Any terminal failure (never RemoteGenerationFailed)
        """
        final_state = await self.compiled_workflow.ainvoke({
            "request": request,
            "today": self.today()
        })

        if final_state.get("error") is not None:
            raise final_state["error"]
        return final_state["result"]

    async def fetch_plan(self, session_id: str) -> PlanView:
        """
        Newest plan of a session with its tasks ordered by day.

        Storage errors are retried; a missing plan is not.

        Raises:
            PlanNotFound: If the session has no plan
        """
        plan, _ = await retry_call(
            self.plan_crud.get_plan_by_session,
            session_id,
            attempts=self.max_attempts,
            delay=self.retry_delay,
            what="Plan fetch",
            sleep=self.sleep
        )
        if plan is None:
            raise PlanNotFound(session_id)

        return PlanView(plan=plan, tasks=self.plan_crud.get_tasks(plan.key))

    def delete_plan(self, session_id: str) -> int:
        """Remove every plan, task and progress row of a session."""
        return self.plan_crud.delete_session_plans(session_id)


# ============================================================================
# CONVENIENCE FUNCTIONS
# ============================================================================

def create_plan_orchestrator(db, planner=None, **kwargs) -> PlanOrchestrator:
    """
    Factory function to create an orchestrator bound to a database.

    Example:
        >>> orchestrator = create_plan_orchestrator(get_db(), get_planner_agent())
        >>> result = await orchestrator.generate_plan(request)
    """
    return PlanOrchestrator(PlanCRUD(db), planner=planner, **kwargs)
