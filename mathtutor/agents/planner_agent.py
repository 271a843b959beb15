"""
Study Plan Planner Agent.

Asks Gemini to author a day-by-day study plan through a structured-output
(function calling) request. The response must be a ``tasks`` array of
``{day_number, title, description, task_type}``.

The agent only drafts; validation, scheduling and persistence belong to
the plan orchestrator, which falls back to the local builder whenever this
agent fails.

Usage:
    agent = get_planner_agent()
    tasks = await agent.draft_tasks(
        grade="9",
        topic_name="Quadratic Equations",
        test_date=date(2026, 11, 2),
        days=14
    )
"""

from typing import List, Optional
from datetime import date
import logging

from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_core.prompts import ChatPromptTemplate

from mathtutor.core.config import settings
from mathtutor.core.exceptions import RemoteGenerationFailed
from mathtutor.models.plan import PlannerResponse, PlannerTask

logger = logging.getLogger(__name__)


# ============================================================================
# PROMPT TEMPLATES
# ============================================================================

PLANNER_SYSTEM_PROMPT = """You are an expert math educator creating personalized study plans. Generate a day-by-day learning plan that:
- Breaks down the topic into logical steps
- Follows the progression: theory → quiz → practice (easy) → practice (hard) → review
- Spaces out learning appropriately given available days
- Includes rest/review days before the exam
- Adapts to the student's grade level

Each task should have:
- A clear, actionable title
- A brief description of what to study/practice
- A task type: 'theory', 'quiz', 'practice', or 'review'
- A day number from 1 to the number of available days, at most one task per day"""

PLANNER_USER_PROMPT = """Create a {days}-day study plan for:
- Grade: {grade}
- Topic: {topic_name}
- Test Date: {test_date}

Generate tasks for each day leading up to the test. Make it engaging and achievable."""


# ============================================================================
# PLANNER AGENT CLASS
# ============================================================================

class PlannerAgent:
    """Drafts study plans with a Gemini structured-output call."""

    def __init__(self, llm: Optional[ChatGoogleGenerativeAI] = None):
        """Initialize the planner with Gemini (or an injected chat model)."""
        if llm is None:
            if not settings.GEMINI_API_KEY:
                raise ValueError(
                    "GEMINI_API_KEY not configured. Set it in .env or environment variables."
                )
            llm = ChatGoogleGenerativeAI(
                model=settings.GEMINI_MODEL,
                google_api_key=settings.GEMINI_API_KEY,
                temperature=0.4,
                max_output_tokens=4096
            )

        self.llm = llm
        self.structured_llm = llm.with_structured_output(PlannerResponse)
        self.prompt = ChatPromptTemplate.from_messages([
            ("system", PLANNER_SYSTEM_PROMPT),
            ("human", PLANNER_USER_PROMPT)
        ])

        logger.info(f"✅ PlannerAgent initialized with model: {settings.GEMINI_MODEL}")

    async def draft_tasks(
        self,
        grade: str,
        topic_name: str,
        test_date: date,
        days: int
    ) -> List[PlannerTask]:
        """
        Ask the model for a plan.

        Args:
            grade: Grade level, e.g. "9"
            topic_name: Topic display name
            test_date: Exam day
            days: Days available before the test

        Returns:
            Tasks exactly as the model authored them

        Raises:
            RemoteGenerationFailed: If the model returns no usable tasks
        """
        messages = self.prompt.format_messages(
            grade=grade,
            topic_name=topic_name,
            test_date=test_date.isoformat(),
            days=days
        )

        logger.info(f"🤖 Requesting {days}-day plan for grade {grade} '{topic_name}'")
        response = await self.structured_llm.ainvoke(messages)

        if response is None or not response.tasks:
            raise RemoteGenerationFailed("Planner returned no tasks")

        logger.info(f"✅ Planner drafted {len(response.tasks)} tasks")
        return response.tasks


# ============================================================================
# CONVENIENCE FUNCTION
# ============================================================================

_planner_agent_instance: Optional[PlannerAgent] = None


def get_planner_agent() -> Optional[PlannerAgent]:
    """
    Get or create the global planner agent instance.

    Returns:
        Configured PlannerAgent, or None when no API key is set (plans are
        then always built locally)
    """
    global _planner_agent_instance

    if _planner_agent_instance is None and settings.GEMINI_API_KEY:
        _planner_agent_instance = PlannerAgent()

    return _planner_agent_instance
