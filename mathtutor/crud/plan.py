from typing import Optional, List
from datetime import datetime, timezone
import logging
from arango.database import StandardDatabase

from mathtutor.models.plan import (
    LearningPlan, LearningPlanCreate, LearningTask, TaskDraft
)

logger = logging.getLogger(__name__)


class PlanCRUD:
    """Learning plan and task database operations."""

    def __init__(self, db: StandardDatabase):
        self.db = db
        self.plans = db.collection('learning_plans')
        self.tasks = db.collection('learning_tasks')
        self.progress = db.collection('task_progress')

    # ========================================================================
    # PLANS
    # ========================================================================

    def get_plan_by_session(self, session_id: str) -> Optional[LearningPlan]:
        """Newest plan owned by a session."""
        docs = list(self.plans.find({'session_id': session_id}))
        if not docs:
            return None
        newest = max(docs, key=lambda doc: doc.get('created_at') or '')
        return LearningPlan(**newest)

    def get_plan(self, plan_key: str) -> Optional[LearningPlan]:
        doc = self.plans.get(plan_key)
        if not doc:
            return None
        return LearningPlan(**doc)

    def get_plans_by_session(self, session_id: str) -> List[LearningPlan]:
        return [LearningPlan(**doc) for doc in self.plans.find({'session_id': session_id})]

    def create_plan(self, plan: LearningPlanCreate) -> LearningPlan:
        """Insert a plan document."""
        plan_data = plan.model_dump(mode='json')
        plan_data['created_at'] = datetime.now(timezone.utc).isoformat()

        result = self.plans.insert(plan_data, return_new=True)
        return LearningPlan(**result['new'])

    def delete_plan(self, plan_key: str) -> None:
        """Delete a plan and its tasks. Progress rows are session-scoped, see delete_session_plans."""
        self.tasks.delete_match({'plan_id': plan_key})
        self.plans.delete(plan_key, ignore_missing=True)

    def delete_session_plans(self, session_id: str) -> int:
        """
        Delete every plan of a session with its tasks and progress rows.

        Returns:
            Number of plans removed
        """
        plans = self.get_plans_by_session(session_id)
        for plan in plans:
            self.tasks.delete_match({'plan_id': plan.key})
            self.plans.delete(plan.key, ignore_missing=True)
        self.progress.delete_match({'session_id': session_id})
        return len(plans)

    # ========================================================================
    # TASKS
    # ========================================================================

    def insert_tasks(self, plan_key: str, drafts: List[TaskDraft]) -> List[LearningTask]:
        """
        Bulk insert tasks for a plan.

        All-or-nothing: when any document fails, the rows that did land are
        removed again and the first error is raised, so a retry never
        produces duplicates.
        """
        documents = []
        for draft in drafts:
            doc = draft.model_dump(mode='json')
            doc.update({
                'plan_id': plan_key,
                'is_completed': False,
                'completed_at': None
            })
            documents.append(doc)

        results = self.tasks.insert_many(documents, return_new=True)
        errors = [result for result in results if isinstance(result, Exception)]
        if errors:
            removed = self.tasks.delete_match({'plan_id': plan_key})
            logger.warning(f"🧹 Removed {removed} partial task rows for plan {plan_key}")
            raise errors[0]

        return sorted(
            (LearningTask(**result['new']) for result in results),
            key=lambda task: task.day_number
        )

    def get_tasks(self, plan_key: str) -> List[LearningTask]:
        """Tasks of a plan ordered by day number."""
        tasks = [LearningTask(**doc) for doc in self.tasks.find({'plan_id': plan_key})]
        return sorted(tasks, key=lambda task: task.day_number)

    def count_tasks(self, plan_key: str) -> int:
        return len(list(self.tasks.find({'plan_id': plan_key})))

    def get_task(self, task_key: str) -> Optional[LearningTask]:
        doc = self.tasks.get(task_key)
        if not doc:
            return None
        return LearningTask(**doc)

    def mark_task_complete(self, task_key: str, completed_at: Optional[datetime] = None) -> Optional[LearningTask]:
        """Flip the completion flag; a task already complete keeps its timestamp."""
        task = self.get_task(task_key)
        if task is None:
            return None
        if task.is_completed:
            return task

        completed_at = completed_at or datetime.now(timezone.utc)
        result = self.tasks.update(
            {
                '_key': task_key,
                'is_completed': True,
                'completed_at': completed_at.isoformat()
            },
            return_new=True
        )
        return LearningTask(**result['new'])
