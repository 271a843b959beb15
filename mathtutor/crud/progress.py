from typing import Optional
from datetime import datetime, timezone
from arango.database import StandardDatabase

from mathtutor.models.progress import TaskProgress


class ProgressCRUD:
    """Per task, per session progress rows."""

    def __init__(self, db: StandardDatabase):
        self.db = db
        self.collection = db.collection('task_progress')

    @staticmethod
    def progress_key(task_id: str, session_id: str) -> str:
        """One row per (task, session), so the key is derived from both."""
        return f"{session_id}_{task_id}"

    def get(self, task_id: str, session_id: str) -> Optional[TaskProgress]:
        doc = self.collection.get(self.progress_key(task_id, session_id))
        if not doc:
            return None
        return TaskProgress(**doc)

    def upsert(self, task_id: str, session_id: str, **fields) -> TaskProgress:
        """Create the row lazily on first write, otherwise patch it."""
        key = self.progress_key(task_id, session_id)
        fields['updated_at'] = datetime.now(timezone.utc).isoformat()

        if self.collection.get(key):
            result = self.collection.update({'_key': key, **fields}, return_new=True)
        else:
            document = {
                '_key': key,
                'task_id': task_id,
                'session_id': session_id,
                'quiz_passed': False,
                'exercises_completed': 0
            }
            document.update(fields)
            result = self.collection.insert(document, return_new=True)

        return TaskProgress(**result['new'])

    def mark_quiz_passed(self, task_id: str, session_id: str) -> TaskProgress:
        return self.upsert(task_id, session_id, quiz_passed=True)

    def set_exercises_completed(self, task_id: str, session_id: str, count: int) -> TaskProgress:
        return self.upsert(task_id, session_id, exercises_completed=count)
