"""
Shared fixtures: an in-memory stand-in for the ArangoDB collections the
CRUD layer touches, a fixed clock, and scripted planners.
"""

import asyncio
import copy
import itertools
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

import pytest

from mathtutor.agents.plan_orchestrator import PlanOrchestrator
from mathtutor.crud.mistake import MistakeCRUD
from mathtutor.crud.plan import PlanCRUD
from mathtutor.crud.progress import ProgressCRUD
from mathtutor.db.database import COLLECTIONS
from mathtutor.models.plan import PlannerTask, TaskType
from mathtutor.services.progress_tracker import ProgressTracker

TODAY = date(2026, 10, 18)
NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
SESSION = "session-aaaa-bbbb"


class StorageError(Exception):
    """Raised by FakeCollection when a failure has been injected."""


# ============================================================================
# FAKE DATABASE
# ============================================================================

class FakeCollection:
    """Dict-backed subset of python-arango's StandardCollection."""

    _ids = itertools.count(1)

    def __init__(self, name: str):
        self.name = name
        self.docs: Dict[str, dict] = {}
        self.fail_inserts = 0
        self.fail_reads = 0
        # insert_many: number of calls where the last document is rejected
        self.fail_many = 0
        self.insert_calls = 0
        self.insert_many_calls = 0

    def _matches(self, doc: dict, filters: dict) -> bool:
        return all(doc.get(field) == value for field, value in filters.items())

    def _store(self, document: dict) -> dict:
        doc = copy.deepcopy(document)
        doc.setdefault('_key', f"{self.name}-{next(self._ids)}")
        doc['_id'] = f"{self.name}/{doc['_key']}"
        self.docs[doc['_key']] = doc
        return {'_key': doc['_key'], 'new': copy.deepcopy(doc)}

    def insert(self, document: dict, return_new: bool = False):
        self.insert_calls += 1
        if self.fail_inserts:
            self.fail_inserts -= 1
            raise StorageError(f"insert into {self.name} failed")
        return self._store(document)

    def insert_many(self, documents: List[dict], return_new: bool = False):
        self.insert_many_calls += 1
        failing = bool(self.fail_many)
        if failing:
            self.fail_many -= 1

        results = []
        for index, document in enumerate(documents):
            if failing and index == len(documents) - 1:
                results.append(StorageError(f"insert into {self.name} failed"))
            else:
                results.append(self._store(document))
        return results

    def get(self, key: str) -> Optional[dict]:
        if self.fail_reads:
            self.fail_reads -= 1
            raise StorageError(f"read from {self.name} failed")
        doc = self.docs.get(key)
        return copy.deepcopy(doc) if doc else None

    def find(self, filters: dict):
        if self.fail_reads:
            self.fail_reads -= 1
            raise StorageError(f"read from {self.name} failed")
        return [copy.deepcopy(doc) for doc in self.docs.values() if self._matches(doc, filters)]

    def update(self, document: dict, return_new: bool = False):
        doc = self.docs[document['_key']]
        doc.update(copy.deepcopy(document))
        return {'_key': doc['_key'], 'new': copy.deepcopy(doc)}

    def delete(self, key: str, ignore_missing: bool = False):
        if key not in self.docs and not ignore_missing:
            raise StorageError(f"{key} not found")
        self.docs.pop(key, None)
        return True

    def delete_match(self, filters: dict) -> int:
        keys = [key for key, doc in self.docs.items() if self._matches(doc, filters)]
        for key in keys:
            del self.docs[key]
        return len(keys)

    def count(self) -> int:
        return len(self.docs)


class FakeDatabase:
    def __init__(self):
        self._collections = {name: FakeCollection(name) for name in COLLECTIONS}

    def collection(self, name: str) -> FakeCollection:
        return self._collections[name]

    def has_collection(self, name: str) -> bool:
        return name in self._collections

    def collections(self):
        return [{'name': name} for name in self._collections]


# ============================================================================
# FAKE PLANNERS
# ============================================================================

class ScriptedPlanner:
    """Returns a fixed list of planner tasks."""

    def __init__(self, tasks: List[PlannerTask]):
        self.tasks = tasks
        self.calls = 0

    async def draft_tasks(self, grade, topic_name, test_date, days):
        self.calls += 1
        return self.tasks


class FailingPlanner:
    def __init__(self, error: Exception = None):
        self.error = error or RuntimeError("gateway returned 500")
        self.calls = 0

    async def draft_tasks(self, grade, topic_name, test_date, days):
        self.calls += 1
        raise self.error


class HangingPlanner:
    """Never answers within any reasonable timeout."""

    async def draft_tasks(self, grade, topic_name, test_date, days):
        await asyncio.sleep(60)
        return []


def planner_tasks(days: int) -> List[PlannerTask]:
    return [
        PlannerTask(
            day_number=day,
            title=f"Day {day} study",
            description="Work through the lesson and examples",
            task_type=TaskType.REVIEW if day == days else TaskType.THEORY
        )
        for day in range(1, days + 1)
    ]


async def no_sleep(seconds: float) -> None:
    return None


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def plan_crud(fake_db) -> PlanCRUD:
    return PlanCRUD(fake_db)


@pytest.fixture
def progress_crud(fake_db) -> ProgressCRUD:
    return ProgressCRUD(fake_db)


@pytest.fixture
def mistake_crud(fake_db) -> MistakeCRUD:
    return MistakeCRUD(fake_db)


@pytest.fixture
def make_orchestrator(plan_crud):
    """Build an orchestrator with a fixed clock and no retry delay."""
    def factory(planner=None, **kwargs) -> PlanOrchestrator:
        kwargs.setdefault("retry_delay", 0)
        kwargs.setdefault("remote_timeout", 0.05)
        return PlanOrchestrator(
            plan_crud,
            planner=planner,
            today=lambda: TODAY,
            sleep=no_sleep,
            **kwargs
        )
    return factory


@pytest.fixture
def tracker(plan_crud, progress_crud, mistake_crud) -> ProgressTracker:
    return ProgressTracker(plan_crud, progress_crud, mistake_crud, now=lambda: NOW)
