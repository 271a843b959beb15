#!/usr/bin/env python3
"""
Print a session's learning plan with per-task progress, straight from the
database.

Usage:
    python scripts/show_plan.py <session-id>
"""
import sys
from datetime import date
from pathlib import Path

from rich.console import Console
from rich.table import Table

# Add the project root to Python path
sys.path.append(str(Path(__file__).parent.parent))

from mathtutor.crud.plan import PlanCRUD
from mathtutor.crud.progress import ProgressCRUD
from mathtutor.db.database import get_db
from mathtutor.services.progress_tracker import stage_for

console = Console()

STAGE_STYLES = {
    "not_started": "white",
    "quiz_passed": "yellow",
    "exercises_in_progress": "cyan",
    "complete": "green",
}


def show_plan(session_id: str) -> int:
    db = get_db()
    plan_crud = PlanCRUD(db)
    progress_crud = ProgressCRUD(db)

    plan = plan_crud.get_plan_by_session(session_id)
    if plan is None:
        console.print("❌ No learning plan for this session", style="red")
        return 1

    console.print(
        f"📚 {plan.topic_name} (grade {plan.grade}), test on {plan.test_date.isoformat()}, "
        f"source: {plan.source.value}",
        style="bold blue"
    )

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Day", justify="right")
    table.add_column("Date")
    table.add_column("Title")
    table.add_column("Type")
    table.add_column("Stage")

    today = date.today()
    for task in plan_crud.get_tasks(plan.key):
        progress = progress_crud.get(task.key, session_id)
        stage = stage_for(progress, task).value
        date_style = "bold" if task.scheduled_date == today else ""
        table.add_row(
            str(task.day_number),
            f"[{date_style}]{task.scheduled_date.isoformat()}[/]" if date_style else task.scheduled_date.isoformat(),
            task.title,
            task.task_type.value,
            f"[{STAGE_STYLES.get(stage, 'white')}]{stage}[/]"
        )

    console.print(table)
    return 0


if __name__ == "__main__":
    if len(sys.argv) != 2:
        console.print("Usage: python scripts/show_plan.py <session-id>", style="yellow")
        sys.exit(2)
    sys.exit(show_plan(sys.argv[1]))
