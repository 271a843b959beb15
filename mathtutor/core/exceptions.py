"""
Domain exceptions.

Every exception carries a learner-facing ``message`` and the HTTP status
the API layer should answer with.
"""

from typing import Optional


class MathTutorError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500
    title: str = "Something went wrong"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.title
        super().__init__(self.message)

    def to_detail(self) -> dict:
        return {"error": self.title, "message": self.message}


# ============================================================================
# PLAN GENERATION
# ============================================================================

class PlanGenerationError(MathTutorError):
    """Plan generation could not complete."""

    title = "Plan generation failed"


class MissingFields(PlanGenerationError):
    status_code = 400
    title = "Missing information"

    def __init__(self, fields: list):
        self.fields = fields
        super().__init__(
            f"Please select a grade, topic and test date (missing: {', '.join(fields)})"
        )


class InvalidDate(PlanGenerationError):
    status_code = 400
    title = "Invalid test date"


class UnknownTopic(PlanGenerationError):
    status_code = 404
    title = "Invalid topic selected"

    def __init__(self, grade: str, topic_id: str):
        self.grade = grade
        self.topic_id = topic_id
        super().__init__(f"Topic '{topic_id}' is not part of the grade {grade} curriculum")


class InsertFailed(PlanGenerationError):
    status_code = 500
    title = "Plan creation failed"

    def __init__(self, what: str, attempts: int, cause: Optional[BaseException] = None):
        self.what = what
        self.attempts = attempts
        self.cause = cause
        reason = f": {cause}" if cause else ""
        super().__init__(f"Failed to create {what} after {attempts} attempts{reason}")


class PlanLookupFailed(PlanGenerationError):
    status_code = 503
    title = "Plan lookup failed"

    def __init__(self, attempts: int, cause: Optional[BaseException] = None):
        self.attempts = attempts
        self.cause = cause
        reason = f": {cause}" if cause else ""
        super().__init__(f"Failed to look up the existing plan after {attempts} attempts{reason}")


class VerificationFailed(PlanGenerationError):
    status_code = 500
    title = "Plan creation could not be verified"

    def __init__(self, session_id: str, cause: Optional[BaseException] = None):
        self.session_id = session_id
        self.cause = cause
        super().__init__("Plan creation could not be verified. Please try again.")


class RemoteGenerationFailed(PlanGenerationError):
    """Remote planner failed; always recovered by the local builder."""

    status_code = 502
    title = "Remote planner unavailable"


# ============================================================================
# PROGRESS / SESSION
# ============================================================================

class TaskNotFound(MathTutorError):
    status_code = 404
    title = "Task not found"

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task '{task_id}' does not exist")


class PlanNotFound(MathTutorError):
    status_code = 404
    title = "No learning plan"

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__("No learning plan exists for this session yet")


class QuizUnavailable(MathTutorError):
    status_code = 404
    title = "No quiz for topic"

    def __init__(self, topic_id: str):
        self.topic_id = topic_id
        super().__init__(f"Topic '{topic_id}' has no quiz to grade")


class ProblemNotFound(MathTutorError):
    status_code = 404
    title = "Problem not found"

    def __init__(self, topic_id: str, problem_id: str):
        self.topic_id = topic_id
        self.problem_id = problem_id
        super().__init__(f"Problem '{problem_id}' does not exist for topic '{topic_id}'")


class ProgressGateError(MathTutorError):
    status_code = 409
    title = "Stage locked"

    def __init__(self, task_id: str, message: Optional[str] = None):
        self.task_id = task_id
        super().__init__(message or "Pass the topic quiz before starting exercises for this task")


class SessionRequired(MathTutorError):
    status_code = 400
    title = "Session required"

    def __init__(self):
        super().__init__("No session identifier was supplied")


class TutorUnavailable(MathTutorError):
    status_code = 503
    title = "AI tutor unavailable"

    def __init__(self):
        super().__init__("GEMINI_API_KEY not configured. Set it in .env or environment variables.")


class TutorGatewayError(MathTutorError):
    status_code = 502
    title = "AI service error"

    def __init__(self, message: str, status_code: int = 502):
        self.status_code = status_code
        super().__init__(message)
