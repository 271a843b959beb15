"""
Curriculum catalog: topics per grade, lessons with step quizzes,
exercise sets, practice problems and video lessons.

Content is static and read-only; plan generation and the tutoring
endpoints look topics up here by their stable id.
"""

import re
from typing import Dict, List, Optional

from mathtutor.models.curriculum import (
    CurriculumTopic, Lesson, LessonStep, QuizQuestion,
    Problem, ProblemSet, DetailedStep, TranscriptSegment, VideoLesson
)


# ============================================================================
# TOPICS
# ============================================================================

CURRICULUM_TOPICS: Dict[str, List[CurriculumTopic]] = {
    "8": [
        CurriculumTopic(id="8-linear-equations", name="Linear Equations", grade="8"),
        CurriculumTopic(id="8-pythagorean-theorem", name="Pythagorean Theorem", grade="8"),
    ],
    "9": [
        CurriculumTopic(id="9-polynomials", name="Polynomials", grade="9"),
        CurriculumTopic(
            id="9-quadratics",
            name="Quadratic Equations",
            grade="9",
            subtopics=[
                "Quadratic Equations Basics",
                "Factoring Quadratics",
                "Quadratic Formula",
                "Graphing Parabolas",
            ]
        ),
    ],
    "10": [
        CurriculumTopic(id="10-functions", name="Functions", grade="10"),
        CurriculumTopic(id="10-trigonometry", name="Trigonometry", grade="10"),
    ],
}


# ============================================================================
# LESSONS
# ============================================================================

QUADRATICS_LESSON = Lesson(
    topic_id="9-quadratics",
    title="Quadratic Equations",
    introduction=(
        "A quadratic equation has the form $ax^2 + bx + c = 0$ with $a \\neq 0$. "
        "In this lesson you will learn to recognise, factor, solve and graph them."
    ),
    steps=[
        LessonStep(
            title="Standard Form",
            explanation="Write every quadratic as $ax^2 + bx + c = 0$ before solving. Move all terms to one side.",
            example="$x^2 = 5x - 6$ becomes $x^2 - 5x + 6 = 0$, so $a = 1, b = -5, c = 6$.",
            tip="The coefficient $a$ must never be zero, otherwise the equation is linear.",
            quiz_question=QuizQuestion(
                question="What is $b$ in $2x^2 - 3x + 7 = 0$?",
                options=["2", "-3", "7", "3"],
                correct_answer=1,
                explanation="$b$ is the coefficient of $x$, including its sign: $-3$."
            )
        ),
        LessonStep(
            title="Factoring",
            explanation="Find two numbers whose product is $c$ and whose sum is $b$ (when $a = 1$).",
            example="$x^2 + 7x + 12 = (x + 3)(x + 4)$ because $3 \\cdot 4 = 12$ and $3 + 4 = 7$.",
            quiz_question=QuizQuestion(
                question="Factor $x^2 + 5x + 6$.",
                options=["$(x+1)(x+6)$", "$(x+2)(x+3)$", "$(x-2)(x-3)$", "$(x+5)(x+1)$"],
                correct_answer=1,
                explanation="$2 \\cdot 3 = 6$ and $2 + 3 = 5$."
            )
        ),
        LessonStep(
            title="Zero Product Property",
            explanation="If $A \\cdot B = 0$ then $A = 0$ or $B = 0$. Set each factor to zero.",
            example="$(x - 2)(x + 5) = 0$ gives $x = 2$ or $x = -5$.",
            quiz_question=QuizQuestion(
                question="Solve $(x - 4)(x + 1) = 0$.",
                options=["$x = 4$ or $x = -1$", "$x = -4$ or $x = 1$", "$x = 4$ only", "$x = 3$"],
                correct_answer=0,
                explanation="Each factor equal to zero gives one root."
            )
        ),
        LessonStep(
            title="The Quadratic Formula",
            explanation="$x = \\frac{-b \\pm \\sqrt{b^2 - 4ac}}{2a}$ solves any quadratic.",
            example="For $x^2 - 2x - 3 = 0$: $x = \\frac{2 \\pm 4}{2}$, so $x = 3$ or $x = -1$.",
            tip="Compute the discriminant first to know how many roots to expect.",
            quiz_question=QuizQuestion(
                question="What is the discriminant of $x^2 + 4x + 4 = 0$?",
                options=["0", "8", "16", "-8"],
                correct_answer=0,
                explanation="$b^2 - 4ac = 16 - 16 = 0$."
            )
        ),
        LessonStep(
            title="Number of Roots",
            explanation="Discriminant $> 0$: two real roots. $= 0$: one repeated root. $< 0$: no real roots.",
            quiz_question=QuizQuestion(
                question="How many real roots does $x^2 + x + 5 = 0$ have?",
                options=["Two", "One", "None", "Infinitely many"],
                correct_answer=2,
                explanation="$1 - 20 = -19 < 0$, so there are no real roots."
            )
        ),
        LessonStep(
            title="Graphing Parabolas",
            explanation="The graph of $y = ax^2 + bx + c$ is a parabola with vertex at $x = -\\frac{b}{2a}$.",
            example="$y = x^2 - 4x + 3$ has vertex at $x = 2$, $y = -1$.",
            tip="If $a > 0$ the parabola opens upward.",
            quiz_question=QuizQuestion(
                question="Where is the vertex of $y = x^2 - 6x + 1$?",
                options=["$x = 6$", "$x = -3$", "$x = 3$", "$x = 1$"],
                correct_answer=2,
                explanation="$-\\frac{b}{2a} = \\frac{6}{2} = 3$."
            )
        ),
    ]
)

POLYNOMIALS_LESSON = Lesson(
    topic_id="9-polynomials",
    title="Polynomials",
    introduction="A polynomial is a sum of terms of the form $ax^n$ with whole-number exponents.",
    steps=[
        LessonStep(
            title="Like Terms",
            explanation="Terms with the same variable and exponent can be combined.",
            example="$3x^2 + 5x^2 = 8x^2$",
            quiz_question=QuizQuestion(
                question="Simplify $4x + 2x^2 - x$.",
                options=["$2x^2 + 3x$", "$5x^2$", "$2x^2 + 5x$", "$6x^3$"],
                correct_answer=0,
                explanation="Only $4x$ and $-x$ are like terms."
            )
        ),
        LessonStep(
            title="Multiplying Binomials",
            explanation="Multiply each term of the first factor by each term of the second.",
            example="$(x + 3)(x - 2) = x^2 + x - 6$",
            quiz_question=QuizQuestion(
                question="Expand $(x + 1)(x + 4)$.",
                options=["$x^2 + 4$", "$x^2 + 5x + 4$", "$x^2 + 4x + 1$", "$2x + 5$"],
                correct_answer=1,
                explanation="$x^2 + 4x + x + 4$."
            )
        ),
        LessonStep(
            title="Degree",
            explanation="The degree of a polynomial is its highest exponent.",
            quiz_question=QuizQuestion(
                question="What is the degree of $7x^3 - x^5 + 2$?",
                options=["3", "7", "5", "2"],
                correct_answer=2,
                explanation="The highest exponent is 5."
            )
        ),
    ]
)

LESSONS: Dict[str, Lesson] = {
    QUADRATICS_LESSON.topic_id: QUADRATICS_LESSON,
    POLYNOMIALS_LESSON.topic_id: POLYNOMIALS_LESSON,
}


# ============================================================================
# EXERCISES & PRACTICE
# ============================================================================

EXERCISES: Dict[str, ProblemSet] = {
    "9-quadratics": ProblemSet(
        topic_id="9-quadratics",
        problems=[
            Problem(
                id="ex1",
                question="Solve for $x$: $2x + 5 = 15$",
                answer="5",
                hint="Isolate $x$ by undoing the addition first.",
                detailed_solution=[
                    DetailedStep(step="$2x + 5 - 5 = 15 - 5$", explanation="Subtract 5 from both sides"),
                    DetailedStep(step="$2x = 10$", explanation="Simplify"),
                    DetailedStep(step="$x = 5$", explanation="Divide both sides by 2"),
                ]
            ),
            Problem(
                id="ex2",
                question="Expand $(x + 3)(x - 2)$",
                answer="x^2 + x - 6",
                hint="Distribute each term of the first factor.",
                detailed_solution=[
                    DetailedStep(step="$x \\cdot x + x \\cdot (-2) + 3 \\cdot x + 3 \\cdot (-2)$", explanation="Distribute every term"),
                    DetailedStep(step="$x^2 - 2x + 3x - 6$", explanation="Multiply"),
                    DetailedStep(step="$x^2 + x - 6$", explanation="Combine like terms"),
                ]
            ),
            Problem(
                id="ex3",
                question="Factor $x^2 + 7x + 12$",
                answer="(x + 3)(x + 4)",
                hint="Which two numbers multiply to 12 and add to 7?",
                detailed_solution=[
                    DetailedStep(step="$3 \\cdot 4 = 12$, $3 + 4 = 7$", explanation="Find the factor pair"),
                    DetailedStep(step="$(x + 3)(x + 4)$", explanation="Write the factors"),
                ]
            ),
            Problem(
                id="ex4",
                question="Solve $x^2 - 5x + 6 = 0$. Give the larger root.",
                answer="3",
                hint="Factor, then use the zero product property.",
                detailed_solution=[
                    DetailedStep(step="$(x - 2)(x - 3) = 0$", explanation="Factor the trinomial"),
                    DetailedStep(step="$x = 2$ or $x = 3$", explanation="Set each factor to zero"),
                    DetailedStep(step="$x = 3$", explanation="Pick the larger root"),
                ]
            ),
        ]
    ),
    "9-polynomials": ProblemSet(
        topic_id="9-polynomials",
        problems=[
            Problem(
                id="poly1",
                question="Simplify $3x^2 + 2x - x^2 + 4x$",
                answer="2x^2 + 6x",
                hint="Combine like terms.",
                detailed_solution=[
                    DetailedStep(step="$(3x^2 - x^2) + (2x + 4x)$", explanation="Group like terms"),
                    DetailedStep(step="$2x^2 + 6x$", explanation="Combine"),
                ]
            ),
            Problem(
                id="poly2",
                question="Expand $(x + 2)(x + 5)$",
                answer="x^2 + 7x + 10",
                hint="Distribute each term.",
                detailed_solution=[
                    DetailedStep(step="$x^2 + 5x + 2x + 10$", explanation="Distribute"),
                    DetailedStep(step="$x^2 + 7x + 10$", explanation="Combine like terms"),
                ]
            ),
        ]
    ),
}

PRACTICE: Dict[str, ProblemSet] = {
    "9-quadratics": ProblemSet(
        topic_id="9-quadratics",
        problems=[
            Problem(
                id="p1",
                question="Solve $x^2 - 9 = 0$. Give the positive root.",
                answer="3",
                hint="Difference of squares.",
                detailed_solution=[
                    DetailedStep(step="$(x - 3)(x + 3) = 0$", explanation="Factor"),
                    DetailedStep(step="$x = 3$", explanation="Positive root"),
                ]
            ),
            Problem(
                id="p2",
                question="Factor $x^2 - x - 12$",
                answer="(x - 4)(x + 3)",
                hint="Product $-12$, sum $-1$.",
                detailed_solution=[
                    DetailedStep(step="$-4 \\cdot 3 = -12$, $-4 + 3 = -1$", explanation="Find the pair"),
                    DetailedStep(step="$(x - 4)(x + 3)$", explanation="Write the factors"),
                ]
            ),
            Problem(
                id="p3",
                question="What is the discriminant of $2x^2 + 3x - 2 = 0$?",
                answer="25",
                hint="$b^2 - 4ac$",
                detailed_solution=[
                    DetailedStep(step="$9 - 4 \\cdot 2 \\cdot (-2)$", explanation="Substitute"),
                    DetailedStep(step="$9 + 16 = 25$", explanation="Evaluate"),
                ]
            ),
        ]
    ),
}


# ============================================================================
# VIDEOS
# ============================================================================

VIDEOS: Dict[str, List[VideoLesson]] = {
    "9-quadratics": [
        VideoLesson(
            id="quadratics-intro",
            title="Understanding Quadratic Equations",
            youtube_id="-JjFV3kk6pQ",
            description="Master the fundamentals of quadratic equations and parabolas.",
            transcript=[
                TranscriptSegment(timestamp="0:00", seconds=0, text="Quadratic equations have the form ax² + bx + c = 0"),
                TranscriptSegment(timestamp="0:30", seconds=30, text="The graph of a quadratic is a parabola."),
                TranscriptSegment(
                    timestamp="1:15", seconds=75,
                    text="We can solve using factoring, completing the square, or the quadratic formula."
                ),
                TranscriptSegment(timestamp="2:00", seconds=120, text="The discriminant tells us how many solutions we have."),
            ]
        ),
        VideoLesson(
            id="factoring-quadratics",
            title="Factoring Quadratic Equations",
            youtube_id="gTKZOJnJL6w",
            description="Learn techniques for factoring quadratic expressions.",
            transcript=[
                TranscriptSegment(timestamp="0:00", seconds=0, text="Factoring is one of the easiest ways to solve quadratics."),
                TranscriptSegment(timestamp="0:40", seconds=40, text="Look for two numbers that multiply to c and add to b."),
                TranscriptSegment(timestamp="1:30", seconds=90, text="Write the equation as (x + p)(x + q) = 0"),
            ]
        ),
    ],
}

# ============================================================================
# LOOKUPS
# ============================================================================

def get_topics(grade: str) -> List[CurriculumTopic]:
    """Topics offered for a grade (empty for unknown grades)."""
    return list(CURRICULUM_TOPICS.get(str(grade), []))


def find_topic(grade: str, topic_id: str) -> Optional[CurriculumTopic]:
    for topic in CURRICULUM_TOPICS.get(str(grade), []):
        if topic.id == topic_id:
            return topic
    return None


def find_topic_by_id(topic_id: str) -> Optional[CurriculumTopic]:
    """Find a topic in any grade."""
    for topics in CURRICULUM_TOPICS.values():
        for topic in topics:
            if topic.id == topic_id:
                return topic
    return None


def get_lesson(topic_id: str) -> Optional[Lesson]:
    return LESSONS.get(topic_id)


def get_quiz(topic_id: str) -> List[QuizQuestion]:
    """The topic quiz: one question per lesson step, in lesson order."""
    lesson = LESSONS.get(topic_id)
    if lesson is None:
        return []
    return [step.quiz_question for step in lesson.steps]


def get_exercises(topic_id: str) -> Optional[ProblemSet]:
    return EXERCISES.get(topic_id)


def get_practice(topic_id: str) -> Optional[ProblemSet]:
    return PRACTICE.get(topic_id)


def find_problem(problem_set: Optional[ProblemSet], problem_id: str) -> Optional[Problem]:
    if problem_set is None:
        return None
    return next((p for p in problem_set.problems if p.id == problem_id), None)


_WHITESPACE = re.compile(r"\s+")


def normalize_answer(answer: str) -> str:
    """Lowercase and drop all whitespace."""
    return _WHITESPACE.sub("", (answer or "").lower())


def answers_match(given: str, expected: str) -> bool:
    return normalize_answer(given) == normalize_answer(expected)


def get_videos(topic_id: str) -> List[VideoLesson]:
    """Video lessons for a topic, in viewing order (empty when none)."""
    return list(VIDEOS.get(topic_id, []))
