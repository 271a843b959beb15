"""
Math Tutor Agent.

Answers learner questions about a lesson or solution step, extracts graph
parameters for plotting, and generates practice quizzes.

Capabilities:
    - ask: single completion
    - stream_answer: incremental completion (text deltas)
    - generate_graph_data: parabola parameters as JSON, or nothing
    - generate_quiz: structured multiple-choice questions

Usage:
    agent = get_tutor_agent()
    async for delta in agent.stream_answer(question):
        ...
"""

from typing import AsyncIterator, List, Optional
import json
import logging
import re

from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder

from mathtutor.core.config import settings
from mathtutor.core.exceptions import TutorUnavailable
from mathtutor.models.curriculum import QuizQuestion
from mathtutor.models.tutor import (
    TutorQuestion, GraphDataRequest, GraphData, QuizRequest, GeneratedQuiz
)

logger = logging.getLogger(__name__)


# ============================================================================
# PROMPT TEMPLATES
# ============================================================================

TUTOR_SYSTEM_PROMPT = """You are a patient math tutor helping a grade {grade_level} student with {topic}.

The student is looking at this step:
**Step:** {step_content}
**Explanation:** {step_explanation}
**Example:** {step_example}

Rules:
- Answer the student's question about this step directly and briefly
- Use LaTeX between $...$ for math
- Explain the reasoning, not just the result
- If the student is confused, try a simpler example
- Keep the answer under 200 words"""

GRAPH_DATA_PROMPT = """You are a mathematical graph data extractor. Based on the following context from a grade {grade_level} math lesson about {topic}, extract the parameters needed to draw a graph.

Step: {step}
Example: {example}
Context: {context}

If this involves a quadratic equation or parabola:
1. Extract coefficients a, b, c from the equation
2. Calculate or extract the discriminant
3. Calculate the roots (x-intercepts) if they exist
4. Provide a label describing the equation

Respond with ONLY a JSON object in this exact format (no markdown, no extra text):
{{
  "type": "parabola",
  "parameters": {{
    "a": <number>,
    "b": <number>,
    "c": <number>,
    "discriminant": <number>,
    "roots": [<array of numbers if they exist, empty array otherwise>],
    "label": "<equation like '3x² + 7x - 2 = 0'>"
  }}
}}

If no graph can be generated, respond with:
{{ "type": "none" }}"""

QUIZ_PROMPT = """Create {count} multiple-choice questions for a grade {grade_level} student on {topic}.

Each question needs 4 options, the index (0-3) of the correct option, and a one-sentence explanation.
Use LaTeX between $...$ for math. Vary difficulty from easy to moderate."""


# ============================================================================
# PARSING HELPERS
# ============================================================================

_CODE_FENCE = re.compile(r"```json\n?|\n?```")


def strip_code_fences(text: str) -> str:
    """Remove markdown ```json fences the model sometimes adds."""
    return _CODE_FENCE.sub("", text).strip()


def parse_graph_payload(text: str) -> Optional[GraphData]:
    """
    Parse the model's graph reply.

    Returns:
        GraphData, or None when the model answered ``{"type": "none"}``

    Raises:
        ValueError: If the reply is not valid graph JSON
    """
    try:
        payload = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise ValueError(f"Failed to parse graph data: {e}") from e

    if not isinstance(payload, dict):
        raise ValueError("Failed to parse graph data: not an object")
    if payload.get("type") == "none":
        return None
    return GraphData.model_validate(payload)


def message_text(content) -> str:
    """Flatten chat content (plain string or list of content blocks)."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


# ============================================================================
# TUTOR AGENT CLASS
# ============================================================================

class TutorAgent:
    """Gemini-backed tutoring gateway."""

    def __init__(self, llm: Optional[ChatGoogleGenerativeAI] = None):
        """Initialize the tutor with Gemini (or an injected chat model)."""
        if llm is None:
            if not settings.GEMINI_API_KEY:
                raise TutorUnavailable()
            llm = ChatGoogleGenerativeAI(
                model=settings.GEMINI_MODEL,
                google_api_key=settings.GEMINI_API_KEY,
                temperature=0.7,
                max_output_tokens=2048
            )

        self.llm = llm
        self.tutor_prompt = ChatPromptTemplate.from_messages([
            ("system", TUTOR_SYSTEM_PROMPT),
            MessagesPlaceholder("history"),
            ("human", "{user_question}")
        ])
        self.graph_prompt = ChatPromptTemplate.from_template(GRAPH_DATA_PROMPT)
        self.quiz_prompt = ChatPromptTemplate.from_template(QUIZ_PROMPT)

        logger.info(f"✅ TutorAgent initialized with model: {settings.GEMINI_MODEL}")

    def _tutor_messages(self, question: TutorQuestion) -> List[BaseMessage]:
        history: List[BaseMessage] = [
            HumanMessage(content=message.content) if message.role == "user"
            else AIMessage(content=message.content)
            for message in question.conversation_history
        ]
        return self.tutor_prompt.format_messages(
            grade_level=question.grade_level,
            topic=question.topic,
            step_content=question.step_content,
            step_explanation=question.step_explanation or "(none)",
            step_example=question.step_example or "(none)",
            history=history,
            user_question=question.user_question
        )

    async def ask(self, question: TutorQuestion) -> str:
        """Answer in a single completion."""
        logger.info(f"💬 Tutor question on '{question.topic}' ({len(question.conversation_history)} prior messages)")
        response = await self.llm.ainvoke(self._tutor_messages(question))
        return message_text(response.content).strip()

    async def stream_answer(self, question: TutorQuestion) -> AsyncIterator[str]:
        """Answer incrementally; each item is a text delta."""
        logger.info(f"💬 Streaming tutor answer on '{question.topic}'")
        async for chunk in self.llm.astream(self._tutor_messages(question)):
            text = message_text(chunk.content)
            if text:
                yield text

    async def generate_graph_data(self, request: GraphDataRequest) -> Optional[GraphData]:
        """
        Extract parabola parameters for plotting.

        Returns:
            GraphData, or None when nothing can be drawn

        Raises:
            ValueError: If the model reply cannot be parsed
        """
        messages = self.graph_prompt.format_messages(
            grade_level=request.grade_level,
            topic=request.topic,
            step=request.step or "",
            example=request.example or "",
            context=request.context or ""
        )
        response = await self.llm.ainvoke(messages)
        text = message_text(response.content)
        if not text:
            raise ValueError("No response from AI")

        logger.debug(f"📈 Graph reply: {text[:200]}")
        return parse_graph_payload(text)

    async def generate_quiz(self, request: QuizRequest) -> List[QuizQuestion]:
        """Generate multiple-choice questions with a structured-output call."""
        structured_llm = self.llm.with_structured_output(GeneratedQuiz)
        messages = self.quiz_prompt.format_messages(
            count=request.count,
            grade_level=request.grade_level,
            topic=request.topic
        )
        quiz = await structured_llm.ainvoke(messages)

        questions = [
            question for question in (quiz.questions if quiz else [])
            if question.correct_answer < len(question.options)
        ]
        logger.info(f"📝 Generated {len(questions)} quiz questions on '{request.topic}'")
        return questions[:request.count]


# ============================================================================
# CONVENIENCE FUNCTION
# ============================================================================

_tutor_agent_instance: Optional[TutorAgent] = None


def get_tutor_agent() -> TutorAgent:
    """
    Get or create the global tutor agent instance.

    Raises:
        TutorUnavailable: If GEMINI_API_KEY is not configured
    """
    global _tutor_agent_instance

    if _tutor_agent_instance is None:
        _tutor_agent_instance = TutorAgent()

    return _tutor_agent_instance
