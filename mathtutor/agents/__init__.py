"""
AI agents for the math tutor.

This package contains the LLM-backed components:
- PlanOrchestrator: Runs plan generation (remote-first, local fallback)
- Planner: Drafts day-by-day study plans with structured output
- Tutor: Answers step questions, extracts graph data, writes quizzes
"""
