"""
Math Tutor backend.

Study plan generation, progress tracking, mistake analytics and
AI tutoring endpoints for the math tutoring web client.
"""

__version__ = "1.0.0"
