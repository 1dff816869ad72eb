"""
ainterview: voice interview practice with AI feedback.

Asks behavioral or technical questions, records spoken answers, transcribes
them and returns feedback on clarity, conciseness and overall quality.
"""

__version__ = "1.0.0"

# Main entry points
from .interview.orchestrator import InterviewSessionMachine, SessionState
from .interview.models import Category, Difficulty, Question, Feedback, Exchange, Session
from .context import AppContext, build_context

__all__ = [
    "InterviewSessionMachine", "SessionState",
    "Category", "Difficulty", "Question", "Feedback", "Exchange", "Session",
    "AppContext", "build_context",
]
