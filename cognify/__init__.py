"""
Cognify: AI interview-practice studio with live voice sessions.

Generates tailored interview questions, runs the interview by text or as a
live spoken conversation, scores every answer and keeps a local history.
"""

__version__ = "1.0.0"

# Main entry points
from .interview.sequencer import SessionSequencer
from .interview.models import InterviewSession, UserProfile

__all__ = ["SessionSequencer", "InterviewSession", "UserProfile"]
