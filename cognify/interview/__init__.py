"""Interview practice components.

This module contains the business logic for running practice sessions,
including sequencing, the live voice session, provider services and analytics.
"""

# Session sequencer
from .sequencer import (
    SessionSequencer, SessionStartError, EvaluationError,
    VoiceSessionLostError, SequencerStateError
)

# Live voice session
from .voice import VoiceSession, create_voice_session

# Data models
from .models import (
    UserProfile, Question, Answer, Feedback, SessionResults, InterviewSession,
    ATSAnalysis, JobRecommendation, AuthUser, RegisteredUser
)

# Response parsing and runtime state
from .schemas import (
    SequencerState, TranscriptBuffer, QuestionTimer, extract_json,
    parse_questions, parse_feedback, parse_ats_analysis, parse_job_recommendations
)

# Service classes
from .services import InterviewProvider, CoachChat
from .prompts import InterviewPrompts, ResponseSchemas

# Analytics
from .analysis import SessionAnalytics

# Event system
from .events import (
    SessionEventBus, EventLogger, SessionMetrics,
    EventType, SessionEvent, SessionStartedEvent, QuestionPresentedEvent,
    AnswerRecordedEvent, VoiceFallbackEvent, EvaluationProgressEvent,
    SessionCompletedEvent, SessionFailedEvent, SessionAbandonedEvent,
    ErrorOccurredEvent
)

__all__ = [
    # Sequencer
    "SessionSequencer", "SessionStartError", "EvaluationError",
    "VoiceSessionLostError", "SequencerStateError",

    # Voice
    "VoiceSession", "create_voice_session",

    # Data models
    "UserProfile", "Question", "Answer", "Feedback", "SessionResults",
    "InterviewSession", "ATSAnalysis", "JobRecommendation", "AuthUser", "RegisteredUser",

    # Schemas and state
    "SequencerState", "TranscriptBuffer", "QuestionTimer", "extract_json",
    "parse_questions", "parse_feedback", "parse_ats_analysis", "parse_job_recommendations",

    # Services
    "InterviewProvider", "CoachChat", "InterviewPrompts", "ResponseSchemas",

    # Analytics
    "SessionAnalytics",

    # Events
    "SessionEventBus", "EventLogger", "SessionMetrics",
    "EventType", "SessionEvent", "SessionStartedEvent", "QuestionPresentedEvent",
    "AnswerRecordedEvent", "VoiceFallbackEvent", "EvaluationProgressEvent",
    "SessionCompletedEvent", "SessionFailedEvent", "SessionAbandonedEvent",
    "ErrorOccurredEvent",
]
