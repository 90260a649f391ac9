"""
Event-driven architecture for the practice studio.
"""
import logging
from abc import ABC
from typing import Dict, Any, List, Callable
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger("events")


class EventType(str, Enum):
    """Types of session events."""
    SESSION_STARTED = "session_started"
    QUESTION_PRESENTED = "question_presented"
    ANSWER_RECORDED = "answer_recorded"
    VOICE_FALLBACK = "voice_fallback"
    EVALUATION_PROGRESS = "evaluation_progress"
    SESSION_COMPLETED = "session_completed"
    SESSION_FAILED = "session_failed"
    SESSION_ABANDONED = "session_abandoned"
    ERROR_OCCURRED = "error_occurred"


@dataclass
class SessionEvent(ABC):
    """Base class for all session events."""
    event_type: EventType
    session_id: str
    timestamp: float
    data: Dict[str, Any]


@dataclass
class SessionStartedEvent(SessionEvent):
    """Event fired once questions are loaded and the first one is shown."""
    def __init__(self, session_id: str, timestamp: float, mode: str,
                 question_count: int, is_voice_mode: bool):
        super().__init__(
            event_type=EventType.SESSION_STARTED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "mode": mode,
                "question_count": question_count,
                "is_voice_mode": is_voice_mode
            }
        )


@dataclass
class QuestionPresentedEvent(SessionEvent):
    """Event fired when the user is shown a new question."""
    def __init__(self, session_id: str, timestamp: float, index: int, question_id: str, text: str):
        super().__init__(
            event_type=EventType.QUESTION_PRESENTED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "index": index,
                "question_id": question_id,
                "text": text
            }
        )


@dataclass
class AnswerRecordedEvent(SessionEvent):
    """Event fired when an answer is appended to the session."""
    def __init__(self, session_id: str, timestamp: float, index: int, question_id: str,
                 time_spent: int, answer_length: int):
        super().__init__(
            event_type=EventType.ANSWER_RECORDED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "index": index,
                "question_id": question_id,
                "time_spent": time_spent,
                "answer_length": answer_length
            }
        )


@dataclass
class VoiceFallbackEvent(SessionEvent):
    """Event fired when a voice session continues in text mode."""
    def __init__(self, session_id: str, timestamp: float, reason: str):
        super().__init__(
            event_type=EventType.VOICE_FALLBACK,
            session_id=session_id,
            timestamp=timestamp,
            data={"reason": reason}
        )


@dataclass
class EvaluationProgressEvent(SessionEvent):
    """Event fired after each answer has been scored."""
    def __init__(self, session_id: str, timestamp: float, scored: int, total: int, progress: int):
        super().__init__(
            event_type=EventType.EVALUATION_PROGRESS,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "scored": scored,
                "total": total,
                "progress": progress
            }
        )


@dataclass
class SessionCompletedEvent(SessionEvent):
    """Event fired when results are attached and the session is saved."""
    def __init__(self, session_id: str, timestamp: float, overall_score: int, answer_count: int):
        super().__init__(
            event_type=EventType.SESSION_COMPLETED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "overall_score": overall_score,
                "answer_count": answer_count
            }
        )


@dataclass
class SessionFailedEvent(SessionEvent):
    """Event fired when a session ends in the failed state."""
    def __init__(self, session_id: str, timestamp: float, stage: str, reason: str):
        super().__init__(
            event_type=EventType.SESSION_FAILED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "stage": stage,
                "reason": reason
            }
        )


@dataclass
class SessionAbandonedEvent(SessionEvent):
    """Event fired when the user leaves a session before it completes."""
    def __init__(self, session_id: str, timestamp: float, answered: int, total: int):
        super().__init__(
            event_type=EventType.SESSION_ABANDONED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "answered": answered,
                "total": total
            }
        )


@dataclass
class ErrorOccurredEvent(SessionEvent):
    """Event fired when an error occurs."""
    def __init__(self, session_id: str, timestamp: float, error_type: str,
                 error_message: str, component: str):
        super().__init__(
            event_type=EventType.ERROR_OCCURRED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "error_type": error_type,
                "error_message": error_message,
                "component": component
            }
        )


EventHandler = Callable[[SessionEvent], None]


class SessionEventBus:
    """Event bus for session lifecycle communication."""

    def __init__(self):
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Subscribe to specific event type.

        Args:
            event_type: Type of event to listen for
            handler: Function to call when event occurs
        """
        if event_type not in self._handlers:
            self._handlers[event_type] = []
        self._handlers[event_type].append(handler)
        logger.debug(f"Subscribed handler to {event_type}")

    def subscribe_all(self, handler: EventHandler) -> None:
        """Subscribe to all events."""
        self._global_handlers.append(handler)
        logger.debug("Subscribed global handler")

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> None:
        if event_type in self._handlers:
            try:
                self._handlers[event_type].remove(handler)
                logger.debug(f"Unsubscribed handler from {event_type}")
            except ValueError:
                logger.warning(f"Handler not found for {event_type}")

    def emit(self, event: SessionEvent) -> None:
        """
        Emit an event to all subscribers.

        A failing handler is logged and skipped; it never breaks the session.
        """
        logger.debug(f"Emitting event: {event.event_type} for session {event.session_id}")

        for handler in self._handlers.get(event.event_type, []):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in event handler for {event.event_type}: {e}")

        for handler in self._global_handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in global event handler: {e}")

    def clear_handlers(self) -> None:
        """Clear all event handlers."""
        self._handlers.clear()
        self._global_handlers.clear()
        logger.debug("Cleared all event handlers")


class EventLogger:
    """Logs all events for debugging and analysis."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger("event_logger")
        self.logger.setLevel(log_level)

    def handle_event(self, event: SessionEvent) -> None:
        self.logger.info(f"Event: {event.event_type.value} | Session: {event.session_id} | Data: {event.data}")


class SessionMetrics:
    """Collects counters from session events."""

    def __init__(self):
        self.reset()

    def handle_event(self, event: SessionEvent) -> None:
        """Update metrics based on event."""
        if event.event_type == EventType.SESSION_STARTED:
            self.sessions_started += 1
        elif event.event_type == EventType.SESSION_COMPLETED:
            self.sessions_completed += 1
        elif event.event_type == EventType.SESSION_FAILED:
            self.sessions_failed += 1
        elif event.event_type == EventType.SESSION_ABANDONED:
            self.sessions_abandoned += 1
        elif event.event_type == EventType.ANSWER_RECORDED:
            self.answers_recorded += 1
        elif event.event_type == EventType.VOICE_FALLBACK:
            self.voice_fallbacks += 1
        elif event.event_type == EventType.ERROR_OCCURRED:
            self.errors_occurred += 1

    def get_metrics(self) -> Dict[str, int]:
        """Get current metrics snapshot."""
        return {
            "sessions_started": self.sessions_started,
            "sessions_completed": self.sessions_completed,
            "sessions_failed": self.sessions_failed,
            "sessions_abandoned": self.sessions_abandoned,
            "answers_recorded": self.answers_recorded,
            "voice_fallbacks": self.voice_fallbacks,
            "errors_occurred": self.errors_occurred
        }

    def reset(self) -> None:
        """Reset all metrics to zero."""
        self.sessions_started = 0
        self.sessions_completed = 0
        self.sessions_failed = 0
        self.sessions_abandoned = 0
        self.answers_recorded = 0
        self.voice_fallbacks = 0
        self.errors_occurred = 0
