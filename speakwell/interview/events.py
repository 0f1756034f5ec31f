"""
Event-driven notifications for the interview system.
"""
import logging
from abc import ABC
from typing import Dict, Any, List, Callable, Optional, Tuple
from dataclasses import dataclass
from enum import Enum

from .models import ChatMessage

logger = logging.getLogger("events")


class EventType(str, Enum):
    """Types of interview events."""
    INTERVIEW_STARTED = "interview_started"
    ANSWER_SUBMITTED = "answer_submitted"
    MESSAGES_UPDATED = "messages_updated"
    VERDICT_UPDATED = "verdict_updated"
    VERDICT_READY = "verdict_ready"
    LOADING_CHANGED = "loading_changed"
    REQUEST_CANCELLED = "request_cancelled"
    INTERVIEW_RESET = "interview_reset"
    ERROR_OCCURRED = "error_occurred"


@dataclass
class InterviewEvent(ABC):
    """Base class for all interview events."""
    event_type: EventType
    session_id: str
    timestamp: float
    data: Dict[str, Any]


@dataclass
class InterviewStartedEvent(InterviewEvent):
    """Event fired when a category is picked and the opening request goes out."""
    def __init__(self, session_id: str, timestamp: float, category: str):
        super().__init__(
            event_type=EventType.INTERVIEW_STARTED,
            session_id=session_id,
            timestamp=timestamp,
            data={"category": category}
        )


@dataclass
class AnswerSubmittedEvent(InterviewEvent):
    """Event fired when a user answer is appended to the history."""
    def __init__(self, session_id: str, timestamp: float, answer: str, turn_count: int):
        super().__init__(
            event_type=EventType.ANSWER_SUBMITTED,
            session_id=session_id,
            timestamp=timestamp,
            data={"answer": answer, "turn_count": turn_count}
        )


@dataclass
class MessagesUpdatedEvent(InterviewEvent):
    """Event fired with an immutable snapshot after every change to the history."""
    def __init__(self, session_id: str, timestamp: float, messages: Tuple[ChatMessage, ...]):
        super().__init__(
            event_type=EventType.MESSAGES_UPDATED,
            session_id=session_id,
            timestamp=timestamp,
            data={"messages": messages}
        )

    @property
    def messages(self) -> Tuple[ChatMessage, ...]:
        return self.data["messages"]


@dataclass
class VerdictUpdatedEvent(InterviewEvent):
    """Event fired as verdict text streams in."""
    def __init__(self, session_id: str, timestamp: float, verdict: str):
        super().__init__(
            event_type=EventType.VERDICT_UPDATED,
            session_id=session_id,
            timestamp=timestamp,
            data={"verdict": verdict}
        )


@dataclass
class VerdictReadyEvent(InterviewEvent):
    """Event fired once the verdict stream has finished."""
    def __init__(self, session_id: str, timestamp: float, verdict: str, outcome: str):
        super().__init__(
            event_type=EventType.VERDICT_READY,
            session_id=session_id,
            timestamp=timestamp,
            data={"verdict": verdict, "outcome": outcome}
        )


@dataclass
class LoadingChangedEvent(InterviewEvent):
    """Event fired when a request starts or stops being in flight."""
    def __init__(self, session_id: str, timestamp: float, is_loading: bool):
        super().__init__(
            event_type=EventType.LOADING_CHANGED,
            session_id=session_id,
            timestamp=timestamp,
            data={"is_loading": is_loading}
        )


@dataclass
class RequestCancelledEvent(InterviewEvent):
    """Event fired when an in-flight request is aborted."""
    def __init__(self, session_id: str, timestamp: float, operation: str):
        super().__init__(
            event_type=EventType.REQUEST_CANCELLED,
            session_id=session_id,
            timestamp=timestamp,
            data={"operation": operation}
        )


@dataclass
class InterviewResetEvent(InterviewEvent):
    """Event fired when the interview is cleared."""
    def __init__(self, session_id: str, timestamp: float, discarded_messages: int):
        super().__init__(
            event_type=EventType.INTERVIEW_RESET,
            session_id=session_id,
            timestamp=timestamp,
            data={"discarded_messages": discarded_messages}
        )


@dataclass
class ErrorOccurredEvent(InterviewEvent):
    """Event fired when a request fails."""
    def __init__(self, session_id: str, timestamp: float, error_type: str,
                 error_message: str, operation: str):
        super().__init__(
            event_type=EventType.ERROR_OCCURRED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "error_type": error_type,
                "error_message": error_message,
                "operation": operation
            }
        )


EventHandler = Callable[[InterviewEvent], None]


class InterviewEventBus:
    """Event bus for interview system communication."""

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
        self._handlers.setdefault(event_type, []).append(handler)
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

    def emit(self, event: InterviewEvent, guard: Optional[Callable[[], bool]] = None) -> None:
        """
        Emit an event to all subscribers.

        A failing handler is logged and does not stop the others. When a
        guard is given it is re-checked before each handler, and delivery
        stops as soon as it returns False.
        """
        logger.debug(f"Emitting event: {event.event_type} for session {event.session_id}")

        handlers = list(self._handlers.get(event.event_type, [])) + list(self._global_handlers)
        for handler in handlers:
            if guard is not None and not guard():
                logger.debug(f"Dropped stale {event.event_type} for session {event.session_id}")
                return
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in event handler for {event.event_type}: {e}")

    def clear_handlers(self) -> None:
        """Clear all event handlers."""
        self._handlers.clear()
        self._global_handlers.clear()
        logger.debug("Cleared all event handlers")


class EventLogger:
    """Logs events for debugging and analysis."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger("event_logger")
        self.logger.setLevel(log_level)

    def handle_event(self, event: InterviewEvent) -> None:
        # Snapshots fire per token; keep them out of INFO
        if event.event_type in (EventType.MESSAGES_UPDATED, EventType.VERDICT_UPDATED):
            self.logger.debug(f"Event: {event.event_type} | Session: {event.session_id}")
            return
        self.logger.info(f"Event: {event.event_type} | Session: {event.session_id} | Data: {event.data}")


class InterviewMetrics:
    """Collects metrics from interview events."""

    def __init__(self):
        self.reset()

    def handle_event(self, event: InterviewEvent) -> None:
        """Update metrics based on event."""
        if event.event_type == EventType.INTERVIEW_STARTED:
            self.interviews_started += 1
        elif event.event_type == EventType.ANSWER_SUBMITTED:
            self.answers_submitted += 1
        elif event.event_type == EventType.MESSAGES_UPDATED:
            self.message_updates += 1
        elif event.event_type == EventType.VERDICT_READY:
            self.verdicts_delivered += 1
        elif event.event_type == EventType.REQUEST_CANCELLED:
            self.requests_cancelled += 1
        elif event.event_type == EventType.INTERVIEW_RESET:
            self.resets += 1
        elif event.event_type == EventType.ERROR_OCCURRED:
            self.errors_occurred += 1

    def get_metrics(self) -> Dict[str, int]:
        """Get current metrics snapshot."""
        return {
            "interviews_started": self.interviews_started,
            "answers_submitted": self.answers_submitted,
            "message_updates": self.message_updates,
            "verdicts_delivered": self.verdicts_delivered,
            "requests_cancelled": self.requests_cancelled,
            "resets": self.resets,
            "errors_occurred": self.errors_occurred
        }

    def reset(self) -> None:
        """Reset all metrics to zero."""
        self.interviews_started = 0
        self.answers_submitted = 0
        self.message_updates = 0
        self.verdicts_delivered = 0
        self.requests_cancelled = 0
        self.resets = 0
        self.errors_occurred = 0
