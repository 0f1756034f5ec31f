"""Interview system components.

This module contains the streaming mock-interview logic: the chat session
controller, the orchestration layer above it, prompts and the event system.
"""

# Core orchestrator class
from .orchestrator import InterviewOrchestrator

# Streaming chat state
from .chat_session import ChatSessionController

# Data models
from .models import ChatMessage, Role, InterviewVerdict, VerdictOutcome

# Categories, phases and state errors
from .schemas import (
    InterviewCategory, InterviewPhase, CategoryConfig, CATEGORY_CONFIGS,
    UnknownCategoryError, InterviewStateError, parse_category, get_category_config
)

# Prompt templates and payloads
from .prompts import InterviewPrompts, ChatPayloadBuilder

# Event system
from .events import (
    InterviewEventBus, EventLogger, InterviewMetrics,
    EventType, InterviewEvent, InterviewStartedEvent,
    AnswerSubmittedEvent, MessagesUpdatedEvent, VerdictUpdatedEvent,
    VerdictReadyEvent, LoadingChangedEvent, RequestCancelledEvent,
    InterviewResetEvent, ErrorOccurredEvent
)

__all__ = [
    # Orchestrator
    "InterviewOrchestrator",

    # Chat state
    "ChatSessionController",

    # Data models
    "ChatMessage", "Role", "InterviewVerdict", "VerdictOutcome",

    # Schemas
    "InterviewCategory", "InterviewPhase", "CategoryConfig", "CATEGORY_CONFIGS",
    "UnknownCategoryError", "InterviewStateError", "parse_category", "get_category_config",

    # Prompts
    "InterviewPrompts", "ChatPayloadBuilder",

    # Events
    "InterviewEventBus", "EventLogger", "InterviewMetrics",
    "EventType", "InterviewEvent", "InterviewStartedEvent",
    "AnswerSubmittedEvent", "MessagesUpdatedEvent", "VerdictUpdatedEvent",
    "VerdictReadyEvent", "LoadingChangedEvent", "RequestCancelledEvent",
    "InterviewResetEvent", "ErrorOccurredEvent",
]
