"""
Interview orchestrator: category selection, turn guards and verdict gating.
"""
import logging
from typing import Dict, Optional, Tuple, Union

from .chat_session import ChatSessionController
from .models import ChatMessage, InterviewVerdict, Role
from .prompts import ChatPayloadBuilder
from .schemas import InterviewCategory, InterviewPhase, InterviewStateError, parse_category
from .events import InterviewEventBus, EventLogger, InterviewMetrics
from ..infrastructure.llm import ChatServiceClient, ChatServiceError
from ..config import Config, get_config

logger = logging.getLogger("orchestrator")


class InterviewOrchestrator:
    """
    Thin state machine over a ChatSessionController.

    Validates categories at the boundary, refuses answers outside an active
    interview and only allows a verdict once at least one exchange is done.
    """

    def __init__(self, controller: ChatSessionController, speech_sink=None):
        self.controller = controller
        self.speech_sink = speech_sink
        self._started = False

        self.event_logger = EventLogger()
        self.metrics = InterviewMetrics()
        self.event_bus.subscribe_all(self.event_logger.handle_event)
        self.event_bus.subscribe_all(self.metrics.handle_event)

    @classmethod
    def from_config(cls,
                    config: Optional[Config] = None,
                    speech_sink=None,
                    session=None) -> 'InterviewOrchestrator':
        """Wire client, payload builder and event bus from configuration."""
        config = config or get_config(require_chat=True)

        client = ChatServiceClient.from_config(config, session=session)
        builder = ChatPayloadBuilder(model=config.resolved_chat_model)

        orchestrator = cls(ChatSessionController(client, builder, InterviewEventBus()), speech_sink)

        logger.info(
            f"Orchestrator ready ({'direct' if builder.direct else 'relay'} mode, {client.url})"
        )
        return orchestrator

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def event_bus(self) -> InterviewEventBus:
        return self.controller.event_bus

    @property
    def category(self) -> InterviewCategory:
        return self.controller.category

    @property
    def messages(self) -> Tuple[ChatMessage, ...]:
        return self.controller.messages

    @property
    def is_loading(self) -> bool:
        return self.controller.is_loading

    @property
    def verdict(self) -> Optional[InterviewVerdict]:
        return self.controller.verdict

    @property
    def phase(self) -> InterviewPhase:
        if not self._started:
            return InterviewPhase.NOT_STARTED
        if self.controller.verdict is not None and not self.controller.is_loading:
            return InterviewPhase.COMPLETED
        return InterviewPhase.IN_PROGRESS

    @property
    def has_completed_exchange(self) -> bool:
        messages = self.controller.messages
        return any(
            first.role == Role.USER and second.role == Role.ASSISTANT
            for first, second in zip(messages, messages[1:])
        )

    @property
    def can_request_verdict(self) -> bool:
        return (
            self.phase == InterviewPhase.IN_PROGRESS
            and not self.controller.is_loading
            and self.has_completed_exchange
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self, category: Union[str, InterviewCategory]) -> Optional[str]:
        """
        Start a new interview.

        Raises:
            UnknownCategoryError: category is not recognized
        """
        parsed = parse_category(category)
        self._started = True
        return self.controller.start_interview(parsed)

    def answer(self, text: str) -> Optional[str]:
        if self.phase != InterviewPhase.IN_PROGRESS:
            raise InterviewStateError(f"Cannot answer while interview is {self.phase.value}")
        return self.controller.send_answer(text)

    def finish(self) -> Optional[InterviewVerdict]:
        """
        Request the final verdict.

        Raises:
            InterviewStateError: no completed exchange yet, a request is in
                flight, or the verdict was already given
        """
        if not self.can_request_verdict:
            raise InterviewStateError(
                "A verdict needs at least one answered question and no request in flight"
            )
        return self.controller.end_interview()

    def cancel(self) -> bool:
        return self.controller.cancel()

    def reset(self) -> None:
        self.controller.reset_interview()
        if self.speech_sink is not None:
            self.speech_sink.stop()
        self._started = False

    def speak_latest(self) -> Optional[str]:
        """Send the latest assistant message to the speech sink, if any."""
        if self.speech_sink is None:
            return None
        for message in reversed(self.controller.messages):
            if message.role == Role.ASSISTANT:
                return self.speech_sink.speak(message.content)
        return None

    def close(self) -> None:
        self.controller.dispose()
        if self.speech_sink is not None:
            self.speech_sink.stop()

    @staticmethod
    def describe_error(exc: Exception) -> str:
        """Message to show a user for a failed request."""
        if isinstance(exc, ChatServiceError):
            return exc.user_message
        return "Failed to get response"

    def get_metrics(self) -> Dict[str, int]:
        """Get current session metrics."""
        return self.metrics.get_metrics()

    def reset_metrics(self) -> None:
        self.metrics.reset()
