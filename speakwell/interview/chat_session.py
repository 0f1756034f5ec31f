"""
Conversation state and streaming request lifecycle for one interview.

The controller owns the ordered message history and at most one in-flight
request. Streamed fragments are accumulated and merged into a single growing
assistant message at the tail of the history; every change is published as an
immutable snapshot on the event bus.
"""
import time
import logging
import threading
from typing import Callable, List, Optional, Tuple

from .models import ChatMessage, InterviewVerdict, Role
from .prompts import ChatPayloadBuilder
from .schemas import InterviewCategory
from .events import (
    InterviewEventBus, InterviewEvent,
    InterviewStartedEvent, AnswerSubmittedEvent, MessagesUpdatedEvent,
    VerdictUpdatedEvent, VerdictReadyEvent, LoadingChangedEvent,
    RequestCancelledEvent, InterviewResetEvent, ErrorOccurredEvent
)
from ..infrastructure.llm import CancellationToken, ChatServiceClient, StreamCancelledError

logger = logging.getLogger("chat_session")


def _new_session_id() -> str:
    return f"interview_{int(time.time() * 1000)}"


class ChatSessionController:
    """
    Streaming chat session against the remote interview service.

    Request states: idle -> sending -> streaming -> idle. Only one request is
    in flight at a time; `is_loading` is true for its whole duration.
    """

    def __init__(self,
                 client: ChatServiceClient,
                 payload_builder: Optional[ChatPayloadBuilder] = None,
                 event_bus: Optional[InterviewEventBus] = None):
        self.client = client
        self.payload_builder = payload_builder or ChatPayloadBuilder()
        self.event_bus = event_bus or InterviewEventBus()
        self.session_id = _new_session_id()

        self._lock = threading.RLock()
        self._messages: List[ChatMessage] = []
        self._category = InterviewCategory.MIXED
        self._loading = False
        self._verdict_text = ""
        self._token: Optional[CancellationToken] = None
        self._operation: Optional[str] = None
        # History to restore if the in-flight request is cancelled
        self._rollback: Optional[List[ChatMessage]] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def messages(self) -> Tuple[ChatMessage, ...]:
        with self._lock:
            return tuple(self._messages)

    @property
    def category(self) -> InterviewCategory:
        return self._category

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def verdict(self) -> Optional[InterviewVerdict]:
        with self._lock:
            return InterviewVerdict(self._verdict_text) if self._verdict_text else None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def start_interview(self, category: InterviewCategory) -> Optional[str]:
        """
        Begin a new interview and stream the interviewer's opening message.

        Any in-flight request is cancelled first. Returns the opening message,
        or None if this request was itself cancelled.
        """
        with self._lock:
            self._abort_in_flight()
            self.session_id = _new_session_id()
            self._category = category
            self._messages = []
            self._verdict_text = ""
            token = self._begin_request("start_interview", rollback=[])
            snapshot = tuple(self._messages)

        now = time.time()
        self.event_bus.emit(InterviewStartedEvent(self.session_id, now, category.value))
        self.event_bus.emit(MessagesUpdatedEvent(self.session_id, now, snapshot))
        self.event_bus.emit(LoadingChangedEvent(self.session_id, now, True))
        logger.info(f"Starting {category.value} interview {self.session_id}")

        payload = self.payload_builder.build(snapshot, category)
        return self._run_request(token, "start_interview", payload, self._merge_opening)

    def send_answer(self, answer: str) -> Optional[str]:
        """
        Append the user's answer and stream the interviewer's reply.

        Blank answers and calls made while a request is in flight are no-ops.
        Transport failures are re-raised after loading is cleared;
        cancellation returns None.
        """
        text = answer.strip()
        with self._lock:
            if not text or self._loading:
                logger.debug("Ignoring answer (blank=%s, loading=%s)", not text, self._loading)
                return None
            rollback = list(self._messages)
            self._messages.append(ChatMessage.user(text))
            token = self._begin_request("send_answer", rollback=rollback)
            snapshot = tuple(self._messages)
            category = self._category

        now = time.time()
        self.event_bus.emit(AnswerSubmittedEvent(self.session_id, now, text, len(snapshot)))
        self.event_bus.emit(MessagesUpdatedEvent(self.session_id, now, snapshot))
        self.event_bus.emit(LoadingChangedEvent(self.session_id, now, True))

        payload = self.payload_builder.build(snapshot, category)
        return self._run_request(token, "send_answer", payload, self._merge_reply)

    def end_interview(self) -> Optional[InterviewVerdict]:
        """
        Request the terminal verdict for the conversation so far.

        The verdict is kept apart from the message history. No-op while a
        request is in flight.
        """
        with self._lock:
            if self._loading:
                logger.debug("Ignoring verdict request while loading")
                return None
            self._verdict_text = ""
            token = self._begin_request("end_interview", rollback=None)
            snapshot = tuple(self._messages)
            category = self._category

        self.event_bus.emit(LoadingChangedEvent(self.session_id, time.time(), True))
        logger.info(f"Requesting verdict for {self.session_id} after {len(snapshot)} messages")

        payload = self.payload_builder.build(snapshot, category, verdict=True)
        try:
            content = self._run_request(token, "end_interview", payload, self._merge_verdict)
        except Exception:
            # A half-streamed verdict is not a verdict
            with self._lock:
                if self._token is None:
                    self._verdict_text = ""
            raise
        if not content:
            if content == "":
                logger.warning("Verdict stream finished without any content")
            return None

        verdict = InterviewVerdict(content)
        self.event_bus.emit(VerdictReadyEvent(
            self.session_id, time.time(), verdict.text, verdict.outcome.value
        ))
        return verdict

    def cancel(self) -> bool:
        """
        Abort the in-flight request, if any.

        Partial assistant content is discarded and the history goes back to
        what it was before the request started.
        """
        with self._lock:
            operation = self._operation
            cancelled = self._abort_in_flight()
            snapshot = tuple(self._messages)

        if cancelled:
            now = time.time()
            logger.info(f"Cancelled {operation} for {self.session_id}")
            self.event_bus.emit(RequestCancelledEvent(self.session_id, now, operation))
            self.event_bus.emit(MessagesUpdatedEvent(self.session_id, now, snapshot))
            self.event_bus.emit(LoadingChangedEvent(self.session_id, now, False))
        return cancelled

    def reset_interview(self) -> None:
        """Abort any in-flight request and clear history, loading and verdict."""
        with self._lock:
            operation = self._operation
            cancelled = self._abort_in_flight()
            discarded = len(self._messages)
            self._messages = []
            self._verdict_text = ""
            self._loading = False

        now = time.time()
        if cancelled:
            self.event_bus.emit(RequestCancelledEvent(self.session_id, now, operation))
        self.event_bus.emit(InterviewResetEvent(self.session_id, now, discarded))
        self.event_bus.emit(MessagesUpdatedEvent(self.session_id, now, ()))
        self.event_bus.emit(LoadingChangedEvent(self.session_id, now, False))
        logger.info(f"Reset interview {self.session_id} ({discarded} messages discarded)")

    def dispose(self) -> None:
        """Cancel outstanding work and detach all subscribers."""
        with self._lock:
            self._abort_in_flight()
        self.event_bus.clear_handlers()

    # ------------------------------------------------------------------
    # Request lifecycle
    # ------------------------------------------------------------------

    def _begin_request(self, operation: str, rollback: Optional[List[ChatMessage]]) -> CancellationToken:
        token = CancellationToken()
        self._token = token
        self._operation = operation
        self._loading = True
        self._rollback = rollback
        return token

    def _abort_in_flight(self) -> bool:
        """Cancel the active token and roll back its partial state. Caller holds the lock."""
        token = self._token
        if token is None:
            return False

        if self._rollback is not None:
            self._messages = list(self._rollback)
        if self._operation == "end_interview":
            self._verdict_text = ""
        self._token = None
        self._operation = None
        self._rollback = None
        self._loading = False
        token.cancel()
        return True

    def _finish_request(self, token: CancellationToken) -> None:
        with self._lock:
            if self._token is not token:
                # Cancelled or superseded; state already belongs to someone else
                return
            self._token = None
            self._operation = None
            self._rollback = None
            self._loading = False
        self.event_bus.emit(LoadingChangedEvent(self.session_id, time.time(), False))

    def _run_request(self,
                     token: CancellationToken,
                     operation: str,
                     payload: dict,
                     merge: Callable[[str], InterviewEvent]) -> Optional[str]:
        stream = self.client.stream_completion(payload, token)
        content = ""

        def is_current() -> bool:
            return self._token is token

        try:
            for fragment in stream:
                content += fragment
                # Merge events reach subscribers only while this request is current
                with self._lock:
                    if token.cancelled or not is_current():
                        raise StreamCancelledError(f"{operation} no longer active")
                    self.event_bus.emit(merge(content), guard=is_current)

            logger.info(f"{operation} finished with {len(content)} chars")
            return content

        except StreamCancelledError:
            logger.info(f"{operation} cancelled; partial reply discarded")
            return None

        except Exception as e:
            logger.error(f"{operation} failed: {e}")
            self._finish_request(token)
            self.event_bus.emit(ErrorOccurredEvent(
                self.session_id, time.time(), type(e).__name__, str(e), operation
            ))
            raise

        finally:
            stream.close()
            self._finish_request(token)

    # ------------------------------------------------------------------
    # Merge rules (called with the lock held; return the event to publish)
    # ------------------------------------------------------------------

    def _merge_opening(self, content: str) -> InterviewEvent:
        if self._messages and self._messages[-1].role == Role.ASSISTANT:
            self._messages[-1] = ChatMessage.assistant(content)
        else:
            self._messages.append(ChatMessage.assistant(content))
        return MessagesUpdatedEvent(self.session_id, time.time(), tuple(self._messages))

    def _merge_reply(self, content: str) -> InterviewEvent:
        # Only grow an assistant message that answers the latest user turn
        if (len(self._messages) > 1
                and self._messages[-1].role == Role.ASSISTANT
                and self._messages[-2].role == Role.USER):
            self._messages[-1] = ChatMessage.assistant(content)
        else:
            self._messages.append(ChatMessage.assistant(content))
        return MessagesUpdatedEvent(self.session_id, time.time(), tuple(self._messages))

    def _merge_verdict(self, content: str) -> InterviewEvent:
        self._verdict_text = content
        return VerdictUpdatedEvent(self.session_id, time.time(), content)
