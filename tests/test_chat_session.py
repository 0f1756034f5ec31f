import pytest

from speakwell.infrastructure.llm import ChatServiceError, RateLimitError
from speakwell.interview import (
    ChatMessage, ChatPayloadBuilder, ChatSessionController, EventType,
    InterviewCategory, InterviewEventBus, Role, VerdictOutcome
)
from speakwell.interview.testing import (
    FakeHTTPSession, FakeStreamResponse, ScriptedChatClient, sse_chunks
)
from speakwell.infrastructure.llm import ChatServiceClient


def _controller(*scripts):
    client = ScriptedChatClient(scripts)
    return ChatSessionController(client, ChatPayloadBuilder(), InterviewEventBus()), client


def _record(controller, event_type):
    events = []
    controller.event_bus.subscribe(event_type, events.append)
    return events


def test_start_interview_streams_opening_message():
    controller, client = _controller(["Hel", "lo"])

    result = controller.start_interview(InterviewCategory.CODING)

    assert result == "Hello"
    assert controller.messages == (ChatMessage.assistant("Hello"),)
    assert not controller.is_loading
    assert client.payloads == [{"messages": [], "category": "coding"}]


def test_each_merge_emits_an_immutable_snapshot():
    controller, _ = _controller(["Hel", "lo"])
    snapshots = _record(controller, EventType.MESSAGES_UPDATED)

    controller.start_interview(InterviewCategory.HR)

    assert [tuple(m.content for m in e.messages) for e in snapshots] == [(), ("Hel",), ("Hello",)]
    assert all(isinstance(e.messages, tuple) for e in snapshots)


def test_sse_stream_over_http_builds_single_message():
    session = FakeHTTPSession([FakeStreamResponse(sse_chunks("Hel", "lo"))])
    client = ChatServiceClient("https://relay.test/chat", session=session)
    controller = ChatSessionController(client)

    controller.start_interview(InterviewCategory.MIXED)

    assert controller.messages == (ChatMessage.assistant("Hello"),)


def test_send_answer_sends_full_history_and_appends_reply():
    controller, client = _controller(["Tell me about yourself"], ["Nice", ", next question"])
    controller.start_interview(InterviewCategory.BEHAVIORAL)

    result = controller.send_answer("  I build compilers  ")

    assert result == "Nice, next question"
    assert controller.messages == (
        ChatMessage.assistant("Tell me about yourself"),
        ChatMessage.user("I build compilers"),
        ChatMessage.assistant("Nice, next question"),
    )
    assert client.payloads[1] == {
        "messages": [
            {"role": "assistant", "content": "Tell me about yourself"},
            {"role": "user", "content": "I build compilers"},
        ],
        "category": "behavioral",
    }


def test_user_message_visible_before_reply_arrives():
    controller, _ = _controller(["Q1"], ["A"])
    controller.start_interview(InterviewCategory.HR)
    seen = []
    controller.event_bus.subscribe(EventType.ANSWER_SUBMITTED, lambda e: seen.append(controller.messages))

    controller.send_answer("hello")

    assert seen[0][-1] == ChatMessage.user("hello")


def test_replies_alternate_over_several_turns():
    controller, _ = _controller(["Q1"], ["Q", "2"], ["Q", "3"])
    controller.start_interview(InterviewCategory.TECHNICAL)

    controller.send_answer("first")
    controller.send_answer("second")

    roles = [m.role for m in controller.messages]
    assert roles == [Role.ASSISTANT, Role.USER, Role.ASSISTANT, Role.USER, Role.ASSISTANT]
    assert controller.messages[-1].content == "Q3"


@pytest.mark.parametrize("answer", ["", "   ", "\n\t"])
def test_blank_answer_is_a_no_op(answer):
    controller, client = _controller(["Q1"])
    controller.start_interview(InterviewCategory.HR)

    assert controller.send_answer(answer) is None
    assert controller.messages == (ChatMessage.assistant("Q1"),)
    assert len(client.payloads) == 1


def test_answer_while_loading_is_a_no_op():
    controller, client = _controller(["Q", "1"])
    results = []

    def answer_mid_stream(event):
        if event.messages:
            results.append(controller.send_answer("too early"))

    controller.event_bus.subscribe(EventType.MESSAGES_UPDATED, answer_mid_stream)
    controller.start_interview(InterviewCategory.HR)

    assert results == [None, None]
    assert controller.messages == (ChatMessage.assistant("Q1"),)
    assert len(client.payloads) == 1


def test_cancel_mid_stream_restores_history_before_request():
    controller, _ = _controller(["Q1"], ["Par", "tial", " reply"])
    controller.start_interview(InterviewCategory.CODING)
    before = controller.messages
    snapshots = _record(controller, EventType.MESSAGES_UPDATED)

    def cancel_on_first_fragment(event):
        if event.messages[-1].content == "Par":
            controller.cancel()

    controller.event_bus.subscribe(EventType.MESSAGES_UPDATED, cancel_on_first_fragment)
    result = controller.send_answer("my answer")

    assert result is None
    assert controller.messages == before
    assert not controller.is_loading
    assert all("Partial" not in m.content for e in snapshots for m in e.messages)
    assert snapshots[-1].messages == before


def test_global_subscribers_see_rollback_snapshot_last_after_cancel():
    controller, _ = _controller(["Q1"], ["Par", "tial", " reply"])
    controller.start_interview(InterviewCategory.CODING)
    before = controller.messages
    seen = []

    def cancel_on_first_fragment(event):
        if event.messages[-1].content == "Par":
            controller.cancel()

    controller.event_bus.subscribe(EventType.MESSAGES_UPDATED, cancel_on_first_fragment)
    controller.event_bus.subscribe_all(
        lambda e: seen.append(e.messages) if e.event_type == EventType.MESSAGES_UPDATED else None
    )

    controller.send_answer("my answer")

    assert controller.messages == before
    assert seen[-1] == before
    assert all(m.content != "Par" for snapshot in seen for m in snapshot)


def test_global_subscribers_see_empty_history_last_after_reset():
    controller, _ = _controller(["Q1"], ["Par", "tial"])
    controller.start_interview(InterviewCategory.HR)
    seen = []

    def reset_on_first_fragment(event):
        if event.messages and event.messages[-1].content == "Par":
            controller.reset_interview()

    controller.event_bus.subscribe(EventType.MESSAGES_UPDATED, reset_on_first_fragment)
    controller.event_bus.subscribe_all(
        lambda e: seen.append(e.messages) if e.event_type == EventType.MESSAGES_UPDATED else None
    )

    controller.send_answer("my answer")

    assert controller.messages == ()
    assert seen[-1] == ()


def test_cancelled_verdict_fragment_not_delivered_to_global_subscribers():
    controller, _ = _controller(["Q1"], ["Q2"], ["Verdict: Not", " Selected"])
    controller.start_interview(InterviewCategory.HR)
    controller.send_answer("answer")
    partials = []
    controller.event_bus.subscribe(EventType.VERDICT_UPDATED, lambda e: controller.cancel())
    controller.event_bus.subscribe_all(
        lambda e: partials.append(e) if e.event_type == EventType.VERDICT_UPDATED else None
    )

    controller.end_interview()

    assert partials == []
    assert controller.verdict is None


def test_reset_mid_stream_discards_partial_reply():
    controller, _ = _controller(["Q1"], ["Par", "tial"])
    controller.start_interview(InterviewCategory.CODING)
    cancelled = _record(controller, EventType.REQUEST_CANCELLED)

    def reset_on_first_fragment(event):
        if event.messages and event.messages[-1].content == "Par":
            controller.reset_interview()

    controller.event_bus.subscribe(EventType.MESSAGES_UPDATED, reset_on_first_fragment)
    controller.send_answer("my answer")

    assert controller.messages == ()
    assert not controller.is_loading
    assert controller.verdict is None
    assert [e.data["operation"] for e in cancelled] == ["send_answer"]


def test_cancel_without_request_returns_false():
    controller, _ = _controller()

    assert controller.cancel() is False


def test_transport_error_is_raised_after_loading_clears():
    controller, _ = _controller(["Q1"], RateLimitError("Chat service error 429: slow down", 429))
    controller.start_interview(InterviewCategory.HR)
    errors = _record(controller, EventType.ERROR_OCCURRED)
    loading = _record(controller, EventType.LOADING_CHANGED)

    with pytest.raises(RateLimitError):
        controller.send_answer("answer")

    assert not controller.is_loading
    assert controller.messages[-1] == ChatMessage.user("answer")
    assert errors[0].data["error_type"] == "RateLimitError"
    assert [e.data["is_loading"] for e in loading] == [True, False]


def test_failed_opening_request_is_raised():
    controller, _ = _controller(ChatServiceError("boom", 500))

    with pytest.raises(ChatServiceError):
        controller.start_interview(InterviewCategory.MIXED)

    assert not controller.is_loading
    assert controller.messages == ()


def test_new_start_supersedes_in_flight_request():
    controller, client = _controller(["Q1"], ["stale", " reply"], ["Fresh start"])
    controller.start_interview(InterviewCategory.HR)
    restarted = []

    def restart_once(event):
        if not restarted and event.messages and event.messages[-1].content == "stale":
            restarted.append(controller.start_interview(InterviewCategory.CODING))

    controller.event_bus.subscribe(EventType.MESSAGES_UPDATED, restart_once)

    assert controller.send_answer("answer") is None
    assert restarted == ["Fresh start"]
    assert controller.messages == (ChatMessage.assistant("Fresh start"),)
    assert controller.category == InterviewCategory.CODING
    assert client.tokens[1].cancelled
    assert not controller.is_loading


def test_end_interview_keeps_verdict_out_of_history():
    controller, client = _controller(["Q1"], ["Q2"], ["Verdict: ", "Selected"])
    controller.start_interview(InterviewCategory.SYSTEM_DESIGN)
    controller.send_answer("sharding by user id")
    history = controller.messages
    partials = _record(controller, EventType.VERDICT_UPDATED)
    ready = _record(controller, EventType.VERDICT_READY)

    verdict = controller.end_interview()

    assert verdict.text == "Verdict: Selected"
    assert verdict.outcome == VerdictOutcome.SELECTED
    assert controller.verdict == verdict
    assert controller.messages == history
    assert [e.data["verdict"] for e in partials] == ["Verdict: ", "Verdict: Selected"]
    assert ready[0].data["outcome"] == "selected"
    assert client.payloads[-1]["mode"] == "verdict"
    assert client.payloads[-1]["messages"] == [m.to_dict() for m in history]


def test_cancelled_verdict_is_cleared():
    controller, _ = _controller(["Q1"], ["Q2"], ["Verdict: Not", " Selected"])
    controller.start_interview(InterviewCategory.HR)
    controller.send_answer("answer")
    controller.event_bus.subscribe(EventType.VERDICT_UPDATED, lambda e: controller.cancel())

    assert controller.end_interview() is None
    assert controller.verdict is None
    assert not controller.is_loading


def test_reset_clears_everything():
    controller, _ = _controller(["Q1"], ["Q2"], ["Verdict: Selected"])
    controller.start_interview(InterviewCategory.HR)
    controller.send_answer("answer")
    controller.end_interview()
    resets = _record(controller, EventType.INTERVIEW_RESET)

    controller.reset_interview()

    assert controller.messages == ()
    assert controller.verdict is None
    assert not controller.is_loading
    assert resets[0].data["discarded_messages"] == 3


def test_dispose_detaches_subscribers():
    controller, _ = _controller(["Q1"])
    events = _record(controller, EventType.MESSAGES_UPDATED)

    controller.dispose()
    controller.start_interview(InterviewCategory.HR)

    assert events == []


def test_failed_verdict_leaves_interview_open():
    controller, _ = _controller(["Q1"], ["Q2"], ChatServiceError("boom", 500))
    controller.start_interview(InterviewCategory.HR)
    controller.send_answer("answer")

    with pytest.raises(ChatServiceError):
        controller.end_interview()

    assert controller.verdict is None
    assert not controller.is_loading
