import pytest

from speakwell.config import Config
from speakwell.infrastructure.llm import ChatServiceError, RateLimitError, ServiceUnavailableError
from speakwell.interview import (
    ChatSessionController, InterviewOrchestrator, InterviewPhase, InterviewStateError,
    UnknownCategoryError, VerdictOutcome
)
from speakwell.interview.testing import (
    FakeHTTPSession, FakeStreamResponse, RecordingSpeechSink, ScriptedChatClient, sse_chunks
)


def _orchestrator(*scripts, sink=None):
    client = ScriptedChatClient(scripts)
    return InterviewOrchestrator(ChatSessionController(client), speech_sink=sink), client


def test_phases_follow_the_interview():
    orchestrator, _ = _orchestrator(["Q1"], ["Q2"], ["Verdict: Not Selected"])
    assert orchestrator.phase == InterviewPhase.NOT_STARTED

    orchestrator.start("behavioral")
    assert orchestrator.phase == InterviewPhase.IN_PROGRESS

    orchestrator.answer("my answer")
    verdict = orchestrator.finish()

    assert verdict.outcome == VerdictOutcome.NOT_SELECTED
    assert orchestrator.phase == InterviewPhase.COMPLETED


def test_verdict_requires_a_completed_exchange():
    orchestrator, client = _orchestrator(["Q1"])
    orchestrator.start("hr")

    assert not orchestrator.can_request_verdict
    with pytest.raises(InterviewStateError):
        orchestrator.finish()
    assert len(client.payloads) == 1


def test_verdict_allowed_once():
    orchestrator, _ = _orchestrator(["Q1"], ["Q2"], ["Verdict: Selected"])
    orchestrator.start("hr")
    orchestrator.answer("answer")

    assert orchestrator.can_request_verdict
    orchestrator.finish()

    assert not orchestrator.can_request_verdict
    with pytest.raises(InterviewStateError):
        orchestrator.finish()


def test_exchange_without_reply_does_not_unlock_verdict():
    orchestrator, _ = _orchestrator(["Q1"], RateLimitError("429", 429))
    orchestrator.start("hr")

    with pytest.raises(RateLimitError):
        orchestrator.answer("answer")

    assert not orchestrator.can_request_verdict


def test_answer_before_start_is_rejected():
    orchestrator, client = _orchestrator()

    with pytest.raises(InterviewStateError):
        orchestrator.answer("hello")
    assert client.payloads == []


def test_answer_after_verdict_is_rejected():
    orchestrator, _ = _orchestrator(["Q1"], ["Q2"], ["Verdict: Selected"])
    orchestrator.start("coding")
    orchestrator.answer("answer")
    orchestrator.finish()

    with pytest.raises(InterviewStateError):
        orchestrator.answer("one more thing")


def test_unknown_category_fails_fast():
    orchestrator, client = _orchestrator(["Q1"])

    with pytest.raises(UnknownCategoryError):
        orchestrator.start("astrology")

    assert orchestrator.phase == InterviewPhase.NOT_STARTED
    assert client.payloads == []


def test_category_names_are_normalized():
    orchestrator, client = _orchestrator(["Q1"])

    orchestrator.start("  System-Design ")

    assert client.payloads[0]["category"] == "system-design"


def test_reset_returns_to_not_started_and_stops_speech():
    sink = RecordingSpeechSink()
    orchestrator, _ = _orchestrator(["Q1"], sink=sink)
    orchestrator.start("hr")

    orchestrator.reset()

    assert orchestrator.phase == InterviewPhase.NOT_STARTED
    assert orchestrator.messages == ()
    assert sink.stop_calls == 1


def test_speak_latest_sends_plain_text_to_sink():
    sink = RecordingSpeechSink()
    orchestrator, _ = _orchestrator(["**Welcome!** Tell me about `yourself`."], sink=sink)
    orchestrator.start("hr")

    path = orchestrator.speak_latest()

    assert path == "memory://utterance/1"
    assert sink.spoken == ["Welcome! Tell me about yourself."]


def test_speak_latest_without_sink_or_message():
    orchestrator, _ = _orchestrator()
    assert orchestrator.speak_latest() is None

    orchestrator.speech_sink = RecordingSpeechSink()
    assert orchestrator.speak_latest() is None


@pytest.mark.parametrize("error,message", [
    (RateLimitError("x", 429), "Rate limit exceeded. Please try again in a moment."),
    (ServiceUnavailableError("x", 402), "Service temporarily unavailable."),
    (ChatServiceError("x", 500), "Failed to get response"),
    (RuntimeError("x"), "Failed to get response"),
])
def test_describe_error(error, message):
    assert InterviewOrchestrator.describe_error(error) == message


def test_from_config_relay_mode():
    session = FakeHTTPSession([FakeStreamResponse(sse_chunks("Hi there"))])
    config = Config(chat_endpoint_url="https://relay.test/chat", chat_api_key="key")

    orchestrator = InterviewOrchestrator.from_config(config, session=session)
    orchestrator.start("hr")

    assert orchestrator.messages[-1].content == "Hi there"
    assert session.payloads == [{"messages": [], "category": "hr"}]
    assert session.requests[0]["headers"]["Authorization"] == "Bearer key"
    assert orchestrator.get_metrics()["interviews_started"] == 1


def test_from_config_direct_mode_sends_system_prompt():
    session = FakeHTTPSession([FakeStreamResponse(sse_chunks("Hi"))])
    config = Config(chat_endpoint_url="https://api.test/v1/chat/completions", chat_model="some-model")

    orchestrator = InterviewOrchestrator.from_config(config, session=session)
    orchestrator.start("coding")

    payload = session.payloads[0]
    assert payload["model"] == "some-model"
    assert payload["stream"] is True
    assert payload["messages"][0]["role"] == "system"
    assert "coding" in payload["messages"][0]["content"].lower()
    assert len(payload["messages"]) == 1


def test_from_config_without_endpoint_raises():
    with pytest.raises(ValueError):
        InterviewOrchestrator.from_config(Config())


def test_metrics_are_collected_without_from_config():
    orchestrator, _ = _orchestrator(["Q1"], ["Q2"])

    orchestrator.start("hr")
    orchestrator.answer("my answer")

    metrics = orchestrator.get_metrics()
    assert metrics["interviews_started"] == 1
    assert metrics["answers_submitted"] == 1

    orchestrator.reset_metrics()
    assert orchestrator.get_metrics()["interviews_started"] == 0
