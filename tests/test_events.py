import logging

from speakwell.interview import (
    ChatMessage, ErrorOccurredEvent, EventLogger, EventType, InterviewEventBus,
    InterviewMetrics, InterviewStartedEvent, MessagesUpdatedEvent, RequestCancelledEvent
)


def test_subscribers_receive_matching_events_only():
    bus = InterviewEventBus()
    started, everything = [], []
    bus.subscribe(EventType.INTERVIEW_STARTED, started.append)
    bus.subscribe_all(everything.append)

    bus.emit(InterviewStartedEvent("s1", 1.0, "hr"))
    bus.emit(RequestCancelledEvent("s1", 2.0, "send_answer"))

    assert [e.data["category"] for e in started] == ["hr"]
    assert [e.event_type for e in everything] == [EventType.INTERVIEW_STARTED, EventType.REQUEST_CANCELLED]


def test_failing_handler_does_not_block_others():
    bus = InterviewEventBus()
    received = []

    def broken(event):
        raise RuntimeError("handler bug")

    bus.subscribe(EventType.INTERVIEW_STARTED, broken)
    bus.subscribe(EventType.INTERVIEW_STARTED, received.append)

    bus.emit(InterviewStartedEvent("s1", 1.0, "hr"))

    assert len(received) == 1


def test_unsubscribe_and_clear():
    bus = InterviewEventBus()
    received = []
    bus.subscribe(EventType.INTERVIEW_STARTED, received.append)
    bus.unsubscribe(EventType.INTERVIEW_STARTED, received.append)
    bus.unsubscribe(EventType.INTERVIEW_STARTED, received.append)

    bus.subscribe_all(received.append)
    bus.clear_handlers()
    bus.emit(InterviewStartedEvent("s1", 1.0, "hr"))

    assert received == []


def test_messages_event_exposes_snapshot():
    snapshot = (ChatMessage.assistant("Hi"),)

    event = MessagesUpdatedEvent("s1", 1.0, snapshot)

    assert event.messages is snapshot
    assert event.event_type == EventType.MESSAGES_UPDATED


def test_metrics_count_events():
    metrics = InterviewMetrics()
    metrics.handle_event(InterviewStartedEvent("s1", 1.0, "hr"))
    metrics.handle_event(MessagesUpdatedEvent("s1", 1.0, ()))
    metrics.handle_event(RequestCancelledEvent("s1", 1.0, "send_answer"))
    metrics.handle_event(ErrorOccurredEvent("s1", 1.0, "RateLimitError", "429", "send_answer"))

    counts = metrics.get_metrics()
    assert counts["interviews_started"] == 1
    assert counts["message_updates"] == 1
    assert counts["requests_cancelled"] == 1
    assert counts["errors_occurred"] == 1

    metrics.reset()
    assert set(metrics.get_metrics().values()) == {0}


def test_event_logger_keeps_snapshots_at_debug(caplog):
    event_logger = EventLogger()

    with caplog.at_level(logging.DEBUG, logger="event_logger"):
        event_logger.handle_event(MessagesUpdatedEvent("s1", 1.0, ()))
        event_logger.handle_event(InterviewStartedEvent("s1", 1.0, "hr"))

    levels = [(r.levelno, r.getMessage()) for r in caplog.records if r.name == "event_logger"]
    assert levels[0][0] == logging.DEBUG
    assert levels[1][0] == logging.INFO
    assert "'category': 'hr'" in levels[1][1]


def test_guard_stops_delivery_once_it_fails():
    bus = InterviewEventBus()
    state = {"current": True}
    received = []

    def invalidate(event):
        received.append("first")
        state["current"] = False

    bus.subscribe(EventType.MESSAGES_UPDATED, invalidate)
    bus.subscribe_all(lambda e: received.append("global"))

    bus.emit(MessagesUpdatedEvent("s1", 1.0, ()), guard=lambda: state["current"])

    assert received == ["first"]
