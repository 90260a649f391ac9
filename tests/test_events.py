from cognify.interview.events import (
    EventType,
    SessionCompletedEvent,
    SessionEventBus,
    SessionMetrics,
    SessionStartedEvent,
)


def test_bus_delivers_to_specific_and_global_handlers():
    bus = SessionEventBus()
    specific, everything = [], []
    bus.subscribe(EventType.SESSION_COMPLETED, specific.append)
    bus.subscribe_all(everything.append)

    bus.emit(SessionStartedEvent("s1", 0.0, "Quick", 5, False))
    bus.emit(SessionCompletedEvent("s1", 1.0, 80, 5))

    assert [e.event_type for e in specific] == [EventType.SESSION_COMPLETED]
    assert len(everything) == 2
    assert specific[0].data == {"overall_score": 80, "answer_count": 5}


def test_failing_handler_does_not_break_emit():
    bus = SessionEventBus()
    seen = []

    def broken(_event):
        raise RuntimeError("boom")

    bus.subscribe(EventType.SESSION_STARTED, broken)
    bus.subscribe(EventType.SESSION_STARTED, seen.append)
    bus.emit(SessionStartedEvent("s1", 0.0, "Quick", 5, True))
    assert len(seen) == 1


def test_metrics_count_events():
    bus = SessionEventBus()
    metrics = SessionMetrics()
    bus.subscribe_all(metrics.handle_event)
    bus.emit(SessionStartedEvent("s1", 0.0, "Quick", 5, False))
    bus.emit(SessionCompletedEvent("s1", 1.0, 80, 5))

    assert metrics.get_metrics()["sessions_started"] == 1
    assert metrics.get_metrics()["sessions_completed"] == 1
    metrics.reset()
    assert metrics.get_metrics()["sessions_started"] == 0
