import pytest

from speakwell.fluency.practice import PracticeRecorder, TranscriptTooShortError
from speakwell.infrastructure.data import SessionStore


class FakeClock:
    def __init__(self, start=100.0):
        self.now = start

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def recorder(tmp_path, clock):
    return PracticeRecorder(SessionStore(str(tmp_path / "sessions.json")), clock=clock)


def test_finish_scores_and_stores_the_recording(recorder, clock):
    recorder.start()
    recorder.push("um um um this", is_final=True)
    recorder.push("is a", is_final=False)
    recorder.push("is a test", is_final=True)
    clock.now += 3
    recorder.stop()

    analysis, record = recorder.finish()

    assert analysis.transcript == "um um um this is a test"
    assert analysis.words_per_minute == 140
    assert analysis.overall_score == 82
    assert record.duration == 3
    assert recorder.store.list_sessions() == [record]


def test_short_transcript_is_rejected_without_saving(recorder, clock):
    recorder.start()
    recorder.push("hi there", is_final=True)
    clock.now += 2

    with pytest.raises(TranscriptTooShortError):
        recorder.finish()

    assert recorder.store.list_sessions() == []


def test_interim_text_is_not_scored(recorder, clock):
    recorder.start()
    recorder.push("this interim text is long enough", is_final=False)
    clock.now += 5

    with pytest.raises(TranscriptTooShortError):
        recorder.finish()


def test_duration_is_live_while_recording(recorder, clock):
    recorder.start()
    clock.now += 4.5

    assert recorder.is_recording
    assert recorder.duration == 4.5

    recorder.stop()
    clock.now += 10
    assert recorder.duration == 4.5
    assert not recorder.is_recording


def test_start_discards_previous_transcript(recorder, clock):
    recorder.start()
    recorder.push("an old attempt that was abandoned", is_final=True)
    recorder.start()
    recorder.push("a fresh practice answer", is_final=True)
    clock.now += 6

    analysis, _ = recorder.finish()

    assert analysis.transcript == "a fresh practice answer"
