import json
import re
from datetime import datetime

from speakwell.fluency import analyze_speech
from speakwell.infrastructure.data import SessionStore
from speakwell.infrastructure.data.sessions import generate_session_id


def _store(tmp_path):
    return SessionStore(str(tmp_path / "data" / "sessions.json"))


def test_missing_file_means_no_sessions(tmp_path):
    assert _store(tmp_path).list_sessions() == []


def test_save_persists_analysis_summary(tmp_path):
    store = _store(tmp_path)
    analysis = analyze_speech("um um um this is a test", 3)

    record = store.save(analysis, 3.4, when=datetime(2024, 5, 1, 9, 30))

    assert record.date == "2024-05-01T09:30:00"
    assert record.duration == 3
    assert record.overall_score == 82
    assert record.words_per_minute == 140
    assert store.get(record.id) == record
    with open(store.path, encoding="utf-8") as f:
        assert json.load(f)[0]["transcript"] == "um um um this is a test"


def test_session_ids_are_unique_and_timestamped():
    when = datetime(2024, 5, 1, 9, 30)
    first, second = generate_session_id(when), generate_session_id(when)

    assert re.fullmatch(r"session_\d+_[a-z0-9]{9}", first)
    assert first.split("_")[1] == str(int(when.timestamp() * 1000))
    assert first != second


def test_recent_is_newest_first_and_limited(tmp_path):
    store = _store(tmp_path)
    analysis = analyze_speech("a short practice answer", 10)
    for day in (3, 1, 2):
        store.save(analysis, 10, when=datetime(2024, 5, day, 12, 0))

    recent = store.recent(2)

    assert [r.when.day for r in recent] == [3, 2]


def test_delete(tmp_path):
    store = _store(tmp_path)
    record = store.save(analyze_speech("a short practice answer", 10), 10)

    assert store.delete(record.id) is True
    assert store.delete(record.id) is False
    assert store.list_sessions() == []


def test_corrupt_file_reads_as_empty(tmp_path):
    path = tmp_path / "sessions.json"
    path.write_text("{not json", encoding="utf-8")

    assert SessionStore(str(path)).list_sessions() == []
