import json
import time

from srtalign.session import EditorSession
from srtalign.session_store import SessionStore

CONTENT = "1\n00:00:01,000 --> 00:00:03,000\nHola\n"


def _session():
    session = EditorSession()
    session.load_translated(CONTENT, "movie.es.srt")
    return session


def test_save_and_load(tmp_path):
    store = SessionStore(str(tmp_path / "state" / "session.json"))
    assert store.save(_session())

    restored = store.load()
    assert restored is not None
    assert restored.export("movie.es.srt") == CONTENT
    assert store.age_minutes() == 0
    assert store.has_session()


def test_missing_snapshot(tmp_path):
    store = SessionStore(str(tmp_path / "session.json"))
    assert store.load() is None
    assert store.age_minutes() is None


def test_corrupt_snapshot_is_ignored(tmp_path, caplog):
    path = tmp_path / "session.json"
    path.write_text("{not json", encoding="utf-8")
    assert SessionStore(str(path)).load() is None
    assert "Failed to read session" in caplog.text


def test_expired_snapshot_is_deleted(tmp_path):
    path = tmp_path / "session.json"
    store = SessionStore(str(path), max_age_hours=24)
    store.save(_session())

    payload = json.loads(path.read_text(encoding="utf-8"))
    payload['timestamp'] = time.time() - 25 * 3600
    path.write_text(json.dumps(payload), encoding="utf-8")

    assert store.load() is None
    assert not path.exists()


def test_snapshot_with_bad_session_data(tmp_path):
    path = tmp_path / "session.json"
    path.write_text(json.dumps({'timestamp': time.time(), 'session': {'documents': [{'segments': []}]}}),
                    encoding="utf-8")
    assert SessionStore(str(path)).load() is None


def test_clear(tmp_path):
    path = tmp_path / "session.json"
    store = SessionStore(str(path))
    store.save(_session())
    store.clear()
    assert not path.exists()
    store.clear()
