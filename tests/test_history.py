import pandas as pd
import pytest

from payloadtools.data.io import history_to_csv, jsonl_append, jsonl_read, load_history, record_history
from payloadtools.schemas.models import HistoryEntry


def _entry(i, status="processed", **kw):
    return HistoryEntry(id=f"h{i}", filename=f"f{i}.json", status=status, created_at="2024-01-01T00:00:00", **kw)


def test_record_and_load(tmp_path):
    path = str(tmp_path / "hist" / "history.jsonl")
    record_history(path, _entry(1, remote_path="/in/f1.json"))
    record_history(path, _entry(2, status="failed", error_message="boom"))
    got = load_history(path)
    assert [e.id for e in got] == ["h1", "h2"]
    assert got[0].remote_path == "/in/f1.json"
    assert got[1].status == "failed"


def test_missing_history_is_empty(tmp_path):
    assert load_history(str(tmp_path / "none.jsonl")) == []


def test_bad_line_reports_location(tmp_path):
    path = tmp_path / "h.jsonl"
    jsonl_append(str(path), {"a": 1})
    with path.open("a") as f:
        f.write("{oops\n")
    with pytest.raises(ValueError, match=":2: invalid JSON"):
        jsonl_read(str(path))


def test_export_csv(tmp_path):
    path = str(tmp_path / "history.jsonl")
    record_history(path, _entry(1))
    record_history(path, _entry(2, status="failed", error_message="boom"))
    out = tmp_path / "out" / "history.csv"
    assert history_to_csv(path, str(out)) == 2
    df = pd.read_csv(out)
    assert list(df["status"]) == ["processed", "failed"]
    assert "error_message" in df.columns


def test_export_without_history(tmp_path):
    with pytest.raises(FileNotFoundError):
        history_to_csv(str(tmp_path / "none.jsonl"), str(tmp_path / "o.csv"))
