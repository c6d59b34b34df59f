from __future__ import annotations
import json, pathlib
from typing import Any, Dict, List
import pandas as pd

from payloadtools.schemas.models import HistoryEntry


def jsonl_append(path: str, rec: Dict[str, Any]):
    p = pathlib.Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("a", encoding="utf-8") as f:
        f.write(json.dumps(rec, ensure_ascii=False) + "\n")


def jsonl_read(path: str) -> List[Dict[str, Any]]:
    p = pathlib.Path(path)
    if not p.exists():
        return []
    rows = []
    with p.open("r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                rows.append(json.loads(line))
            except json.JSONDecodeError as e:
                raise ValueError(f"{path}:{lineno}: invalid JSON") from e
    return rows


def record_history(path: str, entry: HistoryEntry) -> None:
    jsonl_append(path, entry.model_dump())


def load_history(path: str) -> List[HistoryEntry]:
    return [HistoryEntry(**rec) for rec in jsonl_read(path)]


def history_to_csv(jsonl_path: str, csv_path: str) -> int:
    """Flatten the upload history into a CSV; returns the row count."""
    p = pathlib.Path(jsonl_path)
    if not p.exists():
        raise FileNotFoundError(jsonl_path)
    df = pd.DataFrame([e.model_dump() for e in load_history(jsonl_path)])
    out = pathlib.Path(csv_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out, index=False)
    return len(df)
