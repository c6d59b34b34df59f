from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, Iterator, List

from payloadtools.errors import EmptyCSVError

from .types import CSVDocument

log = logging.getLogger(__name__)

BOM = "\ufeff"
_LINE_RE = re.compile(r"\r?\n")
_HEADER_QUOTE_RE = re.compile(r"^[\"']|[\"']$")


def split_line(line: str) -> List[str]:
    """
    Split one CSV line on commas outside double quotes.

    A doubled quote emits a literal quote and leaves quote state alone. Every
    field is trimmed once it closes.
    """
    row: List[str] = []
    field = ""
    in_quotes = False
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if ch == '"':
            if i + 1 < n and line[i + 1] == '"':
                field += '"'
                i += 1
            else:
                in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            row.append(field.strip())
            field = ""
        else:
            field += ch
        i += 1
    row.append(field.strip())
    return row


def _unique_headers(headers: List[str]) -> List[str]:
    seen: Dict[str, int] = {}
    out: List[str] = []
    for h in headers:
        if h not in seen:
            seen[h] = 0
            out.append(h)
            continue
        seen[h] += 1
        candidate = f"{h}.{seen[h]}"
        while candidate in seen:
            seen[h] += 1
            candidate = f"{h}.{seen[h]}"
        seen[candidate] = 0
        log.warning("Duplicate CSV header %r renamed to %r", h, candidate)
        out.append(candidate)
    return out


def parse_csv(text: str) -> CSVDocument:
    if text.startswith(BOM):
        text = text[len(BOM):]
    text = text.rstrip()
    if not text:
        raise EmptyCSVError("CSV file appears to be empty")

    lines = _LINE_RE.split(text)
    headers = _unique_headers([
        _HEADER_QUOTE_RE.sub("", h.strip()) for h in split_line(lines[0])
    ])

    rows: List[List[str]] = []
    dropped = 0
    for line in lines[1:]:
        cells = split_line(line)
        if len(cells) != len(headers):
            dropped += 1
            continue
        rows.append(cells)
    if dropped:
        log.debug("Dropped %d row(s) whose width differs from %d header(s)", dropped, len(headers))
    return CSVDocument(headers=headers, rows=rows)


def read_csv_file(csv_path) -> CSVDocument:
    text = Path(csv_path).read_text(encoding="utf-8")
    return parse_csv(text)


def iter_row_values(doc: CSVDocument) -> Iterator[Dict[str, str]]:
    for i in range(len(doc.rows)):
        yield doc.row_values(i)
