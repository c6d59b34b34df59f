from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Iterator, List, Tuple, Union

from payloadtools.errors import MalformedPathError, PathShapeError

log = logging.getLogger(__name__)

Segment = Union[str, int]

_DIGITS_RE = re.compile(r"^[0-9]+$")


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


# returned by deep_get when nothing lives at the path
MISSING: Any = _Missing()


@dataclass(frozen=True)
class FieldPath:
    """
    Address of a value inside a JSON document, e.g. ``a.b[0].c``.

    Index segments are ints, key segments are strs. Any token made only of
    digits is an index, whichever way it was written (``a.0`` == ``a[0]``).
    """

    segments: Tuple[Segment, ...]

    @classmethod
    def parse(cls, text: str) -> "FieldPath":
        return parse_path(text)

    def __str__(self) -> str:
        return format_path(self)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self.segments)

    def __len__(self) -> int:
        return len(self.segments)

    @property
    def last(self) -> Segment:
        return self.segments[-1]

    def child(self, key: str) -> "FieldPath":
        return FieldPath(self.segments + (_segment(key),))

    def index(self, i: int) -> "FieldPath":
        return FieldPath(self.segments + (int(i),))


ROOT = FieldPath(())


def _segment(token: str) -> Segment:
    return int(token) if _DIGITS_RE.match(token) else token


def _tokenize(text: str) -> List[str]:
    # "a[0].b" reads the same as "a.0.b"
    out: List[str] = []
    buf = ""
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "[":
            close = text.find("]", i + 1)
            if close == -1:
                raise MalformedPathError(text, "unterminated '['")
            inner = text[i + 1:close]
            if not _DIGITS_RE.match(inner):
                raise MalformedPathError(text, f"non-numeric index [{inner}]")
            if buf:
                out.append(buf)
                buf = ""
            elif i > 0 and text[i - 1] == ".":
                raise MalformedPathError(text, "empty segment before '['")
            out.append(inner)
            i = close + 1
            if i < n and text[i] not in ".[":
                raise MalformedPathError(text, "expected '.' or '[' after ']'")
            continue
        if ch == "]":
            raise MalformedPathError(text, "unmatched ']'")
        if ch == ".":
            after_index = i > 0 and text[i - 1] == "]"
            if not buf and not after_index:
                raise MalformedPathError(text, "empty segment")
            if buf:
                out.append(buf)
                buf = ""
            if i == n - 1:
                raise MalformedPathError(text, "trailing '.'")
            i += 1
            continue
        buf += ch
        i += 1
    if buf:
        out.append(buf)
    return out


def parse_path(text: str) -> FieldPath:
    if isinstance(text, FieldPath):
        return text
    if not isinstance(text, str) or not text.strip():
        raise MalformedPathError(str(text), "empty path")
    return FieldPath(tuple(_segment(t) for t in _tokenize(text.strip())))


def format_path(path: FieldPath) -> str:
    parts: List[str] = []
    for seg in path.segments:
        if isinstance(seg, int):
            parts.append(f"[{seg}]")
        elif parts:
            parts.append(f".{seg}")
        else:
            parts.append(seg)
    return "".join(parts)


def as_path(path: Union[str, FieldPath]) -> FieldPath:
    return path if isinstance(path, FieldPath) else parse_path(path)


def _fetch(container: Any, seg: Segment) -> Any:
    if isinstance(container, list):
        if isinstance(seg, int) and seg < len(container):
            return container[seg]
        return MISSING
    if isinstance(container, dict):
        # digit-only keys of a JSON object are still strings
        return container.get(str(seg), MISSING)
    return MISSING


def _put(container: Any, seg: Segment, value: Any) -> None:
    if isinstance(container, list):
        if len(container) <= seg:
            container.extend([None] * (seg + 1 - len(container)))
        container[seg] = value
    else:
        container[str(seg)] = value


def _new_container(next_seg: Segment) -> Any:
    return [] if isinstance(next_seg, int) else {}


def deep_get(doc: Any, path: Union[str, FieldPath], default: Any = MISSING) -> Any:
    cur: Any = doc
    for seg in as_path(path):
        cur = _fetch(cur, seg)
        if cur is MISSING:
            return default
    return cur


def deep_set(doc: Any, path: Union[str, FieldPath], value: Any) -> None:
    """
    Write ``value`` at ``path``, creating containers on the way down.

    A missing intermediate becomes a list when the next segment is an index
    and a dict otherwise. Lists are padded with None up to the index. An
    intermediate of the wrong shape is replaced rather than raised on. The
    root cannot be replaced, so a scalar root or a list root addressed by key
    raises ``PathShapeError``.
    """
    p = as_path(path)
    segs = p.segments
    if not segs:
        raise MalformedPathError("", "empty path")
    if not isinstance(doc, (dict, list)):
        raise PathShapeError(f"Cannot write {format_path(p)} into a {type(doc).__name__} document")
    if isinstance(doc, list) and not isinstance(segs[0], int):
        raise PathShapeError(f"Cannot address key {segs[0]!r} on a list document")

    cur: Any = doc
    for i, seg in enumerate(segs[:-1]):
        nxt = segs[i + 1]
        child = _fetch(cur, seg)
        if isinstance(child, dict) or (isinstance(child, list) and isinstance(nxt, int)):
            cur = child
            continue
        if child is not MISSING and child is not None:
            log.warning(
                "Replacing %s at %s with a container to write %s",
                type(child).__name__,
                format_path(FieldPath(segs[: i + 1])),
                format_path(p),
            )
        child = _new_container(nxt)
        _put(cur, seg, child)
        cur = child

    _put(cur, segs[-1], value)
