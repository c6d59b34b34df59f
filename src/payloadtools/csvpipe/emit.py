from __future__ import annotations

import json
import re
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, StrictUndefined, TemplateError

COMBINED_PATTERN = "{{ stem }}_transformed.json"
PER_ROW_PATTERN = '{{ stem }}_{{ "%05d"|format(index) }}.json'

_SAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9._-]")

_env = Environment(undefined=StrictUndefined, autoescape=False)


def dumps_document(doc: Any, indent: Optional[int] = 2) -> str:
    """JSON text for a merged document; template key order is kept."""
    return json.dumps(doc, indent=indent, ensure_ascii=False)


def _sanitize_filename(s: str) -> str:
    s = (s or "").strip()
    if not s:
        return "payload.json"
    return _SAFE_CHARS_RE.sub("_", s)


def render_filename(pattern: str, **ctx: Any) -> str:
    """Render a Jinja filename pattern, e.g. ``{{ stem }}_{{ index }}.json``."""
    try:
        rendered = _env.from_string(pattern).render(**ctx)
    except TemplateError as e:
        raise ValueError(f"Bad filename pattern {pattern!r}: {e}") from e
    return _sanitize_filename(rendered)


def output_filenames(
    count: int,
    stem: str,
    *,
    combined: bool = False,
    pattern: Optional[str] = None,
) -> List[str]:
    if combined:
        return [render_filename(pattern or COMBINED_PATTERN, stem=stem, index=0, count=count)]
    pattern = pattern or PER_ROW_PATTERN
    names = [render_filename(pattern, stem=stem, index=i, count=count) for i in range(count)]
    if len(set(names)) != len(names):
        raise ValueError(f"Filename pattern {pattern!r} does not give each row a distinct name")
    return names


def render_documents(
    docs: List[Dict[str, Any]],
    stem: str,
    *,
    combined: bool = False,
    pattern: Optional[str] = None,
    indent: Optional[int] = 2,
) -> Dict[str, str]:
    """filename → JSON text, in row order."""
    names = output_filenames(len(docs), stem, combined=combined, pattern=pattern)
    if combined:
        return {names[0]: dumps_document(docs, indent=indent)}
    return {name: dumps_document(doc, indent=indent) for name, doc in zip(names, docs)}


def emit_documents(
    docs: List[Dict[str, Any]],
    outdir: Path,
    stem: str,
    *,
    combined: bool = False,
    pattern: Optional[str] = None,
    indent: Optional[int] = 2,
    manifest: Optional[Dict[str, Any]] = None,
    dry_run: bool = False,
) -> Dict[str, str]:
    """
    Write merged documents under ``outdir`` and return filename → text.

    One file per document, or a single JSON array when ``combined``. A
    ``manifest.json`` is written alongside when ``manifest`` is given.
    """
    rendered = render_documents(docs, stem, combined=combined, pattern=pattern, indent=indent)
    if dry_run:
        return rendered

    outdir = Path(outdir).expanduser()
    outdir.mkdir(parents=True, exist_ok=True)
    for name, text in rendered.items():
        (outdir / name).write_text(text + "\n", encoding="utf-8")

    if manifest is not None:
        with (outdir / "manifest.json").open("w", encoding="utf-8") as f:
            json.dump(
                {
                    "timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
                    "num_documents": len(docs),
                    "files": list(rendered),
                    "manifest": manifest,
                },
                f,
                indent=2,
            )
    return rendered
