from __future__ import annotations

import math
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .defaults import ARRAY_ID_DEFAULTS
from .paths import FieldPath, format_path, parse_path
from .types import MappingBinding, MappingTable, TemplateField, ValidationResult

MAPPING_VERSION = "1"

_NORMALIZE_RE = re.compile(r"[\s_\[\]\.]")
_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$", re.ASCII)


# ---------------------------------------------------------------------------
# Completeness / validation
# ---------------------------------------------------------------------------

def is_complete(binding: MappingBinding) -> bool:
    if binding.target_path is None:
        return False
    if binding.is_static:
        return bool(binding.static_value)
    return bool(binding.source_field)


def complete_bindings(table: MappingTable) -> List[MappingBinding]:
    return [b for b in table if is_complete(b)]


def validate_mapping(
    table: MappingTable,
    required_fields: Sequence[TemplateField],
) -> ValidationResult:
    """
    Check that every required field has a complete binding targeting it.

    Entries of ``required_fields`` not flagged ``required`` are skipped, so a
    whole field catalog can be passed in. Missing paths keep input order.
    """
    bound = {b.target_path for b in complete_bindings(table)}
    missing = [
        f.path for f in required_fields
        if f.required and f.path not in bound
    ]
    return ValidationResult(valid=not missing, missing_required_paths=missing)


# ---------------------------------------------------------------------------
# Auto-suggestion
# ---------------------------------------------------------------------------

def normalize_name(s: str) -> str:
    return _NORMALIZE_RE.sub("", s.lower())


def suggest_targets(
    table: MappingTable,
    fields: Sequence[TemplateField],
) -> MappingTable:
    """
    Fill in empty targets by matching source names to field-path leaves.

    Explicit targets are never touched, and a target already claimed by
    another binding is not handed out again.
    """
    claimed = {b.target_path for b in table if b.target_path is not None}
    out: List[MappingBinding] = []
    for b in table:
        if b.target_path is not None or b.is_static or not b.source_field:
            out.append(b)
            continue
        want = normalize_name(b.source_field)
        match: Optional[FieldPath] = None
        for f in fields:
            if f.path in claimed:
                continue
            leaf = f.path.last if f.path.segments else ""
            if normalize_name(str(leaf)) == want:
                match = f.path
                break
        if match is None:
            out.append(b)
        else:
            claimed.add(match)
            out.append(b.with_target(match))
    return MappingTable(bindings=out, name=table.name)


def bindings_for_headers(headers: Iterable[str]) -> MappingTable:
    """One unbound binding per CSV header, ready for suggest_targets."""
    return MappingTable(bindings=[MappingBinding(source_field=h) for h in headers])


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------

def _to_number(raw: str):
    text = str(raw).strip()
    # plain decimal text only, no "1_000", "inf" or non-ASCII digits
    if not _NUMBER_RE.match(text):
        return 0
    v = float(text)
    if not math.isfinite(v):
        return 0
    # integral values print as JSON integers ("5" -> 5, not 5.0)
    if v.is_integer() and abs(v) < 2 ** 53:
        return int(v)
    return v


def _to_bool(raw: str) -> bool:
    return str(raw).strip().lower() == "true"


def coerce_value(raw: Any, target: FieldPath, value_type: Optional[str]) -> Any:
    """
    Convert raw cell text for the field at ``target``.

    Never raises: unparseable numbers become 0, anything but "true" is False.
    """
    leaf = target.last if target.segments else None
    if isinstance(leaf, str) and leaf in ARRAY_ID_DEFAULTS and not isinstance(raw, list):
        return list(ARRAY_ID_DEFAULTS[leaf])
    if value_type == "number":
        return _to_number(raw)
    if value_type == "boolean":
        return _to_bool(raw)
    return raw


# ---------------------------------------------------------------------------
# Dict / YAML representation
# ---------------------------------------------------------------------------

def normalize_binding(d: Dict[str, Any]) -> MappingBinding:
    path = d.get("path")
    target = parse_path(path) if path not in (None, "") else None
    if "static" in d:
        static = d.get("static")
        return MappingBinding(
            source_field=None,
            target_path=target,
            is_static=True,
            static_value="" if static is None else str(static),
        )
    return MappingBinding(
        source_field=d.get("source") or None,
        target_path=target,
    )


def build_mapping(spec: dict) -> MappingTable:
    return MappingTable(
        bindings=[normalize_binding(b) for b in (spec.get("bindings") or [])],
        name=spec.get("name"),
    )


def binding_to_dict(b: MappingBinding) -> Dict[str, Any]:
    d: Dict[str, Any] = {}
    if b.is_static:
        d["static"] = b.static_value
    else:
        d["source"] = b.source_field
    d["path"] = format_path(b.target_path) if b.target_path is not None else None
    return d


def mapping_to_dict(table: MappingTable) -> Dict[str, Any]:
    d: Dict[str, Any] = {"version": MAPPING_VERSION}
    if table.name:
        d["name"] = table.name
    d["bindings"] = [binding_to_dict(b) for b in table]
    return d
