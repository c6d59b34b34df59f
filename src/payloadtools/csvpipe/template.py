from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from payloadtools.errors import InvalidJSONError

from .defaults import DEFAULT_FIELD_PATHS, DEFAULT_TEMPLATE_FIELDS, default_template
from .paths import ROOT, FieldPath
from .types import TemplateField

log = logging.getLogger(__name__)


def json_type(value: Any) -> str:
    # bool before number: bool is an int subclass
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def _example(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


class _Walker:
    """Leaf-only, document-order walk. Arrays are templates-of-one."""

    def __init__(self, known: Dict[FieldPath, TemplateField]):
        self.known = known
        self.fields: List[TemplateField] = []
        self.seen = set()

    def emit(self, path: FieldPath, value: Any) -> None:
        if path in self.seen:
            return
        self.seen.add(path)
        base = self.known.get(path)
        self.fields.append(TemplateField(
            path=path,
            value_type=json_type(value),
            example=_example(value),
            required=base.required if base else False,
            description=base.description if base else None,
        ))

    def walk(self, value: Any, path: FieldPath, pinned_only: bool = False) -> None:
        if isinstance(value, dict):
            for key, child in value.items():
                self.walk(child, path.child(str(key)), pinned_only)
        elif isinstance(value, list):
            if not value:
                return
            self.walk(value[0], path.index(0), pinned_only)
            # later elements only surface paths the base schema names
            for i, item in enumerate(value[1:], start=1):
                self.walk(item, path.index(i), pinned_only=True)
        elif path.segments:
            if pinned_only and path not in self.known:
                return
            self.emit(path, value)


def extract_template_fields(
    template: Any,
    known_fields: Optional[Iterable[TemplateField]] = None,
) -> List[TemplateField]:
    """
    List every addressable leaf of ``template`` in document order.

    Object and array nodes get no entry of their own. ``required`` and
    ``description`` are copied from ``known_fields`` (the built-in default
    field list unless given) when a path matches.
    """
    known = {f.path: f for f in (DEFAULT_TEMPLATE_FIELDS if known_fields is None else known_fields)}
    w = _Walker(known)
    w.walk(template, ROOT)
    log.debug("Extracted %d template field(s)", len(w.fields))
    return w.fields


def load_template(json_text: str) -> Any:
    try:
        doc = json.loads(json_text)
    except (TypeError, ValueError) as e:
        raise InvalidJSONError(f"Template is not valid JSON: {e}") from e
    if not isinstance(doc, (dict, list)):
        raise InvalidJSONError(f"Template must be a JSON object or array, got {json_type(doc)}")
    return doc


def extract_fields_from_text(json_text: str) -> List[TemplateField]:
    return extract_template_fields(load_template(json_text))


def extract_additional_fields(uploaded: Any) -> List[TemplateField]:
    """Fields of an uploaded template that the built-in default lacks."""
    return [
        f for f in extract_template_fields(uploaded)
        if f.path not in DEFAULT_FIELD_PATHS
    ]


def template_field_catalog(uploaded: Any = None) -> List[TemplateField]:
    """
    Curated default fields, followed by every other leaf of ``uploaded``.

    Without an uploaded template the built-in one supplies the extra leaves,
    so uncurated fields such as ``server`` still carry their types.
    """
    fields = list(DEFAULT_TEMPLATE_FIELDS)
    fields.extend(extract_additional_fields(default_template() if uploaded is None else uploaded))
    return fields


def field_index(fields: Iterable[TemplateField]) -> Dict[FieldPath, TemplateField]:
    """Path → field, first occurrence wins."""
    out: Dict[FieldPath, TemplateField] = {}
    for f in fields:
        out.setdefault(f.path, f)
    return out
