from __future__ import annotations

import logging
from copy import deepcopy
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .loader import iter_row_values
from .mapping import coerce_value, complete_bindings
from .paths import deep_set
from .template import extract_template_fields, field_index
from .types import CSVDocument, MappingTable, TemplateField

log = logging.getLogger(__name__)


def _types_by_path(template: Any, fields: Optional[Sequence[TemplateField]]):
    if fields is None:
        fields = extract_template_fields(template)
    return {p: f.value_type for p, f in field_index(fields).items()}


def _merge(template: Any, table: MappingTable, row: Mapping[str, str], types) -> Dict[str, Any]:
    doc = deepcopy(template)
    for b in complete_bindings(table):
        raw = b.static_value if b.is_static else row.get(b.source_field, "")
        value = coerce_value(raw, b.target_path, types.get(b.target_path))
        deep_set(doc, b.target_path, value)
    return doc


def transform_row(
    template: Any,
    table: MappingTable,
    row_values: Mapping[str, str],
    fields: Optional[Sequence[TemplateField]] = None,
) -> Dict[str, Any]:
    """
    Merge one CSV row into a fresh copy of ``template``.

    Coercion follows the declared type of each target field in ``fields``
    (the template's own extracted fields when omitted). Incomplete bindings
    are skipped; a column missing from the row reads as "".
    """
    return _merge(template, table, row_values, _types_by_path(template, fields))


def transform_all(
    template: Any,
    table: MappingTable,
    csv_doc: CSVDocument,
    fields: Optional[Sequence[TemplateField]] = None,
) -> List[Dict[str, Any]]:
    """One merged document per CSV row, in row order."""
    types = _types_by_path(template, fields)
    docs = [_merge(template, table, row, types) for row in iter_row_values(csv_doc)]
    skipped = len(table) - len(complete_bindings(table))
    log.info(
        "Merged %d row(s) with %d binding(s) (%d incomplete skipped)",
        len(docs), len(table) - skipped, skipped,
    )
    return docs


def preview_document(
    template: Any,
    table: MappingTable,
    csv_doc: CSVDocument,
    fields: Optional[Sequence[TemplateField]] = None,
) -> Optional[Dict[str, Any]]:
    """``transform_row`` against the first data row; None without rows."""
    if not csv_doc.rows:
        return None
    return transform_row(template, table, csv_doc.row_values(0), fields)
