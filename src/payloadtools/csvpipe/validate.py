from __future__ import annotations

import json
from typing import Any, Dict

import jsonschema


def _load_schema(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def validate_doc(doc: Dict[str, Any], schema_path: str) -> None:
    schema = _load_schema(schema_path)
    jsonschema.validate(instance=doc, schema=schema)


def validate_mapping_dict(d: Any) -> None:
    """
    Structural validation for mapping files.

    This validates the *serialized* representation, before build_mapping.
    """
    if not isinstance(d, dict):
        raise ValueError("Mapping payload must be a mapping")

    if "bindings" not in d:
        raise ValueError("Missing mapping field: 'bindings'")
    if not isinstance(d["bindings"], list):
        raise ValueError("bindings must be a list")

    if "name" in d and d["name"] is not None and not isinstance(d["name"], str):
        raise ValueError("name must be a string")

    for i, b in enumerate(d["bindings"]):
        where = f"bindings[{i}]"
        if not isinstance(b, dict):
            raise ValueError(f"{where} must be a mapping")
        if "path" in b and b["path"] is not None and not isinstance(b["path"], str):
            raise ValueError(f"{where}.path must be a string")
        if "static" in b and "source" in b:
            raise ValueError(f"{where} cannot have both 'static' and 'source'")
        if "static" not in b and "source" not in b:
            raise ValueError(f"{where} needs 'source' or 'static'")
        if "source" in b and b["source"] is not None and not isinstance(b["source"], str):
            raise ValueError(f"{where}.source must be a string")
        if "static" in b and isinstance(b["static"], (dict, list)):
            raise ValueError(f"{where}.static must be a scalar")
