from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterator, List, Optional

from .paths import FieldPath

VALUE_TYPES = ("string", "number", "boolean", "null", "object", "array")


@dataclass(frozen=True)
class TemplateField:
    path: FieldPath
    value_type: str             # string|number|boolean|null|object|array
    example: str
    required: bool = False
    description: Optional[str] = None

    def __post_init__(self) -> None:
        if self.value_type not in VALUE_TYPES:
            raise ValueError(f"Unknown value type {self.value_type!r} for {self.path}")


@dataclass(frozen=True)
class MappingBinding:
    source_field: Optional[str] = None      # CSV header; ignored when is_static
    target_path: Optional[FieldPath] = None
    is_static: bool = False
    static_value: str = ""

    def with_target(self, path: FieldPath) -> "MappingBinding":
        return replace(self, target_path=path)


@dataclass
class MappingTable:
    bindings: List[MappingBinding] = field(default_factory=list)
    name: Optional[str] = None

    def __iter__(self) -> Iterator[MappingBinding]:
        return iter(self.bindings)

    def __len__(self) -> int:
        return len(self.bindings)


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    missing_required_paths: List[FieldPath] = field(default_factory=list)


@dataclass
class CSVDocument:
    headers: List[str]
    rows: List[List[str]] = field(default_factory=list)

    def row_values(self, index: int) -> Dict[str, str]:
        return dict(zip(self.headers, self.rows[index]))
