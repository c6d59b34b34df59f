from . import paths
from . import types
from . import defaults
from . import template
from . import mapping
from . import loader
from . import merge
from . import validate
from . import emit

from .emit import dumps_document
from .loader import parse_csv
from .mapping import validate_mapping
from .merge import preview_document, transform_all, transform_row
from .template import extract_fields_from_text

__all__ = [
    "paths",
    "types",
    "defaults",
    "template",
    "mapping",
    "loader",
    "merge",
    "validate",
    "emit",
    "dumps_document",
    "extract_fields_from_text",
    "parse_csv",
    "preview_document",
    "transform_all",
    "transform_row",
    "validate_mapping",
]
