from __future__ import annotations


class PayloadToolsError(ValueError):
    """Base class for every fatal error raised by payloadtools."""


class MalformedPathError(PayloadToolsError):
    def __init__(self, text: str, reason: str):
        self.text = text
        self.reason = reason
        super().__init__(f"Malformed path {text!r}: {reason}")


class InvalidJSONError(PayloadToolsError):
    pass


class EmptyCSVError(PayloadToolsError):
    pass


class MappingNotFoundError(PayloadToolsError, KeyError):
    def __init__(self, mapping_id: str):
        self.mapping_id = mapping_id
        super().__init__(f"No saved mapping with id {mapping_id!r}")

    def __str__(self) -> str:
        return self.args[0]


class UploadError(PayloadToolsError):
    pass


class ConfigError(PayloadToolsError):
    pass


class PathShapeError(PayloadToolsError):
    """A field path cannot be written into the document it targets."""
