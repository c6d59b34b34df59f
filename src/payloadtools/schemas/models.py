from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


class SFTPConfig(BaseModel):
    # Connection settings for the upload sink; passed per call, never global
    host: str
    port: int = Field(default=22, ge=1, le=65535)
    username: str
    password: Optional[str] = Field(default=None, repr=False)
    private_key_path: Optional[str] = None
    remote_path: str = Field(default=".")
    timeout: float = Field(default=30.0)


class OutputConfig(BaseModel):
    # How merged documents are written
    indent: Optional[int] = Field(default=2)
    combined: bool = False
    filename_pattern: Optional[str] = None


class AppConfig(BaseModel):
    schema_version: str = Field(default="0.1.0")
    sftp: Optional[SFTPConfig] = None
    output: OutputConfig = Field(default_factory=OutputConfig)
    mappings_dir: str = Field(default=".payloadtools/mappings")
    history_path: str = Field(default=".payloadtools/history.jsonl")


class HistoryEntry(BaseModel):
    # One upload attempt, appended to the history JSONL
    schema_version: str = Field(default="0.1.0")
    id: str
    filename: str
    status: Literal["created", "processed", "failed"]
    created_at: str
    processed_at: Optional[str] = None
    remote_path: Optional[str] = None
    mapping_name: Optional[str] = None
    error_message: Optional[str] = None
