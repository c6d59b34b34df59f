from __future__ import annotations

import hashlib
import json
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from payloadtools.csvpipe.mapping import build_mapping, mapping_to_dict
from payloadtools.csvpipe.types import MappingTable
from payloadtools.errors import MappingNotFoundError


def _timestamp() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%S", time.localtime())


def _stable_mapping_id(name: str, salt: str) -> str:
    """Short digest identifier for a saved mapping."""
    blob = json.dumps({"name": name, "salt": salt}, sort_keys=True)
    digest = hashlib.sha1(blob.encode("utf-8")).hexdigest()
    return digest[:12]


@dataclass(frozen=True)
class SavedMapping:
    id: str
    name: str
    table: MappingTable
    created_at: str
    last_modified: str
    template: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": self.created_at,
            "last_modified": self.last_modified,
            "mapping": mapping_to_dict(self.table),
            "template": self.template,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "SavedMapping":
        return SavedMapping(
            id=d["id"],
            name=d["name"],
            table=build_mapping(d.get("mapping") or {}),
            created_at=d["created_at"],
            last_modified=d.get("last_modified") or d["created_at"],
            template=d.get("template"),
        )


def new_saved_mapping(
    name: str,
    table: MappingTable,
    template: Optional[Any] = None,
) -> SavedMapping:
    if not name or not name.strip():
        raise ValueError("A saved mapping needs a name")
    now = _timestamp()
    return SavedMapping(
        id=_stable_mapping_id(name, str(time.time_ns())),
        name=name.strip(),
        table=MappingTable(bindings=list(table.bindings), name=name.strip()),
        created_at=now,
        last_modified=now,
        template=template,
    )


def renamed(saved: SavedMapping, name: str) -> SavedMapping:
    return replace(
        saved,
        name=name,
        table=MappingTable(bindings=list(saved.table.bindings), name=name),
        last_modified=_timestamp(),
    )


class MappingRepository(ABC):
    """
    Storage for named mapping tables.

    Callers get one injected; the merge engine itself never touches storage.
    """

    @abstractmethod
    def save(self, saved: SavedMapping) -> SavedMapping:
        ...

    @abstractmethod
    def load(self, mapping_id: str) -> SavedMapping:
        ...

    @abstractmethod
    def list(self) -> List[SavedMapping]:
        ...

    @abstractmethod
    def delete(self, mapping_id: str) -> None:
        ...

    def find_by_name(self, name: str) -> Optional[SavedMapping]:
        for m in self.list():
            if m.name == name:
                return m
        return None


class InMemoryMappingRepository(MappingRepository):
    def __init__(self) -> None:
        self._items: Dict[str, SavedMapping] = {}

    def save(self, saved: SavedMapping) -> SavedMapping:
        self._items[saved.id] = saved
        return saved

    def load(self, mapping_id: str) -> SavedMapping:
        try:
            return self._items[mapping_id]
        except KeyError:
            raise MappingNotFoundError(mapping_id) from None

    def list(self) -> List[SavedMapping]:
        return sorted(self._items.values(), key=lambda m: (m.created_at, m.name))

    def delete(self, mapping_id: str) -> None:
        if self._items.pop(mapping_id, None) is None:
            raise MappingNotFoundError(mapping_id)


class YamlMappingRepository(MappingRepository):
    """One ``<id>.yaml`` file per saved mapping under ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root).expanduser()

    def _path(self, mapping_id: str) -> Path:
        return self.root / f"{mapping_id}.yaml"

    def save(self, saved: SavedMapping) -> SavedMapping:
        self.root.mkdir(parents=True, exist_ok=True)
        with self._path(saved.id).open("w", encoding="utf-8") as f:
            yaml.safe_dump(saved.to_dict(), f, sort_keys=False)
        return saved

    def load(self, mapping_id: str) -> SavedMapping:
        path = self._path(mapping_id)
        if not path.is_file():
            raise MappingNotFoundError(mapping_id)
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        try:
            return SavedMapping.from_dict(data)
        except (KeyError, TypeError) as e:
            raise ValueError(f"{path}: malformed saved mapping") from e

    def list(self) -> List[SavedMapping]:
        if not self.root.is_dir():
            return []
        items = [self.load(p.stem) for p in sorted(self.root.glob("*.yaml"))]
        return sorted(items, key=lambda m: (m.created_at, m.name))

    def delete(self, mapping_id: str) -> None:
        path = self._path(mapping_id)
        if not path.is_file():
            raise MappingNotFoundError(mapping_id)
        path.unlink()
