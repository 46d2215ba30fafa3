"""Storage adapters for serialized table definitions.

The gateway talks to storage only through the StorageAdapter protocol:
documents go in and come out as plain JSON-compatible dicts, already
validated by the gateway. Adapters own their own locking.

FileStorageAdapter follows the registry pattern used for the other
definition catalogs:
- one file per definition in a definitions/ directory
- lazy loading with a _loaded guard
- in-memory dict keyed by definition id
- writes go straight back to disk

JSON files are the normal format; hand-authored ``*.yaml`` seed files are
loaded too and written back as YAML.
"""

import copy
import json
import logging
import threading
import uuid
from pathlib import Path
from typing import Any, Optional, Protocol, runtime_checkable

import yaml

from gridweaver.errors import DefinitionNotFound

logger = logging.getLogger(__name__)

_YAML_SUFFIXES = (".yaml", ".yml")


def new_definition_id() -> str:
    return f"td-{uuid.uuid4().hex[:12]}"


def merge_partial(document: dict[str, Any], partial: dict[str, Any]) -> dict[str, Any]:
    """Shallow-merge a partial update; a ``None`` value removes the key."""
    merged = dict(document)
    for key, value in partial.items():
        if value is None:
            merged.pop(key, None)
        else:
            merged[key] = value
    return merged


@runtime_checkable
class StorageAdapter(Protocol):
    """Protocol for definition storage backends."""

    def create(self, document: dict[str, Any]) -> str: ...

    def read(self, definition_id: str) -> Optional[dict[str, Any]]: ...

    def update(self, definition_id: str, partial: dict[str, Any]) -> None:
        """Merge top-level keys. Raises DefinitionNotFound for unknown ids."""
        ...

    def delete(self, definition_id: str) -> None:
        """Raises DefinitionNotFound for unknown ids."""
        ...

    def list_ids(self) -> list[str]: ...


class FileStorageAdapter:
    """Stores each definition as ``{definition_id}.json`` in a directory."""

    def __init__(self, definitions_dir: Optional[Path] = None):
        if definitions_dir is None:
            definitions_dir = Path(__file__).parent / "definitions"
        self.definitions_dir = Path(definitions_dir)
        self._documents: dict[str, dict[str, Any]] = {}
        self._file_map: dict[str, Path] = {}
        self._loaded = False
        self._lock = threading.Lock()

    def load(self) -> None:
        """Load all definition files from the directory."""
        if self._loaded:
            return

        with self._lock:
            if self._loaded:
                return

            if not self.definitions_dir.exists():
                logger.warning(
                    f"Table definitions directory not found: {self.definitions_dir}"
                )
                self._loaded = True
                return

            files = sorted(self.definitions_dir.glob("*.json"))
            for suffix in _YAML_SUFFIXES:
                files.extend(sorted(self.definitions_dir.glob(f"*{suffix}")))

            for path in files:
                try:
                    with open(path, "r") as f:
                        if path.suffix in _YAML_SUFFIXES:
                            data = yaml.safe_load(f)
                        else:
                            data = json.load(f)
                    if not isinstance(data, dict):
                        logger.error(f"Skipping {path}: top level is not an object")
                        continue
                    self._documents[path.stem] = data
                    self._file_map[path.stem] = path
                    logger.debug(f"Loaded table definition: {path.stem}")
                except (OSError, ValueError, yaml.YAMLError) as e:
                    logger.error(f"Failed to load table definition from {path}: {e}")

            self._loaded = True
            logger.info(f"Loaded {len(self._documents)} table definitions")

    def _write(self, definition_id: str, document: dict[str, Any]) -> None:
        path = self._file_map.get(definition_id, self.definitions_dir / f"{definition_id}.json")
        self.definitions_dir.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            if path.suffix in _YAML_SUFFIXES:
                yaml.safe_dump(document, f, sort_keys=False, allow_unicode=True)
            else:
                json.dump(document, f, indent=2, ensure_ascii=False)
                f.write("\n")

        self._documents[definition_id] = document
        self._file_map[definition_id] = path

    def create(self, document: dict[str, Any]) -> str:
        self.load()
        with self._lock:
            definition_id = new_definition_id()
            while definition_id in self._documents:
                definition_id = new_definition_id()
            self._write(definition_id, copy.deepcopy(document))
        logger.info(f"Saved table definition: {definition_id} -> {self._file_map[definition_id]}")
        return definition_id

    def read(self, definition_id: str) -> Optional[dict[str, Any]]:
        self.load()
        document = self._documents.get(definition_id)
        return copy.deepcopy(document) if document is not None else None

    def update(self, definition_id: str, partial: dict[str, Any]) -> None:
        self.load()
        with self._lock:
            current = self._documents.get(definition_id)
            if current is None:
                raise DefinitionNotFound(definition_id)
            self._write(definition_id, merge_partial(current, copy.deepcopy(partial)))
        logger.info(f"Updated table definition: {definition_id}")

    def delete(self, definition_id: str) -> None:
        self.load()
        with self._lock:
            if definition_id not in self._documents:
                raise DefinitionNotFound(definition_id)

            path = self._file_map.get(definition_id, self.definitions_dir / f"{definition_id}.json")
            if path.exists():
                path.unlink()

            del self._documents[definition_id]
            self._file_map.pop(definition_id, None)
        logger.info(f"Deleted table definition: {definition_id}")

    def list_ids(self) -> list[str]:
        self.load()
        return sorted(self._documents)

    def count(self) -> int:
        self.load()
        return len(self._documents)

    def reload(self) -> None:
        """Force reload all definitions from disk."""
        with self._lock:
            self._loaded = False
            self._documents.clear()
            self._file_map.clear()
        self.load()
