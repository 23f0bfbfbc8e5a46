"""
Document persistence for configurations and templates.

The manager only talks to ``DocumentStore``; ``JsonFileStore`` keeps one
JSON file per document, ``MemoryStore`` keeps everything in a dict.
"""

import copy
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .exceptions import ParseError, StorageError
from .fileio import write_json_atomic

logger = logging.getLogger(__name__)


class DocumentStore(ABC):
    """
    Abstract key/value store of JSON documents.

    Implementations:
    - JsonFileStore: one ``<key>.json`` file per document
    - MemoryStore: in-memory, for tests and embedding
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the document stored under *key*, or None."""
        pass

    @abstractmethod
    def put(self, key: str, document: Dict[str, Any]) -> None:
        """Store *document* under *key*, replacing any previous version."""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove *key*. Returns False if it was not present."""
        pass

    @abstractmethod
    def list(self) -> List[str]:
        """Return all keys, sorted."""
        pass

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key in self.list()


def _check_key(key: str) -> None:
    if not key or key.startswith(".") or "/" in key or "\\" in key:
        raise ValueError(f"Invalid document key: {key!r}")


class JsonFileStore(DocumentStore):
    """Store documents as individual JSON files in one directory."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(str(self.directory), e) from e

    def _path(self, key: str) -> Path:
        _check_key(key)
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        path = self._path(key)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(str(path), e) from e
        try:
            document = json.loads(content)
        except ValueError as e:
            raise ParseError(str(path), str(e))
        if not isinstance(document, dict):
            raise ParseError(str(path), "document must be a JSON object")
        return document

    def put(self, key: str, document: Dict[str, Any]) -> None:
        path = self._path(key)
        write_json_atomic(path, document)
        logger.debug("Wrote %s", path)

    def delete(self, key: str) -> bool:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(str(path), e) from e
        logger.debug("Deleted %s", path)
        return True

    def list(self) -> List[str]:
        try:
            entries = list(self.directory.iterdir())
        except OSError as e:
            raise StorageError(str(self.directory), e) from e
        return sorted(
            p.stem
            for p in entries
            if p.is_file() and p.suffix == ".json" and not p.name.startswith(".")
        )


class MemoryStore(DocumentStore):
    """Keep documents in memory. Documents are copied on the way in and out."""

    def __init__(self) -> None:
        self._documents: Dict[str, Dict[str, Any]] = {}

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        document = self._documents.get(key)
        return copy.deepcopy(document) if document is not None else None

    def put(self, key: str, document: Dict[str, Any]) -> None:
        _check_key(key)
        self._documents[key] = copy.deepcopy(document)

    def delete(self, key: str) -> bool:
        return self._documents.pop(key, None) is not None

    def list(self) -> List[str]:
        return sorted(self._documents)
