"""
Whole-document persistence.

A repository only knows how to hand out a fresh Document and write one back
in full. No state is cached between calls: every load() re-reads storage.
"""
import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .schema import Document

logger = logging.getLogger(__name__)


class StorageError(OSError):
    """Raised when the document cannot be read or written."""
    pass


class DocumentRepository:
    """Interface: load() a fresh Document, commit() one back."""

    def load(self) -> Document:
        raise NotImplementedError

    def commit(self, document: Document) -> None:
        raise NotImplementedError


class JsonFileRepository(DocumentRepository):
    """Single pretty-printed JSON file, replaced atomically on every commit."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()

    def load(self) -> Document:
        if not self.path.exists():
            logger.info(f"No document at {self.path}, creating a fresh one")
            document = Document()
            self.commit(document)
            return document
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Cannot read document {self.path}: {e}")
            raise StorageError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"{self.path} does not hold a JSON object")
        try:
            return Document.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed document {self.path}: {e}")
            raise StorageError(f"Malformed document {self.path}: {e}") from e

    def commit(self, document: Document) -> None:
        payload = json.dumps(document.to_dict(), indent=2, ensure_ascii=False)
        tmp_path: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as e:
            logger.error(f"Cannot write document {self.path}: {e}")
            raise StorageError(f"Cannot write {self.path}: {e}") from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)


class MemoryRepository(DocumentRepository):
    """Keeps the serialized document in memory; loads still return fresh copies."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = copy.deepcopy(data) if data else Document().to_dict()

    def load(self) -> Document:
        return Document.from_dict(copy.deepcopy(self._data))

    def commit(self, document: Document) -> None:
        self._data = document.to_dict()
