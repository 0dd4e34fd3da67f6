"""Load/save backends for the availability document.

The engine only ever reads the whole document and writes the whole document
back; a backend just has to round-trip the tree, vacant ``patientInfo: {}``
markers included.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from typing import Any, Protocol

from pydantic import ValidationError

from slot_booking.models import Document

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """The document could not be read or durably written."""


class DocumentStore(Protocol):
    def load(self) -> Document: ...

    def save(self, document: Document) -> None: ...


def parse_document(raw: Any) -> Document:
    try:
        return Document.model_validate(raw)
    except ValidationError as e:
        raise StorageError(f"Stored document has an unexpected shape: {e.error_count()} error(s)") from e


class JsonFileStore:
    """Keeps the document in a single JSON file (``camp.json`` by default)."""

    def __init__(self, path: str) -> None:
        self.path = path

    def load(self) -> Document:
        if not os.path.exists(self.path):
            logger.warning("Data file %s does not exist, serving an empty document", self.path)
            return Document([])

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            # A corrupted file must not be replaced by a fresh one on the next save.
            raise StorageError(f"Failed to read {self.path} ({type(e).__name__}: {e})") from e

        return parse_document(raw)

    def save(self, document: Document) -> None:
        folder = os.path.dirname(os.path.abspath(self.path))
        tmp_name: str | None = None
        try:
            os.makedirs(folder, exist_ok=True)
            # Atomic write
            with tempfile.NamedTemporaryFile("w", delete=False, encoding="utf-8", dir=folder, suffix=".tmp") as tf:
                tmp_name = tf.name
                json.dump(document.dump(), tf, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageError(f"Failed to write {self.path} ({type(e).__name__}: {e})") from e


class MemoryStore:
    """Holds the document in process; every load hands out an independent copy."""

    def __init__(self, raw: list[dict[str, Any]] | Document | None = None) -> None:
        if isinstance(raw, Document):
            raw = raw.dump()
        self._raw: list[dict[str, Any]] = copy.deepcopy(raw or [])
        self.saves = 0

    def load(self) -> Document:
        return parse_document(copy.deepcopy(self._raw))

    def save(self, document: Document) -> None:
        self._raw = document.dump()
        self.saves += 1

    @property
    def raw(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._raw)
