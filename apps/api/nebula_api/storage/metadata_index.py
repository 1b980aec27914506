from __future__ import annotations

import json
from pathlib import Path

from nebula_api.domain.entities import NotebookMetadata
from nebula_api.domain.exceptions import DeserializationError, NotebookIOError
from nebula_api.util import atomic_write_json

METADATA_FILENAME = "meta_data.json"


class MetadataIndex:
    """``meta_data.json``: the id/name/thumbnail list behind the notebook picker."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = data_dir
        self.path = data_dir / METADATA_FILENAME

    def _load_raw(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as e:
            raise NotebookIOError(f"error reading {self.path}: {e}") from e
        except ValueError as e:
            raise DeserializationError(f"invalid metadata index {self.path}: {e}") from e
        notebooks = data.get("notebooks") if isinstance(data, dict) else None
        if not isinstance(notebooks, list):
            raise DeserializationError(f"invalid metadata index {self.path}: missing notebooks list")
        return [n for n in notebooks if isinstance(n, dict)]

    def _write_raw(self, notebooks: list[dict]) -> None:
        try:
            atomic_write_json(self.path, {"notebooks": notebooks})
        except OSError as e:
            raise NotebookIOError(f"error writing {self.path}: {e}") from e

    def list_all(self) -> list[NotebookMetadata]:
        out: list[NotebookMetadata] = []
        for raw in self._load_raw():
            notebook_id = raw.get("id")
            if not isinstance(notebook_id, str) or not notebook_id:
                continue
            thumbnail = raw.get("thumbnail")
            out.append(
                NotebookMetadata(
                    id=notebook_id,
                    name=str(raw.get("name") or ""),
                    thumbnail=thumbnail if isinstance(thumbnail, str) else None,
                )
            )
        return out

    def append(self, meta: NotebookMetadata) -> list[NotebookMetadata]:
        notebooks = self._load_raw()
        notebooks.append({"id": meta.id, "name": meta.name, "thumbnail": meta.thumbnail})
        self._write_raw(notebooks)
        return self.list_all()
