from __future__ import annotations

import logging
from pathlib import Path

from nebula_api.domain.exceptions import NotebookIOError, NotebookNotFoundError
from nebula_api.domain.notebook import Notebook
from nebula_api.storage import codec
from nebula_api.util import atomic_write_chunks

NOTEBOOK_EXTENSION = ".nb"

logger = logging.getLogger("nebula.storage")


class NotebookFileStore:
    """One ``<id>.nb`` file per notebook inside ``data_dir``."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = data_dir

    def path_for(self, notebook_id: str) -> Path:
        if not notebook_id or "/" in notebook_id or "\\" in notebook_id or notebook_id in {".", ".."}:
            raise NotebookNotFoundError(f"invalid notebook id {notebook_id!r}")
        return self.data_dir / f"{notebook_id}{NOTEBOOK_EXTENSION}"

    def exists(self, notebook_id: str) -> bool:
        return self.path_for(notebook_id).is_file()

    def save(self, notebook: Notebook) -> Path:
        path = self.path_for(notebook.id)
        header, payload = codec.serialize_parts(notebook)
        try:
            atomic_write_chunks(path, [header, payload])
        except OSError as e:
            raise NotebookIOError(f"error writing {path}: {e}") from e
        logger.info("notebook_save", extra={"id": notebook.id, "path": str(path), "bytes": len(header) + len(payload)})
        return path

    def load(self, notebook_id: str) -> Notebook:
        path = self.path_for(notebook_id)
        if not path.is_file():
            raise NotebookNotFoundError(f"notebook {notebook_id} not found")
        try:
            data = path.read_bytes()
        except OSError as e:
            raise NotebookIOError(f"error reading {path}: {e}") from e
        notebook = codec.deserialize(data)
        logger.info("notebook_load", extra={"id": notebook.id, "path": str(path), "pages": len(notebook.page_map)})
        return notebook
