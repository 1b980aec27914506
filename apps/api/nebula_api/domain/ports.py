from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from nebula_api.domain.entities import NotebookMetadata
from nebula_api.domain.notebook import Notebook


@runtime_checkable
class NotebookRepository(Protocol):
    def save(self, notebook: Notebook) -> Path:
        ...

    def load(self, notebook_id: str) -> Notebook:
        ...

    def exists(self, notebook_id: str) -> bool:
        ...


@runtime_checkable
class MetadataRepository(Protocol):
    def list_all(self) -> list[NotebookMetadata]:
        ...

    def append(self, meta: NotebookMetadata) -> list[NotebookMetadata]:
        ...
