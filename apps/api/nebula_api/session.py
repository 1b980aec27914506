from __future__ import annotations

import logging
import threading
from typing import Callable, TypeVar

from nebula_api.domain.exceptions import NotLoadedError
from nebula_api.domain.notebook import Notebook
from nebula_api.domain.ports import NotebookRepository

R = TypeVar("R")

logger = logging.getLogger("nebula.session")


class NotebookSession:
    """The single active-notebook slot.

    Every access goes through one lock, so operations on the active notebook
    are serialized. Installing a notebook discards the previous one without
    saving it; callers that care check ``has_unsaved_changes`` or ``save``
    first.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._current: Notebook | None = None
        self._dirty = False

    def _install(self, notebook: Notebook) -> None:
        previous = self._current
        if previous is not None and self._dirty:
            logger.warning(
                "notebook_discarded_unsaved",
                extra={"id": previous.id, "replaced_by": notebook.id},
            )
        self._current = notebook
        self._dirty = False
        logger.info("notebook_activate", extra={"id": notebook.id, "notebook_name": notebook.name})

    def load(self, notebook: Notebook) -> None:
        with self._lock:
            self._install(notebook)

    def load_from(
        self,
        store: NotebookRepository,
        notebook_id: str,
        view: Callable[[Notebook], R] | None = None,
    ) -> Notebook | R:
        """Read ``notebook_id`` from ``store`` and make it the active notebook.

        When ``view`` is given it runs on the new notebook before the lock is
        released and its result is returned instead of the notebook.
        """
        with self._lock:
            notebook = store.load(notebook_id)
            self._install(notebook)
            if view is not None:
                return view(notebook)
            return notebook

    def with_active(
        self,
        op: Callable[[Notebook], R],
        *,
        mutates: bool | Callable[[R], bool] = False,
    ) -> R:
        """Run ``op`` on the active notebook under the session lock.

        ``mutates`` is either a flag or a predicate on ``op``'s result that
        says whether the notebook changed. If ``op`` raises, any truthy
        ``mutates`` still marks the session dirty.
        """
        with self._lock:
            if self._current is None:
                raise NotLoadedError()
            try:
                result = op(self._current)
            except BaseException:
                if mutates:
                    self._dirty = True
                raise
            if mutates is True or (callable(mutates) and mutates(result)):
                self._dirty = True
            return result

    def is_loaded(self) -> bool:
        with self._lock:
            return self._current is not None

    def active_id(self) -> str | None:
        with self._lock:
            return self._current.id if self._current is not None else None

    def has_unsaved_changes(self) -> bool:
        with self._lock:
            return self._current is not None and self._dirty

    def save(self, store: NotebookRepository) -> Notebook:
        with self._lock:
            if self._current is None:
                raise NotLoadedError()
            store.save(self._current)
            self._dirty = False
            return self._current

    def unload(self, store: NotebookRepository) -> Notebook:
        """Persist the active notebook, then clear the slot.

        If the save fails the notebook stays loaded.
        """
        with self._lock:
            if self._current is None:
                raise NotLoadedError("no notebook to unload")
            notebook = self._current
            store.save(notebook)
            self._current = None
            self._dirty = False
            logger.info("notebook_unload", extra={"id": notebook.id})
            return notebook
