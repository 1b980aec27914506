from __future__ import annotations

import logging
import threading

import pytest

from nebula_api.domain.exceptions import NotebookIOError, NotLoadedError, PageNotFoundError, TreeCycleError
from nebula_api.domain.notebook import Notebook
from nebula_api.session import NotebookSession
from nebula_api.storage.file_store import NotebookFileStore


class FailingStore:
    def save(self, notebook: Notebook):
        raise NotebookIOError("disk full")

    def load(self, notebook_id: str) -> Notebook:
        raise NotebookIOError("disk gone")

    def exists(self, notebook_id: str) -> bool:
        return False


def test_with_active_requires_loaded_notebook() -> None:
    session = NotebookSession()
    assert session.is_loaded() is False
    with pytest.raises(NotLoadedError):
        session.with_active(lambda nb: nb.name)


def test_with_active_runs_against_current() -> None:
    session = NotebookSession()
    nb = Notebook.new("nb")
    session.load(nb)

    new_id = session.with_active(lambda n: n.add_page("A"), mutates=True)

    assert new_id in nb.page_map
    assert session.active_id() == nb.id
    assert session.has_unsaved_changes() is True


def test_read_only_access_does_not_mark_dirty() -> None:
    session = NotebookSession()
    session.load(Notebook.new("nb"))
    session.with_active(lambda n: n.flatten_for_display())
    assert session.has_unsaved_changes() is False


def test_load_discards_previous_without_saving(tmp_path, caplog) -> None:
    store = NotebookFileStore(tmp_path)
    session = NotebookSession()
    first = Notebook.new("first")
    session.load(first)
    session.with_active(lambda n: n.add_page("unsaved"), mutates=True)

    second = Notebook.new("second")
    with caplog.at_level(logging.WARNING, logger="nebula.session"):
        session.load(second)

    assert session.active_id() == second.id
    assert session.has_unsaved_changes() is False
    assert not store.exists(first.id)
    assert any(r.getMessage() == "notebook_discarded_unsaved" for r in caplog.records)


def test_save_clears_dirty_flag(tmp_path) -> None:
    store = NotebookFileStore(tmp_path)
    session = NotebookSession()
    nb = Notebook.new("nb")
    session.load(nb)
    session.with_active(lambda n: n.add_page("A"), mutates=True)

    session.save(store)

    assert session.has_unsaved_changes() is False
    assert store.load(nb.id).page_map.keys() == nb.page_map.keys()


def test_save_without_notebook_fails(tmp_path) -> None:
    with pytest.raises(NotLoadedError):
        NotebookSession().save(NotebookFileStore(tmp_path))


def test_unload_persists_then_clears(tmp_path) -> None:
    store = NotebookFileStore(tmp_path)
    session = NotebookSession()
    nb = Notebook.new("nb")
    session.load(nb)
    page_id = session.with_active(lambda n: n.add_page("A"), mutates=True)

    session.unload(store)

    assert session.is_loaded() is False
    assert page_id in store.load(nb.id).page_map
    with pytest.raises(NotLoadedError):
        session.unload(store)


def test_unload_keeps_notebook_when_save_fails() -> None:
    session = NotebookSession()
    nb = Notebook.new("nb")
    session.load(nb)
    with pytest.raises(NotebookIOError):
        session.unload(FailingStore())
    assert session.active_id() == nb.id


def test_load_from_store(tmp_path) -> None:
    store = NotebookFileStore(tmp_path)
    nb = Notebook.new("nb")
    store.save(nb)
    session = NotebookSession()

    loaded = session.load_from(store, nb.id)

    assert loaded.id == nb.id
    assert session.active_id() == nb.id


def test_load_from_failure_keeps_previous() -> None:
    session = NotebookSession()
    nb = Notebook.new("nb")
    session.load(nb)
    with pytest.raises(NotebookIOError):
        session.load_from(FailingStore(), "other")
    assert session.active_id() == nb.id


def test_concurrent_mutations_are_serialized() -> None:
    session = NotebookSession()
    nb = Notebook.new("nb")
    session.load(nb)

    def worker() -> None:
        for i in range(50):
            session.with_active(lambda n: n.add_page(f"p{i}"), mutates=True)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(nb.page_map) == 200
    assert len(nb.pages) == 200
    assert len(set(nb.pages)) == 200


def test_failed_mutation_still_marks_dirty(caplog) -> None:
    session = NotebookSession()
    nb = Notebook.new("nb")
    a = nb.add_page("A")
    b = nb.add_page("B", parent_id=a)
    nb.page_map[b].sub_pages.append(a)
    session.load(nb)

    def add_then_render(n: Notebook) -> None:
        n.add_page("C")
        n.flatten_for_display(max_depth=5)

    with pytest.raises(TreeCycleError):
        session.with_active(add_then_render, mutates=True)

    assert len(nb.page_map) == 3
    assert session.has_unsaved_changes() is True

    with caplog.at_level(logging.WARNING, logger="nebula.session"):
        session.load(Notebook.new("other"))
    assert any(r.getMessage() == "notebook_discarded_unsaved" for r in caplog.records)


def test_failed_read_only_op_stays_clean() -> None:
    session = NotebookSession()
    session.load(Notebook.new("nb"))
    with pytest.raises(PageNotFoundError):
        session.with_active(lambda n: n.get_page("missing"))
    assert session.has_unsaved_changes() is False


def test_mutates_predicate_decides_from_result() -> None:
    session = NotebookSession()
    nb = Notebook.new("nb")
    a = nb.add_page("A")
    session.load(nb)

    session.with_active(lambda n: n.update_page_content("missing", "x"), mutates=lambda changed: changed)
    assert session.has_unsaved_changes() is False

    session.with_active(lambda n: n.update_page_content(a, "x"), mutates=lambda changed: changed)
    assert session.has_unsaved_changes() is True


def test_load_from_view_runs_while_locked(tmp_path) -> None:
    store = NotebookFileStore(tmp_path)
    nb = Notebook.new("nb")
    store.save(nb)
    session = NotebookSession()

    out = session.load_from(store, nb.id, view=lambda n: (n.id, session._lock.locked()))

    assert out == (nb.id, True)
    assert session.active_id() == nb.id
