import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Request

from nebula_api.config import Settings
from nebula_api.dependencies import get_metadata_index, get_session, get_settings, get_store
from nebula_api.domain.entities import NotebookMetadata, PageSimple
from nebula_api.domain.exceptions import NebulaError
from nebula_api.domain.notebook import Notebook
from nebula_api.domain.schemas import (
    AddPageOut,
    LoadPageOut,
    NotebookCreateIn,
    NotebookListOut,
    NotebookMetadataOut,
    NotebookOut,
    PageCreateIn,
    PageOut,
    PageSimpleOut,
    PageTreeOut,
    PageUpdateIn,
    PageUpdateOut,
    SessionStatusOut,
)
from nebula_api.session import NotebookSession
from nebula_api.storage.file_store import NotebookFileStore
from nebula_api.storage.metadata_index import MetadataIndex

router = APIRouter()
logger = logging.getLogger("nebula.api")

_STATUS_BY_CODE = {
    "not_found": 404,
    "deserialization_error": 422,
    "unsupported": 409,
    "notebook_not_loaded": 409,
}


def _http_error(e: NebulaError) -> HTTPException:
    return HTTPException(
        status_code=_STATUS_BY_CODE.get(e.code, 500),
        detail={"code": e.code, "message": e.message},
    )


def _rid(request: Request) -> str:
    return getattr(request.state, "request_id", "")


def _tree_out(pages: list[PageSimple]) -> list[PageSimpleOut]:
    return [PageSimpleOut.model_validate(asdict(p)) for p in pages]


def _notebook_out(notebook: Notebook, max_depth: int) -> NotebookOut:
    return NotebookOut(
        id=notebook.id,
        name=notebook.name,
        created_at=notebook.created_at,
        last_accessed_at=notebook.last_accessed_at,
        thumbnail=notebook.thumbnail,
        description=notebook.description,
        author=notebook.author,
        assets=list(notebook.assets),
        pages=_tree_out(notebook.flatten_for_display(max_depth=max_depth)),
    )


@router.get("/health")
def health():
    return {"ok": True}


@router.get("/notebooks", response_model=NotebookListOut)
def list_notebooks(index: MetadataIndex = Depends(get_metadata_index)):
    try:
        items = index.list_all()
    except NebulaError as e:
        raise _http_error(e) from e
    return NotebookListOut(notebooks=[NotebookMetadataOut(**asdict(m)) for m in items])


@router.post("/notebooks", response_model=NotebookOut)
def create_notebook(
    payload: NotebookCreateIn,
    request: Request,
    store: NotebookFileStore = Depends(get_store),
    index: MetadataIndex = Depends(get_metadata_index),
    settings: Settings = Depends(get_settings),
):
    notebook = Notebook.new(payload.name)
    try:
        store.save(notebook)
        index.append(NotebookMetadata(id=notebook.id, name=notebook.name, thumbnail=notebook.thumbnail))
    except NebulaError as e:
        raise _http_error(e) from e
    logger.info("notebook_create", extra={"rid": _rid(request), "id": notebook.id})
    return _notebook_out(notebook, settings.max_tree_depth)


@router.post("/notebooks/{notebook_id}/load", response_model=NotebookOut)
def load_notebook(
    notebook_id: str,
    request: Request,
    store: NotebookFileStore = Depends(get_store),
    session: NotebookSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    try:
        out = session.load_from(store, notebook_id, view=lambda nb: _notebook_out(nb, settings.max_tree_depth))
    except NebulaError as e:
        raise _http_error(e) from e
    logger.info("notebook_open", extra={"rid": _rid(request), "id": notebook_id})
    return out


@router.post("/notebook/save", response_model=SessionStatusOut)
def save_notebook(
    store: NotebookFileStore = Depends(get_store),
    session: NotebookSession = Depends(get_session),
):
    try:
        notebook = session.save(store)
    except NebulaError as e:
        raise _http_error(e) from e
    return SessionStatusOut(active_id=notebook.id, unsaved_changes=False)


@router.post("/notebook/unload", response_model=SessionStatusOut)
def unload_notebook(
    store: NotebookFileStore = Depends(get_store),
    session: NotebookSession = Depends(get_session),
):
    try:
        session.unload(store)
    except NebulaError as e:
        raise _http_error(e) from e
    return SessionStatusOut(active_id=None, unsaved_changes=False)


@router.get("/notebook/status", response_model=SessionStatusOut)
def notebook_status(session: NotebookSession = Depends(get_session)):
    return SessionStatusOut(active_id=session.active_id(), unsaved_changes=session.has_unsaved_changes())


@router.get("/pages", response_model=PageTreeOut)
def page_tree(
    session: NotebookSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    try:
        pages = session.with_active(lambda nb: nb.flatten_for_display(max_depth=settings.max_tree_depth))
    except NebulaError as e:
        raise _http_error(e) from e
    return PageTreeOut(pages=_tree_out(pages))


@router.get("/pages/{page_id}", response_model=LoadPageOut)
def load_page(
    page_id: str,
    session: NotebookSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    def op(nb: Notebook) -> LoadPageOut:
        page = nb.get_page(page_id)
        expanded = nb.ancestor_path(page.id, max_depth=settings.max_tree_depth)
        return LoadPageOut(page=PageOut.model_validate(asdict(page)), expanded=expanded)

    try:
        return session.with_active(op)
    except NebulaError as e:
        raise _http_error(e) from e


@router.post("/pages", response_model=AddPageOut)
def add_page(
    payload: PageCreateIn,
    request: Request,
    session: NotebookSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    def op(nb: Notebook) -> AddPageOut:
        new_page_id = nb.add_page(payload.title, payload.parent_id, payload.insert_after_id)
        pages = nb.flatten_for_display(max_depth=settings.max_tree_depth)
        return AddPageOut(pages=_tree_out(pages), new_page_id=new_page_id)

    try:
        out = session.with_active(op, mutates=True)
    except NebulaError as e:
        raise _http_error(e) from e
    logger.info(
        "page_add",
        extra={"rid": _rid(request), "id": out.new_page_id, "parent_id": payload.parent_id},
    )
    return out


@router.put("/pages/{page_id}", response_model=PageUpdateOut)
def update_page(
    page_id: str,
    payload: PageUpdateIn,
    request: Request,
    session: NotebookSession = Depends(get_session),
):
    def op(nb: Notebook) -> bool:
        updated = nb.update_page_content(page_id, payload.content)
        if payload.title is not None:
            updated = nb.update_page_title(page_id, payload.title) or updated
        if payload.pinned is not None or payload.starred is not None:
            updated = nb.set_page_flags(page_id, pinned=payload.pinned, starred=payload.starred) or updated
        return updated

    try:
        updated = session.with_active(op, mutates=lambda updated: updated)
    except NebulaError as e:
        raise _http_error(e) from e
    logger.info("page_update", extra={"rid": _rid(request), "id": page_id, "updated": updated})
    return PageUpdateOut(content=payload.content, updated=updated)
