from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class NotebookMetadataOut(BaseModel):
    id: str
    name: str
    thumbnail: Optional[str] = None


class NotebookListOut(BaseModel):
    notebooks: list[NotebookMetadataOut] = Field(default_factory=list)


class NotebookCreateIn(BaseModel):
    name: str = Field(min_length=1)


class PageSimpleOut(BaseModel):
    id: str
    parent_id: Optional[str] = None
    title: str
    pinned: bool = False
    starred: bool = False
    sub_pages: list[PageSimpleOut] = Field(default_factory=list)


class NotebookOut(BaseModel):
    id: str
    name: str
    created_at: str
    last_accessed_at: str
    thumbnail: Optional[str] = None
    description: Optional[str] = None
    author: Optional[str] = None
    assets: list[str] = Field(default_factory=list)
    pages: list[PageSimpleOut] = Field(default_factory=list)


class PageContentOut(BaseModel):
    doctype: str
    body: str


class PageOut(BaseModel):
    id: str
    title: str
    content: PageContentOut
    created_at: str
    updated_at: str
    pinned: bool
    starred: bool
    tags: Optional[list[str]] = None
    parent_id: Optional[str] = None
    sub_pages: list[str] = Field(default_factory=list)
    is_in_trash: bool = False


class LoadPageOut(BaseModel):
    page: PageOut
    expanded: list[str] = Field(default_factory=list)


class PageTreeOut(BaseModel):
    pages: list[PageSimpleOut] = Field(default_factory=list)


class PageCreateIn(BaseModel):
    title: str
    parent_id: Optional[str] = None
    insert_after_id: Optional[str] = None


class AddPageOut(BaseModel):
    pages: list[PageSimpleOut] = Field(default_factory=list)
    new_page_id: str


class PageUpdateIn(BaseModel):
    content: str
    title: Optional[str] = None
    pinned: Optional[bool] = None
    starred: Optional[bool] = None


class PageUpdateOut(BaseModel):
    content: str
    updated: bool


class SessionStatusOut(BaseModel):
    active_id: Optional[str] = None
    unsaved_changes: bool = False
