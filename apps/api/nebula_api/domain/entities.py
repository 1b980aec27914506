from __future__ import annotations

from dataclasses import dataclass, field

from nebula_api.util import new_id, rfc3339_now


@dataclass
class PageContent:
    doctype: str = "markdown"
    body: str = ""


@dataclass
class PageEntry:
    id: str
    title: str
    content: PageContent
    created_at: str
    updated_at: str
    pinned: bool = False
    starred: bool = False
    tags: list[str] | None = None
    parent_id: str | None = None
    sub_pages: list[str] = field(default_factory=list)
    is_in_trash: bool = False

    @classmethod
    def new(cls, title: str, parent_id: str | None = None) -> PageEntry:
        now = rfc3339_now()
        return cls(
            id=new_id(),
            title=title,
            content=PageContent(),
            created_at=now,
            updated_at=now,
            parent_id=parent_id,
        )


@dataclass(frozen=True)
class PageSimple:
    """Body-less projection of a page used by navigation views."""

    id: str
    parent_id: str | None
    title: str
    pinned: bool
    starred: bool
    sub_pages: list[PageSimple] = field(default_factory=list)


@dataclass(frozen=True)
class NotebookMetadata:
    id: str
    name: str
    thumbnail: str | None = None
