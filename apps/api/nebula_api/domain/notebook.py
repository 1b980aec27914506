from __future__ import annotations

import copy
from dataclasses import dataclass, field

from nebula_api.domain.entities import PageEntry, PageSimple
from nebula_api.domain.exceptions import PageNotFoundError, TreeCycleError
from nebula_api.util import new_id, rfc3339_now

DEFAULT_MAX_DEPTH = 1000


@dataclass
class Notebook:
    """A notebook and the page tree it owns.

    ``page_map`` is the only owner of page data. ``pages`` (root order) and
    every ``PageEntry.sub_pages`` hold ids into it, never entries.
    """

    id: str
    name: str
    created_at: str
    last_accessed_at: str
    thumbnail: str | None = None
    description: str | None = None
    author: str | None = None
    pages: list[str] = field(default_factory=list)
    page_map: dict[str, PageEntry] = field(default_factory=dict)
    assets: list[str] = field(default_factory=list)
    is_in_trash: bool = False

    @classmethod
    def new(cls, name: str) -> Notebook:
        now = rfc3339_now()
        return cls(id=new_id(), name=name, created_at=now, last_accessed_at=now)

    def touch(self) -> None:
        self.last_accessed_at = rfc3339_now()

    def get_page(self, page_id: str) -> PageEntry:
        page = self.page_map.get(page_id)
        if page is None:
            raise PageNotFoundError(f"page {page_id} not found")
        return copy.deepcopy(page)

    def ancestor_path(self, page_id: str, *, max_depth: int = DEFAULT_MAX_DEPTH) -> list[str]:
        """Ids to expand to reveal ``page_id``: nearest parent first, root last.

        Unknown ids yield ``[]``. The walk stops at the first parent that is
        missing from ``page_map``.
        """
        path: list[str] = []
        page = self.page_map.get(page_id)
        if page is None:
            return path
        while page.parent_id is not None:
            parent = self.page_map.get(page.parent_id)
            if parent is None:
                break
            path.append(page.parent_id)
            if len(path) > max_depth:
                raise TreeCycleError(f"ancestor chain of page {page_id} exceeds depth {max_depth}")
            page = parent
        return path

    def flatten_for_display(self, *, max_depth: int = DEFAULT_MAX_DEPTH) -> list[PageSimple]:
        """Project the tree into ``PageSimple`` nodes in display order.

        Ids that are listed but absent from ``page_map`` are skipped.
        """
        roots: list[PageSimple] = []
        stack: list[tuple[str, list[PageSimple], int]] = [(pid, roots, 0) for pid in reversed(self.pages)]
        while stack:
            page_id, siblings, depth = stack.pop()
            page = self.page_map.get(page_id)
            if page is None:
                continue
            if depth > max_depth:
                raise TreeCycleError(f"page tree exceeds depth {max_depth} at page {page_id}")
            node = PageSimple(
                id=page.id,
                parent_id=page.parent_id,
                title=page.title,
                pinned=page.pinned,
                starred=page.starred,
            )
            siblings.append(node)
            for child_id in reversed(page.sub_pages):
                stack.append((child_id, node.sub_pages, depth + 1))
        return roots

    def add_page(
        self,
        title: str,
        parent_id: str | None = None,
        insert_after_id: str | None = None,
    ) -> str:
        """Create a page and place it in the ordering lists.

        If a referenced parent or sibling does not exist the page is still
        stored but no ordering list receives it.
        """
        if parent_id is None and insert_after_id is not None:
            anchor = self.page_map.get(insert_after_id)
            if anchor is not None and anchor.parent_id is not None:
                # sibling of a nested anchor
                parent_id = anchor.parent_id

        page = PageEntry.new(title, parent_id)
        self.page_map[page.id] = page

        if parent_id is not None:
            parent = self.page_map.get(parent_id)
            if parent is None:
                return page.id
            if insert_after_id is None:
                parent.sub_pages.insert(0, page.id)
            else:
                _insert_after(parent.sub_pages, insert_after_id, page.id)
        elif insert_after_id is not None:
            if insert_after_id not in self.page_map:
                return page.id
            _insert_after(self.pages, insert_after_id, page.id)
        else:
            self.pages.insert(0, page.id)
        return page.id

    def update_page_content(self, page_id: str, body: str) -> bool:
        page = self.page_map.get(page_id)
        if page is None:
            return False
        page.content.body = body
        page.updated_at = rfc3339_now()
        return True

    def update_page_title(self, page_id: str, title: str) -> bool:
        page = self.page_map.get(page_id)
        if page is None:
            return False
        page.title = title
        page.updated_at = rfc3339_now()
        return True

    def set_page_flags(self, page_id: str, *, pinned: bool | None = None, starred: bool | None = None) -> bool:
        page = self.page_map.get(page_id)
        if page is None:
            return False
        if pinned is not None:
            page.pinned = pinned
        if starred is not None:
            page.starred = starred
        page.updated_at = rfc3339_now()
        return True

    def orphan_ids(self) -> list[str]:
        """Ids in ``page_map`` that no ordering list references."""
        referenced = set(self.pages)
        for page in self.page_map.values():
            referenced.update(page.sub_pages)
        return [pid for pid in self.page_map if pid not in referenced]


def _insert_after(ids: list[str], anchor_id: str, new_page_id: str) -> None:
    try:
        idx = ids.index(anchor_id)
    except ValueError:
        ids.append(new_page_id)
        return
    ids.insert(idx + 1, new_page_id)
