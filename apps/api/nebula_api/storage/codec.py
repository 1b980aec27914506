"""Binary notebook codec.

A file is ``FileHeader`` followed by the notebook payload. The payload has no
length prefix and no field tags: fields are written in a fixed order, all
integers little-endian.

    str        u64 byte length + UTF-8 bytes
    bool       u8 (0 or 1)
    optional   u8 tag (0 absent, 1 present) + value
    list       u64 count + items
    map        u64 count + (key, value) pairs

Field order is part of the file format for ``FILE_FORMAT_CURRENT_VERSION``.
"""

from __future__ import annotations

import logging
import struct
from typing import Callable, TypeVar

from nebula_api.domain.entities import PageContent, PageEntry
from nebula_api.domain.exceptions import DeserializationError, SerializationError, UnsupportedFormatError
from nebula_api.domain.notebook import Notebook
from nebula_api.storage.header import HEADER_SIZE, FileHeader

logger = logging.getLogger("nebula.storage")

T = TypeVar("T")

_U8 = struct.Struct("<B")
_U64 = struct.Struct("<Q")


class _Writer:
    def __init__(self) -> None:
        self._buf = bytearray()

    def getvalue(self) -> bytes:
        return bytes(self._buf)

    def u64(self, value: int) -> None:
        self._buf += _U64.pack(value)

    def boolean(self, value: bool) -> None:
        if not isinstance(value, bool):
            raise SerializationError(f"expected bool, got {type(value).__name__}")
        self._buf += _U8.pack(1 if value else 0)

    def string(self, value: str) -> None:
        if not isinstance(value, str):
            raise SerializationError(f"expected str, got {type(value).__name__}")
        try:
            raw = value.encode("utf-8")
        except UnicodeEncodeError as e:
            raise SerializationError(f"string is not encodable as UTF-8: {e}") from e
        self.u64(len(raw))
        self._buf += raw

    def opt_string(self, value: str | None) -> None:
        if value is None:
            self._buf += _U8.pack(0)
            return
        self._buf += _U8.pack(1)
        self.string(value)

    def string_list(self, values: list[str]) -> None:
        self.u64(len(values))
        for v in values:
            self.string(v)

    def opt_string_list(self, values: list[str] | None) -> None:
        if values is None:
            self._buf += _U8.pack(0)
            return
        self._buf += _U8.pack(1)
        self.string_list(values)


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def remaining(self) -> int:
        return len(self._data) - self._pos

    def _take(self, n: int) -> bytes:
        if n > self.remaining():
            raise DeserializationError(f"unexpected end of data at offset {self._pos}: wanted {n} bytes")
        chunk = self._data[self._pos : self._pos + n]
        self._pos += n
        return chunk

    def u8(self) -> int:
        return _U8.unpack(self._take(_U8.size))[0]

    def u64(self) -> int:
        return _U64.unpack(self._take(_U64.size))[0]

    def boolean(self) -> bool:
        value = self.u8()
        if value > 1:
            raise DeserializationError(f"invalid bool byte {value} at offset {self._pos - 1}")
        return value == 1

    def string(self) -> str:
        raw = self._take(self.u64())
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DeserializationError(f"invalid UTF-8 string: {e}") from e

    def optional(self, read: Callable[[], T]) -> T | None:
        tag = self.u8()
        if tag == 0:
            return None
        if tag != 1:
            raise DeserializationError(f"invalid option tag {tag} at offset {self._pos - 1}")
        return read()

    def string_list(self) -> list[str]:
        count = self.u64()
        return [self.string() for _ in range(count)]


def _write_page(w: _Writer, page: PageEntry) -> None:
    w.string(page.id)
    w.string(page.title)
    w.string(page.content.doctype)
    w.string(page.content.body)
    w.string(page.created_at)
    w.string(page.updated_at)
    w.boolean(page.pinned)
    w.boolean(page.starred)
    w.opt_string_list(page.tags)
    w.opt_string(page.parent_id)
    w.string_list(page.sub_pages)
    w.boolean(page.is_in_trash)


def _read_page(r: _Reader) -> PageEntry:
    page_id = r.string()
    title = r.string()
    content = PageContent(doctype=r.string(), body=r.string())
    created_at = r.string()
    updated_at = r.string()
    pinned = r.boolean()
    starred = r.boolean()
    tags = r.optional(r.string_list)
    parent_id = r.optional(r.string)
    sub_pages = r.string_list()
    is_in_trash = r.boolean()
    return PageEntry(
        id=page_id,
        title=title,
        content=content,
        created_at=created_at,
        updated_at=updated_at,
        pinned=pinned,
        starred=starred,
        tags=tags,
        parent_id=parent_id,
        sub_pages=sub_pages,
        is_in_trash=is_in_trash,
    )


def encode_notebook(notebook: Notebook) -> bytes:
    """Encode the payload only (no header)."""
    w = _Writer()
    w.string(notebook.id)
    w.string(notebook.name)
    w.opt_string(notebook.thumbnail)
    w.string(notebook.created_at)
    w.string_list(notebook.pages)
    w.u64(len(notebook.page_map))
    for key, page in notebook.page_map.items():
        w.string(key)
        _write_page(w, page)
    w.opt_string(notebook.description)
    w.opt_string(notebook.author)
    w.string_list(notebook.assets)
    w.string(notebook.last_accessed_at)
    w.boolean(notebook.is_in_trash)
    return w.getvalue()


def decode_notebook(data: bytes) -> Notebook:
    """Decode a payload produced by ``encode_notebook``."""
    r = _Reader(data)
    notebook_id = r.string()
    name = r.string()
    thumbnail = r.optional(r.string)
    created_at = r.string()
    pages = r.string_list()
    page_map: dict[str, PageEntry] = {}
    for _ in range(r.u64()):
        key = r.string()
        page_map[key] = _read_page(r)
    description = r.optional(r.string)
    author = r.optional(r.string)
    assets = r.string_list()
    last_accessed_at = r.string()
    is_in_trash = r.boolean()
    if r.remaining():
        raise DeserializationError(f"{r.remaining()} trailing bytes after notebook payload")
    return Notebook(
        id=notebook_id,
        name=name,
        created_at=created_at,
        last_accessed_at=last_accessed_at,
        thumbnail=thumbnail,
        description=description,
        author=author,
        pages=pages,
        page_map=page_map,
        assets=assets,
        is_in_trash=is_in_trash,
    )


def serialize(notebook: Notebook) -> bytes:
    header, payload = serialize_parts(notebook)
    return header + payload


def serialize_parts(notebook: Notebook) -> tuple[bytes, bytes]:
    """Return ``(header_bytes, payload_bytes)`` for the current format."""
    return FileHeader.new().to_bytes(), encode_notebook(notebook)


def deserialize(data: bytes) -> Notebook:
    """Decode a whole notebook file buffer.

    Only ``FILE_FORMAT_CURRENT_VERSION`` payloads are decoded; any other
    version raises ``UnsupportedFormatError`` before the payload is read.
    Loading counts as an access, so ``last_accessed_at`` is refreshed.
    """
    header = FileHeader.from_bytes(data[:HEADER_SIZE])
    if not header.is_current():
        logger.warning("notebook_unsupported_version", extra={"version": header.version})
        raise UnsupportedFormatError(header.version)
    notebook = decode_notebook(data[HEADER_SIZE:])
    notebook.touch()
    return notebook
