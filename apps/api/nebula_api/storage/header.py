from __future__ import annotations

import struct
from dataclasses import dataclass

from nebula_api.domain.exceptions import DeserializationError

FILE_FORMAT_CURRENT_VERSION = 1

_HEADER_STRUCT = struct.Struct("<I")
HEADER_SIZE = _HEADER_STRUCT.size


@dataclass(frozen=True)
class FileHeader:
    """Fixed-width prefix of every notebook file."""

    version: int

    @classmethod
    def new(cls) -> FileHeader:
        return cls(version=FILE_FORMAT_CURRENT_VERSION)

    def to_bytes(self) -> bytes:
        return _HEADER_STRUCT.pack(self.version)

    @classmethod
    def from_bytes(cls, data: bytes) -> FileHeader:
        if len(data) < HEADER_SIZE:
            raise DeserializationError(f"header needs {HEADER_SIZE} bytes, got {len(data)}")
        (version,) = _HEADER_STRUCT.unpack_from(data, 0)
        return cls(version=version)

    def is_current(self) -> bool:
        return self.version == FILE_FORMAT_CURRENT_VERSION
