from __future__ import annotations


class NebulaError(Exception):
    code = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(NebulaError):
    code = "not_found"


class NotebookNotFoundError(NotFoundError):
    pass


class PageNotFoundError(NotFoundError):
    pass


class NotebookIOError(NebulaError):
    code = "io_error"


class SerializationError(NebulaError):
    code = "serialization_error"


class DeserializationError(NebulaError):
    code = "deserialization_error"


class UnsupportedFormatError(NebulaError):
    code = "unsupported"

    def __init__(self, version: int) -> None:
        super().__init__(f"file format version {version} is not supported")
        self.version = version


class NotLoadedError(NebulaError):
    code = "notebook_not_loaded"

    def __init__(self, message: str = "no notebook is loaded") -> None:
        super().__init__(message)


class TreeCycleError(NebulaError):
    code = "tree_cycle"
