from fastapi import Request

from nebula_api.config import Settings
from nebula_api.session import NotebookSession
from nebula_api.storage.file_store import NotebookFileStore
from nebula_api.storage.metadata_index import MetadataIndex


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> NotebookFileStore:
    return request.app.state.store


def get_metadata_index(request: Request) -> MetadataIndex:
    return request.app.state.metadata_index


def get_session(request: Request) -> NotebookSession:
    return request.app.state.session
