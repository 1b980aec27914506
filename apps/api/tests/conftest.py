from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from nebula_api.config import Settings


def make_settings(data_dir, **overrides) -> Settings:
    values = dict(
        data_dir=data_dir,
        max_tree_depth=1000,
        api_auth_mode="none",
        api_auth_token=None,
        api_debug_log=False,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def client(tmp_path) -> TestClient:
    from main import create_app

    return TestClient(create_app(make_settings(tmp_path)))
