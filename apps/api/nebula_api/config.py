from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    max_tree_depth: int
    api_auth_mode: str
    api_auth_token: str | None
    api_debug_log: bool


def load_settings() -> Settings:
    data_dir = Path(os.environ.get("NEBULA_DATA_DIR", "./notebooks")).resolve()
    max_tree_depth = int(os.environ.get("NEBULA_MAX_TREE_DEPTH", "1000"))
    api_auth_mode = os.environ.get("API_AUTH_MODE", "none").lower()
    api_auth_token = os.environ.get("API_AUTH_TOKEN")
    api_debug_log = os.environ.get("API_DEBUG_LOG", "false").lower() == "true"
    return Settings(
        data_dir=data_dir,
        max_tree_depth=max_tree_depth,
        api_auth_mode=api_auth_mode,
        api_auth_token=api_auth_token,
        api_debug_log=api_debug_log,
    )
