from __future__ import annotations

import logging
import time
import uuid
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from nebula_api.config import Settings, load_settings
from nebula_api.interface.api.routes import router
from nebula_api.session import NotebookSession
from nebula_api.storage.file_store import NotebookFileStore
from nebula_api.storage.metadata_index import MetadataIndex


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    app = FastAPI(title="Nebula API", version="0.1.0")

    settings = settings or load_settings()
    app.state.settings = settings
    app.state.store = NotebookFileStore(settings.data_dir)
    app.state.metadata_index = MetadataIndex(settings.data_dir)
    app.state.session = NotebookSession()

    logger = logging.getLogger("nebula.api")

    @app.middleware("http")
    async def request_id_and_logging(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        start = time.perf_counter()

        if settings.api_auth_mode == "bearer":
            if request.url.path != "/health":
                token = settings.api_auth_token or ""
                auth = request.headers.get("authorization") or ""
                if not token or auth != f"Bearer {token}":
                    return JSONResponse(
                        status_code=401,
                        content={"detail": "unauthorized"},
                        headers={"X-Request-ID": request_id},
                    )

        try:
            response = await call_next(request)
        except Exception:
            dt_ms = (time.perf_counter() - start) * 1000.0
            logger.exception("request_error", extra={"rid": request_id, "path": request.url.path, "ms": dt_ms})
            return JSONResponse(
                status_code=500,
                content={"detail": "internal_error", "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )

        dt_ms = (time.perf_counter() - start) * 1000.0
        fields = {
            "rid": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "ms": dt_ms,
        }
        if settings.api_debug_log:
            fields["query"] = request.url.query
        logger.info("request", extra=fields)
        response.headers["X-Request-ID"] = request_id
        return response

    app.include_router(router)
    return app


app = create_app()
