from __future__ import annotations

import platform
import time
from typing import Any, Dict

from fastapi import APIRouter, FastAPI, Request

from shootaround import __version__
from shootaround.api.sessions import router as sessions_router
from shootaround.metrics import BUILD_VERSION, MetricsMiddleware, metrics_app


async def health() -> Dict[str, Any]:
    return {
        "status": "ok",
        "version": BUILD_VERSION,
        "package": __version__,
        "ts": time.time(),
        "runtime": {
            "python": platform.python_version(),
        },
    }


_metrics_router = APIRouter()


@_metrics_router.get("/metrics", include_in_schema=False)
async def _metrics_endpoint(request: Request):
    return await metrics_app(request)


def create_app() -> FastAPI:
    app = FastAPI(title="shootaround session store")
    app.add_middleware(MetricsMiddleware)
    app.include_router(sessions_router)
    app.add_api_route(
        "/health",
        health,
        methods=["GET"],
        response_model=None,
        tags=["health"],
    )
    app.include_router(_metrics_router)
    return app


app = create_app()
