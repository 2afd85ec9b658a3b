from __future__ import annotations
import json
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from .collector import VnStatCollector
from .config import Settings
from .service import TrafficService

# every method is served; the body is read the same way for each
METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def build_service(settings: Settings) -> TrafficService:
    collector = VnStatCollector(
        settings.vnstat_binary, timeout=settings.collector_timeout
    )
    return TrafficService(collector, settings.api_path)


def create_app(
    settings: Optional[Settings] = None, service: Optional[TrafficService] = None
) -> FastAPI:
    settings = settings or Settings()
    service = service or build_service(settings)

    app = FastAPI(title="vnstat traffic API")
    app.state.service = service

    async def traffic(request: Request) -> Response:
        raw = await request.body()
        if raw.strip():
            try:
                body = json.loads(raw)
            except ValueError as e:
                return JSONResponse(status_code=400, content={"error": f"Invalid JSON: {e}"})
        else:
            body = {}

        # the collector call blocks; keep it off the event loop
        result = await run_in_threadpool(service.handle, request.url.path, body)
        if result is None or result.payload is None:
            return Response(status_code=result.status if result else 404)
        return JSONResponse(status_code=result.status, content=result.payload)

    app.add_api_route(service.api_path, traffic, methods=METHODS)
    app.add_api_route(f"{service.api_path}/{{suffix:path}}", traffic, methods=METHODS)
    return app
