"""FastAPI application exposing the OmniFind command surface."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from omnifind import __version__
from omnifind.index.catalogue import CatalogueUnavailable
from omnifind.models import SearchFilters, SearchResult
from omnifind.preview import UnreadableFile
from omnifind.service import FileSearchService

LOGGER = logging.getLogger(__name__)


class SearchPayload(BaseModel):
    query: str = ""


class FilterPayload(BaseModel):
    extension: str | None = None
    min_size: int | None = Field(default=None, ge=0)
    max_size: int | None = Field(default=None, ge=0)


class AdvancedSearchPayload(BaseModel):
    query: str = ""
    filters: FilterPayload = Field(default_factory=FilterPayload)


class PreviewPayload(BaseModel):
    path: str


class HighlightPayload(BaseModel):
    content: str
    query: str


def _service(request: Request) -> FileSearchService:
    return request.app.state.service


def create_app(service: FileSearchService | None = None) -> FastAPI:
    app = FastAPI(title="OmniFind", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.service = service or FileSearchService()

    @app.on_event("startup")
    async def startup_event() -> None:
        logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")

    @app.post("/scan")
    async def scan_directory(request: Request) -> dict[str, Any]:
        started = _service(request).scan_directory()
        return {"status": "accepted", "started": started}

    @app.get("/status")
    async def scan_status(request: Request) -> dict[str, Any]:
        service = _service(request)
        return {"state": service.state.value, "file_count": len(service.catalogue)}

    @app.get("/events")
    async def scan_events(request: Request, since: int = 0) -> dict[str, Any]:
        events = [event.to_dict() for event in _service(request).events.since(since)]
        return {"events": events, "next": events[-1]["seq"] if events else since}

    @app.post("/search")
    async def basic_search(payload: SearchPayload, request: Request) -> dict[str, List[SearchResult]]:
        try:
            results = await asyncio.to_thread(_service(request).basic_search, payload.query)
        except CatalogueUnavailable as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        return {"results": results}

    @app.post("/search/advanced")
    async def advanced_search(
        payload: AdvancedSearchPayload, request: Request
    ) -> dict[str, List[SearchResult]]:
        filters = SearchFilters(
            extension=payload.filters.extension,
            min_size=payload.filters.min_size,
            max_size=payload.filters.max_size,
        )
        try:
            results = await asyncio.to_thread(
                _service(request).advanced_search, payload.query, filters
            )
        except CatalogueUnavailable as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        return {"results": results}

    @app.post("/search/content")
    async def content_search(
        payload: AdvancedSearchPayload, request: Request
    ) -> dict[str, List[SearchResult]]:
        filters = SearchFilters(
            extension=payload.filters.extension,
            min_size=payload.filters.min_size,
            max_size=payload.filters.max_size,
        )
        try:
            results = await asyncio.to_thread(
                _service(request).content_search, payload.query, filters
            )
        except CatalogueUnavailable as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        return {"results": results}

    @app.post("/preview")
    async def preview_file(payload: PreviewPayload, request: Request) -> dict[str, str]:
        try:
            content = await asyncio.to_thread(_service(request).preview_file, payload.path)
        except UnreadableFile as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return {"content": content}

    @app.post("/highlight")
    async def highlight_content(payload: HighlightPayload, request: Request) -> dict[str, str]:
        return {"content": _service(request).highlight_content(payload.content, payload.query)}

    return app


app = create_app()
