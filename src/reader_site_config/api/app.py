"""Minimal FastAPI application exposing the configuration store.

The extraction pipeline asks for the recipe matching a page's host; the
URL classification layer fetches the combined URL rules.

Usage (from project root, after installing fastapi and uvicorn):

    uvicorn reader_site_config.api.app:app

Settings are read from ``READER_SITE_CONFIG_*`` environment variables when
``app`` is first accessed; importing this module does not build a store.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response

from ..settings import StoreSettings, build_store
from ..store.exceptions import DeserializationError, InvalidDomainError
from ..store.serialization import ConfigurationSerializer
from ..store.snapshot import StoreSnapshot


logger = logging.getLogger(__name__)


def create_app(
    snapshot: Optional[StoreSnapshot] = None,
    settings: Optional[StoreSettings] = None,
) -> FastAPI:
    """Build the API around ``snapshot``, or a store built from ``settings``."""
    settings = settings or StoreSettings.from_env()
    if snapshot is None:
        snapshot = StoreSnapshot(build_store(settings))

    api = FastAPI(title="Reader Site Configuration API", version="0.1.0")
    api.state.snapshot = snapshot
    api.state.settings = settings

    @api.get("/api/configurations/{domain}")
    async def get_configuration(domain: str) -> JSONResponse:
        """Return the most specific recipe registered for ``domain``."""
        try:
            config = snapshot.current().get_configuration(domain)
        except InvalidDomainError as exc:
            raise HTTPException(status_code=400, detail=exc.to_dict()) from exc

        if config is None:
            raise HTTPException(
                status_code=404, detail=f"No configuration for domain: {domain}"
            )
        return JSONResponse(
            status_code=200, content=ConfigurationSerializer.config_to_dict(config)
        )

    @api.get("/api/url-rules")
    async def get_url_rules() -> JSONResponse:
        """Return the URL rules of every registered recipe."""
        rules = snapshot.current().get_url_rules()
        return JSONResponse(
            status_code=200, content={"count": len(rules), "url_rules": rules}
        )

    @api.get("/api/store")
    async def download_store() -> Response:
        """Return the gzip-compressed serialized store."""
        payload = snapshot.current().serialize(
            compression_level=settings.compression_level
        )
        return Response(content=payload, media_type="application/gzip")

    @api.put("/api/store")
    async def replace_store(request: Request) -> JSONResponse:
        """Replace the live store with the blob in the request body.

        The body may be gzip compressed or plain UTF-8 JSON. On failure the
        current store stays in service.
        """
        payload = await request.body()
        try:
            store = snapshot.reload(payload)
        except DeserializationError as exc:
            logger.warning(f"Rejected store upload: {exc}")
            raise HTTPException(status_code=400, detail=exc.to_dict()) from exc

        return JSONResponse(status_code=200, content={"domains": len(store)})

    return api


_app: Optional[FastAPI] = None


def __getattr__(name: str):
    # ``app`` is built from the environment on first access, e.g. by uvicorn.
    global _app
    if name == "app":
        if _app is None:
            _app = create_app()
        return _app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
