"""
FastAPI host: opens the configured bindings and serves the settings routes.
Keep as `uvicorn querygate.api:app`.
"""
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from . import __version__
from .db import close_bindings, configured_binding_names, open_bindings
from .gateway import DEFAULT_BINDING, gateway
from .logs import configure_logging, ensure_log_schema


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    app.state.bindings = await open_bindings(configured_binding_names())
    try:
        # The shared gateway serves the operation log on the default binding.
        gateway.bind_from_context(app.state.bindings, DEFAULT_BINDING)
        await ensure_log_schema(gateway)
        yield
    finally:
        await close_bindings(app.state.bindings)


app = FastAPI(title="querygate-api", version=__version__, lifespan=lifespan)
app.state.bindings = {}


# Include routers
from .routes import base as base_routes
from .routes import settings as settings_routes
from .routes import logs as logs_routes

app.include_router(base_routes.router)
app.include_router(settings_routes.router)
app.include_router(logs_routes.router)
