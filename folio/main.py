"""Folio Media Library - FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from folio.config import settings
from folio.database import init_db
from folio.utils.storage import LocalObjectStore

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Apply the log level and initialize the database on startup."""
    logging.getLogger("folio").setLevel(settings.log_level.upper())
    init_db()
    yield


app = FastAPI(
    title="Folio",
    description="Portfolio media library: ordered photo galleries with engagement counters",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Register API routers ---
from folio.api.photos import router as photos_router  # noqa: E402
from folio.api.photos import portfolio_router  # noqa: E402
from folio.api.analytics import router as analytics_router  # noqa: E402

API_PREFIX = "/api/v1"

app.include_router(photos_router, prefix=API_PREFIX)
app.include_router(portfolio_router, prefix=API_PREFIX)
app.include_router(analytics_router, prefix=API_PREFIX)


@app.get("/")
def root():
    """Health check / server info."""
    return {
        "name": settings.server_name,
        "version": VERSION,
        "status": "running",
    }


@app.get("/api/v1/health")
def health():
    return {"status": "ok", "storage": LocalObjectStore().usage()}


# --- Object store ---
app.mount(settings.media_url_prefix, StaticFiles(directory=str(settings.storage_dir)), name="media")
