"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from roster_watch import __version__
from roster_watch.api.routes.dashboard import router as dashboard_router
from roster_watch.api.routes.proxy import router as proxy_router
from roster_watch.api.websockets.dashboard_ws import dashboard_websocket
from roster_watch.config import settings
from roster_watch.services.dashboard import create_dashboard
from roster_watch.services.resilient_fetcher import ResilientFetcher


def configure_logging() -> None:
    if logging.getLogger().handlers:
        return

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


configure_logging()
logger = logging.getLogger("roster_watch.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    timeout = httpx.Timeout(connect=10.0, read=30.0, write=30.0, pool=10.0)
    limits = httpx.Limits(max_connections=100, max_keepalive_connections=20, keepalive_expiry=45.0)
    client = httpx.AsyncClient(timeout=timeout, limits=limits, follow_redirects=True)

    app.state.upstream_fetcher = ResilientFetcher(
        client=client,
        timeout_ms=settings.upstream_timeout_ms,
        verbose=settings.verbose_fetch_logging,
    )
    app.state.dashboard = None
    if settings.dashboard_enabled:
        # Raises ConfigError on blank endpoint URLs, aborting startup
        app.state.dashboard = create_dashboard(settings, client)
        app.state.dashboard.scheduler.start()
    else:
        logger.info("Dashboard disabled, serving proxy endpoints only")

    try:
        yield
    finally:
        if app.state.dashboard is not None:
            await app.state.dashboard.scheduler.stop()
        await client.aclose()


app = FastAPI(
    title="Roster Watch",
    description="Live player roster dashboard with shift assignments",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "roster-watch"}


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Roster Watch API",
        "version": __version__,
        "docs": "/docs",
    }


app.include_router(proxy_router)
app.include_router(dashboard_router)


@app.websocket("/ws/dashboard")
async def websocket_dashboard(websocket: WebSocket):
    """WebSocket endpoint for live dashboard updates."""
    await dashboard_websocket(websocket, getattr(websocket.app.state, "dashboard", None))
