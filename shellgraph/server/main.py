"""
FastAPI + Socket.IO controller for the shellgraph engine.

Start with:
    shellgraph-server

Or via uvicorn directly:
    uvicorn shellgraph.server.main:socket_app --port 3001

The engine never runs on its own: a background task on the event loop calls
``executor.tick()`` every SHELLGRAPH_TICK_INTERVAL seconds, on the same
thread the routes run on.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shellgraph import __version__
from shellgraph.config import configure_logging, get_settings
from shellgraph.server.routes.graph_routes import router
from shellgraph.server.state import project_state
from shellgraph.server.trace.socket_server import create_socket_app

logger = logging.getLogger(__name__)


async def _tick_loop(interval: float) -> None:
    while True:
        project_state.executor.tick()
        await asyncio.sleep(interval)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if settings.project_path is not None and settings.project_path.exists():
        project_state.load(settings.project_path)

    task = asyncio.create_task(_tick_loop(settings.tick_interval))
    logger.info("Tick loop running every %.3fs", settings.tick_interval)
    try:
        yield
    finally:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        # leave no processes or FIFOs behind
        project_state.executor.kill()


# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

app = FastAPI(title="shellgraph API", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api")


@app.get("/health")
async def health() -> dict:
    return {"status": "ok", "running": project_state.executor.is_running}


# uvicorn serves this one; /socket.io/ traffic stays here, the rest reaches `app`.
socket_app = create_socket_app(app)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main() -> None:
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        "shellgraph.server.main:socket_app",
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    main()
