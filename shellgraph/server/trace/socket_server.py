"""
Socket.IO side of the controller.

Every run event is pushed to clients as ``trace``. A client that connects
while a run is live gets the current run snapshot (``run``) and can ask for
the events it missed by emitting ``history``.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict

import socketio

from shellgraph.server.serializers.graph_serializer import serialize_run
from shellgraph.server.state import project_state
from .trace_emitter import global_tracer

logger = logging.getLogger(__name__)

sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins="*",
    logger=False,
    engineio_logger=False,
)


def _forward(event: Dict[str, Any]) -> None:
    # fire() runs synchronously inside the tick; the emit needs the loop.
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return  # no server loop (CLI runs, plain unit tests)
    loop.create_task(sio.emit("trace", event))


global_tracer.on_trace(_forward)


@sio.event
async def connect(sid: str, environ: dict) -> None:
    logger.debug("Socket.IO client connected: %s", sid)
    await sio.emit("run", serialize_run(project_state.project), to=sid)


@sio.event
async def disconnect(sid: str) -> None:
    logger.debug("Socket.IO client disconnected: %s", sid)


@sio.on("history")
async def history(sid: str, data: Any = None) -> None:
    """Replay buffered events newer than ``data["since"]`` (ms) to one client."""
    since = 0
    if isinstance(data, dict):
        try:
            since = int(data.get("since", 0))
        except (TypeError, ValueError):
            since = 0
    await sio.emit("history", global_tracer.recent(since), to=sid)


def create_socket_app(fastapi_app: Any) -> socketio.ASGIApp:
    """Serve Socket.IO at its default path and hand everything else to *fastapi_app*."""
    return socketio.ASGIApp(sio, other_asgi_app=fastapi_app)
