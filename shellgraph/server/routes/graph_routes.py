"""
Graph and run REST routes. All routes are mounted under /api by main.py.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Query, Response
from pydantic import BaseModel

from shellgraph.core.Errors import RunInProgressError, RunStartError, ShellGraphError
from shellgraph.server.serializers.graph_serializer import (
    serialize_node_run,
    serialize_project,
    serialize_run,
)
from shellgraph.server.state import project_state

logger = logging.getLogger(__name__)

router = APIRouter()


def _error_response(exc: Exception) -> HTTPException:
    if isinstance(exc, RunInProgressError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, RunStartError):
        return HTTPException(status_code=500, detail={"error": str(exc), "nodeId": exc.node_id})
    # GraphError, unreadable project files
    return HTTPException(status_code=400, detail=str(exc))


def _require_node(node_id: str):
    node = project_state.get_node(node_id)
    if node is None:
        raise HTTPException(status_code=404, detail="Node not found")
    return node


# ── GET /project ──────────────────────────────────────────────────────────────

@router.get("/project")
async def get_project() -> Dict[str, Any]:
    result = serialize_project(project_state.project)
    result["path"] = str(project_state.path) if project_state.path else None
    return result


# ── POST /project/new ─────────────────────────────────────────────────────────

@router.post("/project/new")
async def new_project() -> Dict[str, Any]:
    try:
        project_state.new_project()
    except ShellGraphError as exc:
        raise _error_response(exc)
    return serialize_project(project_state.project)


# ── POST /project/load ────────────────────────────────────────────────────────

class ProjectPathBody(BaseModel):
    path: Optional[str] = None


@router.post("/project/load")
async def load_project(body: ProjectPathBody) -> Dict[str, Any]:
    if not body.path:
        raise HTTPException(status_code=400, detail="`path` required")
    try:
        project_state.load(body.path)
    except (ShellGraphError, OSError, ValueError) as exc:
        raise _error_response(exc)
    return serialize_project(project_state.project)


# ── POST /project/save ────────────────────────────────────────────────────────

@router.post("/project/save")
async def save_project(body: ProjectPathBody) -> Dict[str, Any]:
    try:
        path = project_state.save(body.path)
    except (ShellGraphError, OSError) as exc:
        raise _error_response(exc)
    return {"path": str(path)}


# ── POST /nodes ───────────────────────────────────────────────────────────────

class PositionBody(BaseModel):
    x: float
    y: float


class CreateNodeBody(BaseModel):
    name: str
    script: Optional[str] = None
    position: Optional[PositionBody] = None


@router.post("/nodes", status_code=201)
async def create_node(body: CreateNodeBody) -> Dict[str, Any]:
    try:
        node = project_state.create_node(body.name, body.script)
        if body.position is not None:
            project_state.set_position(node.id, body.position.x, body.position.y)
    except ShellGraphError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"id": node.id, "name": node.name}


# ── DELETE /nodes/:nodeId ─────────────────────────────────────────────────────

@router.delete("/nodes/{node_id}", status_code=204)
async def delete_node(node_id: str) -> Response:
    _require_node(node_id)
    project_state.delete_node(node_id)
    return Response(status_code=204)


# ── PUT /nodes/:nodeId/script ─────────────────────────────────────────────────

class ScriptBody(BaseModel):
    script: str


@router.put("/nodes/{node_id}/script", status_code=204)
async def set_script(node_id: str, body: ScriptBody) -> Response:
    _require_node(node_id)
    project_state.set_script(node_id, body.script)
    return Response(status_code=204)


# ── PUT /nodes/:nodeId/name ───────────────────────────────────────────────────

class NameBody(BaseModel):
    name: str


@router.put("/nodes/{node_id}/name", status_code=204)
async def rename_node(node_id: str, body: NameBody) -> Response:
    _require_node(node_id)
    project_state.rename_node(node_id, body.name)
    return Response(status_code=204)


# ── PUT /nodes/:nodeId/position ───────────────────────────────────────────────

@router.put("/nodes/{node_id}/position", status_code=204)
async def set_node_position(node_id: str, body: PositionBody) -> Response:
    _require_node(node_id)
    project_state.set_position(node_id, body.x, body.y)
    return Response(status_code=204)


# ── POST /nodes/:nodeId/ports ─────────────────────────────────────────────────

class PortBody(BaseModel):
    name: str
    direction: str  # 'input' | 'output'
    kind: str = "single"  # 'single' | 'many'


@router.post("/nodes/{node_id}/ports", status_code=201)
async def add_port(node_id: str, body: PortBody) -> Dict[str, Any]:
    _require_node(node_id)
    try:
        port = project_state.add_port(node_id, body.name.strip(), body.direction, body.kind)
    except (ShellGraphError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"name": port.port_name, "envVar": port.env_var, "kind": port.kind.value}


# ── DELETE /nodes/:nodeId/ports/:portName ─────────────────────────────────────

@router.delete("/nodes/{node_id}/ports/{port_name}", status_code=204)
async def remove_port(
    node_id: str,
    port_name: str,
    direction: str = Query(..., description='"input" or "output"'),
) -> Response:
    _require_node(node_id)
    try:
        project_state.remove_port(node_id, port_name, direction)
    except ShellGraphError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return Response(status_code=204)


# ── POST /edges ───────────────────────────────────────────────────────────────

class EdgeBody(BaseModel):
    sourceNodeId: str
    sourcePort: str
    targetNodeId: str
    targetPort: str


@router.post("/edges", status_code=201)
async def add_edge(body: EdgeBody) -> Dict[str, Any]:
    try:
        project_state.add_edge(body.sourceNodeId, body.sourcePort, body.targetNodeId, body.targetPort)
    except ShellGraphError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return serialize_project(project_state.project, include_output=False)


# ── DELETE /edges ─────────────────────────────────────────────────────────────

@router.delete("/edges", status_code=204)
async def delete_edge(body: EdgeBody) -> Response:
    try:
        project_state.remove_edge(body.sourceNodeId, body.sourcePort, body.targetNodeId, body.targetPort)
    except ShellGraphError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return Response(status_code=204)


# ── GET /nodes/:nodeId/output ─────────────────────────────────────────────────

@router.get("/nodes/{node_id}/output")
async def get_node_output(node_id: str) -> Dict[str, Any]:
    _require_node(node_id)
    return serialize_node_run(node_id, project_state.project.run_state)


# ── GET /run ──────────────────────────────────────────────────────────────────

@router.get("/run")
async def get_run(output: bool = Query(False, description="Include captured output")) -> Dict[str, Any]:
    return serialize_run(project_state.project, include_output=output)


# ── POST /run/start ───────────────────────────────────────────────────────────

@router.post("/run/start")
async def start_run(
    force: bool = Query(False, description="Kill a live run before starting"),
) -> Dict[str, Any]:
    try:
        project_state.executor.start(force=force)
    except (RunInProgressError, RunStartError) as exc:
        raise _error_response(exc)
    return serialize_run(project_state.project)


# ── POST /run/kill ────────────────────────────────────────────────────────────

@router.post("/run/kill")
async def kill_run() -> Dict[str, Any]:
    project_state.executor.kill()
    return serialize_run(project_state.project)


# ── POST /run/tick ────────────────────────────────────────────────────────────

@router.post("/run/tick")
async def tick_run() -> Dict[str, Any]:
    project_state.executor.tick()
    return serialize_run(project_state.project)


# ── POST /run/clear ───────────────────────────────────────────────────────────

@router.post("/run/clear")
async def clear_run() -> Dict[str, Any]:
    project_state.executor.clear()
    return serialize_run(project_state.project)
