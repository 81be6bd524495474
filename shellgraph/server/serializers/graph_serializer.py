"""
Graph serializer: converts a Project (graph + run state) into JSON-safe dicts
for the controller UI.

Captured output is raw bytes; it is decoded as UTF-8 with replacement
characters for display, never for storage.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from shellgraph.core.Project import Project
from shellgraph.core.Node import ScriptNode
from shellgraph.core.NodePort import NodePort
from shellgraph.core.GraphPrimitives import Graph
from shellgraph.core.RunState import RunState, ExitStatus

# ── Wire shapes ───────────────────────────────────────────────────────────────
# SerializedPort keys: name, direction, kind, envVar, connected
# SerializedNode keys: id, name, script, inputs, outputs, position, run
# SerializedEdge keys: id, sourceNodeId, sourcePortName, targetNodeId,
#                      targetPortName
# SerializedProject keys: nodes, edges, running


# ── Helpers ───────────────────────────────────────────────────────────────────

def _decode(data: bytes) -> str:
    return bytes(data).decode("utf-8", errors="replace")


def _serialize_port(port: NodePort, graph: Graph) -> Dict[str, Any]:
    return {
        "name": port.port_name,
        "direction": "INPUT" if port.isInputPort() else "OUTPUT",
        "kind": port.kind.value.upper(),
        "envVar": port.env_var,
        "connected": graph.is_connected(port.node_id, port.port_name, is_input=port.isInputPort()),
    }


def serialize_exit_status(status: Optional[ExitStatus]) -> Optional[Dict[str, Any]]:
    if status is None:
        return None
    return {
        "returncode": status.returncode,
        "code": status.code,
        "signal": status.signal,
        "success": status.success,
        "text": str(status),
    }


def serialize_node_run(node_id: str, run_state: RunState, include_output: bool = True) -> Dict[str, Any]:
    process = run_state.processes.get(node_id)
    result: Dict[str, Any] = {
        "state": run_state.node_state(node_id).name,
        "pid": process.pid if process else None,
        "status": serialize_exit_status(run_state.exit_statuses.get(node_id)),
        "error": run_state.errors.get(node_id),
    }
    if include_output:
        output = run_state.output.get(node_id)
        result["stdout"] = _decode(output.stdout) if output else None
        result["stderr"] = _decode(output.stderr) if output else None
    return result


def _serialize_node(
    node: ScriptNode,
    project: Project,
    include_output: bool,
) -> Dict[str, Any]:
    graph = project.graph
    return {
        "id": node.id,
        "name": node.name,
        "script": node.script,
        "inputs": [_serialize_port(p, graph) for p in node.inputs.values()],
        "outputs": [_serialize_port(p, graph) for p in node.outputs.values()],
        "position": project.positions.get(node.id, {"x": 0, "y": 0}),
        "run": serialize_node_run(node.id, project.run_state, include_output),
    }


# ── Public API ─────────────────────────────────────────────────────────────────

def serialize_run(project: Project, include_output: bool = False) -> Dict[str, Any]:
    state = project.run_state
    return {
        "running": state.is_running,
        "liveNodeIds": list(state.processes),
        "nodes": {
            node_id: serialize_node_run(node_id, state, include_output)
            for node_id in project.graph.nodes
        },
    }


def serialize_project(project: Project, include_output: bool = True) -> Dict[str, Any]:
    """
    Serialize *project* into a SerializedProject dict.

    :param project:        the Project to serialize.
    :param include_output: include decoded stdout/stderr per node.
    """
    graph = project.graph
    nodes: List[Dict[str, Any]] = [
        _serialize_node(node, project, include_output) for node in graph.nodes.values()
    ]
    edges: List[Dict[str, Any]] = [
        {
            "id": f"{e.from_node_id}:{e.from_port_name}→{e.to_node_id}:{e.to_port_name}",
            "sourceNodeId": e.from_node_id,
            "sourcePortName": e.from_port_name,
            "targetNodeId": e.to_node_id,
            "targetPortName": e.to_port_name,
        }
        for e in graph.edges
    ]
    return {
        "nodes": nodes,
        "edges": edges,
        "running": project.run_state.is_running,
    }
