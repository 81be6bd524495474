"""
ProjectState: the server's single project, its executor and the file it was
loaded from.

Routes and the background tick loop both run on the asyncio event loop
thread, so they never touch the run state concurrently.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from shellgraph.core.Executor import Executor
from shellgraph.core.GraphPrimitives import Edge
from shellgraph.core.Node import ScriptNode
from shellgraph.core.NodePort import NodePort
from shellgraph.core.Project import Project, FILE_SUFFIX
from shellgraph.core.Resources import ScratchDirectory
from shellgraph.core.Types import PipeKind, PortDirection
from shellgraph.core.Errors import GraphError, RunInProgressError
from shellgraph.server.trace.trace_emitter import global_tracer

logger = logging.getLogger(__name__)

DEFAULT_SCRIPT = "#!/bin/sh\n"


class ProjectState:
    """Holds the open project, its executor and the path it is saved to."""

    def __init__(self, scratch: Optional[ScratchDirectory] = None) -> None:
        self._scratch = scratch
        self.path: Optional[Path] = None
        self.project: Project = Project()
        self.executor: Executor = self._make_executor(self.project)

    def _make_executor(self, project: Project) -> Executor:
        executor = Executor(project, scratch=self._scratch)
        executor.on_event = global_tracer.fire
        return executor

    def _replace_project(self, project: Project, path: Optional[Path]) -> None:
        if self.executor.is_running:
            raise RunInProgressError("Kill the current run before replacing the project")
        self.project = project
        self.path = path
        self.executor = self._make_executor(project)

    def reset(self, scratch: Optional[ScratchDirectory] = None) -> None:
        """Kill any live run and start from an empty project."""
        self.executor.kill()
        if scratch is not None:
            self._scratch = scratch
        self._replace_project(Project(), None)

    # ── Project files ──────────────────────────────────────────────────────

    def new_project(self) -> None:
        self._replace_project(Project(), None)

    def load(self, path: Union[str, Path]) -> None:
        path = Path(path)
        project = Project.load(path)
        self._replace_project(project, path)

    def save(self, path: Optional[Union[str, Path]] = None) -> Path:
        target = Path(path) if path is not None else self.path
        if target is None:
            raise GraphError("No path given and the project has never been saved")
        if not target.suffix:
            target = target.with_suffix(FILE_SUFFIX)
        self.project.save(target)
        self.path = target
        return target

    # ── Graph editing ──────────────────────────────────────────────────────

    def get_node(self, node_id: str) -> Optional[ScriptNode]:
        return self.project.graph.get_node_by_id(node_id)

    def create_node(self, name: str, script: Optional[str] = None) -> ScriptNode:
        return self.project.graph.create_node(name, DEFAULT_SCRIPT if script is None else script)

    def delete_node(self, node_id: str) -> None:
        self.project.graph.delete_node(node_id)
        self.project.positions.pop(node_id, None)

    def set_script(self, node_id: str, script: str) -> None:
        self.project.graph.require_node(node_id).script = script

    def rename_node(self, node_id: str, name: str) -> None:
        self.project.graph.require_node(node_id).name = name

    def add_port(self, node_id: str, name: str, direction: str, kind: str = "single") -> NodePort:
        node = self.project.graph.require_node(node_id)
        return node.add_port(name, _parse_direction(direction), PipeKind.parse(kind))

    def remove_port(self, node_id: str, name: str, direction: str) -> None:
        is_input = _parse_direction(direction) == PortDirection.INPUT
        self.project.graph.delete_port(node_id, name, is_input)

    def add_edge(self, source_id: str, source_port: str, target_id: str, target_port: str) -> Edge:
        return self.project.graph.add_edge(source_id, source_port, target_id, target_port)

    def remove_edge(self, source_id: str, source_port: str, target_id: str, target_port: str) -> None:
        self.project.graph.remove_edge(source_id, source_port, target_id, target_port)

    def set_position(self, node_id: str, x: float, y: float) -> None:
        self.project.graph.require_node(node_id)
        self.project.positions[node_id] = {"x": x, "y": y}


def _parse_direction(direction: str) -> PortDirection:
    value = str(direction).lower()
    if value == "input":
        return PortDirection.INPUT
    if value == "output":
        return PortDirection.OUTPUT
    raise GraphError(f'direction must be "input" or "output", got {direction!r}')


# Module-level singleton, imported by routes.
project_state = ProjectState()
