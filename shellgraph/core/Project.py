import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from .GraphPrimitives import Graph
from .Node import ScriptNode
from .RunState import RunState
from .Schema import ProjectDocument, NodeDocument, PortDocument, EdgeDocument, PositionDocument
from .Errors import GraphError


logger = logging.getLogger(__name__)

FILE_SUFFIX = ".shgraph"


class Project:
    """
    The graph being edited plus the transient state of its current run.
    Only the graph and node positions are persisted.
    """

    def __init__(self, graph: Optional[Graph] = None):
        self.graph: Graph = graph if graph is not None else Graph()
        self.run_state: RunState = RunState()
        # node_id -> {x, y}; layout only, ignored by the engine
        self.positions: Dict[str, Dict[str, float]] = {}

    # convenience accessors mirroring the run state maps
    @property
    def processes(self):
        return self.run_state.processes

    @property
    def exit_statuses(self):
        return self.run_state.exit_statuses

    @property
    def output(self):
        return self.run_state.output

    def clone(self) -> 'Project':
        """Copy of the graph and layout with an empty run state."""
        project = Project(self.graph.clone())
        project.positions = {k: dict(v) for k, v in self.positions.items()}
        return project

    # ── Serialization ─────────────────────────────────────────────────────

    def to_document(self) -> ProjectDocument:
        nodes = []
        for node in self.graph.nodes.values():
            position = self.positions.get(node.id)
            nodes.append(NodeDocument(
                id=node.id,
                name=node.name,
                script=node.snapshot_script(),
                inputs=[PortDocument(name=p.port_name, kind=p.kind) for p in node.inputs.values()],
                outputs=[PortDocument(name=p.port_name, kind=p.kind) for p in node.outputs.values()],
                position=PositionDocument(**position) if position else None,
            ))
        edges = [
            EdgeDocument(from_node=e.from_node_id, from_port=e.from_port_name,
                         to_node=e.to_node_id, to_port=e.to_port_name)
            for e in self.graph.edges
        ]
        return ProjectDocument(nodes=nodes, edges=edges)

    def to_dict(self) -> Dict[str, Any]:
        return self.to_document().model_dump(mode="json", exclude_none=True)

    @classmethod
    def from_document(cls, document: ProjectDocument) -> 'Project':
        project = cls()
        graph = project.graph
        for node_doc in document.nodes:
            node = graph.add_node(ScriptNode(node_doc.name, node_doc.script, node_id=node_doc.id))
            for port in node_doc.inputs:
                node.add_input(port.name, port.kind)
            for port in node_doc.outputs:
                node.add_output(port.name, port.kind)
            if node_doc.position is not None:
                project.positions[node.id] = node_doc.position.model_dump()
        for edge in document.edges:
            graph.add_edge(edge.from_node, edge.from_port, edge.to_node, edge.to_port)
        return project

    @classmethod
    def from_dict(cls, data: Any) -> 'Project':
        if data is None:
            data = {}
        try:
            document = ProjectDocument.model_validate(data)
        except ValidationError as exc:
            raise GraphError(f"Invalid project document: {exc}") from exc
        return cls.from_document(document)

    def dumps(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)

    @classmethod
    def loads(cls, text: str) -> 'Project':
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise GraphError(f"Project file is not valid YAML: {exc}") from exc
        return cls.from_dict(data)

    def save(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.write_text(self.dumps(), encoding="utf-8")
        logger.info("Saved project with %d node(s) to %s", len(self.graph.nodes), path)
        return path

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'Project':
        path = Path(path)
        project = cls.loads(path.read_text(encoding="utf-8"))
        logger.info("Loaded project with %d node(s) from %s", len(project.graph.nodes), path)
        return project
