import logging
from collections import defaultdict
from typing import Dict, List, Tuple

from .GraphPrimitives import Graph
from .Resources import ScratchDirectory, Pipe


logger = logging.getLogger(__name__)

PortKey = Tuple[str, str]  # (node_id, port_name)


class ResolvedConnections:
    """
    Pipes bound to every connected port for one run. Holds the creator
    reference of each Pipe until ``release()``; processes that use a pipe
    acquire their own reference before that happens.
    """

    def __init__(self):
        self.inputs: Dict[PortKey, List[Pipe]] = defaultdict(list)
        self.outputs: Dict[PortKey, List[Pipe]] = defaultdict(list)
        self.pipes: List[Pipe] = []

    def input_pipes(self, node_id: str, port_name: str) -> List[Pipe]:
        return list(self.inputs.get((node_id, port_name), []))

    def output_pipes(self, node_id: str, port_name: str) -> List[Pipe]:
        return list(self.outputs.get((node_id, port_name), []))

    def release(self):
        for pipe in self.pipes:
            pipe.release()
        self.pipes.clear()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False


def resolve_connections(graph: Graph, scratch: ScratchDirectory) -> ResolvedConnections:
    """Create one fresh Pipe per edge and bind it to both of the edge's ports."""
    resolved = ResolvedConnections()
    try:
        for edge in graph.iter_connections():
            pipe = Pipe(scratch)
            resolved.pipes.append(pipe)
            resolved.inputs[(edge.to_node_id, edge.to_port_name)].append(pipe)
            resolved.outputs[(edge.from_node_id, edge.from_port_name)].append(pipe)
            logger.debug("%r -> %s", edge, pipe.path)
    except Exception:
        resolved.release()
        raise
    return resolved
