from typing import Tuple, NamedTuple, Dict, List, Optional, Iterator
from collections import defaultdict
import logging

from .Node import ScriptNode
from .Errors import GraphError


logger = logging.getLogger(__name__)


# An edge always runs from an output port to an input port. At run time each
# edge becomes exactly one FIFO.
class Edge(NamedTuple):
    from_node_id: str
    from_port_name: str
    to_node_id: str
    to_port_name: str

    def __repr__(self):
        return f"Edge({self.from_node_id}.{self.from_port_name} -> {self.to_node_id}.{self.to_port_name})"


class Graph:
    """
    Flat node arena with centralized edge storage. Nodes are keyed by id;
    edges are kept in insertion order with adjacency maps keyed by
    (node_id, port_name) for lookups from either end.
    """

    def __init__(self):
        self.nodes: Dict[str, ScriptNode] = {}
        self.edges: List[Edge] = []

        self.incoming_edges: Dict[Tuple[str, str], List[Edge]] = defaultdict(list)
        self.outgoing_edges: Dict[Tuple[str, str], List[Edge]] = defaultdict(list)

    # --- Node Management ---

    def add_node(self, node: ScriptNode) -> ScriptNode:
        if node.id in self.nodes:
            raise GraphError(f"Node with id '{node.id}' already exists in the graph")
        self.nodes[node.id] = node
        logger.debug("Added node %s (%s)", node.name, node.id)
        return node

    def create_node(self, name: str, script: str = "", node_id: Optional[str] = None) -> ScriptNode:
        return self.add_node(ScriptNode(name, script, node_id=node_id))

    def get_node_by_id(self, node_id: str) -> Optional[ScriptNode]:
        return self.nodes.get(node_id)

    def get_node_by_name(self, name: str) -> Optional[ScriptNode]:
        for node in self.nodes.values():
            if node.name == name:
                return node
        return None

    def require_node(self, node_id: str) -> ScriptNode:
        node = self.nodes.get(node_id)
        if node is None:
            raise GraphError(f"Node with id '{node_id}' does not exist in the graph")
        return node

    def delete_node(self, node_id: str):
        node = self.require_node(node_id)
        self._remove_edges_where(lambda e: e.from_node_id == node.id or e.to_node_id == node.id)
        del self.nodes[node.id]

    def delete_port(self, node_id: str, port_name: str, is_input: bool):
        node = self.require_node(node_id)
        if is_input:
            node.delete_input(port_name)
            self._remove_edges_where(lambda e: e.to_node_id == node_id and e.to_port_name == port_name)
        else:
            node.delete_output(port_name)
            self._remove_edges_where(lambda e: e.from_node_id == node_id and e.from_port_name == port_name)

    # --- Edge Management ---

    def add_edge(self, from_node_id: str, from_port_name: str, to_node_id: str, to_port_name: str) -> Edge:
        from_node = self.require_node(from_node_id)
        to_node = self.require_node(to_node_id)

        from_node.get_output_port(from_port_name)
        to_node.get_input_port(to_port_name)

        if from_node.id == to_node.id:
            raise GraphError("Cannot connect a node's output to its own input")

        edge = Edge(from_node_id, from_port_name, to_node_id, to_port_name)
        if edge in self.outgoing_edges.get((from_node_id, from_port_name), []):
            raise GraphError(f"{edge!r} already exists")

        self.edges.append(edge)
        self.incoming_edges[(to_node_id, to_port_name)].append(edge)
        self.outgoing_edges[(from_node_id, from_port_name)].append(edge)
        return edge

    def remove_edge(self, from_node_id: str, from_port_name: str, to_node_id: str, to_port_name: str):
        edge = Edge(from_node_id, from_port_name, to_node_id, to_port_name)
        if edge not in self.edges:
            raise GraphError(f"{edge!r} does not exist")
        self._remove_edges_where(lambda e: e == edge)

    def get_incoming_edges(self, node_id: str, port_name: str) -> List[Edge]:
        return list(self.incoming_edges.get((node_id, port_name), []))

    def get_outgoing_edges(self, node_id: str, port_name: str) -> List[Edge]:
        return list(self.outgoing_edges.get((node_id, port_name), []))

    def is_connected(self, node_id: str, port_name: str, is_input: bool = True) -> bool:
        if is_input:
            return len(self.get_incoming_edges(node_id, port_name)) > 0
        return len(self.get_outgoing_edges(node_id, port_name)) > 0

    def iter_connections(self) -> Iterator[Edge]:
        return iter(list(self.edges))

    def _remove_edges_where(self, predicate):
        self.edges = [e for e in self.edges if not predicate(e)]
        # rebuild the adjacency maps from the arena
        self.incoming_edges.clear()
        self.outgoing_edges.clear()
        for edge in self.edges:
            self.incoming_edges[(edge.to_node_id, edge.to_port_name)].append(edge)
            self.outgoing_edges[(edge.from_node_id, edge.from_port_name)].append(edge)

    def clone(self) -> 'Graph':
        graph = Graph()
        for node in self.nodes.values():
            graph.add_node(node.clone())
        for edge in self.edges:
            graph.add_edge(*edge)
        return graph

    def reset(self):
        self.nodes.clear()
        self.edges.clear()
        self.incoming_edges.clear()
        self.outgoing_edges.clear()
