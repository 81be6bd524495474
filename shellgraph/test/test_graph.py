import pytest

from shellgraph.core.GraphPrimitives import Graph, Edge
from shellgraph.core.Node import ScriptNode
from shellgraph.core.NodePort import InputPort, OutputPort
from shellgraph.core.Types import PipeKind, PortDirection
from shellgraph.core.Errors import GraphError


@pytest.fixture
def graph():
    return Graph()


def _pair(graph):
    producer = graph.create_node("producer", "#!/bin/sh\n")
    producer.add_output("out")
    consumer = graph.create_node("consumer", "#!/bin/sh\n")
    consumer.add_input("in")
    return producer, consumer


class TestScriptNode:

    def test_ports_and_env_vars(self):
        node = ScriptNode("node", "#!/bin/sh\n")
        node.add_input("data", PipeKind.MANY)
        node.add_output("result")

        assert isinstance(node.get_input_port("data"), InputPort)
        assert isinstance(node.get_output_port("result"), OutputPort)
        assert node.get_input_port("data").env_var == "IN_data"
        assert node.get_output_port("result").env_var == "OUT_result"
        assert node.get_input_port("data").isMany()
        assert not node.get_output_port("result").isMany()

    def test_same_name_allowed_on_both_sides(self):
        node = ScriptNode("node")
        node.add_input("x")
        node.add_output("x")

        assert [p.env_var for p in node.get_ports()] == ["IN_x", "OUT_x"]

    def test_duplicate_port_raises(self):
        node = ScriptNode("node")
        node.add_input("x")

        with pytest.raises(GraphError):
            node.add_input("x")

    @pytest.mark.parametrize("name", ["", "1st", "has space", "dash-ed", "a,b"])
    def test_invalid_port_name_raises(self, name):
        node = ScriptNode("node")

        with pytest.raises(GraphError):
            node.add_port(name, PortDirection.OUTPUT)

    def test_unknown_port_kind_raises(self):
        with pytest.raises(ValueError):
            PipeKind.parse("several")

    def test_missing_port_raises(self):
        node = ScriptNode("node")

        with pytest.raises(GraphError):
            node.get_input_port("nope")
        with pytest.raises(GraphError):
            node.delete_output("nope")

    def test_script_setter_and_snapshot(self):
        node = ScriptNode("node", "#!/bin/sh\necho one\n")
        snapshot = node.snapshot_script()

        node.script = "#!/bin/sh\necho two\n"

        assert snapshot == "#!/bin/sh\necho one\n"
        assert node.script == "#!/bin/sh\necho two\n"
        with pytest.raises(TypeError):
            node.script = b"#!/bin/sh\n"

    def test_clone_keeps_id_and_ports(self):
        node = ScriptNode("node", "#!/bin/sh\n")
        node.add_input("in", PipeKind.MANY)
        node.add_output("out")

        copy = node.clone()

        assert copy is not node
        assert copy.id == node.id
        assert copy.get_input_port("in").kind == PipeKind.MANY
        assert list(copy.outputs) == ["out"]


class TestGraph:

    def test_add_edge(self, graph):
        producer, consumer = _pair(graph)

        edge = graph.add_edge(producer.id, "out", consumer.id, "in")

        assert edge == Edge(producer.id, "out", consumer.id, "in")
        assert graph.edges == [edge]
        assert graph.get_outgoing_edges(producer.id, "out") == [edge]
        assert graph.get_incoming_edges(consumer.id, "in") == [edge]
        assert graph.is_connected(consumer.id, "in", is_input=True)
        assert graph.is_connected(producer.id, "out", is_input=False)

    def test_edge_must_run_output_to_input(self, graph):
        producer, consumer = _pair(graph)

        with pytest.raises(GraphError):
            graph.add_edge(consumer.id, "in", producer.id, "out")

    def test_edge_to_unknown_node_raises(self, graph):
        producer, _ = _pair(graph)

        with pytest.raises(GraphError):
            graph.add_edge(producer.id, "out", "missing", "in")

    def test_duplicate_edge_raises(self, graph):
        producer, consumer = _pair(graph)
        graph.add_edge(producer.id, "out", consumer.id, "in")

        with pytest.raises(GraphError):
            graph.add_edge(producer.id, "out", consumer.id, "in")

    def test_self_loop_raises(self, graph):
        node = graph.create_node("loop", "#!/bin/sh\n")
        node.add_input("in")
        node.add_output("out")

        with pytest.raises(GraphError):
            graph.add_edge(node.id, "out", node.id, "in")

    def test_fan_out_and_fan_in(self, graph):
        source = graph.create_node("source")
        source.add_output("out")
        sink = graph.create_node("sink")
        sink.add_input("in")
        a = graph.create_node("a")
        a.add_input("in")
        a.add_output("out")
        b = graph.create_node("b")
        b.add_input("in")
        b.add_output("out")

        graph.add_edge(source.id, "out", a.id, "in")
        graph.add_edge(source.id, "out", b.id, "in")
        graph.add_edge(a.id, "out", sink.id, "in")
        graph.add_edge(b.id, "out", sink.id, "in")

        assert len(graph.get_outgoing_edges(source.id, "out")) == 2
        assert len(graph.get_incoming_edges(sink.id, "in")) == 2

    def test_remove_edge(self, graph):
        producer, consumer = _pair(graph)
        graph.add_edge(producer.id, "out", consumer.id, "in")

        graph.remove_edge(producer.id, "out", consumer.id, "in")

        assert graph.edges == []
        assert not graph.is_connected(consumer.id, "in")
        with pytest.raises(GraphError):
            graph.remove_edge(producer.id, "out", consumer.id, "in")

    def test_delete_node_removes_its_edges(self, graph):
        producer, consumer = _pair(graph)
        graph.add_edge(producer.id, "out", consumer.id, "in")

        graph.delete_node(producer.id)

        assert producer.id not in graph.nodes
        assert graph.edges == []
        assert graph.get_incoming_edges(consumer.id, "in") == []

    def test_delete_port_removes_its_edges(self, graph):
        producer, consumer = _pair(graph)
        graph.add_edge(producer.id, "out", consumer.id, "in")

        graph.delete_port(consumer.id, "in", is_input=True)

        assert "in" not in consumer.inputs
        assert graph.edges == []

    def test_lookup_by_name(self, graph):
        producer, _ = _pair(graph)

        assert graph.get_node_by_name("producer") is producer
        assert graph.get_node_by_name("nobody") is None
        with pytest.raises(GraphError):
            graph.require_node("nobody")

    def test_clone_is_independent(self, graph):
        producer, consumer = _pair(graph)
        graph.add_edge(producer.id, "out", consumer.id, "in")

        copy = graph.clone()
        copy.delete_node(producer.id)

        assert len(graph.edges) == 1
        assert producer.id in graph.nodes
        assert copy.edges == []
