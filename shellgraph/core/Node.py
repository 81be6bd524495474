import logging
import threading
import uuid
from typing import Dict, List, Optional

from .NodePort import NodePort, InputPort, OutputPort
from .Types import PipeKind, PortDirection
from .Errors import GraphError


# Get a logger for this module
logger = logging.getLogger(__name__)


class ScriptNode:
    """
    A graph node whose behavior is a script. The script text carries its own
    interpreter line (e.g. ``#!/bin/sh``) and is written to an executable
    file when a run starts.

    The text may be edited by the controller while a run is in flight, so it
    lives behind a lock; a run only ever sees a snapshot taken at start.
    """

    def __init__(self,
                 name: str,
                 script: str = "",
                 node_id: Optional[str] = None):
        self.name = name
        self.id = node_id or uuid.uuid4().hex

        self.inputs: Dict[str, InputPort] = {}
        self.outputs: Dict[str, OutputPort] = {}

        self._script = script
        self._script_lock = threading.Lock()

    @property
    def script(self) -> str:
        with self._script_lock:
            return self._script

    @script.setter
    def script(self, text: str):
        if not isinstance(text, str):
            raise TypeError(f"Script text must be str, got {type(text).__name__}")
        with self._script_lock:
            self._script = text

    def snapshot_script(self) -> str:
        """Copy of the current script text, taken atomically."""
        with self._script_lock:
            return str(self._script)

    def add_input(self, port_name: str, kind: PipeKind = PipeKind.SINGLE) -> InputPort:
        if port_name in self.inputs:
            raise GraphError(f"Input port '{port_name}' already exists in node '{self.id}'")

        port = InputPort(self.id, port_name, kind=kind)
        self.inputs[port_name] = port
        return port

    def add_output(self, port_name: str, kind: PipeKind = PipeKind.SINGLE) -> OutputPort:
        if port_name in self.outputs:
            raise GraphError(f"Output port '{port_name}' already exists in node '{self.id}'")

        port = OutputPort(self.id, port_name, kind=kind)
        self.outputs[port_name] = port
        return port

    def add_port(self, port_name: str, direction: PortDirection, kind: PipeKind = PipeKind.SINGLE) -> NodePort:
        if direction == PortDirection.INPUT:
            return self.add_input(port_name, kind)
        return self.add_output(port_name, kind)

    # Edges attached to a removed port are cleaned up by the Graph.
    def delete_input(self, port_name: str):
        if port_name not in self.inputs:
            raise GraphError(f"Input port '{port_name}' not found in node '{self.id}'")
        del self.inputs[port_name]

    def delete_output(self, port_name: str):
        if port_name not in self.outputs:
            raise GraphError(f"Output port '{port_name}' not found in node '{self.id}'")
        del self.outputs[port_name]

    def get_input_port(self, port_name: str) -> InputPort:
        port = self.inputs.get(port_name)
        if not port:
            raise GraphError(f"Input port '{port_name}' not found in node '{self.id}'")
        return port

    def get_output_port(self, port_name: str) -> OutputPort:
        port = self.outputs.get(port_name)
        if not port:
            raise GraphError(f"Output port '{port_name}' not found in node '{self.id}'")
        return port

    def get_ports(self) -> List[NodePort]:
        return list(self.inputs.values()) + list(self.outputs.values())

    def clone(self) -> 'ScriptNode':
        """Copy with the same id, ports and a snapshot of the script text."""
        node = ScriptNode(self.name, self.snapshot_script(), node_id=self.id)
        for port in self.inputs.values():
            node.add_input(port.port_name, port.kind)
        for port in self.outputs.values():
            node.add_output(port.port_name, port.kind)
        return node

    def __repr__(self):
        return f"ScriptNode({self.name}, {self.id})"
