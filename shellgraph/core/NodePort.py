import re
import logging
from typing import Any, Dict

from .Types import PortDirection, PipeKind
from .Errors import GraphError


# Get a logger for this module
logger = logging.getLogger(__name__)

# Port names end up in environment variable names (IN_<name> / OUT_<name>).
PORT_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

INPUT_ENV_PREFIX = "IN_"
OUTPUT_ENV_PREFIX = "OUT_"


def validate_port_name(port_name: str) -> str:
    if not isinstance(port_name, str) or not PORT_NAME_PATTERN.match(port_name):
        raise GraphError(
            f"Invalid port name '{port_name}': must start with a letter or underscore "
            f"and contain only letters, digits and underscores"
        )
    return port_name


class NodePort:
    def __init__(self,
                 node_id: str,
                 port_name: str,
                 direction: PortDirection,
                 kind: PipeKind = PipeKind.SINGLE):
        self.node_id = node_id
        self.port_name = validate_port_name(port_name)
        self.direction = direction
        self.kind = PipeKind.parse(kind)

    def isInputPort(self) -> bool:
        return self.direction == PortDirection.INPUT

    def isOutputPort(self) -> bool:
        return self.direction == PortDirection.OUTPUT

    def isMany(self) -> bool:
        return self.kind == PipeKind.MANY

    # name of the variable the spawned script sees for this port
    @property
    def env_var(self) -> str:
        prefix = INPUT_ENV_PREFIX if self.isInputPort() else OUTPUT_ENV_PREFIX
        return f"{prefix}{self.port_name}"

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.port_name, "kind": self.kind.value}

    def __repr__(self):
        return f"{type(self).__name__}({self.node_id}.{self.port_name}, {self.kind.value})"


class InputPort(NodePort):
    def __init__(self, node_id: str, port_name: str, kind: PipeKind = PipeKind.SINGLE):
        super().__init__(node_id, port_name, PortDirection.INPUT, kind)


class OutputPort(NodePort):
    def __init__(self, node_id: str, port_name: str, kind: PipeKind = PipeKind.SINGLE):
        super().__init__(node_id, port_name, PortDirection.OUTPUT, kind)
