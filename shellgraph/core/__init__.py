from .Types import PortDirection, PipeKind, NodeState
from .Errors import (
    ShellGraphError,
    GraphError,
    ResourceError,
    SpawnError,
    RunStartError,
    RunInProgressError,
)
from .GraphPrimitives import Edge, Graph
from .Node import ScriptNode
from .Resources import ScratchDirectory, EphemeralResource, Script, Pipe
from .RunState import ExitStatus, CapturedOutput, RunState
from .Executor import Executor
from .Project import Project

__all__ = [
    "PortDirection",
    "PipeKind",
    "NodeState",
    "ShellGraphError",
    "GraphError",
    "ResourceError",
    "SpawnError",
    "RunStartError",
    "RunInProgressError",
    "Edge",
    "Graph",
    "ScriptNode",
    "ScratchDirectory",
    "EphemeralResource",
    "Script",
    "Pipe",
    "ExitStatus",
    "CapturedOutput",
    "RunState",
    "Executor",
    "Project",
]
