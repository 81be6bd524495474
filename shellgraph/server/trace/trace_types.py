"""
Trace event shapes emitted by the executor and forwarded over Socket.IO.
All events are plain dicts so they can be emitted without Pydantic overhead.
"""
from typing import Dict, List, Literal, Optional, TypedDict, Union


class RunStartEvent(TypedDict):
    type: Literal["RUN_START"]
    nodeIds: List[str]
    ts: int


class NodeRunningEvent(TypedDict):
    type: Literal["NODE_RUNNING"]
    nodeId: str
    pid: int
    ts: int


class NodeExitedEvent(TypedDict):
    type: Literal["NODE_EXITED"]
    nodeId: str
    returncode: int
    success: bool
    stdoutBytes: int
    stderrBytes: int
    ts: int


class NodeErrorEvent(TypedDict):
    type: Literal["NODE_ERROR"]
    nodeId: str
    error: str
    ts: int


class RunDoneEvent(TypedDict):
    type: Literal["RUN_DONE"]
    exitStatuses: Dict[str, int]
    ts: int


class RunKilledEvent(TypedDict):
    type: Literal["RUN_KILLED"]
    nodeIds: List[str]
    ts: int


class RunErrorEvent(TypedDict):
    type: Literal["RUN_ERROR"]
    nodeId: Optional[str]
    error: str
    ts: int


TraceEvent = Union[
    RunStartEvent,
    NodeRunningEvent,
    NodeExitedEvent,
    NodeErrorEvent,
    RunDoneEvent,
    RunKilledEvent,
    RunErrorEvent,
]
