from __future__ import annotations

import signal
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Optional

from .Types import NodeState

if TYPE_CHECKING:
    from .Launcher import Process


@dataclass(frozen=True)
class ExitStatus:
    """
    How a node's process ended. ``returncode`` follows subprocess: negative
    values mean the process was terminated by that signal number.
    """
    returncode: int

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def code(self) -> Optional[int]:
        return self.returncode if self.returncode >= 0 else None

    @property
    def signal(self) -> Optional[int]:
        return -self.returncode if self.returncode < 0 else None

    def __str__(self) -> str:
        if self.signal is not None:
            try:
                name = signal.Signals(self.signal).name
            except ValueError:
                name = "unknown"
            return f"signal: {self.signal} ({name})"
        return f"exit status: {self.returncode}"


@dataclass
class CapturedOutput:
    stdout: bytearray = field(default_factory=bytearray)
    stderr: bytearray = field(default_factory=bytearray)


@dataclass
class RunState:
    """
    Transient per-run maps, keyed by node id. Never persisted.

    ``processes`` holds only live processes; ``exit_statuses``, ``output``
    and ``errors`` accumulate until the next start or an explicit clear.
    """
    processes: Dict[str, "Process"] = field(default_factory=dict)
    exit_statuses: Dict[str, ExitStatus] = field(default_factory=dict)
    output: Dict[str, CapturedOutput] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)

    def clear(self):
        self.exit_statuses.clear()
        self.output.clear()
        self.errors.clear()

    @property
    def is_running(self) -> bool:
        return bool(self.processes)

    def node_state(self, node_id: str) -> NodeState:
        if node_id in self.processes:
            return NodeState.RUNNING
        if node_id in self.exit_statuses:
            return NodeState.EXITED
        return NodeState.NOT_STARTED

    def output_for(self, node_id: str) -> CapturedOutput:
        return self.output.setdefault(node_id, CapturedOutput())
