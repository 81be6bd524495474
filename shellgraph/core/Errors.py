from typing import Optional


class ShellGraphError(Exception):
    """Base class for every error raised by the engine."""


class GraphError(ShellGraphError, ValueError):
    """Invalid graph edit: unknown node or port, duplicate names, bad edges."""


class ResourceError(ShellGraphError):
    """A scratch file or FIFO could not be provisioned."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class SpawnError(ShellGraphError):
    """The OS refused to launch a node's script."""

    def __init__(self, node_id: str, message: str):
        super().__init__(f"Node '{node_id}' could not be spawned: {message}")
        self.node_id = node_id


class RunStartError(ShellGraphError):
    """
    A run could not be started. Anything spawned by the failed attempt has
    already been killed and its resources released.
    """

    def __init__(self, message: str, node_id: Optional[str] = None):
        super().__init__(message)
        self.node_id = node_id


class RunInProgressError(ShellGraphError):
    """start() was called while processes from a previous run are still live."""
