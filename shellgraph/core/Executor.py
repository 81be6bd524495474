import logging
import time
from typing import Any, Callable, Dict, Mapping, Optional, TYPE_CHECKING

from .ConnectionResolver import resolve_connections
from .Launcher import Process, launch_node
from .Resources import ScratchDirectory
from .RunState import ExitStatus, RunState
from .Errors import ResourceError, RunStartError, RunInProgressError

if TYPE_CHECKING:
    from .Project import Project

logger = logging.getLogger(__name__)


class Executor:
    """
    Supervises the processes of a project's run.

    Nothing here runs on its own: the caller drives ``tick()`` at whatever
    cadence it likes (a UI frame, a timer, a loop in a CLI). Every method must
    be called from the same thread.

    ``on_event`` is an optional hook receiving trace event dicts
    (``RUN_START``, ``NODE_RUNNING``, ``NODE_EXITED``, ...).
    """

    def __init__(self,
                 project: 'Project',
                 scratch: Optional[ScratchDirectory] = None,
                 base_env: Optional[Mapping[str, str]] = None):
        self.project = project
        self.scratch = scratch if scratch is not None else ScratchDirectory.from_settings()
        self.base_env = base_env
        self.on_event: Optional[Callable[[Dict[str, Any]], None]] = None

    @property
    def run_state(self) -> RunState:
        return self.project.run_state

    @property
    def is_running(self) -> bool:
        return self.run_state.is_running

    def _fire(self, event: Dict[str, Any]):
        if self.on_event is not None:
            self.on_event(event)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start(self, force: bool = False):
        """
        Launch every node of the graph at once. Either all nodes start, or
        none do and RunStartError is raised.
        """
        state = self.run_state
        if state.processes:
            if not force:
                raise RunInProgressError(
                    f"{len(state.processes)} process(es) from the previous run are still live"
                )
            self.kill()

        state.clear()
        graph = self.project.graph

        try:
            connections = resolve_connections(graph, self.scratch)
        except ResourceError as exc:
            logger.error("Could not provision pipes: %s", exc)
            self._fire({"type": "RUN_ERROR", "nodeId": None, "error": str(exc)})
            raise RunStartError(f"Could not provision pipes: {exc}") from exc

        started: Dict[str, Process] = {}
        try:
            for node in list(graph.nodes.values()):
                try:
                    started[node.id] = launch_node(node, connections, self.scratch, self.base_env)
                except Exception as exc:
                    logger.error("Aborting start, node %s (%s) failed: %s", node.name, node.id, exc)
                    self._rollback(started)
                    self._fire({"type": "RUN_ERROR", "nodeId": node.id, "error": str(exc)})
                    raise RunStartError(f"Failed to start node '{node.name}': {exc}", node_id=node.id) from exc
                except BaseException:
                    self._rollback(started)
                    raise
        finally:
            # processes hold their own references by now
            connections.release()

        state.processes.update(started)
        for node_id in started:
            state.output_for(node_id)

        self._fire({"type": "RUN_START", "nodeIds": list(started)})
        for node_id, process in started.items():
            self._fire({"type": "NODE_RUNNING", "nodeId": node_id, "pid": process.pid})

    def _rollback(self, started: Dict[str, Process]):
        for process in started.values():
            process.kill()
            process.release()
        started.clear()

    def kill(self):
        """Hard-stop every live process. No exit status is recorded for them."""
        state = self.run_state
        if not state.processes:
            return
        killed = list(state.processes)
        for node_id, process in state.processes.items():
            logger.info("Killing node %s (pid %d)", node_id, process.pid)
            process.kill()
            process.release()
        state.processes.clear()
        self._fire({"type": "RUN_KILLED", "nodeIds": killed})

    def tick(self) -> int:
        """
        Drain available output of every live process and retire the ones that
        have exited. Never blocks. Returns the number still running.
        """
        state = self.run_state
        if not state.processes:
            return 0

        for node_id, process in list(state.processes.items()):
            record = state.output_for(node_id)
            self._drain(node_id, process)

            try:
                returncode = process.poll()
            except OSError as exc:
                logger.warning("Could not check status of node %s: %s", node_id, exc)
                self._record_error(node_id, f"wait failed: {exc}")
                continue

            if returncode is None:
                continue

            # pick up anything written between the drain above and exit
            self._drain(node_id, process)
            status = ExitStatus(returncode)
            state.exit_statuses[node_id] = status
            del state.processes[node_id]
            process.release()

            logger.info("Node %s exited with %s", node_id, status)
            self._fire({
                "type": "NODE_EXITED",
                "nodeId": node_id,
                "returncode": returncode,
                "success": status.success,
                "stdoutBytes": len(record.stdout),
                "stderrBytes": len(record.stderr),
            })

        if not state.processes:
            self._fire({"type": "RUN_DONE", "exitStatuses": {k: v.returncode for k, v in state.exit_statuses.items()}})
        return len(state.processes)

    def _drain(self, node_id: str, process: Process):
        record = self.run_state.output_for(node_id)
        try:
            process.drain(record)
        except OSError as exc:
            logger.warning("Could not read output of node %s: %s", node_id, exc)
            self._record_error(node_id, f"read failed: {exc}")

    def _record_error(self, node_id: str, message: str):
        self.run_state.errors[node_id] = message
        self._fire({"type": "NODE_ERROR", "nodeId": node_id, "error": message})

    def clear(self):
        self.run_state.clear()

    def run_to_completion(self, interval: float = 0.1, timeout: Optional[float] = None) -> Dict[str, ExitStatus]:
        """Start and tick until every process has exited."""
        self.start()
        deadline = None if timeout is None else time.monotonic() + timeout
        while self.tick():
            if deadline is not None and time.monotonic() > deadline:
                self.kill()
                raise TimeoutError(f"Run did not finish within {timeout} seconds")
            time.sleep(interval)
        return dict(self.run_state.exit_statuses)
