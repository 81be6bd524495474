"""
Process launcher: turns one node plus its resolved pipes into a running child
process whose stdout/stderr the engine reads without blocking.
"""
import os
import signal
import logging
import subprocess
import time
from typing import Dict, List, Mapping, Optional

from .Node import ScriptNode
from .Resources import ScratchDirectory, Script, Pipe
from .ConnectionResolver import ResolvedConnections
from .Materializer import materialize_script
from .RunState import CapturedOutput
from .Errors import SpawnError


logger = logging.getLogger(__name__)

PATH_SEPARATOR = ","


class NonBlockingReader:
    """Reads whatever a child's output stream has available, never waiting."""

    CHUNK_SIZE = 64 * 1024

    def __init__(self, stream):
        self._stream = stream
        self._fd = stream.fileno()
        os.set_blocking(self._fd, False)
        self.eof = False

    def read_available(self, into: bytearray) -> int:
        # "would block" just means nothing this time round; other OSErrors
        # propagate to the caller.
        total = 0
        while not self.eof:
            try:
                chunk = os.read(self._fd, self.CHUNK_SIZE)
            except BlockingIOError:
                break
            if not chunk:
                self.eof = True
                break
            into.extend(chunk)
            total += len(chunk)
        return total

    def close(self):
        self._stream.close()


class Process:
    """
    One node's child process for one run. Keeps its Script and every Pipe it
    was given alive until ``release()``.
    """

    def __init__(self,
                 node_id: str,
                 script: Script,
                 pipes: List[Pipe],
                 child: subprocess.Popen):
        self.node_id = node_id
        self.script = script
        self.pipes = pipes
        self.child = child
        self.stdout = NonBlockingReader(child.stdout)
        self.stderr = NonBlockingReader(child.stderr)
        self.started_at = time.monotonic()
        self._released = False

    @property
    def pid(self) -> int:
        return self.child.pid

    def drain(self, output: CapturedOutput) -> int:
        return self.stdout.read_available(output.stdout) + self.stderr.read_available(output.stderr)

    def poll(self) -> Optional[int]:
        return self.child.poll()

    def kill(self):
        """
        SIGKILL the whole process group, then reap the leader. The group is
        signalled even when the leader has already exited.
        """
        try:
            os.killpg(self.child.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        except PermissionError as exc:
            logger.warning("Could not kill process group %s of node %s: %s", self.child.pid, self.node_id, exc)
            self.child.kill()
        self.child.wait()

    def release(self):
        if self._released:
            return
        self._released = True
        self.stdout.close()
        self.stderr.close()
        self.script.release()
        for pipe in self.pipes:
            pipe.release()

    def __repr__(self):
        return f"Process({self.node_id}, pid={self.child.pid})"


def node_pipes(node: ScriptNode, connections: ResolvedConnections) -> Dict[str, List[Pipe]]:
    """Map each of the node's env var names to the pipes bound to that port."""
    bound: Dict[str, List[Pipe]] = {}
    for name, port in node.inputs.items():
        bound[port.env_var] = connections.input_pipes(node.id, name)
    for name, port in node.outputs.items():
        bound[port.env_var] = connections.output_pipes(node.id, name)
    return bound


def build_environment(node: ScriptNode,
                      connections: ResolvedConnections,
                      base_env: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    env = dict(os.environ if base_env is None else base_env)
    for var, pipes in node_pipes(node, connections).items():
        env[var] = PATH_SEPARATOR.join(str(pipe.path) for pipe in pipes)
    return env


def launch_node(node: ScriptNode,
                connections: ResolvedConnections,
                scratch: ScratchDirectory,
                base_env: Optional[Mapping[str, str]] = None) -> Process:
    env = build_environment(node, connections, base_env)
    pipes = [pipe for bound in node_pipes(node, connections).values() for pipe in bound]

    script = materialize_script(node, scratch)
    try:
        child = subprocess.Popen(
            [str(script.path)],
            env=env,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            start_new_session=True,
        )
    except OSError as exc:
        script.release()
        raise SpawnError(node.id, str(exc)) from exc

    for pipe in pipes:
        pipe.acquire()

    logger.info("Started node %s (%s) as pid %d", node.name, node.id, child.pid)
    return Process(node.id, script, pipes, child)
