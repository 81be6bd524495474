import logging

from .Node import ScriptNode
from .Resources import ScratchDirectory, Script


logger = logging.getLogger(__name__)


def materialize_script(node: ScriptNode, scratch: ScratchDirectory) -> Script:
    """Write a snapshot of the node's script text to a new executable file."""
    script = Script(scratch, node.snapshot_script())
    logger.debug("Materialized script for node %s at %s", node.name, script.path)
    return script
