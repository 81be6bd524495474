import os
import sys
import time
from pathlib import Path

import pytest

# Allow running the suite from a checkout without installing the package.
REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from shellgraph.core.Executor import Executor
from shellgraph.core.Project import Project
from shellgraph.core.Resources import ScratchDirectory


if os.name != "posix":
    pytest.skip("shellgraph needs POSIX FIFOs and process groups", allow_module_level=True)


@pytest.fixture
def scratch(tmp_path) -> ScratchDirectory:
    """Isolated scratch directory, so tests can check nothing is left behind."""
    return ScratchDirectory(tmp_path / "shell-graph")


@pytest.fixture
def project() -> Project:
    return Project()


@pytest.fixture
def executor(project, scratch):
    executor = Executor(project, scratch=scratch)
    yield executor
    executor.kill()


@pytest.fixture
def tick_until_done():
    def _tick(executor, timeout: float = 15.0, interval: float = 0.02):
        deadline = time.monotonic() + timeout
        while executor.tick():
            if time.monotonic() > deadline:
                executor.kill()
                pytest.fail(f"run did not finish within {timeout}s")
            time.sleep(interval)
    return _tick
