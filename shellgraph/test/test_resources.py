import os
import stat
import logging

import pytest

from shellgraph.core.Resources import ScratchDirectory, Script, Pipe
from shellgraph.core.Errors import ResourceError


class TestScratchDirectory:

    def test_ensure_creates_directory(self, tmp_path):
        scratch = ScratchDirectory(tmp_path / "runtime" / "shell-graph")
        assert scratch.entries() == []

        path = scratch.ensure()
        assert path.is_dir()
        assert path == tmp_path / "runtime" / "shell-graph"

    def test_new_paths_are_unique(self, scratch):
        assert scratch.new_path() != scratch.new_path()

    def test_unusable_directory_raises(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")
        scratch = ScratchDirectory(blocker / "shell-graph")

        with pytest.raises(ResourceError):
            scratch.ensure()


class TestScript:

    def test_written_verbatim_and_executable(self, scratch):
        source = "#!/bin/sh\n\techo 'hi there'\n"
        script = Script(scratch, source)

        assert script.path.parent == scratch.path
        with open(script.path, "r", encoding="utf-8", newline="") as f:
            assert f.read() == source
        assert stat.S_IMODE(os.stat(script.path).st_mode) == Script.MODE == 0o744

        script.release()
        assert not script.path.exists()

    def test_reference_counting(self, scratch):
        script = Script(scratch, "#!/bin/sh\n")
        assert script.ref_count == 1

        assert script.acquire() is script
        assert script.ref_count == 2

        script.release()
        assert script.exists()
        assert not script.released

        script.release()
        assert not script.exists()
        assert script.released

    def test_acquire_after_release_raises(self, scratch):
        script = Script(scratch, "#!/bin/sh\n")
        script.release()

        with pytest.raises(ResourceError):
            script.acquire()

    def test_context_manager_releases(self, scratch):
        with Script(scratch, "#!/bin/sh\n") as script:
            assert script.exists()
        assert not script.exists()

    def test_cleanup_failure_is_logged_not_raised(self, scratch, caplog):
        script = Script(scratch, "#!/bin/sh\n")
        os.remove(script.path)

        with caplog.at_level(logging.WARNING, logger="shellgraph.core.Resources"):
            script.release()

        assert "Resource leak" in caplog.text

    def test_unencodable_text_raises_and_leaves_nothing(self, scratch):
        with pytest.raises(ResourceError):
            Script(scratch, "#!/bin/sh\necho \ud800\n")

        assert scratch.entries() == []

    def test_creation_failure_raises(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")

        with pytest.raises(ResourceError):
            Script(ScratchDirectory(blocker), "#!/bin/sh\n")


class TestPipe:

    def test_pipe_is_fifo(self, scratch):
        pipe = Pipe(scratch)

        mode = os.stat(pipe.path).st_mode
        assert stat.S_ISFIFO(mode)
        assert stat.S_IMODE(mode) & 0o700 == 0o700
        assert stat.S_IMODE(mode) & 0o077 == 0

        pipe.release()
        assert not pipe.exists()
        assert scratch.entries() == []

    def test_shared_pipe_outlives_first_holder(self, scratch):
        pipe = Pipe(scratch)
        producer_ref = pipe.acquire()
        consumer_ref = pipe.acquire()

        pipe.release()          # creator
        producer_ref.release()  # producer exits first
        assert pipe.exists()

        consumer_ref.release()
        assert not pipe.exists()
