from pathlib import Path

import pytest

from shellgraph.config import Settings, load_settings, resolve_scratch_dir
from shellgraph.core.Resources import ScratchDirectory


class TestScratchDir:

    def test_override_wins(self):
        environ = {"SHELLGRAPH_SCRATCH_DIR": "/srv/sg", "XDG_RUNTIME_DIR": "/run/user/1000"}
        assert resolve_scratch_dir(environ) == Path("/srv/sg")

    def test_runtime_dir(self):
        assert resolve_scratch_dir({"XDG_RUNTIME_DIR": "/run/user/1000"}) == Path("/run/user/1000/shell-graph")

    def test_fallback(self):
        assert resolve_scratch_dir({}) == Path("/tmp/shell-graph")

    def test_scratch_directory_from_settings(self):
        settings = load_settings({"SHELLGRAPH_SCRATCH_DIR": "/srv/sg"})
        assert ScratchDirectory.from_settings(settings).path == Path("/srv/sg")


class TestLoadSettings:

    def test_defaults(self):
        settings = load_settings({})

        assert settings.tick_interval == 0.1
        assert settings.host == "127.0.0.1"
        assert settings.port == 3001
        assert settings.log_level == "INFO"
        assert settings.project_path is None

    def test_values_from_environment(self):
        settings = load_settings({
            "SHELLGRAPH_TICK_INTERVAL": "0.5",
            "SHELLGRAPH_PORT": "8080",
            "SHELLGRAPH_LOG_LEVEL": "debug",
            "SHELLGRAPH_PROJECT": "demo.shgraph",
        })

        assert settings.tick_interval == 0.5
        assert settings.port == 8080
        assert settings.log_level == "DEBUG"
        assert settings.project_path == Path("demo.shgraph")

    @pytest.mark.parametrize("environ", [
        {"SHELLGRAPH_TICK_INTERVAL": "fast"},
        {"SHELLGRAPH_TICK_INTERVAL": "0"},
        {"SHELLGRAPH_PORT": "http"},
    ])
    def test_bad_values_raise(self, environ):
        with pytest.raises(ValueError):
            load_settings(environ)

    def test_empty_values_fall_back_to_defaults(self):
        settings = load_settings({"SHELLGRAPH_PORT": "", "SHELLGRAPH_TICK_INTERVAL": ""})

        assert settings.port == 3001
        assert settings.tick_interval == 0.1

    def test_settings_are_frozen(self):
        settings = load_settings({})

        with pytest.raises(ValueError):
            settings.port = 1


class TestProcessEnvironment:

    def test_reads_prefixed_variables(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SHELLGRAPH_PORT", "9000")
        monkeypatch.setenv("SHELLGRAPH_SCRATCH_DIR", str(tmp_path))
        monkeypatch.setenv("shellgraph_log_level", "warning")

        settings = Settings()

        assert settings.port == 9000
        assert settings.scratch_dir == tmp_path
        assert settings.log_level == "WARNING"

    def test_scratch_dir_falls_back_to_runtime_dir(self, monkeypatch, tmp_path):
        monkeypatch.delenv("SHELLGRAPH_SCRATCH_DIR", raising=False)
        monkeypatch.setenv("XDG_RUNTIME_DIR", str(tmp_path))

        assert Settings().scratch_dir == tmp_path / "shell-graph"

    def test_env_file_is_loaded(self, monkeypatch, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("SHELLGRAPH_HOST=0.0.0.0\n")
        # setenv first so teardown restores whatever was there before
        monkeypatch.setenv("SHELLGRAPH_HOST", "unset")
        monkeypatch.delenv("SHELLGRAPH_HOST")

        settings = load_settings(env_file=str(env_file))

        assert settings.host == "0.0.0.0"
