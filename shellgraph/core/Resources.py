"""
Ephemeral filesystem resources used by a run.

Every Script and Pipe lives in the scratch directory under a random uuid
name. A resource is created holding one reference, owned by whoever created
it. Each process that needs it calls ``acquire()``, and every holder calls
``release()`` when done. The file is deleted when the last reference goes.
"""
import os
import uuid
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Union

from .Errors import ResourceError


logger = logging.getLogger(__name__)


class ScratchDirectory:
    """Directory holding the scripts and FIFOs of live runs."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    @classmethod
    def from_settings(cls, settings=None) -> 'ScratchDirectory':
        if settings is None:
            from ..config import get_settings
            settings = get_settings()
        return cls(settings.scratch_dir)

    def ensure(self) -> Path:
        try:
            self.path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ResourceError(f"Could not create scratch directory '{self.path}': {exc}", self.path) from exc
        return self.path

    def new_path(self) -> Path:
        return self.ensure() / uuid.uuid4().hex

    def entries(self) -> List[Path]:
        if not self.path.is_dir():
            return []
        return sorted(self.path.iterdir())

    def __repr__(self):
        return f"ScratchDirectory({str(self.path)!r})"


class EphemeralResource(ABC):
    """Reference-counted handle to a filesystem object in the scratch directory."""

    kind = "resource"

    def __init__(self, scratch: ScratchDirectory):
        self.path: Path = scratch.new_path()
        self._refs = 1
        self._create()
        logger.debug("Created %s %s", self.kind, self.path)

    @abstractmethod
    def _create(self):
        pass

    @property
    def ref_count(self) -> int:
        return self._refs

    @property
    def released(self) -> bool:
        return self._refs == 0

    def acquire(self) -> 'EphemeralResource':
        if self._refs == 0:
            raise ResourceError(f"Cannot acquire released {self.kind} '{self.path}'", self.path)
        self._refs += 1
        return self

    def release(self):
        if self._refs == 0:
            logger.warning("%s '%s' released more times than acquired", self.kind, self.path)
            return
        self._refs -= 1
        if self._refs == 0:
            self._destroy()

    def _destroy(self):
        try:
            os.remove(self.path)
            logger.debug("Removed %s %s", self.kind, self.path)
        except OSError as exc:
            # nothing can retry this once the handle is gone
            logger.warning("Resource leak: could not remove %s '%s': %s", self.kind, self.path, exc)

    def exists(self) -> bool:
        return os.path.lexists(self.path)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False

    def __fspath__(self):
        return str(self.path)

    def __repr__(self):
        return f"{type(self).__name__}({str(self.path)!r}, refs={self._refs})"


class Script(EphemeralResource):
    """Executable file holding a node's script text, written verbatim."""

    kind = "script"
    MODE = 0o744

    def __init__(self, scratch: ScratchDirectory, source: str):
        self.source = source
        super().__init__(scratch)

    def _create(self):
        try:
            with open(self.path, "w", encoding="utf-8", newline="") as f:
                f.write(self.source)
        except (OSError, UnicodeError) as exc:
            self._discard()
            raise ResourceError(f"Could not write script '{self.path}': {exc}", self.path) from exc
        try:
            os.chmod(self.path, self.MODE)
        except OSError as exc:
            self._discard()
            raise ResourceError(f"Could not chmod script '{self.path}': {exc}", self.path) from exc

    def _discard(self):
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Resource leak: could not remove partial script '%s': %s", self.path, exc)


class Pipe(EphemeralResource):
    """Named FIFO carrying the bytes of one graph edge."""

    kind = "pipe"
    MODE = 0o700

    def _create(self):
        try:
            os.mkfifo(self.path, self.MODE)
        except OSError as exc:
            raise ResourceError(f"Could not create FIFO '{self.path}': {exc}", self.path) from exc
