from enum import Enum, auto


class PortDirection(Enum):
    INPUT = auto()
    OUTPUT = auto()


# Connection kind shown on a port. Both kinds are wired the same way at run
# time: one FIFO per edge.
class PipeKind(Enum):
    SINGLE = "single"
    MANY = "many"

    @classmethod
    def parse(cls, value) -> 'PipeKind':
        if isinstance(value, PipeKind):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown pipe kind '{value}'") from None


class NodeState(Enum):
    NOT_STARTED = auto()
    RUNNING = auto()
    EXITED = auto()
