from .trace_emitter import TraceEmitter, global_tracer

__all__ = ["TraceEmitter", "global_tracer"]
