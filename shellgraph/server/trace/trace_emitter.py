"""
Run event bus.

The executor's ``on_event`` hook points at ``global_tracer.fire`` in the
server, so every RUN_START, NODE_EXITED, ... dict passes through here on its
way to the Socket.IO forwarder and any other subscriber. The last few events
are kept so a client that connects mid-run can catch up.
"""
from __future__ import annotations

import logging
import time
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional

from .trace_types import TraceEvent

logger = logging.getLogger(__name__)

Listener = Callable[[TraceEvent], None]

HISTORY_SIZE = 200


class TraceEmitter:
    def __init__(self, history_size: int = HISTORY_SIZE) -> None:
        self._listeners: List[Listener] = []
        self._typed: Dict[str, List[Listener]] = {}
        self._history: Deque[TraceEvent] = deque(maxlen=history_size)

    def on_trace(self, callback: Listener, event_type: Optional[str] = None) -> None:
        """Subscribe to every event, or only to events of *event_type*."""
        if event_type is None:
            self._listeners.append(callback)
        else:
            self._typed.setdefault(event_type, []).append(callback)

    def remove_listener(self, callback: Listener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)
        for listeners in self._typed.values():
            if callback in listeners:
                listeners.remove(callback)

    def fire(self, payload: Dict[str, Any]) -> None:
        payload.setdefault("ts", int(time.time() * 1000))
        self._history.append(payload)
        logger.debug("trace %s", payload)

        targets = self._listeners + self._typed.get(payload.get("type"), [])
        for cb in targets:
            try:
                cb(payload)
            except Exception:
                # the tick that fired the event must carry on
                logger.exception("Trace listener %r failed on %s", cb, payload.get("type"))

    def recent(self, since_ts: int = 0) -> List[TraceEvent]:
        """Buffered events stamped at or after *since_ts*, oldest first."""
        return [event for event in self._history if event["ts"] >= since_ts]

    def clear_history(self) -> None:
        self._history.clear()


global_tracer = TraceEmitter()
