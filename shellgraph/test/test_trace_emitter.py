import logging

from shellgraph.server.trace.trace_emitter import TraceEmitter


class TestTraceEmitter:

    def test_listeners_receive_stamped_events(self):
        emitter = TraceEmitter()
        received = []
        emitter.on_trace(received.append)

        emitter.fire({"type": "RUN_START", "nodeIds": []})

        assert received[0]["type"] == "RUN_START"
        assert isinstance(received[0]["ts"], int)

    def test_typed_listener_only_sees_its_type(self):
        emitter = TraceEmitter()
        exits = []
        emitter.on_trace(exits.append, event_type="NODE_EXITED")

        emitter.fire({"type": "RUN_START", "nodeIds": ["a"]})
        emitter.fire({"type": "NODE_EXITED", "nodeId": "a"})

        assert [e["type"] for e in exits] == ["NODE_EXITED"]

    def test_remove_listener(self):
        emitter = TraceEmitter()
        received = []
        emitter.on_trace(received.append)
        emitter.on_trace(received.append, event_type="RUN_DONE")
        emitter.remove_listener(received.append)

        emitter.fire({"type": "RUN_DONE"})

        assert received == []

    def test_history_is_bounded(self):
        emitter = TraceEmitter(history_size=3)

        for i in range(5):
            emitter.fire({"type": "NODE_ERROR", "nodeId": str(i), "ts": i})

        assert [e["nodeId"] for e in emitter.recent()] == ["2", "3", "4"]
        assert [e["nodeId"] for e in emitter.recent(since_ts=4)] == ["4"]
        emitter.clear_history()
        assert emitter.recent() == []

    def test_failing_listener_does_not_stop_others(self, caplog):
        emitter = TraceEmitter()
        received = []

        def broken(event):
            raise RuntimeError("listener down")

        emitter.on_trace(broken)
        emitter.on_trace(received.append)

        with caplog.at_level(logging.ERROR, logger="shellgraph.server.trace.trace_emitter"):
            emitter.fire({"type": "NODE_EXITED"})

        assert len(received) == 1
        assert "listener down" in caplog.text
