"""Tests for run ordering, the run state machine, and step failure handling."""

import asyncio

import pytest

from autoflow.behaviors import (
    COMPLETION_BANNER,
    FAILURE_BANNER,
    START_BANNER,
    BehaviorTable,
)
from autoflow.engine import ExecutionEngine, execution_order
from autoflow.errors import AlreadyRunning, EmptyGraph
from autoflow.models.graph import Position
from autoflow.models.run import RejectReason, RunStatus, StepPolicy
from autoflow.store import GraphStore

TRIGGER_LINE = "📺 [YouTube Trigger] Monitoring channel... Found 1 new video"
GENERATE_LINES = [
    "✍️ [Generate Content] Generating optimized metadata...",
    '   ✓ Title: "10 Essential Tips for..."',
    "   ✓ Description generated (250 words)",
    "   ✓ Tags: 15 relevant tags added",
]


async def no_wait(delay: float) -> None:
    """Zero-delay sleeper: still yields to the loop like a real sleep."""
    await asyncio.sleep(0)


class ManualClock:
    """Sleeper whose waits finish only when the test releases them."""

    def __init__(self) -> None:
        self.delays: list[float] = []
        self.auto = False
        self._pending: list[asyncio.Future] = []
        self._arrived = asyncio.Event()

    async def sleep(self, delay: float) -> None:
        self.delays.append(delay)
        if self.auto:
            return
        future = asyncio.get_running_loop().create_future()
        self._pending.append(future)
        self._arrived.set()
        await future

    async def next_sleep(self) -> None:
        """Wait until the engine is parked in a sleep."""
        while not any(not f.done() for f in self._pending):
            self._arrived.clear()
            await self._arrived.wait()

    def release(self) -> None:
        while self._pending:
            future = self._pending.pop(0)
            if not future.done():
                future.set_result(None)
                return

    def release_all(self) -> None:
        self.auto = True
        while self._pending:
            self.release()

    async def step(self) -> None:
        """Let the engine reach its next sleep, then release it."""
        await self.next_sleep()
        self.release()


def _store(*nodes: tuple[str, float]) -> GraphStore:
    store = GraphStore()
    for type_id, y in nodes:
        store.add_node(type_id, Position(x=100, y=y))
    return store


class TestExecutionOrder:
    """Order is by vertical position, never by edges."""

    def test_sorted_by_y(self):
        """Nodes run top to bottom regardless of insertion order."""
        store = _store(("schedule", 400), ("trigger", 50), ("analyze", 200))
        order = execution_order(store.nodes())
        assert [node.type_id for node in order] == ["trigger", "analyze", "schedule"]

    def test_ties_keep_insertion_order(self):
        """Equal y values keep the order the nodes were added."""
        store = _store(("analyze", 100), ("trigger", 100), ("comment", 100))
        order = execution_order(store.nodes())
        assert [node.type_id for node in order] == ["analyze", "trigger", "comment"]

    def test_edges_do_not_change_order(self):
        """An edge pointing upward does not pull its target ahead."""
        store = _store(("trigger", 50), ("analyze", 300))
        store.connect("2", "1")
        order = execution_order(store.snapshot().nodes)
        assert [node.id for node in order] == ["1", "2"]

    def test_log_follows_order_for_ties(self):
        """Two nodes with identical y log in insertion order."""
        store = _store(("thumbnail", 120), ("schedule", 120))
        engine = ExecutionEngine(store, sleep=no_wait)
        asyncio.run(engine.execute())

        lines = engine.log.snapshot()
        assert lines[1].startswith("🎨 [Thumbnail Generator]")
        assert lines[3].startswith("📅 [Schedule Post]")


class TestRun:
    """End-to-end runs with a zero-delay sleeper."""

    def test_trigger_then_generate(self):
        """A trigger above a generate node produces seven lines in order."""
        store = _store(("generate", 300), ("trigger", 50))
        engine = ExecutionEngine(store, sleep=no_wait)

        result = asyncio.run(engine.execute())

        assert result.accepted
        assert result.record.status == RunStatus.completed
        assert engine.log.snapshot() == [
            START_BANNER,
            TRIGGER_LINE,
            *GENERATE_LINES,
            COMPLETION_BANNER,
        ]

    def test_line_counts_per_type(self):
        """Each built-in type emits its action line plus its sub-lines."""
        expected = {
            "trigger": 1,
            "analyze": 4,
            "generate": 4,
            "optimize": 3,
            "thumbnail": 2,
            "schedule": 2,
            "comment": 2,
            "analytics": 2,
        }
        for type_id, count in expected.items():
            engine = ExecutionEngine(_store((type_id, 10)), sleep=no_wait)
            asyncio.run(engine.execute())
            assert len(engine.log) == count + 2, type_id

    def test_unknown_type_uses_generic_line(self):
        """Unrecognized types log a single processing line."""
        engine = ExecutionEngine(_store(("upload", 10)), sleep=no_wait)
        asyncio.run(engine.execute())
        assert engine.log.snapshot() == [
            START_BANNER,
            "⚙️ [Custom Step] Processing...",
            COMPLETION_BANNER,
        ]

    def test_label_used_in_action_line(self):
        """The node's own label, not the type label, appears in the log."""
        store = GraphStore()
        store.add_node("trigger", Position(x=0, y=0), label="My Channel")
        engine = ExecutionEngine(store, sleep=no_wait)
        asyncio.run(engine.execute())
        assert engine.log.snapshot()[1] == "📺 [My Channel] Monitoring channel... Found 1 new video"

    def test_record_counts_steps(self):
        """The run record tracks how many steps ran."""
        engine = ExecutionEngine(_store(("trigger", 1), ("analyze", 2), ("comment", 3)), sleep=no_wait)
        result = asyncio.run(engine.execute())
        assert result.record.step_count == 3
        assert result.record.steps_completed == 3
        assert result.record.finished_at is not None
        assert result.record.current_node_id is None

    def test_second_run_replaces_log(self):
        """Only the latest run's lines remain after a second run."""
        store = _store(("trigger", 10))
        engine = ExecutionEngine(store, sleep=no_wait)

        async def scenario():
            await engine.execute()
            store.add_node("analytics", Position(x=0, y=500))
            await engine.execute()

        asyncio.run(scenario())

        lines = engine.log.snapshot()
        assert lines.count(START_BANNER) == 1
        assert lines.count(COMPLETION_BANNER) == 1
        assert len(lines) == 1 + 1 + 2 + 1

    def test_explicit_snapshot(self):
        """A snapshot can be passed without a store."""
        snapshot = _store(("trigger", 5)).snapshot()
        engine = ExecutionEngine(sleep=no_wait)
        result = asyncio.run(engine.execute(snapshot))
        assert result.accepted
        assert len(engine.log) == 3

    def test_no_store_no_snapshot(self):
        """run() without store or snapshot is a programming error."""
        engine = ExecutionEngine(sleep=no_wait)
        with pytest.raises(ValueError):
            asyncio.run(engine.run())


class TestRejections:
    """Requests that must not start a run."""

    def test_empty_graph(self):
        """An empty graph is rejected; status stays idle and the log empty."""
        engine = ExecutionEngine(GraphStore(), sleep=no_wait)
        result = asyncio.run(engine.run())

        assert not result.accepted
        assert result.reason == RejectReason.empty_graph
        assert engine.status == RunStatus.idle
        assert engine.log.snapshot() == []
        with pytest.raises(EmptyGraph):
            result.raise_if_rejected()

    def test_no_overlap_while_running(self):
        """A second request mid-run leaves the log and state untouched."""
        store = _store(("trigger", 10), ("analyze", 20))

        async def scenario():
            clock = ManualClock()
            engine = ExecutionEngine(store, sleep=clock.sleep)
            await engine.run()
            await clock.step()  # start delay
            await clock.step()  # first step delay
            await clock.next_sleep()

            assert engine.status == RunStatus.running
            before = engine.log.snapshot()
            record_before = engine.record

            result = await engine.run()

            assert not result.accepted
            assert result.reason == RejectReason.already_running
            assert engine.log.snapshot() == before
            assert engine.record == record_before
            with pytest.raises(AlreadyRunning):
                result.raise_if_rejected()

            clock.release_all()
            await engine.wait()
            return engine

        engine = asyncio.run(scenario())
        assert engine.status == RunStatus.completed

    def test_rejected_while_starting(self):
        """The start delay already counts as in progress."""

        async def scenario():
            clock = ManualClock()
            engine = ExecutionEngine(_store(("trigger", 1)), sleep=clock.sleep)
            await engine.run()
            assert engine.status == RunStatus.starting
            result = await engine.run()
            clock.release_all()
            await engine.wait()
            return result

        result = asyncio.run(scenario())
        assert result.reason == RejectReason.already_running


class TestStreaming:
    """Lines appear as steps happen, with waits only between steps."""

    def test_delays_and_streaming(self):
        """Start, per-step and finish delays are awaited in order; lines stream."""
        store = _store(("trigger", 10), ("thumbnail", 20))

        async def scenario():
            clock = ManualClock()
            engine = ExecutionEngine(store, sleep=clock.sleep)
            await engine.run()
            assert engine.log.snapshot() == [START_BANNER]

            await clock.step()  # start delay
            await clock.step()  # before step 1
            await clock.next_sleep()  # parked before step 2
            assert engine.log.snapshot() == [START_BANNER, TRIGGER_LINE]
            assert engine.record.steps_completed == 1

            await clock.step()
            await clock.step()  # finish delay
            await engine.wait()
            return clock, engine

        clock, engine = asyncio.run(scenario())
        assert clock.delays == [1.0, 0.8, 0.8, 0.5]
        assert engine.log.snapshot()[-1] == COMPLETION_BANNER

    def test_log_observer_sees_every_line(self):
        """Observers receive the reset and then each line in order."""
        engine = ExecutionEngine(_store(("analyze", 1)), sleep=no_wait)
        seen: list = []
        engine.log.subscribe(lambda line, reset: seen.append(line if line is not None else "<reset>"))

        asyncio.run(engine.execute())

        assert seen[0] == "<reset>"
        assert seen[1:] == engine.log.snapshot()

    def test_status_observer(self):
        """Status observers see starting, running, then completed."""
        engine = ExecutionEngine(_store(("trigger", 1), ("comment", 2)), sleep=no_wait)
        statuses: list[RunStatus] = []
        engine.subscribe(lambda record: statuses.append(record.status))

        asyncio.run(engine.execute())

        assert statuses[0] == RunStatus.starting
        assert RunStatus.running in statuses
        assert statuses[-1] == RunStatus.completed

    def test_broken_observer_does_not_stop_run(self):
        """An observer that raises is logged and ignored."""
        engine = ExecutionEngine(_store(("trigger", 1)), sleep=no_wait)

        def broken(line, reset):
            raise RuntimeError("display crashed")

        engine.log.subscribe(broken)
        result = asyncio.run(engine.execute())
        assert result.record.status == RunStatus.completed
        assert len(engine.log) == 3

    def test_custom_sink(self):
        """Any LogSink can stand in for the default log."""

        class RecordingSink:
            def __init__(self):
                self.lines: list[str] = []
                self.resets = 0

            def append(self, line):
                self.lines.append(line)

            def reset(self):
                self.resets += 1
                self.lines = []

            def snapshot(self):
                return list(self.lines)

            def lines_since(self, offset):
                return self.lines[offset:]

            def subscribe(self, observer):
                return lambda: None

        sink = RecordingSink()
        engine = ExecutionEngine(_store(("trigger", 1)), log=sink, sleep=no_wait)

        asyncio.run(engine.execute())

        assert engine.log is sink
        assert sink.resets == 1
        assert sink.lines == [START_BANNER, TRIGGER_LINE, COMPLETION_BANNER]


class TestSnapshotIsolation:
    """Edits during a run only affect the next run."""

    def test_edits_mid_run_are_ignored(self):
        store = _store(("trigger", 10), ("analyze", 20))

        async def scenario():
            clock = ManualClock()
            engine = ExecutionEngine(store, sleep=clock.sleep)
            await engine.run()
            await clock.step()

            store.add_node("analytics", Position(x=0, y=15))
            store.rename_node("2", "Renamed")
            store.move_node("2", Position(x=0, y=0))
            store.remove_node("1")

            clock.release_all()
            await engine.wait()
            return engine

        engine = asyncio.run(scenario())
        lines = engine.log.snapshot()
        assert lines[1] == TRIGGER_LINE
        assert lines[2] == "🤖 [AI Video Analysis] Analyzing video content with AI..."
        assert len(lines) == 1 + 1 + 4 + 1


class TestSupersede:
    """A new run may replace an in-flight one."""

    def test_supersede_cancels_old_run(self):
        """The old run ends cancelled and only the new run's lines remain."""
        store = _store(("trigger", 10), ("analyze", 20))

        async def scenario():
            clock = ManualClock()
            engine = ExecutionEngine(store, sleep=clock.sleep)
            seen: list[tuple[str, RunStatus]] = []
            engine.subscribe(lambda record: seen.append((record.run_id, record.status)))

            first = await engine.run()
            await clock.step()
            await clock.step()
            await clock.next_sleep()

            store.add_node("schedule", Position(x=0, y=30))
            second = await engine.run(supersede=True)

            clock.release_all()
            await engine.wait()
            return engine, first, second, seen

        engine, first, second, seen = asyncio.run(scenario())

        assert second.accepted
        assert first.record.run_id != second.record.run_id
        assert (first.record.run_id, RunStatus.cancelled) in seen
        assert engine.status == RunStatus.completed
        lines = engine.log.snapshot()
        assert lines.count(START_BANNER) == 1
        assert len(lines) == 1 + 1 + 4 + 2 + 1

    def test_supersede_during_start_delay(self):
        """Cancelling before the first step still reports the old run as cancelled."""

        async def scenario():
            clock = ManualClock()
            engine = ExecutionEngine(_store(("trigger", 1)), sleep=clock.sleep)
            seen: list[RunStatus] = []
            await engine.run()
            first_id = engine.record.run_id
            engine.subscribe(
                lambda record: seen.append(record.status) if record.run_id == first_id else None
            )
            await engine.run(supersede=True)
            clock.release_all()
            await engine.wait()
            return engine, seen

        engine, seen = asyncio.run(scenario())
        assert seen == [RunStatus.cancelled]
        assert engine.status == RunStatus.completed

    def test_overlapping_supersedes_leave_one_run(self):
        """Two superseding requests at once end with a single surviving run."""
        store = _store(("trigger", 10), ("analyze", 20))

        async def scenario():
            clock = ManualClock()
            engine = ExecutionEngine(store, sleep=clock.sleep)
            await engine.run()
            await clock.step()
            await clock.next_sleep()

            results = await asyncio.gather(
                engine.run(supersede=True),
                engine.run(supersede=True),
            )
            clock.release_all()
            await engine.wait()
            await asyncio.sleep(0)
            pending = [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]
            return engine, results, pending

        engine, results, pending = asyncio.run(scenario())

        assert all(result.accepted for result in results)
        assert pending == []
        assert engine.status == RunStatus.completed
        lines = engine.log.snapshot()
        assert lines.count(START_BANNER) == 1
        assert lines.count(COMPLETION_BANNER) == 1
        assert lines.count(TRIGGER_LINE) == 1
        assert len(lines) == len(set(lines)) == 1 + 1 + 4 + 1

    def test_cancel(self):
        """cancel() stops the run without starting another."""

        async def scenario():
            clock = ManualClock()
            engine = ExecutionEngine(_store(("trigger", 1)), sleep=clock.sleep)
            await engine.run()
            await clock.next_sleep()
            await engine.cancel()
            return engine

        engine = asyncio.run(scenario())
        assert engine.status == RunStatus.cancelled
        assert engine.log.snapshot() == [START_BANNER]


class TestStepFailures:
    """Behaviors that fail, retry, or time out."""

    def _engine(self, behavior, policy: StepPolicy) -> ExecutionEngine:
        behaviors = BehaviorTable()
        behaviors.register("upload", behavior, policy)
        store = _store(("trigger", 1), ("upload", 2), ("comment", 3))
        store.rename_node("2", "Uploader")
        return ExecutionEngine(store, behaviors=behaviors, sleep=no_wait)

    def test_abort_on_failure(self):
        """A failing step with abort ends the run as failed after its retries."""
        calls = []

        def upload(node):
            calls.append(node.id)
            raise RuntimeError("quota exceeded")

        engine = self._engine(upload, StepPolicy(retries=2, abort_on_failure=True))
        result = asyncio.run(engine.execute())

        assert len(calls) == 3
        assert result.record.status == RunStatus.failed
        assert "quota exceeded" in result.record.error
        assert engine.log.snapshot()[-2:] == [
            "   ✗ quota exceeded",
            FAILURE_BANNER.format(label="Uploader"),
        ]
        assert not any("Auto-Responder" in line for line in engine.log.snapshot())

    def test_continue_on_failure(self):
        """With abort disabled the remaining steps still run."""

        def upload(node):
            raise RuntimeError("quota exceeded")

        engine = self._engine(upload, StepPolicy(abort_on_failure=False))
        result = asyncio.run(engine.execute())

        lines = engine.log.snapshot()
        assert result.record.status == RunStatus.completed
        assert "   ✗ quota exceeded" in lines
        assert lines[-3].startswith("💬 [Auto-Responder]")
        assert lines[-1] == COMPLETION_BANNER

    def test_retry_then_succeed(self):
        """A step that fails once and then works logs its lines normally."""
        attempts = []

        async def upload(node):
            attempts.append(1)
            if len(attempts) == 1:
                raise ConnectionError("reset")
            return [f"⬆️ [{node.label}] Uploading video...", "   ✓ Uploaded"]

        engine = self._engine(upload, StepPolicy(retries=1))
        result = asyncio.run(engine.execute())

        assert result.record.status == RunStatus.completed
        assert "⬆️ [Uploader] Uploading video..." in engine.log.snapshot()
        assert len(attempts) == 2

    def test_timeout(self):
        """A coroutine behavior that overruns its timeout fails the step."""

        async def upload(node):
            await asyncio.sleep(5)
            return ["never"]

        engine = self._engine(upload, StepPolicy(timeout=0.01))
        result = asyncio.run(engine.execute())

        assert result.record.status == RunStatus.failed
        assert "never" not in engine.log.snapshot()
