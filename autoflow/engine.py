"""Simulated execution of a workflow graph.

A run walks one snapshot of the graph and streams log lines describing each
step. Execution order is the nodes sorted by vertical canvas position
(top to bottom), ties kept in insertion order. Edges do not gate or reorder
execution: the layout the user drew is the order.

Run lifecycle:

    idle -> starting -> running -> completed
    running -> failed          (a step failed with abort_on_failure)
    starting/running -> cancelled   (superseded by a newer run)

All waiting goes through an injected `sleep` coroutine so tests can drive a
run without wall-clock delays. Nothing suspends while a step's lines are
being appended, so lines from different steps never interleave.
"""

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Iterable

from autoflow.adapters.sinks import ExecutionLog, LogSink
from autoflow.behaviors import (
    COMPLETION_BANNER,
    FAILURE_BANNER,
    FAILURE_LINE,
    START_BANNER,
    Behavior,
    BehaviorTable,
)
from autoflow.errors import StepFailed
from autoflow.models.graph import GraphSnapshot, WorkflowNode
from autoflow.models.run import RejectReason, RunRecord, RunResult, RunStatus, StepPolicy
from autoflow.store import GraphStore
from autoflow.utils.identifiers import generate_run_id, utc_timestamp

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]
StatusObserver = Callable[[RunRecord], None]


def execution_order(nodes: Iterable[WorkflowNode]) -> list[WorkflowNode]:
    """Nodes sorted by ascending y. `sorted` is stable, so equal y keeps input order."""
    return sorted(nodes, key=lambda node: node.position.y)


class ExecutionEngine:
    """Runs graph snapshots one at a time and owns the execution log."""

    def __init__(
        self,
        store: GraphStore | None = None,
        behaviors: BehaviorTable | None = None,
        log: LogSink | None = None,
        start_delay: float = 1.0,
        step_delay: float = 0.8,
        finish_delay: float = 0.5,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        """Create an idle engine.

        Args:
            store: graph to snapshot when `run()` is called without a snapshot
            behaviors: per-type behaviors; defaults to the built-in templates
            log: sink for run output; a fresh one is created if omitted
            start_delay: wait after the start banner, in seconds
            step_delay: wait before each step, in seconds
            finish_delay: wait before the completion banner, in seconds
            sleep: coroutine used for every wait (inject a fake in tests)
        """
        self.store = store
        self.behaviors = behaviors or BehaviorTable()
        self.log: LogSink = log if log is not None else ExecutionLog()
        self.start_delay = start_delay
        self.step_delay = step_delay
        self.finish_delay = finish_delay
        self._sleep = sleep
        self._record: RunRecord | None = None
        self._task: asyncio.Task | None = None
        self._observers: list[StatusObserver] = []
        # serializes the check, cancel and start steps of run()
        self._replace_lock = asyncio.Lock()

    # observation

    @property
    def status(self) -> RunStatus:
        return self._record.status if self._record else RunStatus.idle

    @property
    def record(self) -> RunRecord | None:
        """Copy of the latest run's record, or None before the first run."""
        return self._record.model_copy() if self._record else None

    @property
    def is_running(self) -> bool:
        return self.status.is_active

    def subscribe(self, observer: StatusObserver) -> Callable[[], None]:
        """Register an observer for status changes. Returns an unsubscribe callable."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    # control

    async def run(
        self,
        snapshot: GraphSnapshot | None = None,
        supersede: bool = False,
    ) -> RunResult:
        """Start a run over `snapshot` (or the store's current graph).

        Returns as soon as the run has started; await `wait()` for the end.
        A request is rejected, leaving the log and status untouched, when the
        graph is empty or a run is in progress and `supersede` is False. With
        `supersede`, the in-flight run is cancelled at its next wait and the
        new run starts only once that cancellation has finished.
        """
        if snapshot is None:
            if self.store is None:
                raise ValueError("run() needs a snapshot when the engine has no store")
            snapshot = self.store.snapshot()

        async with self._replace_lock:
            if self.is_running and not supersede:
                logger.info("Run rejected: a run is already in progress")
                return RunResult(accepted=False, reason=RejectReason.already_running, record=self.record)
            if not snapshot.nodes:
                logger.info("Run rejected: the graph has no nodes")
                return RunResult(accepted=False, reason=RejectReason.empty_graph, record=self.record)

            if self.is_running:
                await self._cancel_current()

            order = execution_order(snapshot.nodes)
            self._record = RunRecord(
                run_id=generate_run_id(),
                status=RunStatus.starting,
                started_at=utc_timestamp(),
                step_count=len(order),
            )
            self.log.reset()
            self.log.append(START_BANNER)
            logger.info("Run %s started with %d step(s)", self._record.run_id, len(order))
            self._publish()

            self._task = asyncio.get_running_loop().create_task(self._drive(self._record, order))
            return RunResult(accepted=True, record=self.record)

    async def wait(self) -> RunRecord | None:
        """Wait for the current run to finish and return its record."""
        task = self._task
        if task is not None:
            await asyncio.wait({task})
            if not task.cancelled():
                task.result()
        return self.record

    async def execute(self, snapshot: GraphSnapshot | None = None) -> RunResult:
        """Run to completion. Rejections are returned the same way as `run()`."""
        result = await self.run(snapshot)
        if result.accepted:
            await self.wait()
            result.record = self.record
        return result

    async def cancel(self) -> None:
        """Cancel the in-flight run, if any, and wait until it has stopped."""
        async with self._replace_lock:
            if self.is_running:
                await self._cancel_current()

    # internals

    async def _cancel_current(self) -> None:
        """Cancel the task and record that are current now. Callers hold the replace lock."""
        task, record = self._task, self._record
        if task is None or task.done():
            return
        logger.info("Cancelling run %s", record.run_id if record else "?")
        task.cancel()
        await asyncio.wait({task})
        # a task cancelled before its first step never reaches its handler
        if record is not None and record.status.is_active:
            record.finished_at = utc_timestamp()
            self._transition(record, RunStatus.cancelled)

    async def _drive(self, record: RunRecord, order: list[WorkflowNode]) -> None:
        try:
            await self._sleep(self.start_delay)
            self._transition(record, RunStatus.running)

            for node in order:
                await self._sleep(self.step_delay)
                behavior, policy, known = self.behaviors.resolve(node.type_id)
                if not known:
                    logger.debug("No behavior for type %r; using generic template", node.type_id)
                record.current_node_id = node.id
                try:
                    lines = await self._execute_step(node, behavior, policy)
                except StepFailed as exc:
                    self.log.append(FAILURE_LINE.format(error=exc.cause))
                    if policy.abort_on_failure:
                        self.log.append(FAILURE_BANNER.format(label=node.label))
                        record.error = str(exc)
                        record.finished_at = utc_timestamp()
                        logger.warning("Run %s failed at node %s", record.run_id, node.id)
                        self._transition(record, RunStatus.failed)
                        return
                    logger.warning("Node %s failed; continuing", node.id)
                else:
                    for line in lines:
                        self.log.append(line)
                record.steps_completed += 1
                logger.debug("Step %d/%d done (node %s)", record.steps_completed, record.step_count, node.id)
                self._publish()

            await self._sleep(self.finish_delay)
            record.current_node_id = None
            self.log.append(COMPLETION_BANNER)
            record.finished_at = utc_timestamp()
            logger.info("Run %s completed", record.run_id)
            self._transition(record, RunStatus.completed)
        except asyncio.CancelledError:
            record.finished_at = utc_timestamp()
            logger.info("Run %s cancelled", record.run_id)
            self._transition(record, RunStatus.cancelled)
            raise

    async def _execute_step(
        self,
        node: WorkflowNode,
        behavior: Behavior,
        policy: StepPolicy,
    ) -> list[str]:
        """Call the behavior, retrying per policy. Raises StepFailed when out of attempts.

        The timeout applies only to coroutine behaviors.
        """
        attempts = policy.retries + 1
        last_error: Exception | None = None
        for attempt in range(1, attempts + 1):
            try:
                result = behavior(node)
                if inspect.isawaitable(result):
                    if policy.timeout is not None:
                        result = await asyncio.wait_for(result, policy.timeout)
                    else:
                        result = await result
                return list(result)
            except Exception as exc:
                last_error = exc
                logger.warning(
                    "Node %s attempt %d/%d failed: %r", node.id, attempt, attempts, exc
                )
        raise StepFailed(node.id, last_error)

    def _transition(self, record: RunRecord, status: RunStatus) -> None:
        record.status = status
        if record is self._record:
            self._publish()

    def _publish(self) -> None:
        if self._record is None:
            return
        snapshot = self._record.model_copy()
        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception:
                logger.exception("Status observer %r failed", observer)
