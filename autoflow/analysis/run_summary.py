"""Basic statistics for a run: what was executed, in which order.

Works from the graph snapshot and the log the run produced, so it can be
computed at any point, including mid-run.
"""

from collections import Counter
from dataclasses import dataclass, field

from autoflow.behaviors import COMPLETION_BANNER, START_BANNER, BehaviorTable
from autoflow.engine import execution_order
from autoflow.models.graph import GraphSnapshot


@dataclass
class StepSummary:
    """One planned step."""

    position: int
    node_id: str
    type_id: str
    label: str
    recognized: bool


@dataclass
class RunSummary:
    """Summary of a run over one snapshot."""

    steps: list[StepSummary]
    steps_by_type: dict[str, int] = field(default_factory=dict)
    unrecognized_types: list[str] = field(default_factory=list)
    edge_count: int = 0
    dangling_edges: int = 0
    line_count: int = 0
    started: bool = False
    completed: bool = False


def run_summary(
    snapshot: GraphSnapshot,
    log: list[str],
    behaviors: BehaviorTable | None = None,
) -> RunSummary:
    """Summarize the planned order of `snapshot` and the state of `log`."""
    behaviors = behaviors or BehaviorTable()
    order = execution_order(snapshot.nodes)

    steps = [
        StepSummary(
            position=index,
            node_id=node.id,
            type_id=node.type_id,
            label=node.label,
            recognized=node.type_id in behaviors,
        )
        for index, node in enumerate(order)
    ]
    counts = Counter(step.type_id for step in steps)

    # keep first-seen order
    unrecognized: list[str] = []
    for step in steps:
        if not step.recognized and step.type_id not in unrecognized:
            unrecognized.append(step.type_id)

    return RunSummary(
        steps=steps,
        steps_by_type=dict(counts),
        unrecognized_types=unrecognized,
        edge_count=len(snapshot.edges),
        dangling_edges=snapshot.dangling_edges,
        line_count=len(log),
        started=bool(log) and log[0] == START_BANNER,
        completed=bool(log) and log[-1] == COMPLETION_BANNER,
    )


def format_summary(summary: RunSummary) -> str:
    """Human-readable rendering of a summary."""
    lines = [f"Steps: {len(summary.steps)}"]
    for step in summary.steps:
        marker = "" if step.recognized else " (generic)"
        lines.append(f"  {step.position + 1}. [{step.node_id}] {step.label} <{step.type_id}>{marker}")
    if summary.unrecognized_types:
        lines.append(f"Unrecognized types: {', '.join(summary.unrecognized_types)}")
    lines.append(f"Edges: {summary.edge_count} ({summary.dangling_edges} dangling)")
    lines.append(f"Log lines: {summary.line_count}")
    state = "completed" if summary.completed else "started" if summary.started else "not started"
    lines.append(f"State: {state}")
    return "\n".join(lines)
