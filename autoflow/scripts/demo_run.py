"""Build a sample YouTube automation workflow and run it, printing the log.

Usage:
    python -m autoflow.scripts.demo_run
    python -m autoflow.scripts.demo_run --types analyze generate schedule --fast
"""

import argparse
import asyncio

from autoflow.analysis.run_summary import format_summary, run_summary
from autoflow.config import load_settings
from autoflow.logging_setup import configure_logging
from autoflow.models.graph import Position
from autoflow.session import WorkflowSession

DEFAULT_TYPES = ["analyze", "generate", "optimize", "thumbnail", "schedule"]


def build_session(types: list[str], fast: bool) -> WorkflowSession:
    """Seeded trigger plus one node per type, stacked top to bottom and chained."""
    settings = load_settings()
    if fast:
        settings = settings.model_copy(update={"start_delay": 0, "step_delay": 0, "finish_delay": 0})
    session = WorkflowSession(settings=settings)

    previous = session.store.nodes()[-1] if len(session.store) else None
    for index, type_id in enumerate(types):
        node = session.add_node(type_id, Position(x=250, y=150 + index * 100))
        if previous is not None:
            session.connect(previous.id, node.id)
        previous = node
    return session


async def run_demo(types: list[str], fast: bool) -> WorkflowSession:
    session = build_session(types, fast)
    session.observe_log(lambda line, _reset: print(line) if line is not None else None)

    result = await session.run()
    if not result.accepted:
        print(f"Run rejected: {result.reason.value}")
        return session
    await session.engine.wait()
    return session


def main() -> None:
    parser = argparse.ArgumentParser(description="Run a sample automation workflow")
    parser.add_argument("--types", nargs="*", default=DEFAULT_TYPES, help="node types to add")
    parser.add_argument("--fast", action="store_true", help="skip the simulated delays")
    parser.add_argument("--summary", action="store_true", help="print a run summary at the end")
    args = parser.parse_args()

    configure_logging(load_settings().log_level)
    session = asyncio.run(run_demo(args.types, args.fast))

    if args.summary:
        print()
        print(format_summary(run_summary(session.graph(), session.log_lines(), session.engine.behaviors)))


if __name__ == "__main__":
    main()
