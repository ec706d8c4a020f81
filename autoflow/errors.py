"""Exceptions raised by autoflow.

Most conditions degrade gracefully (no-ops or rejected run results); these
types exist for strict modes and for step failures inside the engine.
"""


class AutoflowError(Exception):
    """Base class for autoflow errors."""


class InvalidReference(AutoflowError):
    """An operation named a node id that does not exist."""

    def __init__(self, node_id: str) -> None:
        super().__init__(f"Node not found: {node_id}")
        self.node_id = node_id


class EmptyGraph(AutoflowError):
    """A run was requested on a graph with no nodes."""


class AlreadyRunning(AutoflowError):
    """A run was requested while another run is in progress."""


class UnrecognizedType(AutoflowError):
    """No behavior template is registered for a node type."""

    def __init__(self, type_id: str) -> None:
        super().__init__(f"Unrecognized node type: {type_id}")
        self.type_id = type_id


class StepFailed(AutoflowError):
    """A step exhausted its retries."""

    def __init__(self, node_id: str, cause: BaseException) -> None:
        super().__init__(f"Step {node_id} failed: {cause}")
        self.node_id = node_id
        self.cause = cause
