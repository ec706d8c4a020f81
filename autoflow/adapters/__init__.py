"""Adapters for streaming execution output."""

from autoflow.adapters.sinks import ExecutionLog, LogObserver, LogSink

__all__ = [
    "ExecutionLog",
    "LogObserver",
    "LogSink",
]
