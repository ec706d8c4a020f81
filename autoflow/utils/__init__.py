"""Utility functions for autoflow."""

from autoflow.utils.identifiers import (
    edge_id,
    generate_run_id,
    utc_timestamp,
)

__all__ = [
    "edge_id",
    "generate_run_id",
    "utc_timestamp",
]
