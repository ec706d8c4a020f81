"""ID generation and timestamp utilities."""

import uuid
from datetime import datetime, timezone


def generate_run_id() -> str:
    """Generate a unique run ID (UUID4)."""
    return str(uuid.uuid4())


def edge_id(source: str, target: str) -> str:
    """Base edge id derived from its endpoints."""
    return f"edge-{source}-{target}"


def utc_timestamp() -> str:
    """Generate an ISO8601 UTC timestamp."""
    return datetime.now(timezone.utc).isoformat()
