"""HTTP API exposing a workflow session to the canvas UI."""
