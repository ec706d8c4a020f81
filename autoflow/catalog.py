"""Static registry of node types shown in the palette.

The default catalog holds the YouTube automation steps. A `Catalog` can be
built from any descriptor list, so adding a step type is a data change.
"""

from typing import Any, Iterable

from autoflow.models.graph import WorkflowNode
from autoflow.models.node_type import ConfigField, FieldKind, NodeTypeDescriptor

GENERIC_TYPE = NodeTypeDescriptor(
    id="custom",
    label="Custom Step",
    color="#6b7280",
    description="Step without a registered type",
)

DEFAULT_NODE_TYPES: tuple[NodeTypeDescriptor, ...] = (
    NodeTypeDescriptor(
        id="trigger",
        label="YouTube Trigger",
        color="#ef4444",
        description="Monitor channel for new videos",
        config_fields=(
            ConfigField(name="channel_id", label="Channel ID", placeholder="UC..."),
            ConfigField(
                name="check_interval",
                label="Check Interval",
                kind=FieldKind.number,
                default=15,
                unit="minutes",
            ),
        ),
    ),
    NodeTypeDescriptor(
        id="analyze",
        label="AI Video Analysis",
        color="#3b82f6",
        description="Analyze video content with AI",
    ),
    NodeTypeDescriptor(
        id="generate",
        label="Generate Content",
        color="#8b5cf6",
        description="Create descriptions, tags, titles",
        config_fields=(
            ConfigField(
                name="model",
                label="AI Model",
                kind=FieldKind.choice,
                default="GPT-4",
                choices=("GPT-4", "Claude", "Gemini"),
            ),
            ConfigField(
                name="tone",
                label="Tone",
                kind=FieldKind.choice,
                default="Professional",
                choices=("Professional", "Casual", "Engaging"),
            ),
        ),
    ),
    NodeTypeDescriptor(
        id="schedule",
        label="Schedule Post",
        color="#10b981",
        description="Schedule video publication",
    ),
    NodeTypeDescriptor(
        id="optimize",
        label="SEO Optimizer",
        color="#f59e0b",
        description="Optimize for search rankings",
    ),
    NodeTypeDescriptor(
        id="thumbnail",
        label="Thumbnail Generator",
        color="#ec4899",
        description="AI-generated thumbnails",
    ),
    NodeTypeDescriptor(
        id="comment",
        label="Auto-Responder",
        color="#06b6d4",
        description="Auto-reply to comments",
    ),
    NodeTypeDescriptor(
        id="analytics",
        label="Analytics Report",
        color="#6366f1",
        description="Generate performance reports",
    ),
)


class Catalog:
    """Ordered, read-only lookup of node type descriptors."""

    def __init__(self, descriptors: Iterable[NodeTypeDescriptor] = DEFAULT_NODE_TYPES) -> None:
        self._types: dict[str, NodeTypeDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.id in self._types:
                raise ValueError(f"Duplicate node type: {descriptor.id}")
            self._types[descriptor.id] = descriptor

    def list_types(self) -> list[NodeTypeDescriptor]:
        """All descriptors, in palette order."""
        return list(self._types.values())

    def describe(self, type_id: str) -> NodeTypeDescriptor | None:
        return self._types.get(type_id)

    def describe_or_generic(self, type_id: str) -> NodeTypeDescriptor:
        """Descriptor for display defaults; unknown types get the generic one."""
        return self._types.get(type_id, GENERIC_TYPE)

    def config_fields(self, type_id: str) -> list[ConfigField]:
        descriptor = self._types.get(type_id)
        return list(descriptor.config_fields) if descriptor else []

    def default_config(self, type_id: str) -> dict[str, Any]:
        """Defaults from the type's schema; fields without a default are left out."""
        return {
            field.name: field.default
            for field in self.config_fields(type_id)
            if field.default is not None
        }

    def effective_config(self, node: WorkflowNode) -> dict[str, Any]:
        """The node's explicit config laid over its type defaults."""
        return {**self.default_config(node.type_id), **node.config}

    def __contains__(self, type_id: object) -> bool:
        return type_id in self._types

    def __len__(self) -> int:
        return len(self._types)


default_catalog = Catalog()
