"""What each node type "does" when the engine reaches it.

Behaviors are looked up by `type_id` in a `BehaviorTable`. The built-in ones
are log templates: an action line followed by indented confirmation lines.
Types without an entry use the generic template.
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from autoflow.errors import UnrecognizedType
from autoflow.models.graph import WorkflowNode
from autoflow.models.run import StepPolicy

START_BANNER = "🚀 Starting YouTube Automation Workflow..."
COMPLETION_BANNER = "✅ Workflow completed successfully!"
FAILURE_BANNER = "❌ Workflow stopped: [{label}] failed"
FAILURE_LINE = "   ✗ {error}"

# returns the lines for one step; may be a coroutine for behaviors doing real work
Behavior = Callable[[WorkflowNode], Sequence[str] | Awaitable[Sequence[str]]]


@dataclass(frozen=True)
class LogTemplate:
    """One action line plus zero or more confirmation sub-lines.

    `{label}` in the action line is replaced with the node's label.
    """

    action: str
    details: tuple[str, ...] = ()

    def __call__(self, node: WorkflowNode) -> list[str]:
        return [self.action.format(label=node.label), *self.details]


def _confirm(text: str) -> str:
    return f"   ✓ {text}"


GENERIC_TEMPLATE = LogTemplate("⚙️ [{label}] Processing...")

DEFAULT_TEMPLATES: dict[str, LogTemplate] = {
    "trigger": LogTemplate("📺 [{label}] Monitoring channel... Found 1 new video"),
    "analyze": LogTemplate(
        "🤖 [{label}] Analyzing video content with AI...",
        (
            _confirm("Detected topic: Tech Tutorial"),
            _confirm("Duration: 12:34"),
            _confirm("Sentiment: Positive"),
        ),
    ),
    "generate": LogTemplate(
        "✍️ [{label}] Generating optimized metadata...",
        (
            _confirm('Title: "10 Essential Tips for..."'),
            _confirm("Description generated (250 words)"),
            _confirm("Tags: 15 relevant tags added"),
        ),
    ),
    "optimize": LogTemplate(
        "🎯 [{label}] Running SEO optimization...",
        (
            _confirm("Keyword density optimized"),
            _confirm("Hashtags: #tech #tutorial #howto"),
        ),
    ),
    "thumbnail": LogTemplate(
        "🎨 [{label}] Creating custom thumbnail...",
        (_confirm("AI-generated thumbnail saved"),),
    ),
    "schedule": LogTemplate(
        "📅 [{label}] Scheduling video...",
        (_confirm("Scheduled for optimal time: 2 PM EST"),),
    ),
    "comment": LogTemplate(
        "💬 [{label}] Setting up auto-responder...",
        (_confirm("Monitoring comments every 5 minutes"),),
    ),
    "analytics": LogTemplate(
        "📊 [{label}] Generating analytics report...",
        (_confirm("Report sent to email"),),
    ),
}


class BehaviorTable:
    """Maps type ids to behaviors and their failure policies."""

    def __init__(
        self,
        behaviors: dict[str, Behavior] | None = None,
        default: Behavior = GENERIC_TEMPLATE,
        default_policy: StepPolicy | None = None,
    ) -> None:
        self._behaviors: dict[str, Behavior] = dict(DEFAULT_TEMPLATES if behaviors is None else behaviors)
        self._policies: dict[str, StepPolicy] = {}
        self.default = default
        self.default_policy = default_policy or StepPolicy()

    def register(self, type_id: str, behavior: Behavior, policy: StepPolicy | None = None) -> None:
        """Add or replace the behavior for `type_id`."""
        self._behaviors[type_id] = behavior
        if policy is not None:
            self._policies[type_id] = policy
        else:
            self._policies.pop(type_id, None)

    def lookup(self, type_id: str) -> Behavior:
        """Registered behavior for `type_id`. Raises UnrecognizedType on a miss."""
        try:
            return self._behaviors[type_id]
        except KeyError:
            raise UnrecognizedType(type_id) from None

    def resolve(self, type_id: str) -> tuple[Behavior, StepPolicy, bool]:
        """Behavior and policy for `type_id`; the bool is False when the default arm was used."""
        policy = self._policies.get(type_id, self.default_policy)
        try:
            return self.lookup(type_id), policy, True
        except UnrecognizedType:
            return self.default, policy, False

    def __contains__(self, type_id: object) -> bool:
        return type_id in self._behaviors
