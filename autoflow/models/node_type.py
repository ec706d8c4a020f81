"""Node type descriptors for the palette.

A descriptor is static data: it names a step type, how the palette shows it,
and which configuration fields the inspector may edit for it.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel


class FieldKind(str, Enum):
    """Widget kinds for editable config fields."""

    text = "text"
    number = "number"
    choice = "choice"


class ConfigField(BaseModel):
    """One editable option on a node type."""

    model_config = {"frozen": True}

    name: str
    label: str
    kind: FieldKind = FieldKind.text
    default: Any = None
    placeholder: str | None = None
    choices: tuple[str, ...] = ()
    unit: str | None = None  # e.g. "minutes"


class NodeTypeDescriptor(BaseModel):
    """a step type the user can drop onto the canvas."""

    model_config = {"frozen": True}

    id: str
    label: str
    color: str  # display hint only, never read by the engine
    description: str
    config_fields: tuple[ConfigField, ...] = ()
