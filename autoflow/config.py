"""Runtime settings, read from the environment.

Values can also come from a `.env` file in the working directory.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator, model_validator


def _bounds(raw: str) -> tuple[float, float]:
    low, high = (part.strip() for part in raw.split(","))
    return float(low), float(high)


class Settings(BaseModel):
    """Delays, layout region, and API options."""

    # scheduler delays, in seconds
    start_delay: float = 1.0
    step_delay: float = 0.8
    finish_delay: float = 0.5

    # region used to place nodes added without a position
    layout_x: tuple[float, float] = (100.0, 500.0)
    layout_y: tuple[float, float] = (150.0, 550.0)

    seed_default: bool = True  # open with the channel monitor node
    strict_edges: bool = False  # reject edges with missing endpoints

    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    @field_validator("start_delay", "step_delay", "finish_delay")
    @classmethod
    def non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("delays must be >= 0")
        return value

    @field_validator("log_level")
    @classmethod
    def known_level(cls, value: str) -> str:
        value = value.upper()
        if value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return value

    @model_validator(mode="after")
    def ordered_bounds(self) -> "Settings":
        for name in ("layout_x", "layout_y"):
            low, high = getattr(self, name)
            if low >= high:
                raise ValueError(f"{name} must be 'low,high' with low < high")
        return self


def load_settings() -> Settings:
    """Build settings from environment variables (prefixed AUTOFLOW_)."""
    load_dotenv()

    values: dict = {}
    for field in ("start_delay", "step_delay", "finish_delay", "log_level"):
        raw = os.getenv(f"AUTOFLOW_{field.upper()}")
        if raw is not None:
            values[field] = raw
    for field in ("layout_x", "layout_y"):
        raw = os.getenv(f"AUTOFLOW_{field.upper()}")
        if raw is not None:
            values[field] = _bounds(raw)
    for field in ("seed_default", "strict_edges"):
        raw = os.getenv(f"AUTOFLOW_{field.upper()}")
        if raw is not None:
            values[field] = raw.lower() == "true"

    # comma-separated, or "*" for all (development only)
    values["cors_origins"] = os.getenv("CORS_ORIGINS", "*").split(",")

    return Settings(**values)
