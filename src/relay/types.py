"""Domain types for the webhook relay."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

# Decoded JSON from the monitoring tool. Deliberately untyped: any shape is
# accepted and normalised by defaulting.
KenerEvent = Any


class NormalizedAlert(BaseModel):
    """Fully defaulted alert, ready to be rendered."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    alert_name: str = "Alert"
    severity: str = "unknown"
    status: str = "UNKNOWN"
    source: str = "Kener"
    timestamp: str
    description: str = ""
    metric: str = ""
    current_value: Any = None
    threshold: Any = None
    action_text: str = "Open"
    action_url: str = ""


class RenderedMessage(BaseModel):
    """Markup-safe message lines, consumed once by the dispatcher."""

    model_config = ConfigDict(frozen=True)

    lines: tuple[str, ...] = ()

    @property
    def text(self) -> str:
        return "\n".join(self.lines)
