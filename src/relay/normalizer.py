"""Map loosely structured Kener webhook payloads onto NormalizedAlert.

Normalisation never rejects input: every missing or wrong-typed field falls
back to its default, so any decoded JSON value produces a usable alert.
"""

from __future__ import annotations

import datetime
from collections.abc import Mapping
from typing import Any

from src.relay.types import KenerEvent, NormalizedAlert

DEFAULT_ACTION_TEXT = "Open"


def _text(value: Any, default: str) -> str:
    if isinstance(value, str):
        return value or default
    # bool is an int subclass; true/false is not a meaningful name or id.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def _now_iso() -> str:
    now = datetime.datetime.now(datetime.UTC)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _pick_action(actions: Any) -> tuple[str, str]:
    """First action wins; an empty or missing list yields the default button."""
    if isinstance(actions, list) and actions:
        first = actions[0]
        if isinstance(first, Mapping):
            return (
                _text(first.get("text"), DEFAULT_ACTION_TEXT),
                _text(first.get("url"), ""),
            )
    return DEFAULT_ACTION_TEXT, ""


def normalize(event: KenerEvent) -> NormalizedAlert:
    """Convert an inbound event into a NormalizedAlert with every field set."""
    payload: Mapping[str, Any] = event if isinstance(event, Mapping) else {}
    details = payload.get("details")
    if not isinstance(details, Mapping):
        details = {}

    action_text, action_url = _pick_action(payload.get("actions"))

    return NormalizedAlert(
        id=_text(payload.get("id"), ""),
        alert_name=_text(payload.get("alert_name"), "Alert"),
        severity=_text(payload.get("severity"), "unknown"),
        status=_text(payload.get("status"), "UNKNOWN"),
        source=_text(payload.get("source"), "Kener"),
        timestamp=_text(payload.get("timestamp"), "") or _now_iso(),
        description=_text(payload.get("description"), ""),
        metric=_text(details.get("metric"), ""),
        current_value=details.get("current_value"),
        threshold=details.get("threshold"),
        action_text=action_text,
        action_url=action_url,
    )
