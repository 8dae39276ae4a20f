"""Pure functions that render a NormalizedAlert as Telegram HTML."""

from __future__ import annotations

import datetime
import json
from typing import Any

from src.relay.types import NormalizedAlert, RenderedMessage

# ── Glyph mappings ──────────────────────────────────────────────

_STATUS_GLYPHS: dict[str, str] = {
    "TRIGGERED": "🚨",
    "RESOLVED": "✅",
}
_DEFAULT_STATUS_GLYPH = "ℹ️"

_SEVERITY_GLYPHS: dict[str, str] = {
    "critical": "🔴",
    "warning": "🟠",
}
_DEFAULT_SEVERITY_GLYPH = "🟢"


# ── Helpers ─────────────────────────────────────────────────────


def escape_html(text: str) -> str:
    """Escape the three characters Telegram's HTML parser treats as markup."""
    return (text or "").replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def status_glyph(status: str) -> str:
    return _STATUS_GLYPHS.get(status, _DEFAULT_STATUS_GLYPH)


def severity_glyph(severity: str) -> str:
    return _SEVERITY_GLYPHS.get(severity, _DEFAULT_SEVERITY_GLYPH)


def stringify_value(value: Any) -> str:
    """Render a metric detail value the way a JSON producer would write it."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def format_time(timestamp: str) -> str:
    """Render an ISO-8601 timestamp as e.g. ``18 Oct 2026, 14:05 UTC``.

    Naive timestamps are read as UTC. Anything unparseable is returned as-is.
    """
    try:
        parsed = datetime.datetime.fromisoformat(timestamp.strip())
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=datetime.UTC)
        utc = parsed.astimezone(datetime.UTC)
    except (ValueError, OverflowError):
        return timestamp
    return f"{utc.day} {utc:%b %Y, %H:%M} UTC"


def _field(label: str, value: str) -> str:
    return f"<b>{label}:</b> <code>{escape_html(value)}</code>"


# ── Formatter ───────────────────────────────────────────────────


def format_alert(alert: NormalizedAlert) -> RenderedMessage:
    """Convert a NormalizedAlert into a markup-safe Telegram message."""
    lines: list[str] = [
        f"<b>{escape_html(f'{status_glyph(alert.status)} {alert.alert_name}')}</b>",
    ]

    if alert.description:
        lines.append("")
        lines.append(escape_html(alert.description))

    lines.append("")
    lines.append(f"{severity_glyph(alert.severity)} {_field('Severity', alert.severity)}")
    lines.append(_field("Status", alert.status))

    if alert.source:
        lines.append(_field("Source", alert.source))
    if alert.metric:
        lines.append(_field("Monitor", alert.metric))
    if alert.current_value is not None:
        lines.append(_field("Current", stringify_value(alert.current_value)))
    if alert.threshold is not None:
        lines.append(_field("Threshold", stringify_value(alert.threshold)))
    if alert.timestamp:
        lines.append(_field("Time", format_time(alert.timestamp)))

    if alert.action_url:
        lines.append(
            f'\n<a href="{escape_html(alert.action_url)}">{escape_html(alert.action_text)}</a>'
        )

    return RenderedMessage(lines=tuple(lines))
