# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

"""
Usage report rendering.

render() is pure: it turns a UsageSnapshot into a rich Text, either plain
(no styling, one fact per line) or fancy (bars, colors, summary hint).
Missing data never raises; it degrades to placeholders.
"""

import math
from enum import Enum
from typing import List, Optional

from rich.text import Text

from .core.types import RateWindow, UsageSnapshot


# =============================================================================
# DISPLAY CONFIGURATION
# =============================================================================

BAR_WIDTH = 28
RULE_WIDTH = 67
LABEL_WIDTH = 18

BAR_FILLED = "█"
BAR_EMPTY = "░"
PLACEHOLDER = "—"

# (plain label, fancy label)
PRIMARY_LABELS = ("5hr window", "5-hour session")
SECONDARY_LABELS = ("7day window", "7-day rolling")

# Severity thresholds (inclusive)
LIMIT_PCT = 100.0
CRITICAL_PCT = 90.0
ELEVATED_PCT = 70.0


class RenderMode(str, Enum):
    PLAIN = "plain"
    FANCY = "fancy"


class SummaryTier(str, Enum):
    LIMIT_REACHED = "limit_reached"
    NEARLY_AT_LIMIT = "nearly_at_limit"
    ELEVATED = "elevated"
    PLENTY = "plenty"


# tier -> (icon, style, message)
SUMMARY_DISPLAY = {
    SummaryTier.LIMIT_REACHED: (
        "✗", "bold red", "Limit reached — check your reset time above."
    ),
    SummaryTier.NEARLY_AT_LIMIT: (
        "⚠", "bold red", "Nearly at your limit — check reset time above."
    ),
    SummaryTier.ELEVATED: (
        "△", "yellow", "Usage is elevated — consider pacing your session."
    ),
    SummaryTier.PLENTY: (
        "✓", "green", "Looking good — plenty of capacity remaining."
    ),
}


# =============================================================================
# FORMATTING HELPERS
# =============================================================================


def severity_style(pct: float) -> str:
    """Color for a usage percentage."""
    if pct >= CRITICAL_PCT:
        return "bold red"
    elif pct >= ELEVATED_PCT:
        return "yellow"
    return "green"


def filled_cells(pct: float, width: int = BAR_WIDTH) -> int:
    """Number of filled bar cells, rounded half up and clamped to [0, width]."""
    if math.isnan(pct) or pct <= 0:
        return 0
    if pct >= 100:
        return width
    return min(int(pct / 100 * width + 0.5), width)


def usage_bar(pct: float, width: int = BAR_WIDTH) -> Text:
    """Create a colored glyph progress bar."""
    filled = filled_cells(pct, width)
    return Text(
        BAR_FILLED * filled + BAR_EMPTY * (width - filled), style=severity_style(pct)
    )


def humanize_reset(reset_secs: Optional[int]) -> str:
    """
    Format seconds-until-reset with the two most significant units.

    Examples:
        None -> "—", 0 -> "now", 540 -> "in 9m",
        15120 -> "in 4h 12m", 183600 -> "in 2d 3h"
    """
    if reset_secs is None:
        return PLACEHOLDER
    if reset_secs == 0:
        return "now"
    mins = reset_secs // 60
    hours = mins // 60
    days = hours // 24
    if days > 0:
        return f"in {days}d {hours % 24}h"
    elif hours > 0:
        return f"in {hours}h {mins % 60}m"
    return f"in {mins}m"


def _reset_style(reset_secs: Optional[int]) -> str:
    if reset_secs is None:
        return "dim"
    if reset_secs == 0:
        return "green"
    if reset_secs < 3600:
        return "yellow"
    return ""


def _used(window: RateWindow) -> float:
    """Used percent with unknown or NaN values read as 0."""
    pct = window.used_percent
    if pct is None or math.isnan(pct):
        return 0.0
    return pct


def _window_pct(window: RateWindow) -> float:
    return max(min(_used(window), LIMIT_PCT), 0.0)


def summary_tier(snapshot: UsageSnapshot) -> SummaryTier:
    """Pick the closing hint from the busiest window (missing windows count as 0)."""
    windows = [snapshot.primary_window, snapshot.secondary_window]
    highest = max(
        [_used(w) for w in windows if w is not None], default=0.0
    )
    if snapshot.limit_reached or highest >= LIMIT_PCT:
        return SummaryTier.LIMIT_REACHED
    elif highest >= CRITICAL_PCT:
        return SummaryTier.NEARLY_AT_LIMIT
    elif highest >= ELEVATED_PCT:
        return SummaryTier.ELEVATED
    return SummaryTier.PLENTY


def _plan_name(snapshot: UsageSnapshot) -> str:
    return (snapshot.plan_type or "unknown").upper()


# =============================================================================
# PLAIN MODE
# =============================================================================


def _plain_window(label: str, window: Optional[RateWindow]) -> str:
    if window is None:
        return f"{label}: N/A"
    reset = (
        f"{window.reset_after_seconds}s"
        if window.reset_after_seconds is not None
        else PLACEHOLDER
    )
    return f"{label}: {_window_pct(window):.1f}% used  Resets in: {reset}"


def render_plain(snapshot: UsageSnapshot) -> Text:
    lines: List[str] = [
        f"Plan: {_plan_name(snapshot)}",
        _plain_window(PRIMARY_LABELS[0], snapshot.primary_window),
        _plain_window(SECONDARY_LABELS[0], snapshot.secondary_window),
    ]
    if snapshot.limit_reached:
        lines.append("Status: LIMIT REACHED")
    return Text("\n".join(lines))


# =============================================================================
# FANCY MODE
# =============================================================================


def _fancy_window(label: str, window: Optional[RateWindow]) -> Text:
    line = Text("  ")
    if window is None:
        line.append(f"{label:<{LABEL_WIDTH}} ")
        line.append("not available", style="dim")
        return line

    pct = _window_pct(window)
    line.append(f"{label:<{LABEL_WIDTH}}", style="bold")
    line.append(" ")
    line.append_text(usage_bar(pct))
    line.append(" ")
    line.append(f"{pct:5.1f}%", style=severity_style(pct))
    line.append(" resets ")
    line.append(
        humanize_reset(window.reset_after_seconds),
        style=_reset_style(window.reset_after_seconds),
    )
    return line


def render_fancy(snapshot: UsageSnapshot) -> Text:
    rule = Text("  ").append("─" * RULE_WIDTH, style="dim")

    header = Text("  ")
    header.append("◆", style="bold cyan")
    header.append(" OpenAI ")
    header.append(_plan_name(snapshot), style="bold yellow")
    header.append(" Plan — Codex Usage Limits")

    icon, style, message = SUMMARY_DISPLAY[summary_tier(snapshot)]
    summary = Text("  ").append(icon, style=style).append(f" {message}")

    lines = [
        header,
        rule,
        _fancy_window(PRIMARY_LABELS[1], snapshot.primary_window),
        _fancy_window(SECONDARY_LABELS[1], snapshot.secondary_window),
        rule,
        Text(""),
        summary,
    ]
    return Text("\n").join(lines)


def render(snapshot: UsageSnapshot, mode: RenderMode = RenderMode.FANCY) -> Text:
    """Render a usage snapshot in the given mode."""
    if mode is RenderMode.PLAIN:
        return render_plain(snapshot)
    return render_fancy(snapshot)
