"""Convert inline [PROGRESS:...] and [ACTION:...] markers into visual blocks."""

from __future__ import annotations

import re
from typing import Any

PROGRESS_RE = re.compile(r"\[PROGRESS:(.*?):(.*?):(.*?)\]")
ACTION_RE = re.compile(r"\[ACTION:(.*?):(.*?)\]")


def _number(raw: str) -> float | None:
    try:
        return float(raw.strip().lstrip("$").replace(",", ""))
    except ValueError:
        return None


def enhance_response(text: str) -> tuple[str, list[dict[str, Any]]]:
    """Strip markers from model output.

    Returns the display text and the visual blocks the markers described:
    every progress block first, then every link block, each group in order
    of appearance. Progress markers with non-numeric amounts are
    left untouched.
    """
    visuals: list[dict[str, Any]] = []

    def _progress(match: re.Match[str]) -> str:
        name, raw_current, raw_target = match.groups()
        current = _number(raw_current)
        target = _number(raw_target)
        if current is None or target is None:
            return match.group(0)
        percentage = min(100, round(current / target * 100)) if target else 0
        visuals.append({
            "type": "progress",
            "data": {"name": name, "current": current, "target": target, "percentage": percentage},
        })
        return f"{name}: ${raw_current} of ${raw_target} ({percentage}% complete)"

    def _action(match: re.Match[str]) -> str:
        label, url = match.groups()
        visuals.append({"type": "link", "data": {"text": label, "url": url}})
        return label

    text = PROGRESS_RE.sub(_progress, text)
    text = ACTION_RE.sub(_action, text)
    return text, visuals
