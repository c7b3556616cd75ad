"""
Summary Action-Item Parser

Transcript providers ship their own ``action_items`` in the meeting summary,
either as a list of strings or as one formatted string where ``**Name**``
header lines group the items below them:

    **Lukas Sommer**
    Send the pricing sheet by Friday
    Book the venue

    **Ana**
    Review the budget

Header groups become trailing ``[ASSIGNEE:Name]`` tags, then every line goes
through the heuristic item parser.
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from ..common.schemas import ParsedActionItem
from .heuristic import parse_action_item_text

logger = logging.getLogger("actionflow.extraction.summary_parser")


def tag_action_item_lines(action_items: str) -> List[str]:
    """Split a formatted action-item string into tagged item lines"""
    tagged: List[str] = []
    current_assignee = ""

    for line in action_items.split("\n"):
        line = line.strip()
        if not line:
            continue

        if line.startswith("**") and line.endswith("**") and len(line) > 4:
            current_assignee = line[2:-2].strip()
            continue

        tagged.append(f"{line} [ASSIGNEE:{current_assignee}]" if current_assignee else line)

    return tagged


def parse_summary_action_items(
    action_items: Union[List[str], str, None],
    now: Optional[datetime] = None,
) -> List[ParsedActionItem]:
    """
    Parse a summary's action items.

    Args:
        action_items: List of item strings, or one formatted string
        now: Reference instant for due-date resolution

    Returns:
        Parsed items in source order (blank entries dropped)
    """
    if not action_items:
        return []

    if isinstance(action_items, str):
        lines = tag_action_item_lines(action_items)
    else:
        lines = [str(item) for item in action_items if item]

    items = []
    for line in lines:
        item = parse_action_item_text(line, now=now)
        if item:
            items.append(item)
    return items


def load_summary(raw: Optional[str]) -> Dict[str, Any]:
    """Decode a stored summary; malformed JSON yields an empty summary"""
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Stored summary is not valid JSON: %s", e)
        return {}
    return data if isinstance(data, dict) else {}
