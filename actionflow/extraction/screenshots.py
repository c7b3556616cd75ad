"""Screenshot marker helpers."""

import re
from typing import List, Tuple

SCREENSHOT_MARKER = "[SCREENSHOT]"

_NUMBERED_MARKER = re.compile(r"\[SCREENSHOT-(\d+)\]")


def number_screenshot_markers(text: str) -> Tuple[str, int]:
    """
    Renumber bare ``[SCREENSHOT]`` markers to ``[SCREENSHOT-1]``,
    ``[SCREENSHOT-2]``, ... in order of appearance.

    Returns:
        (numbered text, marker count)
    """
    parts = text.split(SCREENSHOT_MARKER)
    if len(parts) == 1:
        return text, 0

    numbered = [parts[0]]
    for index, part in enumerate(parts[1:], 1):
        numbered.append(f"[SCREENSHOT-{index}]")
        numbered.append(part)
    return "".join(numbered), len(parts) - 1


def find_screenshot_refs(text: str) -> List[int]:
    """1-based screenshot indices referenced by numbered markers in text"""
    refs: List[int] = []
    for match in _NUMBERED_MARKER.finditer(text):
        ref = int(match.group(1))
        if ref not in refs:
            refs.append(ref)
    return refs


def strip_screenshot_markers(text: str) -> str:
    """Remove numbered markers and collapse the whitespace they leave"""
    return re.sub(r"\s{2,}", " ", _NUMBERED_MARKER.sub("", text)).strip()
