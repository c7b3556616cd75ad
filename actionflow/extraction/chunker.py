"""
Transcript Chunker

Splits transcript text into bounded segments on line boundaries so each
segment fits one extraction request.
"""

import re
from typing import List

MAX_CHARS_PER_CHUNK = 6000

_LINE_SPLIT = re.compile(r"\n+")
_WHITESPACE = re.compile(r"\s+")


def chunk_transcript(text: str, max_chars: int = MAX_CHARS_PER_CHUNK) -> List[str]:
    """
    Split text into segments of at most ``max_chars`` characters.

    Lines are accumulated (joined by a newline) until the next line would
    overflow the budget. A single line longer than the budget is hard-split
    at the character boundary. Blank lines are dropped; no segment is empty.

    Args:
        text: Transcript text
        max_chars: Segment size budget

    Returns:
        Segments in original order
    """
    if max_chars <= 0:
        raise ValueError("max_chars must be positive")

    chunks: List[str] = []
    current = ""

    for line in _LINE_SPLIT.split(text or ""):
        if not line:
            continue

        candidate = f"{current}\n{line}" if current else line
        if len(candidate) <= max_chars:
            current = candidate
            continue

        if current:
            chunks.append(current)
            current = ""

        # Degenerate case: the line alone is over budget
        while len(line) > max_chars:
            chunks.append(line[:max_chars])
            line = line[max_chars:]
        current = line

    if current:
        chunks.append(current)

    return chunks


def normalize_action_text(text: str) -> str:
    """Case and whitespace fold used as the dedup key"""
    return _WHITESPACE.sub(" ", text or "").strip().lower()
