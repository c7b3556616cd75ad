"""
Actionflow Extraction

Transcript text in, deduplicated ParsedActionItems out.
"""

from .chunker import MAX_CHARS_PER_CHUNK, chunk_transcript, normalize_action_text
from .date_resolver import extract_due_date_from_text, resolve_due_date
from .heuristic import (
    ACTION_INTENT_RULES,
    HEURISTIC_MAX_ACTIONS,
    NON_ACTION_RULES,
    Rule,
    extract_heuristic,
    is_action_sentence,
    parse_action_item_text,
)
from .llm_extractor import ActionExtractor, ExtractionOutcome
from .screenshots import number_screenshot_markers
from .summary_parser import load_summary, parse_summary_action_items

__all__ = [
    "MAX_CHARS_PER_CHUNK",
    "chunk_transcript",
    "normalize_action_text",
    "extract_due_date_from_text",
    "resolve_due_date",
    "ACTION_INTENT_RULES",
    "HEURISTIC_MAX_ACTIONS",
    "NON_ACTION_RULES",
    "Rule",
    "extract_heuristic",
    "is_action_sentence",
    "parse_action_item_text",
    "ActionExtractor",
    "ExtractionOutcome",
    "number_screenshot_markers",
    "load_summary",
    "parse_summary_action_items",
]
