"""
Heuristic Action Extractor

Deterministic, pattern-based fallback used when no extraction model is
configured or the model finds nothing.

Pipeline per transcript:
1. Line scan: timestamps/chapter headings are skipped, ``Speaker: text``
   prefixes and ``**Name**`` header lines update speaker state
2. Sentence split (>= 10 characters)
3. NON_ACTION_RULES reject a sentence on the first match
4. ACTION_INTENT_RULES accept a sentence on the first match
5. Assignee, due date, priority and screenshot refs are parsed per item

Each rule is a named, independently testable predicate.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Set

from ..common.schemas import ParsedActionItem
from .chunker import normalize_action_text
from .date_resolver import extract_due_date_from_text
from .screenshots import find_screenshot_refs, strip_screenshot_markers

HEURISTIC_MAX_ACTIONS = 25
MIN_SENTENCE_CHARS = 10


@dataclass(frozen=True)
class Rule:
    """Named sentence predicate"""
    name: str
    predicate: Callable[[str], bool]

    def matches(self, sentence: str) -> bool:
        return self.predicate(sentence)


def _pattern(regex: str, flags: int = re.IGNORECASE) -> Callable[[str], bool]:
    compiled = re.compile(regex, flags)
    return lambda sentence: compiled.search(sentence) is not None


# ============================================================================
# Rules
# ============================================================================

IMPERATIVE_VERBS = (
    "send", "schedule", "review", "fix", "update", "create", "prepare",
    "draft", "write", "call", "email", "share", "set up", "follow up",
    "check", "finish", "complete", "book", "organize", "plan", "submit",
    "reach out", "contact", "investigate", "look into", "make sure",
    "ensure", "add", "remove", "test", "deploy", "document", "confirm",
    "arrange", "order", "buy", "pay", "remind", "research", "sync",
    "pick up", "clean up", "file", "finalize", "publish", "merge",
)

NON_ACTION_RULES = [
    Rule("question", lambda s: s.rstrip().endswith("?")),
    Rule(
        "heading",
        _pattern(r"^(?:next steps?|action items?|wrap[- ]?up|summary|agenda|"
                 r"key takeaways|notes|outline)\s*:?\s*$"),
    ),
    Rule(
        "interrogative_opener",
        _pattern(r"^(?:what|why|how|when|where|who|whom|whose|which|is|are|was|were|"
                 r"did|does|do (?:you|we|they|i)|have (?:you|we|they))\b"),
    ),
    Rule(
        "greeting",
        _pattern(r"^(?:hi|hello|hey|good (?:morning|afternoon|evening)|thanks|thank you|"
                 r"bye|goodbye|see you|welcome|nice to (?:meet|see))\b"),
    ),
]

ACTION_INTENT_RULES = [
    Rule(
        "explicit_marker",
        _pattern(r"\b(?:action items?|todo|to-do|follow[- ]up|next step)\b"),
    ),
    Rule(
        "imperative_verb",
        _pattern(r"^(?:please\s+)?(?:" + "|".join(re.escape(v) for v in IMPERATIVE_VERBS) + r")\b"),
    ),
    Rule(
        "first_person_commitment",
        _pattern(r"\b(?:i'll|i will|i'm going to|i am going to|i need to|i have to|"
                 r"i can|let me)\b"),
    ),
    Rule(
        "group_commitment",
        _pattern(r"\b(?:we'll|we will|we should|we need to|we must|let's|need to|"
                 r"needs to|have to|has to|must)\b"),
    ),
    Rule(
        "named_commitment",
        _pattern(r"\b[A-Z][a-z]+\s+(?:will|should|needs to|must)\b", 0),
    ),
    Rule(
        "deadline",
        _pattern(r"\bby (?:eod|eow|end of (?:the )?(?:day|week)|tomorrow|tonight|"
                 r"monday|tuesday|wednesday|thursday|friday|next week)\b"),
    ),
]


def is_action_sentence(sentence: str) -> bool:
    """Non-action rules veto first; then any intent rule accepts"""
    if any(rule.matches(sentence) for rule in NON_ACTION_RULES):
        return False
    return any(rule.matches(sentence) for rule in ACTION_INTENT_RULES)


# ============================================================================
# Field parsing
# ============================================================================

_ASSIGNEE_TAG = re.compile(r"\s*\[ASSIGNEE:([^\]]+)\]\s*$")
_MENTION = re.compile(r"@(\w+)")
_NAMED_COMMITMENT = re.compile(r"\b([A-Z][a-z]+)\s+(?:will|should|needs to|must)\b")
_FIRST_PERSON = re.compile(
    r"\b(?:i'll|i will|i'm going to|i am going to|i need to|i have to|i can|let me)\b",
    re.IGNORECASE,
)
_FIRST_PERSON_LEAD = re.compile(
    r"^(?:(?:ok(?:ay)?|so|and|alright),?\s+)?"
    r"(?:i'll|i will|i'm going to|i am going to|i need to|i have to|i should|i can|"
    r"let me|we'll|we will|we need to|we should|let's)\s+",
    re.IGNORECASE,
)
_PRIORITY = re.compile(r"urgent|asap|high priority|important|low priority|whenever", re.IGNORECASE)
_TRAILING_PUNCTUATION = re.compile(r"[\s.!;,]+$")

_TIMESTAMP_LINE = re.compile(r"^\[?\(?\d{1,2}:\d{2}(?::\d{2})?\)?\]?$")
_TIMESTAMP_PREFIX = re.compile(r"^\[?\(?\d{1,2}:\d{2}(?::\d{2})?\)?\]?\s+")
_CHAPTER_LINE = re.compile(r"^(?:#{1,6}\s+.*|(?:chapter|section|topic)\s*\d*\s*[:\-].*)$", re.IGNORECASE)
_HEADER_NAME = re.compile(r"^\*\*([^*]+)\*\*:?$")
_SPEAKER_PREFIX = re.compile(r"^([A-Z][\w.'-]*(?:\s+[A-Z0-9][\w.'-]*){0,3}):\s+(.+)$")
_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")

# Words that look like a speaker label but introduce content
LABEL_WORDS = {"todo", "note", "notes", "action", "task", "next", "summary", "agenda", "update"}

NOT_A_NAME = {
    "I", "We", "You", "They", "He", "She", "It", "Someone", "Somebody",
    "Everyone", "Everybody", "Nobody", "This", "That", "There", "Who", "What",
    "Team", "Which",
}


def _normalize_quotes(text: str) -> str:
    return text.replace("’", "'").replace("‘", "'")


def find_assignee(text: str) -> Optional[str]:
    """Assignee from an ``@mention`` or a ``Name will/should/...`` phrase"""
    mention = _MENTION.search(text)
    if mention:
        return mention.group(1)
    for match in _NAMED_COMMITMENT.finditer(text):
        if match.group(1) not in NOT_A_NAME:
            return match.group(1)
    return None


def find_priority(text: str) -> Optional[str]:
    match = _PRIORITY.search(text)
    return match.group(0).lower() if match else None


def clean_action_text(text: str) -> str:
    """Drop the first-person lead-in and trailing punctuation"""
    cleaned = _FIRST_PERSON_LEAD.sub("", text.strip())
    return _TRAILING_PUNCTUATION.sub("", cleaned)


def parse_action_item_text(
    text: str,
    speaker: Optional[str] = None,
    default_assignee: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Optional[ParsedActionItem]:
    """
    Parse one action sentence into a ParsedActionItem.

    Assignee precedence: trailing ``[ASSIGNEE:Name]`` tag, ``@mention``,
    ``Name will``, first-person language attributed to ``speaker``, then
    ``default_assignee``.

    Returns:
        Parsed item, or None when nothing is left after cleaning
    """
    if not text or not text.strip():
        return None

    source = _normalize_quotes(text.strip())
    assignee: Optional[str] = None

    tag = _ASSIGNEE_TAG.search(source)
    if tag:
        assignee = tag.group(1).strip()
        source = source[:tag.start()].strip()

    if not assignee:
        assignee = find_assignee(source)
    if not assignee and speaker and _FIRST_PERSON.search(source):
        assignee = speaker
    if not assignee:
        assignee = default_assignee

    refs = find_screenshot_refs(source)
    cleaned = clean_action_text(strip_screenshot_markers(source))
    if not cleaned:
        return None

    return ParsedActionItem(
        text=cleaned,
        assignee=assignee,
        due_date=extract_due_date_from_text(source, now),
        priority=find_priority(source),
        context=f'From transcript: "{text.strip()}"',
        screenshot_refs=refs or None,
    )


# ============================================================================
# Extraction
# ============================================================================

def _split_sentences(content: str) -> List[str]:
    return [
        s.strip() for s in _SENTENCE_SPLIT.split(content)
        if len(s.strip()) >= MIN_SENTENCE_CHARS
    ]


def extract_heuristic(
    text: str,
    max_actions: int = HEURISTIC_MAX_ACTIONS,
    now: Optional[datetime] = None,
) -> List[ParsedActionItem]:
    """
    Extract action items from transcript text without a model.

    Args:
        text: Transcript text, optionally ``Speaker: content`` per line
        max_actions: Output cap
        now: Reference instant for due-date resolution

    Returns:
        Deduplicated items, first occurrence wins
    """
    items: List[ParsedActionItem] = []
    seen: Set[str] = set()
    speaker: Optional[str] = None
    header_assignee: Optional[str] = None

    for raw_line in (text or "").split("\n"):
        line = _normalize_quotes(raw_line.strip())
        if not line or _TIMESTAMP_LINE.match(line) or _CHAPTER_LINE.match(line):
            continue
        line = _TIMESTAMP_PREFIX.sub("", line)

        header = _HEADER_NAME.match(line)
        if header:
            header_assignee = header.group(1).strip()
            speaker = header_assignee
            continue

        content = line
        prefix = _SPEAKER_PREFIX.match(line)
        if prefix and prefix.group(1).split()[0].lower() not in LABEL_WORDS:
            speaker = prefix.group(1)
            header_assignee = None
            content = prefix.group(2)

        for sentence in _split_sentences(content):
            if not is_action_sentence(sentence):
                continue

            item = parse_action_item_text(
                sentence,
                speaker=speaker,
                default_assignee=header_assignee,
                now=now,
            )
            if item is None:
                continue

            key = normalize_action_text(item.text)
            if key in seen:
                continue
            seen.add(key)
            items.append(item)

            if len(items) >= max_actions:
                return items

    return items
