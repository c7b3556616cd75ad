"""
Message Templates

Renders action items and sync outcomes into Slack mrkdwn text. Every
rendering produces plain text; the block form is built from the same text
so the two never disagree.
"""

from typing import Any, Dict, List, Optional, Sequence

from .action_item import ParsedActionItem

DIGEST_MAX_ITEMS = 10

DIGEST_TITLE = "📋 New Action Items from Meeting"

PRIORITY_GLYPHS = [
    (("urgent", "asap"), "🔥 "),
    (("high", "important"), "⚡ "),
    (("low", "someday"), "🔹 "),
]

NOTIFICATION_EMOJI = {
    "high": "🔥",
    "normal": "📋",
    "low": "💬",
}


def priority_glyph(priority: Optional[str]) -> str:
    """Glyph prefix for a free-text priority, empty when none applies"""
    if not priority:
        return ""
    lowered = priority.lower()
    for keywords, glyph in PRIORITY_GLYPHS:
        if any(k in lowered for k in keywords):
            return glyph
    return ""


def _format_digest_line(index: int, item: ParsedActionItem) -> str:
    assignee = f" ({item.assignee})" if item.assignee else ""
    due = f" - Due: {item.due_date.strftime('%Y-%m-%d')}" if item.due_date else ""
    return f"{index}. {priority_glyph(item.priority)}{item.text}{assignee}{due}"


def render_action_digest(
    items: Sequence[ParsedActionItem],
    max_items: int = DIGEST_MAX_ITEMS,
    context_line: Optional[str] = None,
) -> str:
    """
    Render a batch of action items as one digest message.

    The first ``max_items`` items are listed; a footer counts the rest.
    """
    count = len(items)
    lines = [
        _format_digest_line(i, item)
        for i, item in enumerate(items[:max_items], 1)
    ]

    text = f"Found {count} action item{'' if count == 1 else 's'}:\n\n" + "\n".join(lines)
    if count > max_items:
        text += f"\n\n_... and {count - max_items} more action items_"
    if context_line:
        text += f"\n{context_line}"
    return text


def render_project_context(project_name: str, team_name: Optional[str] = None) -> str:
    team = f" ({team_name})" if team_name else ""
    return f"_Project: {project_name}{team}_"


def render_sync_summary(
    integration_name: str,
    new_transcripts: int,
    updated_transcripts: int,
    actions_created: int,
) -> str:
    return (
        f"Synced {new_transcripts} new and {updated_transcripts} updated meetings "
        f"from {integration_name}. Created {actions_created} action items."
    )


def render_notification(
    title: str,
    message: str,
    priority: str = "normal",
    metadata: Optional[Dict[str, Any]] = None,
) -> str:
    """Render a notification as mrkdwn with a metadata footer"""
    emoji = NOTIFICATION_EMOJI.get(priority, "📋")
    text = f"{emoji} *{title}*\n\n{message}" if title else message

    if metadata:
        entries = [f"*{k}:* {v}" for k, v in metadata.items() if v is not None]
        if entries:
            text += f"\n\n_{' | '.join(entries)}_"
    return text


def section_blocks(text: str) -> List[Dict[str, Any]]:
    """Wrap mrkdwn text in a single Slack section block"""
    return [
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": text},
        }
    ]
