"""
Fireflies Client

Fetches meeting transcripts (sentences + provider summary) from the
Fireflies GraphQL API.

The API offers no server-side date filter: the most recent ``limit``
transcripts come back newest first and are treated as the full candidate
set for a sync window.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field, field_validator

from ..common.config import FIREFLIES_API_URL
from .errors import FirefliesError
from .graphql import DEFAULT_TIMEOUT, GraphQLClient

logger = logging.getLogger("actionflow.integrations.fireflies")

DEFAULT_FETCH_LIMIT = 50

_TRANSCRIPT_FIELDS = """
    id
    title
    date
    sentences {
      text
      speaker_name
      start_time
      end_time
    }
    summary {
      keywords
      action_items
      outline
      shorthand_bullet
      overview
      bullet_gist
      gist
      short_summary
      short_overview
      meeting_type
      topics_discussed
    }
"""

RECENT_TRANSCRIPTS_QUERY = (
    "query GetRecentTranscripts($limit: Int) {\n"
    "  transcripts(limit: $limit) {" + _TRANSCRIPT_FIELDS + "  }\n}"
)

TRANSCRIPT_QUERY = (
    "query GetTranscript($id: String!) {\n"
    "  transcript(id: $id) {" + _TRANSCRIPT_FIELDS + "  }\n}"
)


class FirefliesSentence(BaseModel):
    text: str = ""
    speaker_name: Optional[str] = None
    start_time: Optional[float] = None
    end_time: Optional[float] = None

    @field_validator("text", mode="before")
    @classmethod
    def _null_text(cls, v):
        return "" if v is None else v


class FirefliesTranscript(BaseModel):
    """
    One Fireflies transcript.

    Transcripts still being processed come back with null sentences and
    summary; those validate as an empty transcript.
    """
    id: str
    title: Optional[str] = None
    date: Optional[float] = None  # epoch milliseconds
    sentences: List[FirefliesSentence] = Field(default_factory=list)
    summary: Optional[Dict[str, Any]] = None

    @field_validator("sentences", mode="before")
    @classmethod
    def _null_sentences(cls, v):
        return [] if v is None else v

    @property
    def action_items(self) -> Any:
        """Summary action items as shipped (list, formatted string, or None)"""
        return (self.summary or {}).get("action_items")


def format_transcript_text(sentences: List[FirefliesSentence]) -> str:
    """One ``Speaker: text`` line per sentence"""
    lines = []
    for sentence in sentences or []:
        speaker = f"{sentence.speaker_name}: " if sentence.speaker_name else ""
        lines.append(f"{speaker}{sentence.text}")
    return "\n".join(lines)


class FirefliesClient(GraphQLClient):
    """Async Fireflies GraphQL client"""

    error_class = FirefliesError
    provider_name = "Fireflies"

    format_transcript_text = staticmethod(format_transcript_text)

    def __init__(
        self,
        api_key: str,
        api_url: str = FIREFLIES_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            api_url,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=timeout,
            transport=transport,
        )

    async def fetch_recent_transcripts(
        self,
        since_days: int = 7,
        limit: int = DEFAULT_FETCH_LIMIT,
    ) -> List[Dict[str, Any]]:
        """
        Fetch the most recent transcripts.

        Args:
            since_days: Sync window, logged only (no server-side filter)
            limit: Page size

        Returns:
            Raw transcript rows, newest first; callers validate each row
            with ``FirefliesTranscript.model_validate`` so one malformed row
            can be skipped on its own
        """
        logger.info("Fetching up to %d Fireflies transcripts (window: %d days)", limit, since_days)
        data = await self.execute(RECENT_TRANSCRIPTS_QUERY, {"limit": limit})
        return list(data.get("transcripts") or [])

    async def fetch_transcript(self, transcript_id: str) -> Optional[FirefliesTranscript]:
        data = await self.execute(TRANSCRIPT_QUERY, {"id": transcript_id})
        raw = data.get("transcript")
        return FirefliesTranscript.model_validate(raw) if raw else None
