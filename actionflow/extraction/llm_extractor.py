"""
LLM Action Extractor

Extracts action items from transcript text with an LLM, falling back to the
heuristic extractor when the model is unavailable, disabled, or finds
nothing.

Chunks are processed sequentially: the first occurrence of a normalized
action text wins, and the ``max_actions`` cap is shared across chunks.
A chunk whose request fails or whose output does not parse is skipped;
``extract`` never raises.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Set

from pydantic import ValidationError

from ..common.config import ExtractionConfig
from ..common.llm_client import LLMClient
from ..common.llm_utils import ExtractionParseError, parse_action_json
from ..common.schemas import ActionExtractionPayload, ParsedActionItem
from .chunker import chunk_transcript, normalize_action_text
from .date_resolver import extract_due_date_from_text, resolve_due_date
from .heuristic import extract_heuristic, find_assignee

logger = logging.getLogger("actionflow.extraction.llm_extractor")

ENGINE_LLM = "llm"
ENGINE_HEURISTIC = "heuristic"


EXTRACTION_SYSTEM_PROMPT = """You extract actionable tasks and next steps from meeting and voice transcripts.

Return ONLY a valid JSON object matching this schema:
{"actions":[{"text":"...", "assigneeName":"...", "dueDateText":"...", "confidence":0.0, "isFirstPerson":true, "screenshotRefs":[1]}]}

Rules:
- Extract every task, reminder or commitment, whether work or personal.
- Exclude observations, opinions, questions, greetings, headings, timestamps and summaries.
- If one sentence holds several tasks, return each task as its own action.
- If a line is a first-person commitment (e.g. "I'll do X"), set assigneeName to the current speaker and isFirstPerson to true.
- If a person is explicitly mentioned as responsible, set assigneeName to that name.
- If no assignee is clear, omit assigneeName.
- dueDateText should be a short phrase like "next week" or "by Friday" if present.
- If numbered markers like [SCREENSHOT-2] appear near the source text, list their numbers in screenshotRefs.
- Keep action text concise and imperative."""


def build_chunk_prompt(chunk: str) -> str:
    return f"Transcript chunk:\n{chunk}\n\nExtract actions from this chunk only."


@dataclass
class ExtractionOutcome:
    """Items plus the engine that produced them"""
    items: List[ParsedActionItem] = field(default_factory=list)
    engine: str = ENGINE_HEURISTIC
    skipped_chunks: int = 0


class ActionExtractor:
    """Transcript-to-action extraction with heuristic fallback"""

    def __init__(
        self,
        llm_client: Optional[LLMClient] = None,
        config: Optional[ExtractionConfig] = None,
    ):
        self._llm = llm_client
        self._config = config or ExtractionConfig()

    @property
    def uses_llm(self) -> bool:
        return (
            self._config.enabled
            and self._llm is not None
            and self._llm.is_available
        )

    async def extract(
        self,
        text: str,
        max_actions: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[ParsedActionItem]:
        """Extract action items; see ``run`` for the engine used"""
        outcome = await self.run(text, max_actions=max_actions, now=now)
        return outcome.items

    async def run(
        self,
        text: str,
        max_actions: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> ExtractionOutcome:
        """
        Extract action items and report which engine produced them.

        Args:
            text: Transcript text
            max_actions: Output cap (default from config)
            now: Reference instant for due-date resolution

        Returns:
            ExtractionOutcome
        """
        if not text or not text.strip():
            return ExtractionOutcome()

        limit = max_actions or self._config.max_actions

        if not self.uses_llm:
            return ExtractionOutcome(
                items=extract_heuristic(text, max_actions=limit, now=now),
                engine=ENGINE_HEURISTIC,
            )

        outcome = await self._extract_with_llm(text, limit, now)
        if outcome.items:
            return outcome

        logger.info("LLM extraction found no actions, using heuristic fallback")
        return ExtractionOutcome(
            items=extract_heuristic(text, max_actions=limit, now=now),
            engine=ENGINE_HEURISTIC,
            skipped_chunks=outcome.skipped_chunks,
        )

    async def _extract_with_llm(
        self,
        text: str,
        limit: int,
        now: Optional[datetime],
    ) -> ExtractionOutcome:
        outcome = ExtractionOutcome(engine=ENGINE_LLM)
        seen: Set[str] = set()
        chunks = chunk_transcript(text, self._config.chunk_chars)

        for index, chunk in enumerate(chunks, 1):
            payload = await self._request_chunk(chunk, index, len(chunks))
            if payload is None:
                outcome.skipped_chunks += 1
                continue

            for action in payload.actions:
                key = normalize_action_text(action.text)
                if not key or key in seen:
                    continue
                seen.add(key)

                outcome.items.append(ParsedActionItem(
                    text=action.text,
                    assignee=action.assignee_name or find_assignee(action.text),
                    due_date=(
                        resolve_due_date(action.due_date_text, now)
                        or extract_due_date_from_text(action.text, now)
                    ),
                    context=f'From transcript: "{action.text}"',
                    screenshot_refs=action.screenshot_refs or None,
                ))

                if len(outcome.items) >= limit:
                    return outcome

        return outcome

    async def _request_chunk(
        self,
        chunk: str,
        index: int,
        total: int,
    ) -> Optional[ActionExtractionPayload]:
        """One extraction request; None when the chunk must be skipped"""
        try:
            raw = await asyncio.to_thread(
                self._llm.generate,
                build_chunk_prompt(chunk),
                system=EXTRACTION_SYSTEM_PROMPT,
                max_tokens=self._config.max_tokens,
                timeout=self._config.timeout,
            )
        except Exception as e:
            logger.warning("Extraction request failed for chunk %d/%d: %s", index, total, e)
            return None

        try:
            return ActionExtractionPayload.model_validate(parse_action_json(raw))
        except (ExtractionParseError, ValidationError) as e:
            logger.warning("Skipping chunk %d/%d, unparseable model output: %s", index, total, e)
            return None
