"""
Transcript Pipeline

Per-transcript processing:

    screenshots -> action items (summary, else extraction)
                -> processor factory -> fan-out -> processed_at

``processed_at`` is set only after a fan-out that delivered something, or
when there was nothing to deliver. A crash part-way, or a fan-out where
every processor failed, leaves the session unprocessed and the next sync
retries it. A session that is already processed is never extracted again.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..common.schemas import (
    ActionStatus,
    ParsedActionItem,
    ProcessorKind,
    ProcessorResult,
    TranscriptSession,
    utcnow,
)
from ..common.store import BaseStore
from ..extraction.llm_extractor import ActionExtractor
from ..extraction.screenshots import number_screenshot_markers
from ..extraction.summary_parser import load_summary, parse_summary_action_items
from ..processors.base import BaseProcessor
from ..processors.factory import ProcessorFactory

logger = logging.getLogger("actionflow.sync.pipeline")

SOURCE_SUMMARY = "summary"


@dataclass
class ProcessorOutcome:
    """Result of one processor within a fan-out"""
    processor: str
    kind: ProcessorKind
    result: ProcessorResult


@dataclass
class FanOutResult:
    """Aggregated results of every processor that ran"""
    outcomes: List[ProcessorOutcome] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(o.result.success for o in self.outcomes)

    @property
    def processed_count(self) -> int:
        return sum(o.result.processed_count for o in self.outcomes)

    @property
    def delivered(self) -> bool:
        """True when at least one processor created something"""
        return self.processed_count > 0

    @property
    def errors(self) -> List[str]:
        return [f"{o.processor}: {e}" for o in self.outcomes for e in o.result.errors]

    def result_for(self, kind: ProcessorKind) -> Optional[ProcessorResult]:
        for outcome in self.outcomes:
            if outcome.kind == kind:
                return outcome.result
        return None


@dataclass
class TranscriptProcessingResult:
    """Outcome of processing one transcript session"""
    session_id: str
    items: List[ParsedActionItem] = field(default_factory=list)
    source: Optional[str] = None  # "summary", "llm" or "heuristic"
    fan_out: FanOutResult = field(default_factory=FanOutResult)
    already_processed: bool = False
    marked_processed: bool = False

    @property
    def actions_created(self) -> int:
        return self.fan_out.processed_count


async def fan_out(processors: List[BaseProcessor], items: List[ParsedActionItem]) -> FanOutResult:
    """
    Dispatch items to each processor in turn.

    ``validate_config`` gates each processor: an invalid one reports its
    configuration errors and never sees the items. An exception from any
    processor becomes that processor's failed result; the others are
    unaffected.
    """
    result = FanOutResult()

    for processor in processors:
        try:
            validation = await processor.validate_config()
            if validation.valid:
                outcome = await processor.process_action_items(items)
            else:
                logger.warning("%s skipped, invalid config: %s", processor.name, "; ".join(validation.errors))
                outcome = ProcessorResult(success=False, errors=list(validation.errors))
        except Exception as e:
            logger.exception("%s failed", processor.name)
            outcome = ProcessorResult(success=False, errors=[f"{processor.name} failed: {e}"])

        result.outcomes.append(ProcessorOutcome(processor.name, processor.kind, outcome))

    return result


class TranscriptPipeline:
    """Extraction plus fan-out for one transcript session"""

    def __init__(
        self,
        store: BaseStore,
        extractor: ActionExtractor,
        factory: ProcessorFactory,
    ):
        self._store = store
        self._extractor = extractor
        self._factory = factory

    async def collect_action_items(
        self,
        session: TranscriptSession,
        screenshot_count: int = 0,
    ):
        """
        Action items for a session.

        Summary action items win; otherwise the transcript text is extracted,
        with screenshot markers numbered when the session has screenshots.

        Returns:
            (items, source)
        """
        summary = load_summary(session.summary)
        items = parse_summary_action_items(summary.get("action_items"))
        if items:
            return items, SOURCE_SUMMARY

        text = session.transcription
        if screenshot_count:
            text, _ = number_screenshot_markers(text)
        outcome = await self._extractor.run(text)
        return outcome.items, outcome.engine

    async def process_session(
        self,
        session: TranscriptSession,
        user_id: str,
        project_id: Optional[str] = None,
        team_id: Optional[str] = None,
        action_status: ActionStatus = ActionStatus.ACTIVE,
    ) -> TranscriptProcessingResult:
        """
        Process one session end to end.

        Raises:
            Store errors propagate; the caller decides whether to skip
        """
        result = TranscriptProcessingResult(session_id=session.session_id)
        if session.is_processed:
            result.already_processed = True
            return result

        screenshots = await self._store.list_screenshots(session.id)
        result.items, result.source = await self.collect_action_items(session, len(screenshots))
        project_id = project_id or session.project_id

        if result.items:
            processors = await self._factory.create_processors(
                user_id,
                project_id=project_id,
                team_id=team_id,
                transcription_id=session.id,
                action_status=action_status,
                screenshot_ids=[s.id for s in screenshots],
            )
            result.fan_out = await fan_out(processors, result.items)

        if result.items and not result.fan_out.delivered:
            logger.warning(
                "Transcript %s left unprocessed, no processor delivered: %s",
                session.session_id, "; ".join(result.fan_out.errors) or "no processors",
            )
            return result

        session.processed_at = utcnow()
        await self._store.update_transcript_session(session)
        result.marked_processed = True

        logger.info(
            "Processed transcript %s: %d items (%s), %d created",
            session.session_id, len(result.items), result.source, result.actions_created,
        )
        return result
