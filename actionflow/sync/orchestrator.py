"""
Sync Orchestrator

Incremental bulk ingestion from a Fireflies integration:

1. Resolve the integration (active, owned by the user, with an API key)
2. Compute the sync window (explicit, else days since last sync, capped)
3. Fetch recent transcripts
4. Per transcript row, in its own try: validate the row, upsert the
   session by external id, then run the transcript pipeline; a failure
   only counts as skipped
5. Record the sync time unconditionally
6. Send a best-effort summary notification

Transcripts are processed sequentially in the order the provider returns.
"""

import json
import logging
import math
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Callable, Optional, Tuple

from ..common.config import SyncConfig
from ..common.schemas import (
    CredentialType,
    Integration,
    TranscriptSession,
    render_sync_summary,
    utcnow,
)
from ..common.store import BaseStore
from ..integrations.fireflies import FirefliesClient, FirefliesTranscript, format_transcript_text
from ..integrations.notifier import Notifier
from .pipeline import TranscriptPipeline, TranscriptProcessingResult

logger = logging.getLogger("actionflow.sync.orchestrator")

PROVIDER = "fireflies"
SYNC_NOTIFICATION_TITLE = "Fireflies Sync Complete"


def _row_id(row) -> Optional[str]:
    """Transcript id of a raw row or an already-validated transcript"""
    if isinstance(row, FirefliesTranscript):
        return row.id
    return row.get("id") if isinstance(row, dict) else None


@dataclass
class SyncResult:
    """Outcome of one bulk sync"""
    success: bool = False
    total_processed: int = 0
    new_transcripts: int = 0
    updated_transcripts: int = 0
    skipped_transcripts: int = 0
    actions_created: int = 0
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


class SyncOrchestrator:
    """Drives bulk transcript sync for Fireflies integrations"""

    def __init__(
        self,
        store: BaseStore,
        pipeline: TranscriptPipeline,
        notifier: Optional[Notifier] = None,
        config: Optional[SyncConfig] = None,
        fireflies_client_factory: Optional[Callable[[str], FirefliesClient]] = None,
    ):
        self._store = store
        self._pipeline = pipeline
        self._notifier = notifier
        self._config = config or SyncConfig()
        self._fireflies_client_factory = fireflies_client_factory or (
            lambda api_key: FirefliesClient(api_key, api_url=self._config.fireflies_url)
        )

    async def get_fireflies_integration(self, user_id: str, integration_id: str) -> Optional[Integration]:
        integration = await self._store.get_integration(integration_id)
        if (
            integration is None
            or integration.user_id != user_id
            or integration.provider != PROVIDER
            or not integration.is_active
            or not integration.credential(CredentialType.API_KEY)
        ):
            return None
        return integration

    def sync_window(
        self,
        integration: Integration,
        since_days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> int:
        """Days to look back, capped at ``max_days``"""
        if since_days:
            days = since_days
        elif integration.last_sync_at:
            elapsed = (now or utcnow()) - integration.last_sync_at
            days = max(1, math.ceil(elapsed.total_seconds() / 86400))
        else:
            days = self._config.default_days
        return min(days, self._config.max_days)

    async def _upsert_session(
        self,
        transcript: FirefliesTranscript,
        integration: Integration,
        user_id: str,
    ) -> Tuple[TranscriptSession, bool]:
        """Create or update the session keyed by the transcript id; returns (session, created)"""
        fields = dict(
            title=transcript.title or f"Fireflies Meeting {transcript.id}",
            transcription=format_transcript_text(transcript.sentences),
            summary=json.dumps(transcript.summary or {}, indent=2),
            source_integration_id=integration.id,
        )

        existing = await self._store.find_transcript_session(transcript.id)
        if existing:
            for key, value in fields.items():
                setattr(existing, key, value)
            return await self._store.update_transcript_session(existing), False

        session = TranscriptSession(
            session_id=transcript.id,
            user_id=user_id,
            description=f"Auto-synced from Fireflies integration: {integration.name}",
            **fields,
        )
        return await self._store.create_transcript_session(session), True

    async def bulk_sync(
        self,
        user_id: str,
        integration_id: str,
        since_days: Optional[int] = None,
    ) -> SyncResult:
        """
        Sync recent transcripts and fan their action items out.

        Args:
            user_id: Owner of the integration; owner of created tasks
            integration_id: Fireflies integration to sync
            since_days: Explicit window (default: since last sync)

        Returns:
            SyncResult; ``error`` is set instead of raising
        """
        result = SyncResult()

        integration = await self.get_fireflies_integration(user_id, integration_id)
        if integration is None:
            result.error = "Fireflies integration not found or inactive"
            return result

        window = self.sync_window(integration, since_days)
        client = self._fireflies_client_factory(integration.credential(CredentialType.API_KEY))

        try:
            rows = await client.fetch_recent_transcripts(window, self._config.fetch_limit)
        except Exception as e:
            logger.error("Fetching Fireflies transcripts failed: %s", e)
            result.error = str(e)
            return result

        result.total_processed = len(rows)

        for row in rows:
            try:
                transcript = FirefliesTranscript.model_validate(row)
                session, created = await self._upsert_session(transcript, integration, user_id)
                if created:
                    result.new_transcripts += 1
                else:
                    result.updated_transcripts += 1

                processed = await self._pipeline.process_session(session, user_id)
                result.actions_created += processed.actions_created
            except Exception as e:
                logger.warning("Failed to process transcript %s: %s", _row_id(row), e)
                result.skipped_transcripts += 1

        try:
            await self._store.update_integration_last_sync(integration.id, utcnow())
        except Exception as e:
            logger.error("Failed to record last sync for %s: %s", integration.id, e)
            result.error = f"Failed to record sync time: {e}"
            return result

        result.success = True
        logger.info(
            "Fireflies sync %s: %d new, %d updated, %d skipped, %d actions",
            integration.id, result.new_transcripts, result.updated_transcripts,
            result.skipped_transcripts, result.actions_created,
        )

        if result.new_transcripts or result.updated_transcripts:
            await self._notify(user_id, integration, result)

        return result

    async def _notify(self, user_id: str, integration: Integration, result: SyncResult) -> None:
        if self._notifier is None:
            return
        try:
            await self._notifier.send_to_all(
                user_id,
                SYNC_NOTIFICATION_TITLE,
                render_sync_summary(
                    integration.name,
                    result.new_transcripts,
                    result.updated_transcripts,
                    result.actions_created,
                ),
                metadata={
                    "integrationName": integration.name,
                    "newTranscripts": result.new_transcripts,
                    "updatedTranscripts": result.updated_transcripts,
                    "actionsCreated": result.actions_created,
                },
            )
        except Exception as e:
            logger.warning("Failed to send sync notification: %s", e)

    async def sync_transcript(
        self,
        user_id: str,
        integration_id: str,
        transcript_id: str,
    ) -> Optional[TranscriptProcessingResult]:
        """
        Fetch, upsert and process a single transcript (webhook path).

        Returns:
            Processing result, or None when the integration or transcript
            cannot be found

        Raises:
            IntegrationError: the transcript fetch failed
        """
        integration = await self.get_fireflies_integration(user_id, integration_id)
        if integration is None:
            return None

        client = self._fireflies_client_factory(integration.credential(CredentialType.API_KEY))
        transcript = await client.fetch_transcript(transcript_id)
        if transcript is None:
            return None

        session, _ = await self._upsert_session(transcript, integration, user_id)
        return await self._pipeline.process_session(session, user_id)

    async def estimate_new_transcripts(self, user_id: str, integration_id: str) -> int:
        """Remote transcripts in the current window with no local session"""
        integration = await self.get_fireflies_integration(user_id, integration_id)
        if integration is None:
            return 0

        client = self._fireflies_client_factory(integration.credential(CredentialType.API_KEY))
        try:
            rows = await client.fetch_recent_transcripts(
                self.sync_window(integration), self._config.fetch_limit
            )
        except Exception as e:
            logger.warning("Estimating new transcripts failed: %s", e)
            return 0

        count = 0
        for row in rows:
            transcript_id = _row_id(row)
            if transcript_id and not await self._store.find_transcript_session(transcript_id):
                count += 1
        return count
