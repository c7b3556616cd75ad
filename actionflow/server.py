"""
Actionflow Server

FastAPI server for transcript ingestion and action extraction.

Endpoints:
- GET /health: Health check
- POST /extract: Extract action items from raw text
- POST /sync/{integration_id}: Bulk sync a Fireflies integration
- GET /sync/{integration_id}/estimate: Count new remote transcripts
- POST /webhooks/fireflies: Process one transcript when Fireflies finishes it

Pipeline (per transcript):
1. Upsert the transcript session by external id
2. Take summary action items, else extract from the transcript text
3. Select processors (internal, Slack, Monday) for the context
4. Fan out, then mark the session processed
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from fastapi import BackgroundTasks, FastAPI, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from .common.config import ActionflowConfig, ensure_directories, load_config
from .common.llm_client import LLMClient
from .common.store import BaseStore, JsonFileStore
from .extraction.llm_extractor import ActionExtractor
from .integrations.fireflies import FirefliesClient
from .integrations.monday import MondayClient
from .integrations.notifier import Notifier
from .integrations.slack import SlackClient
from .processors.factory import ProcessorFactory
from .sync.orchestrator import SyncOrchestrator
from .sync.pipeline import TranscriptPipeline

logger = logging.getLogger("actionflow.server")


@dataclass
class Services:
    """Wired application components"""
    config: ActionflowConfig
    store: BaseStore
    llm_client: LLMClient
    extractor: ActionExtractor
    orchestrator: SyncOrchestrator


def build_services(
    config: ActionflowConfig,
    store: Optional[BaseStore] = None,
    llm_client: Optional[LLMClient] = None,
) -> Services:
    """Wire store, LLM client, extractor, clients and orchestrator from config"""
    store = store or JsonFileStore(config.store.path)
    llm_client = llm_client or LLMClient.from_config(config.llm)
    timeout = config.http.timeout

    def slack_client(token: str) -> SlackClient:
        return SlackClient(token, timeout=timeout)

    def monday_client(api_key: str) -> MondayClient:
        return MondayClient(api_key, timeout=timeout)

    def fireflies_client(api_key: str) -> FirefliesClient:
        return FirefliesClient(api_key, api_url=config.sync.fireflies_url, timeout=timeout)

    extractor = ActionExtractor(llm_client, config.extraction)
    factory = ProcessorFactory(
        store,
        slack_client_factory=slack_client,
        monday_client_factory=monday_client,
    )
    orchestrator = SyncOrchestrator(
        store,
        TranscriptPipeline(store, extractor, factory),
        notifier=Notifier(store, slack_client_factory=slack_client),
        config=config.sync,
        fireflies_client_factory=fireflies_client,
    )
    return Services(config, store, llm_client, extractor, orchestrator)


# Global state
services: Optional[Services] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize components on startup"""
    global services

    logger.info("Starting up...")
    ensure_directories()

    config = load_config()
    services = build_services(config)

    if services.extractor.uses_llm:
        logger.info("LLM extractor ready (%s/%s)", config.llm.provider, config.llm.model)
    else:
        logger.info("LLM extractor not available (heuristic extraction only)")
    logger.info("Store: %s", config.store.path)

    yield

    logger.info("Shutting down...")


app = FastAPI(
    title="Actionflow",
    description="Transcript-to-action extraction and multi-destination fan-out",
    version="0.1.0",
    lifespan=lifespan,
)


# =============================================================================
# Request/Response Models
# =============================================================================

class ExtractRequest(BaseModel):
    text: str
    max_actions: Optional[int] = Field(default=None, ge=1)


class ExtractedItem(BaseModel):
    text: str
    assignee: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: Optional[str] = None
    context: Optional[str] = None
    screenshot_refs: Optional[List[int]] = None


class ExtractResponse(BaseModel):
    engine: str
    count: int
    items: List[ExtractedItem]


class SyncRequest(BaseModel):
    user_id: str
    since_days: Optional[int] = Field(default=None, ge=1)


class FirefliesWebhook(BaseModel):
    """Fireflies "Transcription completed" webhook payload plus routing ids"""
    model_config = ConfigDict(populate_by_name=True)

    meeting_id: str = Field(alias="meetingId")
    user_id: str
    integration_id: str


def _require_services() -> Services:
    if services is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return services


# =============================================================================
# Background Tasks
# =============================================================================

async def process_webhook(payload: FirefliesWebhook) -> None:
    """Fetch and process one transcript; failures are logged"""
    svc = _require_services()
    try:
        result = await svc.orchestrator.sync_transcript(
            payload.user_id, payload.integration_id, payload.meeting_id
        )
    except Exception as e:
        logger.error("Webhook processing failed for %s: %s", payload.meeting_id, e)
        return

    if result is None:
        logger.warning("Webhook for %s ignored: integration or transcript not found", payload.meeting_id)
    elif result.already_processed:
        logger.info("Transcript %s already processed", payload.meeting_id)


# =============================================================================
# Endpoints
# =============================================================================

@app.get("/health")
async def health():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "actionflow",
        "initialized": services is not None,
        "extraction_engine": (
            "llm" if services and services.extractor.uses_llm else "heuristic"
        ),
    }


@app.post("/extract", response_model=ExtractResponse)
async def extract(request: ExtractRequest):
    """Extract action items from raw transcript text"""
    svc = _require_services()
    outcome = await svc.extractor.run(request.text, max_actions=request.max_actions)
    return ExtractResponse(
        engine=outcome.engine,
        count=len(outcome.items),
        items=[ExtractedItem(**item.model_dump()) for item in outcome.items],
    )


@app.post("/sync/{integration_id}")
async def sync(integration_id: str, request: SyncRequest):
    """Bulk sync recent transcripts of a Fireflies integration"""
    svc = _require_services()
    result = await svc.orchestrator.bulk_sync(
        request.user_id, integration_id, since_days=request.since_days
    )
    return result.to_dict()


@app.get("/sync/{integration_id}/estimate")
async def estimate(integration_id: str, user_id: str = Query(...)):
    """Count remote transcripts not yet synced"""
    svc = _require_services()
    count = await svc.orchestrator.estimate_new_transcripts(user_id, integration_id)
    return {"integration_id": integration_id, "new_transcripts": count}


@app.post("/webhooks/fireflies")
async def fireflies_webhook(payload: FirefliesWebhook, background_tasks: BackgroundTasks):
    """
    Handle a Fireflies transcription-completed webhook.

    Processing runs in the background; the webhook is acknowledged at once.
    """
    _require_services()
    background_tasks.add_task(process_webhook, payload)
    return {"ok": True, "meeting_id": payload.meeting_id}


# =============================================================================
# CLI Entry Point
# =============================================================================

def run_server():
    """Run the Actionflow server"""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = load_config()

    logger.info("Starting server on %s:%d", config.server.host, config.server.port)
    uvicorn.run(
        "actionflow.server:app",
        host=config.server.host,
        port=config.server.port,
        reload=False,
    )


if __name__ == "__main__":
    run_server()
