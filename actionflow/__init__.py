"""
Actionflow

Turns meeting transcripts into deduplicated action items and delivers them
to every configured destination (internal task store, Slack, Monday.com).

Philosophy:
- Extraction never fails: the LLM path falls back to deterministic heuristics
- First occurrence wins when the same action shows up twice
- One destination's failure never hides another destination's success
- Re-syncing the same transcript never re-extracts it

Usage:
    from actionflow.common import load_config, LLMClient, InMemoryStore
    from actionflow.extraction import ActionExtractor, extract_heuristic
    from actionflow.processors import ProcessorFactory
    from actionflow.sync import SyncOrchestrator, TranscriptPipeline
"""

__version__ = "0.1.0"
