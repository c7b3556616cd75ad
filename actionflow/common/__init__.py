"""
Actionflow Common Module

Shared infrastructure for extraction, processors and sync.
"""

from .config import ActionflowConfig, load_config
from .llm_client import LLMClient
from .store import BaseStore, InMemoryStore, JsonFileStore

__all__ = [
    "ActionflowConfig",
    "load_config",
    "LLMClient",
    "BaseStore",
    "InMemoryStore",
    "JsonFileStore",
]
