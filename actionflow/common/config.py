"""
Configuration Management for Actionflow

Loads configuration from ~/.actionflow/config.json and environment variables.
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field

from dotenv import load_dotenv

logger = logging.getLogger("actionflow.common.config")

# Default config paths
CONFIG_DIR = Path.home() / ".actionflow"
CONFIG_PATH = CONFIG_DIR / "config.json"
STORE_PATH = CONFIG_DIR / "store.json"

FIREFLIES_API_URL = "https://api.fireflies.ai/graphql"


@dataclass
class LLMConfig:
    """LLM provider configuration for action extraction"""
    provider: str = "openai"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    google_api_key: str = ""
    google_model: str = "gemini-2.0-flash"

    @property
    def api_key(self) -> str:
        """API key of the selected provider"""
        return getattr(self, f"{self.provider}_api_key", "") or ""

    @property
    def model(self) -> str:
        """Model name of the selected provider"""
        return getattr(self, f"{self.provider}_model", "") or ""


@dataclass
class ExtractionConfig:
    """Transcript-to-action extraction settings"""
    enabled: bool = True
    max_actions: int = 25
    chunk_chars: int = 6000
    max_tokens: int = 1024
    timeout: float = 30.0


@dataclass
class SyncConfig:
    """Transcript source sync settings"""
    default_days: int = 7
    max_days: int = 30
    fetch_limit: int = 50
    fireflies_url: str = FIREFLIES_API_URL


@dataclass
class HttpConfig:
    """Outbound HTTP settings shared by every integration client"""
    timeout: float = 15.0


@dataclass
class ServerConfig:
    """HTTP server configuration"""
    host: str = "0.0.0.0"
    port: int = 8090


@dataclass
class StoreConfig:
    """Local store configuration"""
    path: str = str(STORE_PATH)


@dataclass
class ActionflowConfig:
    """Main Actionflow configuration"""
    llm: LLMConfig = field(default_factory=LLMConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    _env_sourced_keys: set = field(default_factory=set, repr=False)


def _parse_llm_config(data: dict) -> LLMConfig:
    """Parse llm section from config dict"""
    llm_data = data.get("llm", {})
    return LLMConfig(
        provider=llm_data.get("provider", "openai"),
        anthropic_api_key=llm_data.get("anthropic_api_key", ""),
        anthropic_model=llm_data.get("anthropic_model", "claude-sonnet-4-20250514"),
        openai_api_key=llm_data.get("openai_api_key", ""),
        openai_model=llm_data.get("openai_model", "gpt-4o-mini"),
        google_api_key=llm_data.get("google_api_key", ""),
        google_model=llm_data.get("google_model", "gemini-2.0-flash"),
    )


def _parse_extraction_config(data: dict) -> ExtractionConfig:
    """Parse extraction section from config dict"""
    extraction_data = data.get("extraction", {})
    return ExtractionConfig(
        enabled=extraction_data.get("enabled", True),
        max_actions=extraction_data.get("max_actions", 25),
        chunk_chars=extraction_data.get("chunk_chars", 6000),
        max_tokens=extraction_data.get("max_tokens", 1024),
        timeout=extraction_data.get("timeout", 30.0),
    )


def _parse_sync_config(data: dict) -> SyncConfig:
    """Parse sync section from config dict"""
    sync_data = data.get("sync", {})
    return SyncConfig(
        default_days=sync_data.get("default_days", 7),
        max_days=sync_data.get("max_days", 30),
        fetch_limit=sync_data.get("fetch_limit", 50),
        fireflies_url=sync_data.get("fireflies_url", FIREFLIES_API_URL),
    )


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config() -> ActionflowConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (including a local .env file)
    2. Config file (~/.actionflow/config.json)
    3. Default values
    """
    load_dotenv()
    config = ActionflowConfig()

    if CONFIG_PATH.exists():
        try:
            with open(CONFIG_PATH) as f:
                data = json.load(f)

            config.llm = _parse_llm_config(data)
            config.extraction = _parse_extraction_config(data)
            config.sync = _parse_sync_config(data)
            config.http = HttpConfig(timeout=data.get("http", {}).get("timeout", 15.0))
            server_data = data.get("server", {})
            config.server = ServerConfig(
                host=server_data.get("host", "0.0.0.0"),
                port=server_data.get("port", 8090),
            )
            config.store = StoreConfig(path=data.get("store", {}).get("path", str(STORE_PATH)))
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Failed to load config file: %s", e)

    # LLM env var overrides (track env-sourced keys so they are never saved)
    _env_llm_map = {
        "ANTHROPIC_API_KEY": "anthropic_api_key",
        "ANTHROPIC_MODEL": "anthropic_model",
        "OPENAI_API_KEY": "openai_api_key",
        "OPENAI_MODEL": "openai_model",
        "GOOGLE_API_KEY": "google_api_key",
        "GEMINI_API_KEY": "google_api_key",
        "GOOGLE_MODEL": "google_model",
        "ACTIONFLOW_LLM_PROVIDER": "provider",
    }
    for env_var, attr in _env_llm_map.items():
        val = os.getenv(env_var)
        if val:
            setattr(config.llm, attr, val)
            config._env_sourced_keys.add(attr)

    if os.getenv("ACTIONFLOW_EXTRACTION_ENABLED"):
        config.extraction.enabled = _parse_bool(os.getenv("ACTIONFLOW_EXTRACTION_ENABLED"))
    if os.getenv("ACTIONFLOW_MAX_ACTIONS"):
        config.extraction.max_actions = int(os.getenv("ACTIONFLOW_MAX_ACTIONS"))
    if os.getenv("ACTIONFLOW_CHUNK_CHARS"):
        config.extraction.chunk_chars = int(os.getenv("ACTIONFLOW_CHUNK_CHARS"))
    if os.getenv("ACTIONFLOW_SYNC_DAYS"):
        config.sync.default_days = int(os.getenv("ACTIONFLOW_SYNC_DAYS"))
    if os.getenv("ACTIONFLOW_HTTP_TIMEOUT"):
        config.http.timeout = float(os.getenv("ACTIONFLOW_HTTP_TIMEOUT"))
    if os.getenv("ACTIONFLOW_PORT"):
        config.server.port = int(os.getenv("ACTIONFLOW_PORT"))
    if os.getenv("ACTIONFLOW_STORE_PATH"):
        config.store.path = os.getenv("ACTIONFLOW_STORE_PATH")

    return config


def save_config(config: ActionflowConfig) -> None:
    """Save configuration to file.

    API key fields that were sourced from environment variables are written
    as empty strings so that secrets are not persisted to disk.
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    env_sourced = getattr(config, "_env_sourced_keys", set())

    llm_section = {
        "provider": config.llm.provider,
        "anthropic_api_key": config.llm.anthropic_api_key,
        "anthropic_model": config.llm.anthropic_model,
        "openai_api_key": config.llm.openai_api_key,
        "openai_model": config.llm.openai_model,
        "google_api_key": config.llm.google_api_key,
        "google_model": config.llm.google_model,
    }
    for key in ("anthropic_api_key", "openai_api_key", "google_api_key"):
        if key in env_sourced:
            llm_section[key] = ""

    data = {
        "llm": llm_section,
        "extraction": {
            "enabled": config.extraction.enabled,
            "max_actions": config.extraction.max_actions,
            "chunk_chars": config.extraction.chunk_chars,
            "max_tokens": config.extraction.max_tokens,
            "timeout": config.extraction.timeout,
        },
        "sync": {
            "default_days": config.sync.default_days,
            "max_days": config.sync.max_days,
            "fetch_limit": config.sync.fetch_limit,
            "fireflies_url": config.sync.fireflies_url,
        },
        "http": {"timeout": config.http.timeout},
        "server": {"host": config.server.host, "port": config.server.port},
        "store": {"path": config.store.path},
    }

    with open(CONFIG_PATH, "w") as f:
        json.dump(data, f, indent=2)

    # Set secure permissions
    CONFIG_PATH.chmod(0o600)


def ensure_directories() -> None:
    """Ensure required directories exist"""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
