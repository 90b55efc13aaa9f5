"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- FeedConfig: Source feed URL and HTTP settings
- DedupConfig: In-batch deduplication settings
- LLMConfig: Rewrite provider selection and request limits
- PipelineConfig: Pacing and publication settings
- SchedulerConfig: Recurring trigger settings
- StoreConfig: Article database location
- SelectionStoreConfig: Durable provider-selection file
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container

Provider credentials are never part of the configuration; they are read from
the process environment by the variable name declared in the provider catalog.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import os
from typing import Any, Mapping

import yaml


@dataclass
class FeedConfig:
    """Configuration for the source feed.

    Attributes:
        url: Feed URL to read on every run
        timeout_seconds: HTTP request timeout
        trust_env: Whether to respect system proxy settings
        user_agent: HTTP User-Agent header string
    """

    url: str = "https://simpleflying.com/feed/"
    timeout_seconds: float = 20.0
    trust_env: bool = True
    user_agent: str = "feed-rewriter/0.1 (RSS reader)"


@dataclass
class DedupConfig:
    """Configuration for in-batch deduplication of feed items.

    Attributes:
        enabled: Whether to drop repeated source URLs within one fetch
    """

    enabled: bool = True


@dataclass
class LLMConfig:
    """Configuration for the rewrite providers.

    Attributes:
        provider: Provider key used when nothing else is selected
        model: Optional model key override for the active provider
        max_prompt_chars: Characters of raw content embedded in the prompt
        max_output_tokens: Generation-length cap sent with each request
        timeout_seconds: Completion request timeout
        trust_env: Whether to respect system proxy settings for API requests
        base_urls: Optional per-provider API base URL overrides
    """

    provider: str = "claude"
    model: str | None = None
    max_prompt_chars: int = 4000
    max_output_tokens: int = 2000
    timeout_seconds: float = 120.0
    trust_env: bool = True
    base_urls: dict[str, str] = field(default_factory=dict)


@dataclass
class PipelineConfig:
    """Configuration for run orchestration.

    Attributes:
        pacing_seconds: Delay inserted before every item after the first
        publish_status: Status given to newly created articles
        prevent_overlap: Reject a run while another one is in flight
    """

    pacing_seconds: float = 3.0
    publish_status: str = "published"
    prevent_overlap: bool = True


@dataclass
class SchedulerConfig:
    """Configuration for the recurring trigger.

    Attributes:
        cron: Crontab expression for recurring runs
        run_on_start: Whether to run once immediately when the scheduler starts
        timezone: Optional timezone name for the cron trigger
    """

    cron: str = "0 */6 * * *"
    run_on_start: bool = True
    timezone: str | None = None


@dataclass
class StoreConfig:
    """Configuration for article persistence.

    Attributes:
        path: SQLite database file
    """

    path: str = "data/articles.db"


@dataclass
class SelectionStoreConfig:
    """Configuration for the durable provider selection.

    Attributes:
        env_path: Key-value file holding LLM_PROVIDER and LLM_MODEL
    """

    env_path: str = ".env"


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        directory: Directory for log files
        format: Log file format ("jsonl" or "plain")
        filename: Name of the main log file
        llm_log_enabled: Whether to enable separate LLM interaction logging
        llm_log_redaction: Redaction mode ("none", "redact_content", "redact_urls")
        llm_log_file: Name of the LLM log file
        max_bytes: Size at which a log file is rotated (0 disables rotation)
        backup_count: Rotated files kept per log
    """

    level: str = "INFO"
    console: bool = True
    file: bool = True
    directory: str = "logs"
    format: str = "jsonl"
    filename: str = "pipeline.jsonl"
    llm_log_enabled: bool = True
    llm_log_redaction: str = "none"
    llm_log_file: str = "llm.jsonl"
    max_bytes: int = 10_000_000
    backup_count: int = 5


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    feed: FeedConfig = field(default_factory=FeedConfig)
    dedup: DedupConfig = field(default_factory=DedupConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    selection: SelectionStoreConfig = field(default_factory=SelectionStoreConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Environment variable -> (section, attribute)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "LLM_PROVIDER": ("llm", "provider"),
    "LLM_MODEL": ("llm", "model"),
    "CRON_SCHEDULE": ("scheduler", "cron"),
    "FEED_URL": ("feed", "url"),
    "DATABASE_PATH": ("store", "path"),
}


def load_config(path: str | None, environ: Mapping[str, str] | None = None) -> AppConfig:
    """Load configuration from a YAML file with defaults and env overrides."""
    raw: dict[str, Any] = {}
    if path:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

    cfg = _merge_config(AppConfig(), raw)
    return apply_env_overrides(cfg, os.environ if environ is None else environ)


def apply_env_overrides(cfg: AppConfig, environ: Mapping[str, str]) -> AppConfig:
    """Overlay the supported environment variables onto a config."""
    for env_name, (section, attr) in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value:
            setattr(getattr(cfg, section), attr, value.strip())
    return cfg


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update(value)
        else:
            data[key] = value
    return _fromdict(data)


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    return AppConfig(
        feed=FeedConfig(**data["feed"]),
        dedup=DedupConfig(**data["dedup"]),
        llm=LLMConfig(**data["llm"]),
        pipeline=PipelineConfig(**data["pipeline"]),
        scheduler=SchedulerConfig(**data["scheduler"]),
        store=StoreConfig(**data["store"]),
        selection=SelectionStoreConfig(**data["selection"]),
        logging=LoggingConfig(**data["logging"]),
    )
