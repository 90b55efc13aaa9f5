"""
Main pipeline orchestration for the feed rewriter.

One run coordinates the whole workflow:
1. Fetch the source feed (a FetchError aborts the run)
2. Deduplicate within the fetch, then against stored articles (an
   unreadable store also aborts the run)
3. For each remaining item, strictly one at a time:
   rewrite -> sanitize -> allocate slug -> persist
4. Report a summary of succeeded and failed items

Per-item errors are counted and logged; they never stop the run. A fixed
pacing delay separates consecutive items to respect provider rate limits.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
import time
from typing import Callable

from .config import AppConfig
from .core.dedup import dedup_items, filter_new_items
from .core.slug import SlugAllocator
from .core.types import STATUS_PUBLISHED, Article, SourceItem
from .errors import FetchError, PipelineError, StoreError
from .feed.reader import SourceFeedReader
from .llm.registry import ActiveSelection, ProviderRegistry, SelectionState
from .llm.rewriter import RewriteEngine
from .sanitize import sanitize_html
from .selection_store import EnvFileSelectionStore
from .store.base import ArticleStore
from .store.sqlite import SQLiteArticleStore
from .utils.logging import log_event, setup_llm_logger, setup_logging


@dataclass
class RunSummary:
    """Outcome of one pipeline run.

    Attributes:
        fetched: Items returned by the feed
        candidates: Items left after deduplication
        succeeded: Items persisted as articles
        failed: Items that raised an isolated error
        skipped: True when the run was rejected because another was in flight
        error: Fatal error message when the run was aborted
    """
    fetched: int = 0
    candidates: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: bool = False
    error: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def aborted(self) -> bool:
        return self.error is not None


class PipelineOrchestrator:
    """Sequence feed reading, rewriting and publishing for one run."""

    def __init__(
        self,
        cfg: AppConfig,
        reader: SourceFeedReader,
        store: ArticleStore,
        engine: RewriteEngine,
        logger: logging.Logger | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.cfg = cfg
        self.reader = reader
        self.store = store
        self.engine = engine
        self.slugs = SlugAllocator(store)
        self.logger = logger or logging.getLogger(__name__)
        self._sleep = sleep
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._run_lock = Lock()

    def run(self) -> RunSummary:
        """Run the pipeline once and return its summary.

        Never raises for a fetch failure: the run is aborted and the error
        is reported in the summary. With prevent_overlap enabled, a call made
        while another run is in flight returns a skipped summary at once.
        """
        if self.cfg.pipeline.prevent_overlap:
            if not self._run_lock.acquire(blocking=False):
                log_event(
                    self.logger,
                    "Pipeline already running, skipping this trigger",
                    level=logging.WARNING,
                    event="pipeline_skipped",
                )
                return RunSummary(skipped=True)
            try:
                return self._run()
            finally:
                self._run_lock.release()
        return self._run()

    def _run(self) -> RunSummary:
        summary = RunSummary(started_at=self._clock())
        log_event(self.logger, "Pipeline start", event="pipeline_start", feed=self.cfg.feed.url)

        try:
            items = self.reader.fetch()
        except FetchError as exc:
            return self._abort(summary, exc)

        summary.fetched = len(items)
        log_event(self.logger, f"{len(items)} items in feed", event="feed_fetched", count=len(items))

        if self.cfg.dedup.enabled:
            items = dedup_items(items)
        try:
            candidates = filter_new_items(items, self.store)
        except StoreError as exc:
            return self._abort(summary, exc)
        summary.candidates = len(candidates)
        log_event(
            self.logger,
            f"{len(candidates)} new items to process",
            event="dedup_complete",
            count=len(candidates),
        )

        for index, item in enumerate(candidates):
            if index > 0 and self.cfg.pipeline.pacing_seconds > 0:
                self._sleep(self.cfg.pipeline.pacing_seconds)
            if self.process_item(item) is not None:
                summary.succeeded += 1
            else:
                summary.failed += 1

        summary.finished_at = self._clock()
        log_event(
            self.logger,
            f"Pipeline complete: {summary.succeeded} published, {summary.failed} failed",
            event="pipeline_complete",
            succeeded=summary.succeeded,
            failed=summary.failed,
        )
        return summary

    def _abort(self, summary: RunSummary, exc: PipelineError) -> RunSummary:
        summary.error = str(exc)
        summary.finished_at = self._clock()
        log_event(
            self.logger,
            f"Pipeline aborted: {exc}",
            level=logging.ERROR,
            event="pipeline_aborted",
            error_type=type(exc).__name__,
            error=str(exc),
        )
        return summary

    def process_item(self, item: SourceItem) -> Article | None:
        """Rewrite and persist one item; return None if it failed."""
        try:
            rewritten = self.engine.rewrite(item)
            status = self.cfg.pipeline.publish_status
            article = Article(
                slug=self.slugs.allocate(rewritten.title_fr),
                source_url=item.source_url,
                source_title=item.source_title,
                source_published=item.source_published,
                title_fr=rewritten.title_fr,
                summary_fr=rewritten.summary_fr,
                content_fr=sanitize_html(rewritten.content_fr),
                meta_desc_fr=rewritten.meta_desc_fr,
                tags=rewritten.tags,
                image_url=item.image_url,
                status=status,
                published_at=self._clock() if status == STATUS_PUBLISHED else None,
            )
            saved = self.store.create(article)
        except PipelineError as exc:
            log_event(
                self.logger,
                f"Failed for {item.source_title!r}: {exc}",
                level=logging.ERROR,
                event="item_failed",
                source_url=item.source_url,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return None
        except Exception as exc:  # noqa: BLE001
            # Only a fetch failure may end the run
            log_event(
                self.logger,
                f"Unexpected error for {item.source_title!r}: {type(exc).__name__}: {exc}",
                level=logging.ERROR,
                exc_info=exc,
                event="item_failed",
                source_url=item.source_url,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return None

        log_event(
            self.logger,
            f"Article saved [{saved.status}]: {saved.title_fr!r} (slug: {saved.slug})",
            event="item_published",
            article_id=saved.id,
            slug=saved.slug,
            status=saved.status,
            llm_provider=rewritten.llm_provider,
            llm_model=rewritten.llm_model,
        )
        return saved


@dataclass
class Pipeline:
    """Wired components sharing one store and one selection state."""
    cfg: AppConfig
    store: SQLiteArticleStore
    registry: ProviderRegistry
    orchestrator: PipelineOrchestrator
    logger: logging.Logger


def build_pipeline(cfg: AppConfig, logger: logging.Logger | None = None) -> Pipeline:
    """Build the store, provider registry, rewrite engine and orchestrator."""
    log_dir = Path(cfg.logging.directory) if cfg.logging.file else None
    logger = logger or setup_logging(cfg.logging, log_dir)
    llm_logger = setup_llm_logger(cfg.logging, log_dir)

    store = SQLiteArticleStore(cfg.store.path)
    selection_store = EnvFileSelectionStore(cfg.selection.env_path)
    state = SelectionState(initial_selection(cfg, selection_store))
    registry = ProviderRegistry(
        cfg.llm,
        state=state,
        selection_store=selection_store,
        logger=logger,
    )
    engine = RewriteEngine(registry, cfg.llm, cfg.logging, llm_logger=llm_logger, logger=logger)
    orchestrator = PipelineOrchestrator(
        cfg,
        reader=SourceFeedReader(cfg.feed),
        store=store,
        engine=engine,
        logger=logger,
    )
    return Pipeline(cfg=cfg, store=store, registry=registry, orchestrator=orchestrator, logger=logger)


def initial_selection(cfg: AppConfig, selection_store: EnvFileSelectionStore) -> ActiveSelection:
    """Selection to start with: the persisted one if any, else the config.

    The stored model only applies together with the stored provider.
    """
    stored = selection_store.load()
    if stored.provider_key:
        return stored
    return ActiveSelection(cfg.llm.provider, cfg.llm.model)
