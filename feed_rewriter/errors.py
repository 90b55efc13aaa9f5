"""
Error taxonomy for the rewrite pipeline.

Fatal errors (FetchError) abort a run. Everything raised while processing a
single feed item is isolated by the orchestrator and only counted.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for all pipeline errors."""


class FetchError(PipelineError):
    """The source feed is unreachable or unparsable."""


class ConfigError(PipelineError):
    """Unknown provider key or missing provider credential."""


class ProviderError(PipelineError):
    """The completion request to a rewrite provider failed."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class RewriteParseError(PipelineError):
    """The provider response could not be decoded into a rewrite.

    Attributes:
        raw_excerpt: Bounded prefix of the raw response, kept for diagnosis
    """

    EXCERPT_CHARS = 300

    def __init__(self, message: str, raw_text: str | None = None):
        super().__init__(message)
        self.raw_excerpt = (raw_text or "")[: self.EXCERPT_CHARS]


class StoreError(PipelineError):
    """The article database failed (locked, closed, corrupt, ...)."""


class PersistenceConflict(StoreError):
    """A uniqueness violation on slug or source URL."""


class ArticleNotFound(PipelineError):
    """No article with the requested id."""


class StatusTransitionError(PipelineError):
    """An article status change other than draft -> published."""
