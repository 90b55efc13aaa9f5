"""
Feed Rewriter - AI-powered localized rewrite of a news feed.

This package reads a single RSS feed, skips items already published,
rewrites each new item in French through a configurable text-generation
provider (Claude, OpenAI, Gemini or DeepSeek), sanitizes the resulting HTML
and stores it as a published article with a unique slug.

Main entry point is the CLI via `feed-rewriter run` or `feed-rewriter serve`.

Example:
    $ feed-rewriter serve -c config.yaml
"""

__all__ = [
    "__version__",
    "PipelineOrchestrator",
    "RunSummary",
    "build_pipeline",
    "sanitize_html",
    "slugify",
]
__version__ = "0.1.0"

from .core.slug import slugify
from .runner import PipelineOrchestrator, RunSummary, build_pipeline
from .sanitize import sanitize_html
