"""Source feed reading."""

from .reader import SourceFeedReader, extract_image, parse_entry

__all__ = ["SourceFeedReader", "extract_image", "parse_entry"]
