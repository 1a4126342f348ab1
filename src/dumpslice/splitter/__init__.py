"""Streaming splitter for mysqldump output."""

from .service import SplitResult, SplitService
from .source import open_dump

__all__ = ["SplitResult", "SplitService", "open_dump"]
