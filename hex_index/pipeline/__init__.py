"""Ingestion pipeline orchestration."""

from .interfaces import (
    ArticleProcessResult,
    ArticleStatus,
    BatchIngestionResult,
    ErrorPhase,
    IngestionError,
    IngestionOptions,
    IngestionResult,
    NonFatalIssue,
    merge_options,
)
from .ingest import IngestionPipeline

__all__ = [
    "ArticleProcessResult",
    "ArticleStatus",
    "BatchIngestionResult",
    "ErrorPhase",
    "IngestionError",
    "IngestionOptions",
    "IngestionResult",
    "NonFatalIssue",
    "merge_options",
    "IngestionPipeline",
]
