"""Workflow coordination package."""

from .batch import BatchSummary, ItemResult, run_batch

__all__ = [
    "BatchSummary",
    "ItemResult",
    "run_batch",
]
