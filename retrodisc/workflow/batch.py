"""
Batch processing of many dumps.

A failure in one input is logged and recorded; it never stops the rest of
the batch. Verdict counts are tallied so verification runs can report how
many dumps matched, partially matched or did not match.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Tuple

from retrodisc.cue.errors import CueError
from retrodisc.dat.loader import DatParsingError
from retrodisc.dat.matcher import MatchError
from retrodisc.dat.metadata import MetadataError
from retrodisc.dat.verifier import VerificationError

logger = logging.getLogger(__name__)

# Errors that concern a single input and must not abort the batch
ITEM_ERRORS = (
    CueError, DatParsingError, MatchError, MetadataError, VerificationError, ValueError, OSError
)

FAILED = "failed"


@dataclass
class ItemResult:
    """Outcome for one input."""
    name: str
    status: str         # 'match', 'partial', 'none', 'ok', 'skipped', 'planned' or 'failed'
    detail: str = ""


@dataclass
class BatchSummary:
    """Results of a batch run."""
    results: List[ItemResult] = field(default_factory=list)

    def add(self, name: str, status: str, detail: str = "") -> ItemResult:
        result = ItemResult(name=name, status=status, detail=detail)
        self.results.append(result)
        return result

    def counts(self) -> Counter:
        """Number of results per status."""
        return Counter(result.status for result in self.results)

    @property
    def failed(self) -> List[ItemResult]:
        return [result for result in self.results if result.status == FAILED]

    def has_failures(self) -> bool:
        return bool(self.failed)


def run_batch(
    items: Iterable,
    worker: Callable[[object], Tuple[str, str]],
    describe: Callable[[object], str] = str
) -> BatchSummary:
    """
    Run `worker` over every item, isolating per-item failures.

    Args:
        items: Inputs to process
        worker: Callable returning (status, detail) for one item
        describe: Callable giving a display name for an item

    Returns:
        BatchSummary with one result per item
    """
    summary = BatchSummary()
    items = list(items)

    for position, item in enumerate(items, 1):
        name = describe(item)
        logger.info(f"[{position}/{len(items)}] Processing {name}")
        try:
            status, detail = worker(item)
        except ITEM_ERRORS as e:
            logger.error(f"Failed to process {name}: {e}")
            summary.add(name, FAILED, str(e))
            continue
        summary.add(name, status, detail)

    counts = summary.counts()
    logger.info(
        "Batch complete: " + ", ".join(f"{count} {status}" for status, count in sorted(counts.items()))
    )
    return summary
