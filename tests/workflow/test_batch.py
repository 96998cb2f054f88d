import logging

import pytest

from retrodisc.cue.errors import CueStructureError
from retrodisc.dat.verifier import VerificationError
from retrodisc.workflow.batch import FAILED, BatchSummary, run_batch


@pytest.mark.unit
def test_run_batch_records_every_item():
    summary = run_batch(["a", "b"], lambda item: ("match", f"{item} ok"))

    assert [(r.name, r.status, r.detail) for r in summary.results] == [
        ("a", "match", "a ok"),
        ("b", "match", "b ok"),
    ]
    assert not summary.has_failures()


@pytest.mark.unit
def test_run_batch_isolates_item_errors(caplog):
    def worker(item):
        if item == "bad cue":
            raise CueStructureError("Unable to parse any bin files in the cue sheet. Is it empty?")
        if item == "bad dump":
            raise VerificationError("ROMs belong to different games")
        if item == "missing":
            raise FileNotFoundError("Dump folder not found")
        return "partial", ""

    with caplog.at_level(logging.ERROR):
        summary = run_batch(["bad cue", "good", "bad dump", "missing"], worker)

    assert [r.status for r in summary.results] == [FAILED, "partial", FAILED, FAILED]
    assert summary.has_failures()
    assert [r.name for r in summary.failed] == ["bad cue", "bad dump", "missing"]
    assert "Failed to process bad cue" in caplog.text


@pytest.mark.unit
def test_run_batch_does_not_swallow_programming_errors():
    def worker(item):
        raise KeyError(item)

    with pytest.raises(KeyError):
        run_batch(["x"], worker)


@pytest.mark.unit
def test_run_batch_uses_describe():
    summary = run_batch([1, 2], lambda item: ("ok", ""), describe=lambda item: f"item-{item}")
    assert [r.name for r in summary.results] == ["item-1", "item-2"]


@pytest.mark.unit
def test_batch_summary_counts():
    summary = BatchSummary()
    summary.add("a", "match")
    summary.add("b", "match")
    summary.add("c", "none")
    summary.add("d", FAILED, "boom")

    assert summary.counts() == {"match": 2, "none": 1, FAILED: 1}
