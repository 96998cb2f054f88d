import pytest

from retrodisc.cue.binmerge import (
    file_start_offsets,
    merge,
    merge_cue_file,
    split,
    split_cue_file,
)
from retrodisc.cue.errors import CueIntegrityError, InvalidOperationError
from retrodisc.cue.models import BinFile

BLOCK = 2352

MULTI_FILE_CUE = """\
FILE "Game (Track 1).bin" BINARY
  TRACK 01 MODE2/2352
    INDEX 01 00:00:00
FILE "Game (Track 2).bin" BINARY
  TRACK 02 AUDIO
    INDEX 00 00:00:00
    INDEX 01 00:02:00
"""

SINGLE_FILE_CUE = """\
FILE "Game.bin" BINARY
  TRACK 01 MODE2/2352
    INDEX 01 00:00:00
  TRACK 02 AUDIO
    INDEX 00 00:06:00
    INDEX 01 00:08:00
"""


def _sizes(mapping):
    return lambda path: mapping[path]


@pytest.mark.unit
def test_file_start_offsets_are_cumulative():
    files = [
        BinFile(path="a.bin", size=300 * BLOCK),
        BinFile(path="b.bin", size=100 * BLOCK),
        BinFile(path="c.bin", size=50 * BLOCK),
    ]
    assert file_start_offsets(files, BLOCK) == [0, 300, 400]


@pytest.mark.unit
def test_file_start_offsets_reject_partial_sectors():
    files = [BinFile(path="a.bin", size=300 * BLOCK + 10), BinFile(path="b.bin", size=BLOCK)]
    with pytest.raises(CueIntegrityError) as excinfo:
        file_start_offsets(files, BLOCK)
    assert "a.bin is 705610 bytes, not a multiple of 2352" in str(excinfo.value)


@pytest.mark.unit
def test_file_start_offsets_treat_unknown_sizes_as_empty():
    files = [BinFile(path="a.bin"), BinFile(path="b.bin")]
    assert file_start_offsets(files, BLOCK) == [0, 0]


@pytest.mark.unit
def test_merge_reports_offsets_and_ranges():
    sizes = {"Game (Track 1).bin": 300 * BLOCK, "Game (Track 2).bin": 100 * BLOCK}

    result = merge(MULTI_FILE_CUE, "Game", size_of=_sizes(sizes))

    assert result.offsets == [0, 300]
    assert result.blocksize == BLOCK
    assert [(r.path, r.start, r.length) for r in result.ranges] == [
        ("Game (Track 1).bin", 0, 300 * BLOCK),
        ("Game (Track 2).bin", 0, 100 * BLOCK),
    ]
    assert "    INDEX 00 00:04:00" in result.cue_text.splitlines()
    assert result.cue_text.startswith('FILE "Game.bin" BINARY\n')


@pytest.mark.unit
def test_merge_rejects_partial_sector_input():
    sizes = {"Game (Track 1).bin": 10 * BLOCK + 100, "Game (Track 2).bin": 5 * BLOCK}

    with pytest.raises(CueIntegrityError):
        merge(MULTI_FILE_CUE, "Game", size_of=_sizes(sizes))


@pytest.mark.unit
def test_merge_single_file_without_size_is_a_no_op():
    result = merge(SINGLE_FILE_CUE, "X")

    assert result.offsets == [0]
    assert all(track.sectors is None for track in result.files[0].tracks)
    assert result.cue_text == SINGLE_FILE_CUE.replace("Game.bin", "X.bin")


@pytest.mark.unit
def test_merge_single_file_backfills_sector_counts():
    result = merge(SINGLE_FILE_CUE, "X", size_of=lambda path: 1000 * BLOCK)

    assert result.offsets == [0]
    assert [track.sectors for track in result.files[0].tracks] == [450, 550]
    assert [(r.path, r.length) for r in result.ranges] == [("Game.bin", 1000 * BLOCK)]


@pytest.mark.unit
def test_split_reports_track_slices():
    result = split(SINGLE_FILE_CUE, "Game", size_of=lambda path: 1000 * BLOCK)

    assert [(s.filename, s.start, s.end) for s in result.tracks] == [
        ("Game (Track 1).bin", 0, 450 * BLOCK),
        ("Game (Track 2).bin", 450 * BLOCK, 1000 * BLOCK),
    ]
    assert sum(s.length for s in result.tracks) == 1000 * BLOCK


@pytest.mark.unit
def test_split_without_size_leaves_last_track_open():
    result = split(SINGLE_FILE_CUE, "Game")
    assert result.tracks[-1].end is None
    assert result.tracks[-1].length is None


@pytest.mark.unit
def test_split_rejects_multiple_files():
    with pytest.raises(InvalidOperationError) as excinfo:
        split(MULTI_FILE_CUE, "Game")
    assert "exactly one input file, got 2" in str(excinfo.value)


@pytest.mark.unit
def test_split_uses_locked_blocksize():
    cue = """\
FILE "Game.bin" BINARY
  TRACK 01 MODE1/2048
    INDEX 01 00:00:00
  TRACK 02 AUDIO
    INDEX 01 00:00:10
"""
    result = split(cue, "Game", size_of=lambda path: 20 * 2048)
    assert result.blocksize == 2048
    assert result.tracks[1].start == 10 * 2048


@pytest.mark.integration
def test_merge_cue_file_concatenates_bins(tmp_path, make_bin, make_cue):
    source = tmp_path / "source"
    outdir = tmp_path / "out"
    outdir.mkdir()
    make_bin("Game (Track 1).bin", sectors=3, fill=b"\x01", folder=source)
    make_bin("Game (Track 2).bin", sectors=2, fill=b"\x02", folder=source)
    cue_path = make_cue("Game.cue", MULTI_FILE_CUE, folder=source)

    new_cue = merge_cue_file(cue_path, "Merged", outdir)

    merged = (outdir / "Merged.bin").read_bytes()
    assert merged == b"\x01" * 3 * BLOCK + b"\x02" * 2 * BLOCK
    text = new_cue.read_bytes().decode("utf-8")
    assert "\r\n" in text
    assert "INDEX 00 00:00:03" in text
    assert "INDEX 01 00:02:03" in text


@pytest.mark.integration
def test_merge_cue_file_rejects_partial_sector_bin(tmp_path, make_cue):
    source = tmp_path / "source"
    source.mkdir()
    outdir = tmp_path / "out"
    outdir.mkdir()
    (source / "Game (Track 1).bin").write_bytes(b"A" * (10 * BLOCK + 100))
    (source / "Game (Track 2).bin").write_bytes(b"B" * 5 * BLOCK)
    cue_path = make_cue("Game.cue", MULTI_FILE_CUE, folder=source)

    with pytest.raises(CueIntegrityError):
        merge_cue_file(cue_path, "Merged", outdir)
    assert list(outdir.iterdir()) == []


@pytest.mark.integration
def test_split_cue_file_writes_tracks(tmp_path, make_cue):
    source = tmp_path / "source"
    source.mkdir()
    outdir = tmp_path / "out"
    outdir.mkdir()
    (source / "Game.bin").write_bytes(b"\x01" * 450 * BLOCK + b"\x02" * 550 * BLOCK)
    cue_path = make_cue("Game.cue", SINGLE_FILE_CUE, folder=source)

    new_cue = split_cue_file(cue_path, "Game", outdir)

    assert (outdir / "Game (Track 1).bin").read_bytes() == b"\x01" * 450 * BLOCK
    assert (outdir / "Game (Track 2).bin").read_bytes() == b"\x02" * 550 * BLOCK
    assert new_cue == outdir / "Game.cue"


@pytest.mark.integration
def test_merge_then_split_restores_tracks(tmp_path, make_bin, make_cue):
    source = tmp_path / "source"
    merged_dir = tmp_path / "merged"
    split_dir = tmp_path / "split"
    merged_dir.mkdir()
    split_dir.mkdir()
    track1 = make_bin("Game (Track 1).bin", sectors=4, fill=b"\x0a", folder=source)
    track2 = make_bin("Game (Track 2).bin", sectors=3, fill=b"\x0b", folder=source)
    cue_path = make_cue("Game.cue", MULTI_FILE_CUE, folder=source)

    merged_cue = merge_cue_file(cue_path, "Game", merged_dir)
    split_cue_file(merged_cue, "Game", split_dir)

    assert (split_dir / "Game (Track 1).bin").read_bytes() == track1.read_bytes()
    assert (split_dir / "Game (Track 2).bin").read_bytes() == track2.read_bytes()
    assert (split_dir / "Game.cue").read_text() == cue_path.read_text()


@pytest.mark.integration
def test_merge_cue_file_refuses_to_overwrite(tmp_path, make_bin, make_cue):
    source = tmp_path / "source"
    outdir = tmp_path / "out"
    outdir.mkdir()
    make_bin("Game (Track 1).bin", folder=source)
    make_bin("Game (Track 2).bin", folder=source)
    cue_path = make_cue("Game.cue", MULTI_FILE_CUE, folder=source)
    (outdir / "Merged.bin").write_bytes(b"existing")

    with pytest.raises(FileExistsError):
        merge_cue_file(cue_path, "Merged", outdir)
    assert (outdir / "Merged.bin").read_bytes() == b"existing"


@pytest.mark.integration
def test_split_cue_file_missing_outdir(tmp_path, make_cue):
    cue_path = make_cue("Game.cue", SINGLE_FILE_CUE)
    with pytest.raises(FileNotFoundError):
        split_cue_file(cue_path, "Game", tmp_path / "missing")
