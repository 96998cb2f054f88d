import pytest

from retrodisc.dat.matcher import (
    CandidateFile,
    MatchError,
    MatchMethod,
    MatchStatus,
    identify,
)
from retrodisc.dat.models import Dat, Game, Rom


def _game(name, *roms):
    game = Game(name=name)
    for rom_name, size, sha1 in roms:
        game.add_rom(Rom(name=rom_name, size=size, sha1hex=sha1))
    return game


@pytest.fixture
def catalogue():
    dat = Dat("Test System")
    dat.add_game(_game(
        "Alpha (USA)",
        ("Alpha (USA).cue", 120, "c1" * 20),
        ("Alpha (USA) (Track 1).bin", 10_000, "a1" * 20),
        ("Alpha (USA) (Track 2).bin", 5_000, "a2" * 20),
    ))
    dat.add_game(_game(
        "Beta (Europe)",
        ("Beta (Europe).bin", 20_000, "b1" * 20),
    ))
    dat.add_game(_game(
        "Gamma (Japan)",
        ("Gamma (Japan).bin", 30_000, "d1" * 20),
    ))
    return dat


@pytest.mark.unit
def test_identify_by_hash(catalogue):
    candidates = [
        CandidateFile("x/Alpha (Track 1).bin", 10_000, "A1" * 20),
        CandidateFile("x/Alpha (Track 2).bin", 5_000, "a2" * 20),
    ]

    verdict = identify(candidates, catalogue)

    assert verdict.status == MatchStatus.MATCH
    assert verdict.method == MatchMethod.HASH
    assert verdict.game.name == "Alpha (USA)"
    assert verdict.reason == "match via content hash"
    assert verdict.is_match


@pytest.mark.unit
def test_identify_hash_tier_wins_over_combined_size(catalogue):
    # Track sizes add up to Gamma's 30,000 but one hash belongs to Beta
    candidates = [
        CandidateFile("dump/Beta.bin", 20_000, "b1" * 20),
        CandidateFile("dump/extra.bin", 10_000, "99" * 20),
    ]

    verdict = identify(candidates, catalogue)

    assert verdict.status == MatchStatus.MATCH
    assert verdict.method == MatchMethod.HASH
    assert verdict.game.name == "Beta (Europe)"


@pytest.mark.unit
def test_identify_by_hash_spanning_games_is_partial(catalogue):
    candidates = [
        CandidateFile("Alpha (Track 1).bin", 10_000, "a1" * 20),
        CandidateFile("Alpha (Track 2).bin", 5_000, "a2" * 20),
        CandidateFile("Beta.bin", 20_000, "b1" * 20),
    ]

    verdict = identify(candidates, catalogue)

    assert verdict.status == MatchStatus.PARTIAL
    assert verdict.method == MatchMethod.HASH
    assert [g.name for g in verdict.games] == ["Alpha (USA)", "Beta (Europe)"]
    assert verdict.game.name == "Alpha (USA)"


@pytest.mark.unit
def test_identify_by_combined_size(catalogue):
    candidates = [
        CandidateFile("renamed.cue", 500, "ee" * 20),
        CandidateFile("renamed (Track 1).bin", 7_500, "ff" * 20),
        CandidateFile("renamed (Track 2).bin", 7_500, "ef" * 20),
    ]

    verdict = identify(candidates, catalogue)

    assert verdict.status == MatchStatus.MATCH
    assert verdict.method == MatchMethod.COMBINED_SIZE
    assert verdict.game.name == "Alpha (USA)"
    assert verdict.reason == "match via combined track size"


@pytest.mark.unit
def test_identify_combined_size_shared_by_games_is_partial(catalogue):
    catalogue.add_game(_game("Beta (Europe) (Rev 1)", ("Beta (Rev 1).bin", 20_000, "b2" * 20)))

    verdict = identify([CandidateFile("x.bin", 20_000, "00" * 20)], catalogue)

    assert verdict.status == MatchStatus.PARTIAL
    assert verdict.method == MatchMethod.COMBINED_SIZE
    assert verdict.game.name == "Beta (Europe)"
    assert len(verdict.games) == 2


@pytest.mark.unit
def test_identify_by_closest_size_within_threshold(catalogue):
    verdict = identify([CandidateFile("x.bin", 20_400, "00" * 20)], catalogue)

    assert verdict.status == MatchStatus.PARTIAL
    assert verdict.method == MatchMethod.CLOSEST_SIZE
    assert verdict.game.name == "Beta (Europe)"
    assert "differs by 400 bytes" in verdict.reason
    assert not verdict.is_match


@pytest.mark.unit
def test_identify_closest_size_threshold_is_exclusive(catalogue):
    verdict = identify([CandidateFile("x.bin", 21_000, "00" * 20)], catalogue)

    assert verdict.status == MatchStatus.NONE
    assert verdict.method == MatchMethod.NONE
    assert verdict.game is None
    assert "1000 bytes" in verdict.reason


@pytest.mark.unit
def test_identify_closest_size_threshold_is_configurable(catalogue):
    verdict = identify(
        [CandidateFile("x.bin", 21_000, "00" * 20)],
        catalogue,
        closest_size_threshold=1001,
    )
    assert verdict.status == MatchStatus.PARTIAL
    assert verdict.game.name == "Beta (Europe)"


@pytest.mark.unit
def test_identify_closest_size_tie_keeps_first_game(catalogue):
    # 25,000 is 5,000 from both Beta and Gamma
    verdict = identify(
        [CandidateFile("x.bin", 25_000, "00" * 20)],
        catalogue,
        closest_size_threshold=10_000,
    )
    assert verdict.game.name == "Beta (Europe)"


@pytest.mark.unit
def test_identify_only_counts_bin_files_for_size(catalogue):
    candidates = [
        CandidateFile("Beta.cue", 999_999, "00" * 20),
        CandidateFile("Beta.BIN", 20_000, "01" * 20),
    ]
    verdict = identify(candidates, catalogue)
    assert verdict.method == MatchMethod.COMBINED_SIZE
    assert verdict.game.name == "Beta (Europe)"


@pytest.mark.unit
def test_identify_without_track_data_is_no_match(catalogue):
    verdict = identify([CandidateFile("notes.txt", 20_000, "00" * 20)], catalogue)
    assert verdict.status == MatchStatus.NONE


@pytest.mark.unit
def test_identify_empty_catalogue(catalogue):
    verdict = identify([CandidateFile("x.bin", 100, "00" * 20)], Dat("Empty"))
    assert verdict.status == MatchStatus.NONE


@pytest.mark.unit
def test_identify_requires_candidates(catalogue):
    with pytest.raises(MatchError):
        identify([], catalogue)
