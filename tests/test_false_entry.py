import pytest

from hellocontest.bandmap.false_entry import (
    FalseEntryCheckResult,
    check_false_entry,
    levenshtein_distance,
)
from hellocontest.core import parse_callsign
from hellocontest.spots import BandmapEntry, SpotType


def _entry(call, frequency=0.0, source=SpotType.CLUSTER, spot_count=0):
    return BandmapEntry(
        call=parse_callsign(call), frequency=frequency, source=source, spot_count=spot_count
    )


@pytest.mark.parametrize(
    "entry1, entry2, expected",
    [
        pytest.param(
            _entry("DL0ABC"),
            _entry("OK0ZZZ"),
            FalseEntryCheckResult.DIFFERENT_ENTRIES,
            id="different callsign, same frequency",
        ),
        pytest.param(
            _entry("DL0ABC", 7000000, spot_count=1),
            _entry("DL0AB", 7000000, spot_count=100),
            FalseEntryCheckResult.FIRST_IS_FALSE,
            id="similar callsign, same frequency, second more spots",
        ),
        pytest.param(
            _entry("DL0ABC", 7000000, spot_count=100),
            _entry("DL0AB", 7000000, spot_count=1),
            FalseEntryCheckResult.SECOND_IS_FALSE,
            id="similar callsign, same frequency, first more spots",
        ),
        pytest.param(
            _entry("DL0ABC", 7000000, spot_count=1),
            _entry("DL0AB", 7000050, spot_count=100),
            FalseEntryCheckResult.FIRST_IS_FALSE,
            id="similar callsign, similar frequency, second more spots",
        ),
        pytest.param(
            _entry("DL0ABC", 7000000, spot_count=100),
            _entry("DL0AB", 7000050, spot_count=1),
            FalseEntryCheckResult.SECOND_IS_FALSE,
            id="similar callsign, similar frequency, first more spots",
        ),
        pytest.param(
            _entry("DL0ABC", 7000000, source=SpotType.MANUAL, spot_count=1),
            _entry("DL0AB", 7000050, spot_count=100),
            FalseEntryCheckResult.DIFFERENT_ENTRIES,
            id="first manually marked",
        ),
        pytest.param(
            _entry("DL0ABC", 7000000, source=SpotType.WORKED, spot_count=1),
            _entry("DL0AB", 7000050, spot_count=100),
            FalseEntryCheckResult.DIFFERENT_ENTRIES,
            id="first worked",
        ),
    ],
)
def test_check_false_entry(entry1, entry2, expected):
    assert check_false_entry(entry1, entry2) == expected


def test_check_false_entry_far_apart_frequencies_are_different():
    entry1 = _entry("DL0ABC", 7000000, spot_count=1)
    entry2 = _entry("DL0AB", 7010000, spot_count=100)
    assert check_false_entry(entry1, entry2) == FalseEntryCheckResult.DIFFERENT_ENTRIES


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ("DL0ABC", "DL0ABC", 0),
        ("DL0ABC", "DL0AB", 1),
        ("ABC", "ABD", 2),
        ("", "ABC", 3),
        ("ABC", "", 3),
    ],
)
def test_levenshtein_distance(a, b, expected):
    assert levenshtein_distance(a, b) == expected


def test_levenshtein_distance_is_symmetric():
    assert levenshtein_distance("DL1ABC", "OK1XYZ") == levenshtein_distance("OK1XYZ", "DL1ABC")