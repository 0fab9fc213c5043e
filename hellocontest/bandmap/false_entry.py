"""Detection of false bandmap entries, e.g. busted callsigns spotted next to the real one."""

from __future__ import annotations

from enum import IntEnum

from ..spots import BandmapEntry, SpotType

SIMILAR_CALLSIGN_THRESHOLD = 2

_INSERT_COST = 1
_DELETE_COST = 1
_SUBSTITUTE_COST = 2


class FalseEntryCheckResult(IntEnum):
    DIFFERENT_ENTRIES = 0
    FIRST_IS_FALSE = 1
    SECOND_IS_FALSE = 2


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance where insertions and deletions cost one and substitutions cost two."""
    previous = list(range(0, (len(b) + 1) * _INSERT_COST, _INSERT_COST))
    for i, char_a in enumerate(a, start=1):
        current = [i * _DELETE_COST]
        for j, char_b in enumerate(b, start=1):
            substitution = 0 if char_a == char_b else _SUBSTITUTE_COST
            current.append(
                min(
                    previous[j] + _DELETE_COST,
                    current[j - 1] + _INSERT_COST,
                    previous[j - 1] + substitution,
                )
            )
        previous = current
    return previous[-1]


def _locally_verified(entry: BandmapEntry) -> bool:
    return entry.source in (SpotType.WORKED, SpotType.MANUAL)


def _callsigns_similar(call1: str, call2: str) -> bool:
    return levenshtein_distance(call1, call2) <= SIMILAR_CALLSIGN_THRESHOLD


def _first_spot_count_is_false(count1: int, count2: int) -> bool:
    return count1 == 1 and count2 > 2


def check_false_entry(entry1: BandmapEntry, entry2: BandmapEntry) -> FalseEntryCheckResult:
    """Decide whether one of two entries is a false spot of the other."""
    if _locally_verified(entry1) or _locally_verified(entry2):
        return FalseEntryCheckResult.DIFFERENT_ENTRIES

    similar = entry1.call == entry2.call or _callsigns_similar(entry1.call, entry2.call)
    if not similar:
        return FalseEntryCheckResult.DIFFERENT_ENTRIES
    if not entry1.on_frequency(entry2.frequency):
        return FalseEntryCheckResult.DIFFERENT_ENTRIES
    if _first_spot_count_is_false(entry1.spot_count, entry2.spot_count):
        return FalseEntryCheckResult.FIRST_IS_FALSE
    if _first_spot_count_is_false(entry2.spot_count, entry1.spot_count):
        return FalseEntryCheckResult.SECOND_IS_FALSE
    return FalseEntryCheckResult.DIFFERENT_ENTRIES