"""The entries of the bandmap: spots of the same station grouped and kept in order."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timedelta
from functools import cmp_to_key
from typing import Any, Callable, Iterator, Optional, Sequence, TypeVar

from ..core import Band, Mode, Property
from ..spots import (
    BandmapEntry,
    BandmapOrder,
    BandmapWeights,
    BandSummary,
    Callinfo,
    Spot,
    SpotType,
    bandmap_by_frequency,
)
from .false_entry import FalseEntryCheckResult, check_false_entry

log = logging.getLogger(__name__)

# spots within this distance to an entry's frequency are added to the entry
SPOT_FREQUENCY_DELTA_THRESHOLD = 500.0
# the frequency of an entry is aligned to this grid
SPOT_FREQUENCY_STEP = 10.0

# the age of an entry that was never heard, the largest duration there is
_UNKNOWN_AGE_SECONDS = (2**63 - 1) / 1e9

T = TypeVar("T")


def _before(a: Optional[datetime], b: Optional[datetime]) -> bool:
    """Whether a lies before b; a missing time lies before every other time."""
    if b is None:
        return False
    if a is None:
        return True
    return a < b


class NullCallinfo:
    """A call information source that knows nothing."""

    def get_info(self, call: str, band: Band, mode: Mode, exchange: Sequence[str]) -> Callinfo:
        return Callinfo(call=call)

    def get_value(
        self, call: str, band: Band, mode: Mode, exchange: Sequence[str]
    ) -> tuple[int, int, dict[Property, str]]:
        info = self.get_info(call, band, mode, exchange)
        return info.points, info.multis, dict(info.multi_values or {})


@dataclass
class Entry(BandmapEntry):
    """A bandmap entry together with the spots it was built from."""

    spots: list[Spot] = field(default_factory=list)
    updated: bool = False

    @classmethod
    def from_spot(cls, spot: Spot) -> "Entry":
        return cls(
            call=spot.call,
            frequency=spot.frequency,
            band=spot.band,
            mode=spot.mode,
            last_heard=spot.time,
            source=spot.source,
            spot_count=1,
            spots=[spot],
        )

    def __len__(self) -> int:
        return len(self.spots)

    def _snapshot(self) -> BandmapEntry:
        values = {f.name: getattr(self, f.name) for f in fields(BandmapEntry)}
        values["info"] = replace(self.info)
        return BandmapEntry(**values)

    def matches(self, spot: Spot) -> bool:
        if spot.call != self.call:
            return False
        if spot.band != self.band:
            return False
        if spot.mode != Mode.NONE and self.mode != Mode.NONE and spot.mode != self.mode:
            return False
        return abs(self.frequency - spot.frequency) <= SPOT_FREQUENCY_DELTA_THRESHOLD

    def add(self, spot: Spot) -> bool:
        """Add the spot if it belongs to this entry."""
        if not self.matches(spot):
            return False
        self.spots.append(spot)
        self._update_frequency()
        if _before(self.last_heard, spot.time):
            self.last_heard = spot.time
        if SpotType(self.source).priority() > SpotType(spot.source).priority():
            self.source = spot.source
        return True

    def remove_spots_before(self, timestamp: Optional[datetime]) -> bool:
        """Drop the spots older than the timestamp; False if no spot is left."""
        self.spots = filter_list(self.spots, lambda s: not _before(s.time, timestamp))
        still_valid = len(self.spots) > 0
        if still_valid:
            self._update()
        return still_valid

    def _update(self) -> None:
        frequency_updated = self._update_frequency()

        last_heard: Optional[datetime] = None
        source = SpotType.NONE
        for spot in self.spots:
            if _before(last_heard, spot.time):
                last_heard = spot.time
            if source.priority() > SpotType(spot.source).priority():
                source = SpotType(spot.source)

        self.updated = (
            frequency_updated or last_heard != self.last_heard or source != self.source
        )
        self.last_heard = last_heard
        self.source = source
        self.spot_count = len(self.spots)

    def _update_frequency(self) -> bool:
        if not self.spots:
            self.frequency = 0.0
            return True
        total = sum(spot.frequency for spot in self.spots)
        downscaled_mean = total / (len(self.spots) * SPOT_FREQUENCY_STEP)
        old_frequency = self.frequency
        self.frequency = float(round(downscaled_mean)) * SPOT_FREQUENCY_STEP
        return old_frequency != self.frequency


def filter_list(items: Sequence[T], predicate: Callable[[T], bool]) -> list[T]:
    """The items that satisfy the predicate, in their original order."""
    return [item for item in items if predicate(item)]


class Entries:
    """The ordered entries of the bandmap, with summaries per band."""

    def __init__(
        self,
        count_entry_value: Callable[[BandmapEntry], bool],
        order: BandmapOrder = bandmap_by_frequency,
    ) -> None:
        self._entries: list[Entry] = []
        self._bands: list[Band] = []
        self._summaries: dict[Band, BandSummary] = {}
        self._order = order
        self._callinfo: Any = NullCallinfo()
        self._count_entry_value = count_entry_value
        self._listeners: list[Any] = []

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._entries)

    def __getitem__(self, index: int) -> Entry:
        return self._entries[index]

    def __len__(self) -> int:
        return len(self._entries)

    def set_bands(self, bands: Sequence[Band]) -> None:
        self._bands = list(bands)
        self._summaries = {}

    def set_callinfo(self, callinfo: Any) -> None:
        self._callinfo = NullCallinfo() if callinfo is None else callinfo

    def notify(self, listener: Any) -> None:
        self._listeners.append(listener)

    def _emit(self, event: str, entry: BandmapEntry) -> None:
        for listener in self._listeners:
            callback = getattr(listener, event, None)
            if callable(callback):
                callback(entry)

    def clear(self) -> None:
        self._entries = []

    def add(self, spot: Spot, now: datetime, weights: BandmapWeights) -> None:
        """Add the spot to a matching entry or create a new entry for it."""
        for entry in self._entries:
            if entry.add(spot):
                entry.info = replace(self._callinfo.get_info(spot.call, spot.band, spot.mode, []))
                entry.info.weighted_value = self._calculate_weighted_value(entry, now, weights)
                self._emit("entry_updated", entry._snapshot())
                return

        new_entry = Entry.from_spot(spot)
        if new_entry.call:
            new_entry.info = replace(
                self._callinfo.get_info(new_entry.call, new_entry.band, new_entry.mode, [])
            )
            new_entry.info.weighted_value = self._calculate_weighted_value(new_entry, now, weights)
        self.insert(new_entry)
        self._emit("entry_added", new_entry._snapshot())

    def insert(self, entry: Entry) -> None:
        """Insert the entry at its place in the order and renumber the entries."""
        index = self.find_index_for_insert(entry)
        self._entries.insert(index, entry)
        for i, e in enumerate(self._entries):
            e.index = i

    def find_index_for_insert(self, entry: Entry) -> int:
        left = 0
        right = len(self._entries) - 1
        while left <= right:
            pivot = (left + right) // 2
            if self._order(self._entries[pivot], entry):
                left = pivot + 1
            elif self._order(entry, self._entries[pivot]):
                right = pivot - 1
            else:
                return pivot
        return left

    def clean_out(self, maximum_age: timedelta, now: datetime, weights: BandmapWeights) -> None:
        """Remove old and false entries, refresh the values and rebuild the band summaries."""
        self._clean_out_old_entries(maximum_age, now)
        self.clean_out_false_entries()

        self._summaries = {}
        for i, entry in enumerate(self._entries):
            entry.index = i
            old_points = entry.info.points
            old_multis = entry.info.multis
            old_weighted_value = entry.info.weighted_value
            points, multis, multi_values = self._callinfo.get_value(
                entry.call, entry.band, entry.mode, []
            )
            entry.info.points = points
            entry.info.multis = multis
            entry.info.multi_values = dict(multi_values or {})
            entry.info.weighted_value = self._calculate_weighted_value(entry, now, weights)
            updated = (
                entry.updated
                or old_points != entry.info.points
                or old_multis != entry.info.multis
                or old_weighted_value != entry.info.weighted_value
            )
            entry.updated = False

            snapshot = entry._snapshot()
            if updated:
                self._emit("entry_updated", snapshot)
            if self._count_entry_value(snapshot):
                self._add_to_summary(entry)

    def _clean_out_old_entries(self, maximum_age: timedelta, now: datetime) -> None:
        deadline = now - maximum_age
        kept: list[Entry] = []
        removed: list[BandmapEntry] = []
        for entry in self._entries:
            if entry.remove_spots_before(deadline):
                kept.append(entry)
            else:
                removed.append(entry._snapshot())
        self._entries = kept
        for shift, snapshot in enumerate(removed):
            snapshot.index -= shift
            self._emit("entry_removed", snapshot)

    def clean_out_false_entries(self) -> None:
        """Remove entries that are false spots of a neighbouring entry."""
        slots: list[Optional[Entry]] = list(self._entries)
        removed: list[BandmapEntry] = []

        for i, first in enumerate(slots):
            if first is None:
                continue
            for j, second in enumerate(slots[i + 1:], start=i + 1):
                if second is None:
                    continue
                if not second.on_frequency(first.frequency):
                    break
                result = check_false_entry(first, second)
                if result == FalseEntryCheckResult.FIRST_IS_FALSE:
                    removed.append(first._snapshot())
                    slots[i] = None
                    break
                if result == FalseEntryCheckResult.SECOND_IS_FALSE:
                    removed.append(second._snapshot())
                    slots[j] = None

        self._entries = [entry for entry in slots if entry is not None]

        for shift, snapshot in enumerate(removed):
            snapshot.index -= shift
            self._emit("entry_removed", snapshot)
            log.info("false entry %s on %.2f kHz removed", snapshot.call, snapshot.frequency)

    def _calculate_weighted_value(
        self, entry: Entry, now: datetime, weights: BandmapWeights
    ) -> float:
        if entry.source == SpotType.WORKED:
            return 0.0

        points = float(entry.info.points)
        multis = float(entry.info.multis)
        value = points * weights.total_multis + multis * weights.total_points + points * multis

        if entry.last_heard is None:
            age_seconds = _UNKNOWN_AGE_SECONDS
        else:
            age_seconds = (now - entry.last_heard).total_seconds()
        spots = float(entry.spot_count)
        source_priority = float(SpotType(entry.source).priority())
        weight = (
            1
            + age_seconds * weights.age_seconds
            + spots * weights.spots
            + source_priority * weights.source
        )
        return value * weight

    def _add_to_summary(self, entry: Entry) -> None:
        summary = self._summaries.get(entry.band)
        if summary is None:
            summary = BandSummary(band=entry.band)
            self._summaries[entry.band] = summary
        summary.points += entry.info.points
        summary.add_multi_values(entry.info.multi_values)

    def bands(self, active: Band, visible: Band) -> list[BandSummary]:
        """The summary of each configured band, with the best bands marked."""
        result: list[BandSummary] = []
        max_points, max_points_index = 0, 0
        max_multis, max_multis_index = 0, 0
        for i, band in enumerate(self._bands):
            stored = self._summaries.get(band)
            summary = BandSummary(band=band) if stored is None else replace(stored)
            summary.active = summary.band == active
            summary.visible = summary.band == visible
            result.append(summary)
            if summary.points > max_points:
                max_points, max_points_index = summary.points, i
            multis = summary.multis()
            if multis > max_multis:
                max_multis, max_multis_index = multis, i

        if max_points > 0 and max_points_index < len(result):
            result[max_points_index].max_points = True
        if max_multis > 0 and max_multis_index < len(result):
            result[max_multis_index].max_multis = True
        return result

    def do_on_entry(self, index: int, action: Callable[[BandmapEntry], None]) -> None:
        """Call the action with the entry at the index, or with an empty entry."""
        if index < 0 or index >= len(self._entries):
            action(BandmapEntry())
            return
        action(self._entries[index]._snapshot())

    def select(self, index: int) -> None:
        if index < 0 or index >= len(self._entries):
            return
        self._emit("entry_selected", self._entries[index]._snapshot())

    def all(self) -> list[BandmapEntry]:
        return [entry._snapshot() for entry in self._entries]

    def all_by(self, order: BandmapOrder) -> list[BandmapEntry]:
        """All entries, stably sorted by the given order."""

        def compare(a: BandmapEntry, b: BandmapEntry) -> int:
            if order(a, b):
                return -1
            if order(b, a):
                return 1
            return 0

        return sorted(self.all(), key=cmp_to_key(compare))

    def for_each(self, action: Callable[[BandmapEntry], bool]) -> None:
        """Call the action for each entry until it returns True."""
        for entry in self._entries:
            if action(entry._snapshot()):
                return