"""Spots, spot sources and the entries of the bandmap."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Mapping, Optional

from .core import Band, Frequency, Mode, Property

MAX_SPOT_TYPE_PRIORITY = 10

# frequencies within this distance to an entry's frequency are "in proximity"
SPOT_FREQUENCY_PROXIMITY_THRESHOLD = 2500.0
# spots with at least this proximity are "on frequency"
SPOT_ON_FREQUENCY_THRESHOLD = 0.95


class SpotType(str, Enum):
    """Where a spot comes from; lower priority values rank higher."""

    NONE = ""
    WORKED = "worked"
    MANUAL = "manual"
    SKIMMER = "skimmer"
    RBN = "rbn"
    CLUSTER = "cluster"

    def __str__(self) -> str:
        return self.value

    def priority(self) -> int:
        return _SPOT_TYPE_PRIORITIES.get(self, MAX_SPOT_TYPE_PRIORITY)


_SPOT_TYPE_PRIORITIES = {
    SpotType.WORKED: 0,
    SpotType.MANUAL: 1,
    SpotType.SKIMMER: 2,
    SpotType.RBN: 3,
    SpotType.CLUSTER: 4,
}


class SpotFilter(str, Enum):
    ALL = ""
    OWN_CONTINENT = "continent"
    OWN_COUNTRY = "country"


@dataclass
class SpotSource:
    name: str = ""
    type: SpotType = SpotType.NONE
    host_address: str = ""
    username: str = ""
    password: str = ""
    filter: SpotFilter = SpotFilter.ALL
    ignore_timestamp: bool = False


@dataclass
class Spot:
    call: str = ""
    frequency: Frequency = 0.0
    band: Band = Band.NONE
    mode: Mode = Mode.NONE
    time: Optional[datetime] = None
    source: SpotType = SpotType.NONE


@dataclass
class BandSummary:
    """The value that is available on one band."""

    band: Band = Band.NONE
    points: int = 0
    multi_values: dict[Property, set[str]] = field(default_factory=dict)

    max_points: bool = False
    max_multis: bool = False
    active: bool = False
    visible: bool = False

    def add_multi_values(self, values: Optional[Mapping[Property, str]]) -> None:
        for prop, value in (values or {}).items():
            self.multi_values.setdefault(prop, set()).add(value)

    def multis(self) -> int:
        return sum(len(values) for values in self.multi_values.values())


@dataclass
class Callinfo:
    """Information about a callsign collected from databases and the logbook."""

    call: str = ""
    dxcc_name: str = ""
    primary_prefix: str = ""
    continent: str = ""
    itu_zone: int = 0
    cq_zone: int = 0
    user_text: str = ""
    predicted_exchange: list[str] = field(default_factory=list)
    exchange_text: str = ""

    worked: bool = False  # worked on another band/mode, not a duplicate
    duplicate: bool = False
    points: int = 0
    multis: int = 0
    multi_values: dict[Property, str] = field(default_factory=dict)
    weighted_value: float = 0.0


@dataclass
class BandmapEntry:
    index: int = 0
    label: str = ""
    call: str = ""
    frequency: Frequency = 0.0
    band: Band = Band.NONE
    mode: Mode = Mode.NONE
    last_heard: Optional[datetime] = None
    source: SpotType = SpotType.NONE
    spot_count: int = 0
    info: Callinfo = field(default_factory=Callinfo)

    def proximity_factor(self, frequency: Frequency) -> float:
        """1.0 exactly on frequency down to 0.0 out of proximity; negative if the entry is below."""
        delta = abs(self.frequency - frequency)
        if delta > SPOT_FREQUENCY_PROXIMITY_THRESHOLD:
            return 0.0
        result = 1.0 - delta / SPOT_FREQUENCY_PROXIMITY_THRESHOLD
        if self.frequency < frequency:
            result *= -1.0
        return result

    def on_frequency(self, frequency: Frequency) -> bool:
        return abs(self.proximity_factor(frequency)) >= SPOT_ON_FREQUENCY_THRESHOLD


@dataclass
class BandmapFrame:
    frequency: Frequency = 0.0
    active_band: Band = Band.NONE
    visible_band: Band = Band.NONE
    mode: Mode = Mode.NONE
    bands: list[BandSummary] = field(default_factory=list)
    entries: list[BandmapEntry] = field(default_factory=list)
    nearest_entry: BandmapEntry = field(default_factory=BandmapEntry)
    reveal_nearest_entry: bool = False


@dataclass
class BandmapWeights:
    total_points: float = 0.0
    total_multis: float = 0.0
    age_seconds: float = 0.0
    spots: float = 0.0
    source: float = 0.0


BandmapOrder = Callable[[BandmapEntry, BandmapEntry], bool]


def descending(order: BandmapOrder) -> BandmapOrder:
    """The reverse of the given order."""
    return lambda a, b: order(b, a)


def bandmap_by_frequency(a: BandmapEntry, b: BandmapEntry) -> bool:
    return a.frequency < b.frequency


def bandmap_by_distance(reference_frequency: Frequency) -> BandmapOrder:
    """Order entries by their distance to the reference frequency."""

    def less(a: BandmapEntry, b: BandmapEntry) -> bool:
        return abs(a.frequency - reference_frequency) < abs(b.frequency - reference_frequency)

    return less


def bandmap_by_descending_value(a: BandmapEntry, b: BandmapEntry) -> bool:
    return a.info.weighted_value > b.info.weighted_value