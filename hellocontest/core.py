"""Core domain types of the contest logger: bands, modes, QSOs, exchange fields and settings."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum, IntEnum
from typing import Any, Callable, Optional, Protocol, Sequence

Frequency = float
RST = str
QSONumber = int
AsyncRunner = Callable[[Callable[[], None]], None]

FILTER_PLACEHOLDER = "."
RADIO_KEYER = "radio"

_MY_EXCHANGE_PREFIX = "myExchange_"
_THEIR_EXCHANGE_PREFIX = "theirExchange_"
_INTEGER = re.compile(r"[+-]?[0-9]+")
_CALLSIGN = re.compile(
    r"(?:[A-Z0-9]{1,4}/)?[A-Z0-9]{1,3}[0-9][A-Z0-9]*[A-Z](?:/[A-Z0-9]{1,4})?"
)


class Clock(Protocol):
    """A source of the current time."""

    def now(self) -> datetime: ...


class Band(str, Enum):
    """An amateur radio band."""

    NONE = ""
    BAND_160M = "160m"
    BAND_80M = "80m"
    BAND_60M = "60m"
    BAND_40M = "40m"
    BAND_30M = "30m"
    BAND_20M = "20m"
    BAND_17M = "17m"
    BAND_15M = "15m"
    BAND_12M = "12m"
    BAND_10M = "10m"

    def __str__(self) -> str:
        return self.value


BANDS: tuple[Band, ...] = (
    Band.BAND_160M,
    Band.BAND_80M,
    Band.BAND_60M,
    Band.BAND_40M,
    Band.BAND_30M,
    Band.BAND_20M,
    Band.BAND_17M,
    Band.BAND_15M,
    Band.BAND_12M,
    Band.BAND_10M,
)

BAND_ALL = "all"


class Mode(str, Enum):
    """An operating mode."""

    NONE = ""
    CW = "CW"
    SSB = "SSB"
    FM = "FM"
    RTTY = "RTTY"
    DIGITAL = "DIGI"

    def __str__(self) -> str:
        return self.value


MODES: tuple[Mode, ...] = (Mode.CW, Mode.SSB, Mode.FM, Mode.RTTY, Mode.DIGITAL)


class Workmode(IntEnum):
    """Either search & pounce or run."""

    SEARCH_POUNCE = 0
    RUN = 1


class Property(str, Enum):
    """A property that an exchange field of a contest can hold."""

    RST = "rst"
    SERIAL_NUMBER = "serial"
    MEMBER_NUMBER = "member_number"
    NAME = "name"
    CQ_ZONE = "cq_zone"
    ITU_ZONE = "itu_zone"
    DXCC_ENTITY = "dxcc_entity"
    DXCC_PREFIX = "dxcc_prefix"
    WAE_ENTITY = "wae_entity"
    CONTINENT = "continent"
    STATE_PROVINCE = "state_province"
    DOK = "dok"
    LOCATOR = "locator"
    POWER = "power"
    AGE = "age"
    GENERIC_TEXT = "generic_text"
    EMPTY = "empty"

    def __str__(self) -> str:
        return self.value


class EntryField(str):
    """The name of an entry field in the visual part."""

    def is_my_exchange(self) -> bool:
        return self.startswith(_MY_EXCHANGE_PREFIX)

    def is_their_exchange(self) -> bool:
        return self.startswith(_THEIR_EXCHANGE_PREFIX)

    def _prefix_and_index(self) -> Optional[tuple[str, int]]:
        for prefix in (_MY_EXCHANGE_PREFIX, _THEIR_EXCHANGE_PREFIX):
            if self.startswith(prefix):
                rest = self[len(prefix):]
                if _INTEGER.fullmatch(rest):
                    return prefix, int(rest)
                return None
        return None

    def exchange_index(self) -> int:
        """The index of an exchange field, or -1 if this is no exchange field."""
        parts = self._prefix_and_index()
        return -1 if parts is None else parts[1]

    def next_exchange_field(self) -> "EntryField":
        """The following exchange field, or an empty field name."""
        parts = self._prefix_and_index()
        if parts is None:
            return EntryField("")
        prefix, index = parts
        return EntryField(f"{prefix}{index + 1}")


CALLSIGN_FIELD = EntryField("callsign")
BAND_FIELD = EntryField("band")
MODE_FIELD = EntryField("mode")
OTHER_FIELD = EntryField("other")


def is_exchange_field(name: str) -> bool:
    return name.startswith(_MY_EXCHANGE_PREFIX) or name.startswith(_THEIR_EXCHANGE_PREFIX)


def my_exchange_field(index: int) -> EntryField:
    return EntryField(f"{_MY_EXCHANGE_PREFIX}{index}")


def their_exchange_field(index: int) -> EntryField:
    return EntryField(f"{_THEIR_EXCHANGE_PREFIX}{index}")


def parse_callsign(text: str) -> str:
    """Normalize a callsign to upper case; raise ValueError if it is not a callsign."""
    normalized = text.strip().upper()
    if not _CALLSIGN.fullmatch(normalized):
        raise ValueError(f"{text!r} is not a valid callsign")
    return normalized


def format_frequency(frequency: Frequency) -> str:
    return f"{float(frequency):.0f}Hz"


def format_qso_number(number: QSONumber) -> str:
    return f"{number:03d}"


@dataclass(frozen=True)
class DXCCPrefix:
    """A DXCC entity as found by its prefix."""

    prefix: str = ""
    name: str = ""
    continent: str = ""
    itu_zone: int = 0
    cq_zone: int = 0
    primary_prefix: str = ""
    not_arrl_compliant: bool = False


@dataclass
class QSO:
    """The details about one radio contact."""

    callsign: str = ""
    time: Optional[datetime] = None
    frequency: Frequency = 0.0
    band: Band = Band.NONE
    mode: Mode = Mode.NONE
    my_report: RST = ""
    my_number: QSONumber = 0
    my_exchange: list[str] = field(default_factory=list)
    their_report: RST = ""
    their_number: QSONumber = 0
    their_exchange: list[str] = field(default_factory=list)
    log_timestamp: Optional[datetime] = None
    dxcc: DXCCPrefix = field(default_factory=DXCCPrefix)
    points: int = 0
    multis: int = 0
    duplicate: bool = False

    def __str__(self) -> str:
        time_text = self.time.strftime("%H:%M") if self.time else "00:00"
        return (
            f"{time_text}|{self.callsign:<10}|{self.frequency / 1000.0:5.0f}kHz"
            f"|{Band(self.band).value:>4}|{Mode(self.mode).value:<4}"
            f"|{self.my_report}|{format_qso_number(self.my_number)}|{' '.join(self.my_exchange)}"
            f"|{self.their_report}|{format_qso_number(self.their_number)}|{' '.join(self.their_exchange)}"
            f"|{self.points:2d}|{self.multis:2d}|{'true' if self.duplicate else 'false'}"
        )


@dataclass(frozen=True)
class ExchangeField:
    """An exchange field of a contest with the properties it may hold."""

    field: EntryField = EntryField("")
    can_contain_serial: bool = False
    can_contain_report: bool = False
    empty_allowed: bool = False
    properties: tuple[Property, ...] = ()
    short: str = ""
    name: str = ""
    hint: str = ""
    read_only: bool = False


def field_definition_strings(definition: Sequence[Property]) -> list[str]:
    return [Property(p).value for p in definition]


def definitions_to_exchange_fields(
    field_definitions: Sequence[Sequence[Property]],
    exchange_entry_field: Callable[[int], EntryField],
) -> list[ExchangeField]:
    """Build the exchange fields from the contest's field definitions, numbered from 1."""
    return [
        ExchangeField(
            field=exchange_entry_field(number),
            properties=tuple(definition),
            short="/".join(field_definition_strings(definition)),
            can_contain_serial=Property.SERIAL_NUMBER in definition,
            can_contain_report=Property.RST in definition,
            empty_allowed=Property.EMPTY in definition,
        )
        for number, definition in enumerate(field_definitions, start=1)
    ]


@dataclass
class KeyerValues:
    """Values that can be used as variables in the keyer templates."""

    their_call: str = ""
    my_number: QSONumber = 0
    my_report: RST = ""
    my_xchange: str = ""
    my_exchange: str = ""
    my_exchanges: list[str] = field(default_factory=list)


class MatchingOperation(IntEnum):
    MATCHING = 0
    INSERT = 1
    DELETE = 2
    SUBSTITUTE = 3
    FALSE_FRIEND = 4


@dataclass(frozen=True)
class MatchingPart:
    op: MatchingOperation
    value: str


class MatchingAssembly(list):
    """The parts of a fuzzy callsign match."""

    def __str__(self) -> str:
        return "".join(part.value for part in self if part.op != MatchingOperation.DELETE)


@dataclass
class AnnotatedCallsign:
    """A callsign with additional information from databases and the logbook."""

    callsign: str = ""
    assembly: MatchingAssembly = field(default_factory=MatchingAssembly)
    duplicate: bool = False
    worked: bool = False
    exact_match: bool = False
    points: int = 0
    multis: int = 0
    predicted_exchange: list[str] = field(default_factory=list)
    name: str = ""
    user_text: str = ""
    comparable: Any = None
    compare: Optional[Callable[[Any, Any], bool]] = None

    def less_than(self, other: "AnnotatedCallsign") -> bool:
        if self.exact_match and not other.exact_match:
            return True
        if self.compare is None:
            return False
        if self.comparable is None or other.comparable is None:
            return False
        return self.compare(self.comparable, other.comparable)


@dataclass
class Station:
    callsign: str = ""
    operator: str = ""
    locator: str = ""


@dataclass(frozen=True)
class ContestDefinition:
    """The rules of a contest that matter to the logger."""

    identifier: str = ""
    name: str = ""
    bands: tuple[str, ...] = ()
    duration: timedelta = timedelta(0)
    exchange_fields: tuple[tuple[Property, ...], ...] = ()


@dataclass
class Contest:
    """The settings of the contest that is currently logged."""

    definition: Optional[ContestDefinition] = None
    name: str = ""
    exchange_values: list[str] = field(default_factory=list)
    generate_serial_exchange: bool = False
    generate_report: bool = False
    start_time: Optional[datetime] = None

    my_exchange_fields: list[ExchangeField] = field(default_factory=list)
    my_report_exchange_field: ExchangeField = field(default_factory=ExchangeField)
    my_number_exchange_field: ExchangeField = field(default_factory=ExchangeField)
    their_exchange_fields: list[ExchangeField] = field(default_factory=list)
    their_report_exchange_field: ExchangeField = field(default_factory=ExchangeField)
    their_number_exchange_field: ExchangeField = field(default_factory=ExchangeField)

    operation_mode_sprint: bool = False
    call_history_filename: str = ""
    call_history_field_names: list[str] = field(default_factory=list)

    qsos_goal: int = 0
    points_goal: int = 0
    multis_goal: int = 0

    def bands(self) -> list[Band]:
        if self.definition is None:
            return []
        bands: Sequence[str] = self.definition.bands
        if len(bands) == 1 and bands[0] == BAND_ALL:
            return list(BANDS)
        return [Band(band) for band in bands]

    def _timed(self) -> bool:
        return (
            self.start_time is not None
            and self.definition is not None
            and bool(self.definition.duration)
        )

    def started(self, now: datetime) -> bool:
        if not self._timed():
            return True
        return now > self.start_time

    def finished(self, now: datetime) -> bool:
        if not self._timed():
            return False
        return now > self.start_time + self.definition.duration

    def running(self, now: datetime) -> bool:
        return self.started(now) and not self.finished(now)

    def update_exchange_fields(self) -> None:
        """Derive my and their exchange fields from the contest definition."""
        self.my_exchange_fields = []
        self.my_report_exchange_field = ExchangeField()
        self.my_number_exchange_field = ExchangeField()
        self.their_exchange_fields = []
        self.their_report_exchange_field = ExchangeField()
        self.their_number_exchange_field = ExchangeField()

        if self.definition is None:
            return

        definitions = self.definition.exchange_fields

        self.my_exchange_fields = definitions_to_exchange_fields(definitions, my_exchange_field)
        for i, exchange_field in enumerate(self.my_exchange_fields):
            if Property.RST in exchange_field.properties:
                self.my_report_exchange_field = exchange_field
            elif Property.SERIAL_NUMBER in exchange_field.properties:
                if self.generate_serial_exchange:
                    exchange_field = replace(
                        exchange_field, read_only=True, short="#", hint="Serial Number"
                    )
                    self.my_exchange_fields[i] = exchange_field
                self.my_number_exchange_field = exchange_field

        self.their_exchange_fields = definitions_to_exchange_fields(definitions, their_exchange_field)
        for exchange_field in self.their_exchange_fields:
            if Property.RST in exchange_field.properties:
                self.their_report_exchange_field = exchange_field
            elif Property.SERIAL_NUMBER in exchange_field.properties:
                self.their_number_exchange_field = exchange_field


class RadioType(str, Enum):
    HAMLIB = "hamlib"
    TCI = "tci"


@dataclass
class Radio:
    name: str = ""
    type: str = ""
    address: str = ""
    keyer: str = ""
    options: dict[str, str] = field(default_factory=dict)


class KeyerType(str, Enum):
    CWDAEMON = "cwdaemon"


@dataclass
class Keyer:
    name: str = ""
    type: str = ""
    address: str = ""


@dataclass
class KeyerSettings:
    wpm: int = 0
    preset: str = ""
    sp_macros: list[str] = field(default_factory=list)
    run_macros: list[str] = field(default_factory=list)


@dataclass
class KeyerPreset:
    name: str = ""
    sp_macros: list[str] = field(default_factory=list)
    run_macros: list[str] = field(default_factory=list)


class Service(IntEnum):
    NONE = 0
    RADIO = 1
    KEYER = 2
    DXCC = 3
    SCP = 4
    CALL_HISTORY = 5