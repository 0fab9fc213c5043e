"""Scores per band, score graphs over the contest time and QSO rates."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Optional

from .core import BANDS, Band

_GRAPH_BIN_COUNT = 60


@dataclass(frozen=True)
class QSOScore:
    """The value of a single QSO."""

    points: int = 0
    multis: int = 0
    duplicate: bool = False


@dataclass
class BandScore:
    """Accumulated score values, e.g. of one band."""

    qsos: int = 0
    duplicates: int = 0
    points: int = 0
    multis: int = 0

    def __str__(self) -> str:
        return (
            f"{self.qsos:5d} {self.duplicates:4d} {self.points:7d} "
            f"{self.points_per_qso():4.1f} {self.multis:4d} "
            f"{self.qsos_per_multi():4.1f} {self.result():7d}"
        )

    def add(self, other: "BandScore") -> None:
        self.qsos += other.qsos
        self.duplicates += other.duplicates
        self.points += other.points
        self.multis += other.multis

    def add_qso(self, qso: QSOScore) -> None:
        """Count one QSO; duplicates add neither points nor multis."""
        self.qsos += 1
        if qso.duplicate:
            self.duplicates += 1
        else:
            self.points += qso.points
            self.multis += qso.multis

    def max(self, other: "BandScore") -> "BandScore":
        """The element-wise maximum of both scores."""
        return BandScore(
            qsos=max(self.qsos, other.qsos),
            duplicates=max(self.duplicates, other.duplicates),
            points=max(self.points, other.points),
            multis=max(self.multis, other.multis),
        )

    def points_per_qso(self) -> float:
        if self.qsos == 0:
            return 0.0
        return self.points / self.qsos

    def qsos_per_multi(self) -> float:
        if self.multis == 0:
            return 0.0
        return self.qsos / self.multis

    def result(self) -> int:
        if self.multis == 0:
            return self.points
        return self.points * self.multis


@dataclass
class BandGraph:
    """The score of one band, binned over the contest time."""

    band: Band = Band.NONE
    data_points: list[BandScore] = field(default_factory=list)
    max: BandScore = field(default_factory=BandScore)
    start_time: Optional[datetime] = None
    bin_seconds: float = 0.0

    def __str__(self) -> str:
        points = " | ".join(f"{value.points:3d}" for value in self.data_points)
        multis = " | ".join(f"{value.multis:3d}" for value in self.data_points)
        return f"P: {points}\nM: {multis}\n"

    def add(self, timestamp: Optional[datetime], score: QSOScore) -> None:
        """Add the QSO score to the bin of the given time; times outside the graph are ignored."""
        index = self.bindex(timestamp)
        if index == -1:
            return
        band_score = self.data_points[index]
        band_score.add_qso(score)
        self.max = self.max.max(band_score)

    def bindex(self, timestamp: Optional[datetime]) -> int:
        """The index of the bin for the given time, or -1 if it lies outside the graph."""
        if self.start_time is None:
            return 0
        if timestamp is None:
            return -1
        if timestamp < self.start_time:
            return -1

        bin_count = len(self.data_points)
        if bin_count == 1:
            return 0
        if self.bin_seconds == 0:
            return -1

        seconds = (timestamp - self.start_time).total_seconds()
        result = int(seconds / self.bin_seconds)
        if result > bin_count - 1:
            return -1
        return result

    def scale_hourly_goal_to_bin(self, goal: int) -> float:
        if self.bin_seconds == 0:
            return float(goal)
        return (self.bin_seconds / 3600.0) * goal


def new_band_graph(band: Band, start_time: Optional[datetime], duration: timedelta) -> BandGraph:
    """A graph with 60 bins over the contest duration, or a single bin for untimed contests."""
    if start_time is None or not duration:
        bin_count = 1
    else:
        bin_count = _GRAPH_BIN_COUNT
    return BandGraph(
        band=band,
        data_points=[BandScore() for _ in range(bin_count)],
        max=BandScore(),
        start_time=start_time,
        bin_seconds=duration.total_seconds() / bin_count,
    )


@dataclass
class Score:
    """The score and the score graph of each band."""

    score_per_band: dict[Band, BandScore] = field(default_factory=dict)
    graph_per_band: dict[Band, BandGraph] = field(default_factory=dict)

    def __str__(self) -> str:
        separator = "----------------------------------------------\n"
        lines = ["Band QSOs  Dupe Pts     P/Q  Mult Q/M  Result \n", separator]
        for band in BANDS:
            score = self.score_per_band.get(band)
            if score is not None:
                lines.append(f"{band.value:>4} {score}\n")
        lines.append(separator)
        lines.append(f"Tot  {self.result()}\n")
        return "".join(lines)

    def result(self) -> BandScore:
        total = BandScore()
        for score in self.score_per_band.values():
            total.add(score)
        return total

    def stacked_graph_per_band(self) -> list[BandGraph]:
        """The band graphs in band order, each stacked on top of the previous one."""
        result: list[BandGraph] = []
        below: Optional[list[BandScore]] = None
        for band in BANDS:
            graph = self.graph_per_band.get(band)
            if graph is None:
                continue
            stacked = BandGraph(
                band=graph.band,
                data_points=[replace(point) for point in graph.data_points],
                max=replace(graph.max),
                start_time=graph.start_time,
                bin_seconds=graph.bin_seconds,
            )
            if below is not None:
                for point, lower in zip(stacked.data_points, below):
                    point.add(lower)
                    stacked.max = stacked.max.max(point)
            result.append(stacked)
            below = stacked.data_points
        return result


def hour_of(timestamp: datetime) -> datetime:
    """The given time truncated to the full hour."""
    return timestamp.replace(minute=0, second=0, microsecond=0)


@dataclass
class QSORate:
    """Statistics about the rate of QSOs in a contest."""

    last_hour_rate: int = 0
    last_5min_rate: int = 0
    qsos_per_hours: dict[datetime, int] = field(default_factory=dict)
    since_last_qso: timedelta = timedelta(0)

    last_hour_points: int = 0
    last_5min_points: int = 0
    last_hour_multis: int = 0
    last_5min_multis: int = 0

    def since_last_qso_formatted(self) -> str:
        total = int(self.since_last_qso.total_seconds())
        hours = int(total / 3600)
        minutes = int(math.fmod(int(total / 60), 60))
        seconds = int(math.fmod(total, 60))
        if total < 60:
            return f"{seconds:2d}s"
        if total < 3600:
            return f"{minutes:02d}:{seconds:02d}"
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"