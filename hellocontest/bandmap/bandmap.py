"""The bandmap: collects spots, keeps them up to date and shows them to the operator."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import timedelta
from typing import Any, Callable, Optional, Protocol, Sequence

from ..core import Band, Clock, Contest, Mode, QSO
from ..spots import (
    BandmapEntry,
    BandmapFrame,
    BandmapOrder,
    BandmapWeights,
    Spot,
    SpotType,
    bandmap_by_descending_value,
    bandmap_by_distance,
)
from .entries import Entries

log = logging.getLogger(__name__)

# the bandmap is updated with this period
DEFAULT_UPDATE_PERIOD = timedelta(seconds=1)
# entries that were not heard within this period are removed from the bandmap
DEFAULT_MAXIMUM_AGE = timedelta(minutes=10)

DEFAULT_WEIGHTS = BandmapWeights(
    total_points=1,
    total_multis=1,
    age_seconds=-0.001,
    spots=0.001,
    source=0,
)

EntryPredicate = Callable[[BandmapEntry], bool]


class DupeChecker(Protocol):
    def find_worked_qsos(self, call: str, band: Band, mode: Mode) -> tuple[Sequence[QSO], bool]: ...


class Bandmap:
    """Keeps the spotted stations and periodically presents them as a frame to the view.

    With an update period, a background thread refreshes the bandmap until it is closed.
    Without one (None), the bandmap is only refreshed when its state changes.
    """

    def __init__(
        self,
        clock: Clock,
        contest: Contest,
        dupe_checker: DupeChecker,
        update_period: Optional[timedelta] = DEFAULT_UPDATE_PERIOD,
        maximum_age: timedelta = DEFAULT_MAXIMUM_AGE,
    ) -> None:
        if update_period is not None and update_period <= timedelta(0):
            raise ValueError("the update period must be positive")

        self._clock = clock
        self._view: Any = None
        self._dupe_checker = dupe_checker
        self._vfo: Any = None

        self._active_frequency = 0.0
        self._active_band = Band.NONE
        self._visible_band = Band.NONE
        self._active_mode = Mode.NONE

        self._maximum_age = maximum_age
        self._weights = replace(DEFAULT_WEIGHTS)

        self._lock = threading.RLock()
        self._closed = threading.Event()

        self._entries = Entries(self._count_entry_value)
        self._entries.set_bands(contest.bands())

        self._thread: Optional[threading.Thread] = None
        if update_period is not None:
            self._period_seconds = update_period.total_seconds()
            self._thread = threading.Thread(target=self._run, name="bandmap", daemon=True)
            self._thread.start()

    def __enter__(self) -> "Bandmap":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _run(self) -> None:
        while not self._closed.wait(self._period_seconds):
            try:
                self.update()
            except Exception:
                log.exception("bandmap update failed")

    def close(self) -> None:
        """Stop the periodic updates."""
        self._closed.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread() and thread.is_alive():
            thread.join()

    def update(self) -> None:
        """Clean out the entries and show the current frame."""
        with self._lock:
            now = self._clock.now()
            self._entries.clean_out(self._maximum_age, now, self._weights)

            nearest = self._next_visible_entry(
                self._active_frequency,
                lambda entry: entry.frequency != self._active_frequency
                and entry.source != SpotType.WORKED,
            )
            frame = BandmapFrame(
                frequency=self._active_frequency,
                active_band=self._active_band,
                visible_band=self._visible_band,
                mode=self._active_mode,
                bands=self._entries.bands(self._active_band, self._visible_band),
                entries=self._entries.all(),
                nearest_entry=nearest if nearest is not None else BandmapEntry(),
                reveal_nearest_entry=nearest is not None,
            )
            if self._view is not None:
                self._view.show_frame(frame)

    def set_view(self, view: Any) -> None:
        with self._lock:
            self._view = view
            if view is None:
                return
            self._entries.notify(view)
            self.update()

    def set_vfo(self, vfo: Any) -> None:
        with self._lock:
            self._vfo = vfo
            if vfo is not None:
                vfo.notify(self)

    def set_callinfo(self, callinfo: Any) -> None:
        with self._lock:
            self._entries.set_callinfo(callinfo)
            self.update()

    def show(self) -> None:
        with self._lock:
            if self._view is not None:
                self._view.show()
            self.update()

    def hide(self) -> None:
        with self._lock:
            if self._view is not None:
                self._view.hide()

    def contest_changed(self, contest: Contest) -> None:
        with self._lock:
            self._entries.set_bands(contest.bands())
            self.update()

    def score_updated(self, score: Any) -> None:
        """Weigh the entries against the current total score."""
        with self._lock:
            total = score.result()
            self._weights.total_points = float(total.points)
            self._weights.total_multis = float(total.multis)
            self.update()

    def vfo_frequency_changed(self, frequency: float) -> None:
        with self._lock:
            self._active_frequency = frequency

    def vfo_band_changed(self, band: Band) -> None:
        """Follow the VFO's band; the visible band follows too if it showed the active band."""
        with self._lock:
            if self._active_band == self._visible_band:
                self._visible_band = band
            self._active_band = band
            self.update()

    def vfo_mode_changed(self, mode: Mode) -> None:
        with self._lock:
            self._active_mode = mode
            self.update()

    def set_visible_band(self, band: Band) -> None:
        with self._lock:
            self._visible_band = band
            self.update()

    def set_active_band(self, band: Band) -> None:
        vfo = self._vfo
        if vfo is not None:
            vfo.set_band(band)

    def remaining_lifetime(self, index: int) -> float:
        """The share of its lifetime the entry at the index has left, from 0.0 to 1.0."""
        with self._lock:
            found: list[BandmapEntry] = []
            self._entries.do_on_entry(index, found.append)
            return self._remaining_lifetime(found[0])

    def _remaining_lifetime(self, entry: BandmapEntry) -> float:
        if entry.last_heard is None:
            return 0.0
        millisecond = timedelta(milliseconds=1)
        maximum_ms = self._maximum_age // millisecond
        if maximum_ms == 0:
            return 0.0
        age_ms = (self._clock.now() - entry.last_heard) // millisecond
        result = 1 - age_ms / maximum_ms
        return max(0.0, min(1.0, result))

    def entry_visible(self, index: int) -> bool:
        with self._lock:
            found: list[BandmapEntry] = []
            self._entries.do_on_entry(index, found.append)
            return self._entry_visible(found[0])

    def _entry_visible(self, entry: BandmapEntry) -> bool:
        return entry.band == self._visible_band and entry.mode == self._active_mode

    def _count_entry_value(self, entry: BandmapEntry) -> bool:
        return entry.mode == self._active_mode and entry.source != SpotType.WORKED

    def notify(self, listener: Any) -> None:
        with self._lock:
            self._entries.notify(listener)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def add(self, spot: Spot) -> None:
        """Add a spot; stations that were already worked are marked as such."""
        with self._lock:
            spot = replace(spot)
            mode = spot.mode if spot.mode != Mode.NONE else self._active_mode
            _, worked = self._dupe_checker.find_worked_qsos(spot.call, spot.band, mode)
            if worked:
                spot.source = SpotType.WORKED
            self._entries.add(spot, self._clock.now(), self._weights)

    def all_by(self, order: BandmapOrder) -> list[BandmapEntry]:
        with self._lock:
            return self._entries.all_by(order)

    def select_entry(self, index: int) -> None:
        with self._lock:
            self._entries.select(index)

    def select_by_callsign(self, call: str) -> bool:
        """Select the entry of the callsign on the visible band; False if there is none."""
        with self._lock:
            found_index = -1

            def matches(entry: BandmapEntry) -> bool:
                nonlocal found_index
                if entry.call == call and entry.band == self._visible_band:
                    found_index = entry.index
                    return True
                return False

            self._entries.for_each(matches)
            self._entries.select(found_index)
            return found_index > -1

    def goto_highest_value_entry(self) -> None:
        self._find_and_select_by(
            bandmap_by_descending_value,
            lambda entry: entry.frequency != self._active_frequency
            and entry.source != SpotType.WORKED,
        )

    def goto_nearest_entry(self) -> None:
        self._find_and_select(
            lambda entry: entry.frequency != self._active_frequency
            and entry.source != SpotType.WORKED
        )

    def goto_next_entry_up(self) -> None:
        self._find_and_select(
            lambda entry: entry.frequency > self._active_frequency
            and entry.source != SpotType.WORKED
        )

    def goto_next_entry_down(self) -> None:
        self._find_and_select(
            lambda entry: entry.frequency < self._active_frequency
            and entry.source != SpotType.WORKED
        )

    def _find_and_select(self, predicate: EntryPredicate) -> None:
        with self._lock:
            entry = self._next_visible_entry(self._active_frequency, predicate)
            if entry is not None:
                self._entries.select(entry.index)

    def _find_and_select_by(self, order: BandmapOrder, predicate: EntryPredicate) -> None:
        with self._lock:
            entry = self._next_visible_entry_by(order, predicate)
            if entry is not None:
                self._entries.select(entry.index)

    def _next_visible_entry(
        self, frequency: float, predicate: EntryPredicate
    ) -> Optional[BandmapEntry]:
        return self._next_visible_entry_by(bandmap_by_distance(frequency), predicate)

    def _next_visible_entry_by(
        self, order: BandmapOrder, predicate: EntryPredicate
    ) -> Optional[BandmapEntry]:
        return next(
            (
                entry
                for entry in self._entries.all_by(order)
                if self._entry_visible(entry) and predicate(entry)
            ),
            None,
        )


def new_default_bandmap(clock: Clock, contest: Contest, dupe_checker: DupeChecker) -> Bandmap:
    """A bandmap with the default update period and maximum age."""
    return Bandmap(clock, contest, dupe_checker, DEFAULT_UPDATE_PERIOD, DEFAULT_MAXIMUM_AGE)


class Logger:
    """A bandmap listener that logs every change of the entries."""

    def entry_added(self, entry: BandmapEntry) -> None:
        log.info("Bandmap entry added: %s", entry)

    def entry_updated(self, entry: BandmapEntry) -> None:
        log.info("Bandmap entry updated: %s", entry)

    def entry_removed(self, entry: BandmapEntry) -> None:
        log.info("Bandmap entry removed: %s", entry)