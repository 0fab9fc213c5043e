"""Collects what is known about a callsign: DXCC entity, history, dupes, value and predicted exchange."""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from functools import cmp_to_key
from typing import Any, Mapping, Optional, Protocol, Sequence

from .core import (
    FILTER_PLACEHOLDER,
    QSO,
    AnnotatedCallsign,
    Band,
    Contest,
    DXCCPrefix,
    ExchangeField,
    Mode,
    Property,
    parse_callsign,
)
from .spots import Callinfo

log = logging.getLogger(__name__)


class DXCCFinder(Protocol):
    def find(self, text: str) -> Optional[DXCCPrefix]: ...


class CallsignFinder(Protocol):
    def find(self, text: str) -> list[AnnotatedCallsign]: ...


class CallHistoryFinder(Protocol):
    def find_entry(self, text: str) -> Optional[AnnotatedCallsign]: ...

    def find(self, text: str) -> list[AnnotatedCallsign]: ...


class DupeChecker(Protocol):
    def find_worked_qsos(self, call: str, band: Band, mode: Mode) -> tuple[Sequence[QSO], bool]: ...


class Valuer(Protocol):
    def value(
        self, call: str, entity: DXCCPrefix, band: Band, mode: Mode, exchange: Sequence[str]
    ) -> tuple[int, int, Mapping[Property, str]]: ...


class ExchangeFilter(Protocol):
    def filter_exchange(self, exchange: Sequence[str]) -> list[str]: ...


def join_available_values(*args: str) -> str:
    """Join the non-empty values with a comma."""
    return ", ".join(value for value in args if value)


def placeholder_to_filter(text: str) -> Optional[re.Pattern[str]]:
    """A pattern in which each placeholder stands for any character, or None without placeholders."""
    if FILTER_PLACEHOLDER not in text:
        return None
    parts = [re.escape(part) for part in text.split(FILTER_PLACEHOLDER)]
    return re.compile(".".join(parts))


def _compare_annotated(a: AnnotatedCallsign, b: AnnotatedCallsign) -> int:
    if a.less_than(b):
        return -1
    if b.less_than(a):
        return 1
    return 0


class CallinfoService:
    """Provides call information and shows it in the call information view."""

    def __init__(
        self,
        entities: Optional[DXCCFinder],
        callsigns: CallsignFinder,
        call_history: CallHistoryFinder,
        dupe_checker: DupeChecker,
        valuer: Valuer,
        exchange_filter: ExchangeFilter,
    ) -> None:
        self._view: Optional[Any] = None
        self._entities = entities
        self._callsigns = callsigns
        self._call_history = call_history
        self._dupe_checker = dupe_checker
        self._valuer = valuer
        self._exchange_filter = exchange_filter

        self._last_callsign = ""
        self._last_band = Band.NONE
        self._last_mode = Mode.NONE
        self._last_exchange: list[str] = []
        self._predicted_exchange: list[str] = []
        self._their_exchange_fields: list[ExchangeField] = []

    def set_view(self, view: Any) -> None:
        self._view = view

    def refresh(self) -> None:
        self.show_info(self._last_callsign, self._last_band, self._last_mode, self._last_exchange)

    def show(self) -> None:
        if self._view is not None:
            self._view.show()
        self.refresh()

    def hide(self) -> None:
        if self._view is not None:
            self._view.hide()

    def contest_changed(self, contest: Contest) -> None:
        if contest.definition is None:
            log.warning("there is no contest definition!")
            return
        self._their_exchange_fields = list(contest.their_exchange_fields)

    def predicted_exchange(self) -> list[str]:
        return self._predicted_exchange

    def get_info(
        self, call: str, band: Band, mode: Mode, exchange: Optional[Sequence[str]]
    ) -> Callinfo:
        """All information about the callsign, including its value and predicted exchange."""
        result = Callinfo(call=call)

        found = self._find_dxcc_entity(call)
        entity = found if found is not None else DXCCPrefix()
        if found is not None:
            result.dxcc_name = entity.name
            result.primary_prefix = entity.primary_prefix
            result.continent = entity.continent
            result.itu_zone = int(entity.itu_zone)
            result.cq_zone = int(entity.cq_zone)

        historic_exchange: list[str] = []
        entry = self._call_history.find_entry(call)
        if entry is not None:
            historic_exchange = list(entry.predicted_exchange)
            result.user_text = join_available_values(entry.name, entry.user_text)

        qsos, duplicate = self._dupe_checker.find_worked_qsos(call, band, mode)
        result.duplicate = duplicate
        result.worked = len(qsos) > 0
        result.predicted_exchange = self._predict_exchange(entity, qsos, exchange, historic_exchange)
        filtered = self._exchange_filter.filter_exchange(result.predicted_exchange)
        result.exchange_text = " ".join(filtered)

        points, multis, multi_values = self._valuer.value(
            call, entity, band, mode, result.predicted_exchange
        )
        result.points = points
        result.multis = multis
        result.multi_values = dict(multi_values or {})
        return result

    def show_info(
        self, call: str, band: Band, mode: Mode, exchange: Optional[Sequence[str]]
    ) -> None:
        """Show the information about the given (possibly partial) callsign in the view."""
        self._last_callsign = call
        self._last_band = band
        self._last_mode = mode
        self._last_exchange = list(exchange or [])

        found = self._find_dxcc_entity(call)
        entity = found if found is not None else DXCCPrefix()

        callinfo = Callinfo()
        try:
            parsed = parse_callsign(call)
        except ValueError:
            self._predicted_exchange = list(exchange or [])
        else:
            callinfo = self.get_info(parsed, band, mode, exchange)
            self._predicted_exchange = callinfo.predicted_exchange

        self._show_dxcc_entity(entity)
        if self._view is not None:
            self._view.set_callsign(call, callinfo.worked, callinfo.duplicate)
            self._view.set_user_info(callinfo.user_text)
            self._view.set_value(callinfo.points, callinfo.multis)
            self._view.set_exchange(callinfo.exchange_text)
        self._show_supercheck(call)

    def get_value(
        self, call: str, band: Band, mode: Mode, exchange: Optional[Sequence[str]]
    ) -> tuple[int, int, dict[Property, str]]:
        """The points, multis and multi values of a QSO with the callsign."""
        entity = self._find_dxcc_entity(call)
        if entity is None:
            return 0, 0, {}
        callinfo = self.get_info(call, band, mode, exchange)
        points, multis, multi_values = self._valuer.value(
            call, entity, band, mode, callinfo.predicted_exchange
        )
        return points, multis, dict(multi_values or {})

    def _find_dxcc_entity(self, call: str) -> Optional[DXCCPrefix]:
        if self._entities is None:
            return None
        return self._entities.find(call)

    def _show_dxcc_entity(self, entity: DXCCPrefix) -> None:
        if self._view is None:
            return
        name = f"{entity.name} ({entity.primary_prefix})" if entity.primary_prefix else ""
        self._view.set_dxcc(
            name,
            entity.continent,
            int(entity.itu_zone),
            int(entity.cq_zone),
            not entity.not_arrl_compliant,
        )

    def _show_supercheck(self, text: str) -> None:
        normalized_input = text.upper().strip()
        try:
            scp_matches = self._callsigns.find(text)
        except Exception as error:  # the finder reports any failure by raising
            log.warning("Callsign search failed for %s: %s", text, error)
            return
        try:
            historic_matches = self._call_history.find(text)
        except Exception:
            historic_matches = []

        annotated: dict[str, AnnotatedCallsign] = {match.callsign: match for match in scp_matches}
        for match in historic_matches:
            stored = annotated.get(match.callsign, match)
            annotated[stored.callsign] = replace(
                stored, predicted_exchange=list(match.predicted_exchange)
            )

        pattern = placeholder_to_filter(normalized_input)

        result: list[AnnotatedCallsign] = []
        for candidate in annotated.values():
            match_string = candidate.callsign
            if pattern is not None and not pattern.search(match_string):
                continue
            found = self._find_dxcc_entity(match_string)
            entity = found if found is not None else DXCCPrefix()

            qsos, duplicate = self._dupe_checker.find_worked_qsos(
                candidate.callsign, self._last_band, self._last_mode
            )
            predicted = self._predict_exchange(entity, qsos, None, candidate.predicted_exchange)

            points, multis = 0, 0
            if found is not None:
                points, multis, _ = self._valuer.value(
                    candidate.callsign, entity, self._last_band, self._last_mode, predicted
                )

            result.append(
                replace(
                    candidate,
                    duplicate=duplicate,
                    worked=len(qsos) > 0,
                    exact_match=match_string == normalized_input,
                    points=points,
                    multis=multis,
                    predicted_exchange=predicted,
                )
            )

        result.sort(key=cmp_to_key(_compare_annotated))
        if self._view is not None:
            self._view.set_supercheck(result)

    def _predict_exchange(
        self,
        entity: DXCCPrefix,
        qsos: Sequence[QSO],
        current_exchange: Optional[Sequence[str]],
        historic_exchange: Optional[Sequence[str]],
    ) -> list[str]:
        historic = list(historic_exchange or [])
        result = [""] * len(self._their_exchange_fields)
        for i, value in enumerate(list(current_exchange or [])[: len(result)]):
            result[i] = value

        def has_historic(i: int) -> bool:
            return i < len(historic) and historic[i] != ""

        if entity.primary_prefix:
            for i, exchange_field in enumerate(self._their_exchange_fields):
                if result[i] or has_historic(i):
                    continue
                properties = exchange_field.properties
                if Property.CQ_ZONE in properties:
                    result[i] = str(int(entity.cq_zone))
                elif Property.ITU_ZONE in properties:
                    result[i] = str(int(entity.itu_zone))
                elif Property.DXCC_ENTITY in properties or Property.DXCC_PREFIX in properties:
                    result[i] = entity.primary_prefix

        for i in range(len(result)):
            if result[i]:
                continue
            for qso in qsos:
                if i >= len(qso.their_exchange):
                    break
                if result[i] == "":
                    result[i] = qso.their_exchange[i]
                elif result[i] != qso.their_exchange[i]:
                    result[i] = ""
                    break
            if has_historic(i):
                result[i] = historic[i]

        return result