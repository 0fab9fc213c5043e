from datetime import timedelta
from typing import Optional

import pytest

from hellocontest.callinfo import CallinfoService, join_available_values, placeholder_to_filter
from hellocontest.core import (
    QSO,
    AnnotatedCallsign,
    Band,
    Contest,
    ContestDefinition,
    DXCCPrefix,
    Mode,
    Property,
)

GERMANY = DXCCPrefix(
    prefix="DL", name="Germany", continent="EU", itu_zone=28, cq_zone=14, primary_prefix="DL"
)


class FakeEntities:
    def find(self, text: str) -> Optional[DXCCPrefix]:
        return GERMANY if text.upper().startswith("DL") else None


class FakeCallsigns:
    def __init__(self, matches=None, error=None):
        self.matches = matches or []
        self.error = error

    def find(self, text):
        if self.error:
            raise self.error
        return list(self.matches)


class FakeHistory:
    def __init__(self, entries=None):
        self.entries = entries or {}

    def find_entry(self, text):
        return self.entries.get(text)

    def find(self, text):
        return list(self.entries.values())


class FakeDupes:
    def __init__(self, qsos=None, duplicate=False):
        self.qsos = qsos or []
        self.duplicate = duplicate

    def find_worked_qsos(self, call, band, mode):
        return self.qsos, self.duplicate


class FakeValuer:
    def __init__(self, points=2, multis=1):
        self.points = points
        self.multis = multis
        self.exchanges = []

    def value(self, call, entity, band, mode, exchange):
        self.exchanges.append(list(exchange))
        return self.points, self.multis, {Property.CQ_ZONE: str(entity.cq_zone)}


class FirstBlankFilter:
    def filter_exchange(self, exchange):
        return [""] + list(exchange[1:]) if exchange else []


class RecordingView:
    def __init__(self):
        self.calls = []
        self.supercheck = None
        self.dxcc = None
        self.shown = 0

    def show(self):
        self.shown += 1

    def hide(self):
        pass

    def set_callsign(self, callsign, worked, duplicate):
        self.calls.append((callsign, worked, duplicate))

    def set_dxcc(self, name, continent, itu, cq, arrl):
        self.dxcc = (name, continent, itu, cq, arrl)

    def set_value(self, points, multis):
        self.value = (points, multis)

    def set_exchange(self, exchange):
        self.exchange = exchange

    def set_user_info(self, text):
        self.user_info = text

    def set_supercheck(self, callsigns):
        self.supercheck = callsigns


def make_contest():
    contest = Contest(
        definition=ContestDefinition(
            duration=timedelta(hours=1),
            exchange_fields=((Property.RST,), (Property.CQ_ZONE,), (Property.NAME,)),
        )
    )
    contest.update_exchange_fields()
    return contest


def make_service(callsigns=None, history=None, dupes=None, valuer=None):
    service = CallinfoService(
        FakeEntities(),
        callsigns or FakeCallsigns(),
        history or FakeHistory(),
        dupes or FakeDupes(),
        valuer or FakeValuer(),
        FirstBlankFilter(),
    )
    service.contest_changed(make_contest())
    return service


def test_join_available_values_skips_empty_values():
    assert join_available_values("Fred", "", "Berlin") == "Fred, Berlin"
    assert join_available_values("", "") == ""


def test_placeholder_to_filter_without_placeholder():
    assert placeholder_to_filter("DL1ABC") is None


def test_placeholder_to_filter_matches_any_character():
    pattern = placeholder_to_filter("DL.ABC")
    assert pattern.search("DL1ABC")
    assert not pattern.search("DL12BC")


def test_placeholder_to_filter_escapes_special_characters():
    pattern = placeholder_to_filter("A+.B")
    assert pattern.search("A+XB")
    assert not pattern.search("AAXB")


def test_get_info_fills_dxcc_and_history_data():
    history = FakeHistory(
        {"DL1ABC": AnnotatedCallsign(callsign="DL1ABC", name="Fred", user_text="Berlin")}
    )
    service = make_service(history=history)
    info = service.get_info("DL1ABC", Band.BAND_40M, Mode.CW, [])
    assert info.dxcc_name == GERMANY.name
    assert info.primary_prefix == GERMANY.primary_prefix
    assert info.cq_zone == GERMANY.cq_zone
    assert info.itu_zone == GERMANY.itu_zone
    assert info.user_text == join_available_values("Fred", "Berlin")
    assert (info.points, info.multis) == (2, 1)


def test_get_info_predicts_zone_from_entity():
    service = make_service()
    info = service.get_info("DL1ABC", Band.BAND_40M, Mode.CW, [])
    assert info.predicted_exchange[1] == str(GERMANY.cq_zone)
    assert len(info.predicted_exchange) == 3


def test_get_info_predicts_from_consistent_qsos():
    qsos = [QSO(their_exchange=["599", "14", "FRED"]), QSO(their_exchange=["579", "14", "FRED"])]
    service = make_service(dupes=FakeDupes(qsos, duplicate=True))
    info = service.get_info("DL1ABC", Band.BAND_40M, Mode.CW, [])
    assert info.predicted_exchange[0] == ""
    assert info.predicted_exchange[2] == "FRED"
    assert info.worked
    assert info.duplicate


def test_historic_exchange_overrides_qsos():
    qsos = [QSO(their_exchange=["599", "14", "FRED"])]
    history = FakeHistory(
        {"DL1ABC": AnnotatedCallsign(callsign="DL1ABC", predicted_exchange=["", "", "KARL"])}
    )
    service = make_service(history=history, dupes=FakeDupes(qsos))
    info = service.get_info("DL1ABC", Band.BAND_40M, Mode.CW, [])
    assert info.predicted_exchange[2] == "KARL"


def test_current_exchange_is_kept_and_filtered_text_is_joined():
    service = make_service()
    info = service.get_info("DL1ABC", Band.BAND_40M, Mode.CW, ["599", "", "ANNA"])
    assert info.predicted_exchange == ["599", str(GERMANY.cq_zone), "ANNA"]
    assert info.exchange_text == " ".join(["", str(GERMANY.cq_zone), "ANNA"])


def test_get_value_without_entity():
    service = make_service()
    assert service.get_value("W1AW", Band.BAND_20M, Mode.CW, []) == (0, 0, {})


def test_get_value_with_entity():
    valuer = FakeValuer(points=3, multis=2)
    service = make_service(valuer=valuer)
    points, multis, values = service.get_value("DL1ABC", Band.BAND_20M, Mode.CW, [])
    assert (points, multis) == (3, 2)
    assert values == {Property.CQ_ZONE: str(GERMANY.cq_zone)}


def test_show_info_sorts_exact_match_first():
    callsigns = FakeCallsigns(
        [AnnotatedCallsign(callsign="DL1ABD"), AnnotatedCallsign(callsign="DL1ABC")]
    )
    service = make_service(callsigns=callsigns)
    view = RecordingView()
    service.set_view(view)
    service.show_info("dl1abc", Band.BAND_40M, Mode.CW, [])
    assert [c.callsign for c in view.supercheck] == ["DL1ABC", "DL1ABD"]
    assert view.supercheck[0].exact_match
    assert not view.supercheck[1].exact_match
    assert view.calls[-1] == ("dl1abc", False, False)
    assert view.dxcc[0] == f"{GERMANY.name} ({GERMANY.primary_prefix})"


def test_show_info_filters_with_placeholder_and_merges_history():
    callsigns = FakeCallsigns(
        [AnnotatedCallsign(callsign="DL1ABC"), AnnotatedCallsign(callsign="OK1XYZ")]
    )
    history = FakeHistory(
        {"DL1ABC": AnnotatedCallsign(callsign="DL1ABC", predicted_exchange=["", "", "FRED"])}
    )
    service = make_service(callsigns=callsigns, history=history)
    view = RecordingView()
    service.set_view(view)
    service.show_info("DL1AB.", Band.BAND_40M, Mode.CW, ["599"])
    assert [c.callsign for c in view.supercheck] == ["DL1ABC"]
    assert view.supercheck[0].predicted_exchange[2] == "FRED"
    assert service.predicted_exchange() == ["599"]


def test_show_info_stops_on_search_error():
    service = make_service(callsigns=FakeCallsigns(error=RuntimeError("broken")))
    view = RecordingView()
    service.set_view(view)
    service.show_info("DL1ABC", Band.BAND_40M, Mode.CW, [])
    assert view.supercheck is None
    assert view.calls == [("DL1ABC", False, False)]


def test_show_refreshes_last_info():
    service = make_service()
    view = RecordingView()
    service.set_view(view)
    service.show_info("DL1ABC", Band.BAND_40M, Mode.CW, [])
    service.show()
    assert view.shown == 1
    assert view.calls == [("DL1ABC", False, False), ("DL1ABC", False, False)]


def test_contest_without_definition_keeps_fields():
    service = make_service()
    service.contest_changed(Contest())
    info = service.get_info("DL1ABC", Band.BAND_40M, Mode.CW, [])
    assert len(info.predicted_exchange) == 3


@pytest.mark.parametrize("call", ["", "12"])
def test_show_info_with_invalid_callsign_keeps_exchange(call):
    service = make_service()
    service.show_info(call, Band.BAND_40M, Mode.CW, ["599", "x"])
    assert service.predicted_exchange() == ["599", "x"]