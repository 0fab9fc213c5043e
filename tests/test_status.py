from hellocontest.core import Service
from hellocontest.status import ServiceStatus


class RecordingListener:
    def __init__(self):
        self.calls = []

    def status_changed(self, service, available):
        self.calls.append((service, available))


def run_now(f):
    f()


def test_status_change_is_forwarded_to_listener():
    status = ServiceStatus(run_now)
    listener = RecordingListener()
    status.notify(listener)

    status.status_changed(Service.DXCC, True)

    assert listener.calls == [(Service.DXCC, True)]


def test_notify_replays_known_status():
    status = ServiceStatus(run_now)
    status.status_changed(Service.SCP, True)
    status.status_changed(Service.SCP, False)

    listener = RecordingListener()
    status.notify(listener)

    assert listener.calls == [(Service.SCP, False)]


def test_changes_go_through_async_runner():
    pending = []
    status = ServiceStatus(pending.append)
    listener = RecordingListener()
    status.notify(listener)

    status.status_changed(Service.RADIO, True)
    status.status_changed(Service.KEYER, False)
    assert listener.calls == []

    for job in pending:
        job()
    assert listener.calls == [(Service.RADIO, True), (Service.KEYER, False)]


def test_listener_without_callback_is_ignored():
    status = ServiceStatus(run_now)
    status.notify(object())
    listener = RecordingListener()
    status.notify(listener)

    status.status_changed(Service.CALL_HISTORY, True)

    assert listener.calls == [(Service.CALL_HISTORY, True)]