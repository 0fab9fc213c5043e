"""Keeps track of the availability of services and tells listeners about changes."""

from __future__ import annotations

from typing import Any, Callable, Optional

from .core import AsyncRunner, Service


def _status_callback(listener: Any) -> Optional[Callable[[Service, bool], None]]:
    method = getattr(listener, "status_changed", None)
    if callable(method):
        return method
    return None


class ServiceStatus:
    """Remembers the status of each service and forwards changes to listeners."""

    def __init__(self, async_runner: AsyncRunner) -> None:
        self._async_runner = async_runner
        self._status: dict[Service, bool] = {}
        self._listeners: list[Any] = []

    def notify(self, listener: Any) -> None:
        """Register a listener; it is told the current status of every known service."""
        self._listeners.append(listener)
        callback = _status_callback(listener)
        if callback is None:
            return
        for service, available in self._status.items():
            callback(service, available)

    def status_changed(self, service: Service, available: bool) -> None:
        self._status[service] = available
        for listener in self._listeners:
            callback = _status_callback(listener)
            if callback is None:
                continue
            self._async_runner(lambda cb=callback: cb(service, available))