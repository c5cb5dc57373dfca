# app/hooks.py
import threading
from typing import Protocol

from railnet.domain.errors import BuildCancelled


class RouterHooks(Protocol):
    def build_start(self, *, lines, stations): ...
    def phase_start(self, phase: str): ...
    def phase_progress(self, phase: str, *, done, total): ...
    def phase_end(self, phase: str, **stats): ...
    def build_end(self, *, wall_ms, **stats): ...
    def build_cancelled(self, *, phase: str): ...
    def warning(self, reason: str, **kw): ...
    def query_start(self, *, start, end, optimize_for): ...
    def query_end(self, *, status: str, wall_ms, **kw): ...


class NoopHooks:
    def build_start(self, **_):
        pass

    def phase_start(self, *_, **__):
        pass

    def phase_progress(self, *_, **__):
        pass

    def phase_end(self, *_, **__):
        pass

    def build_end(self, **_):
        pass

    def build_cancelled(self, **_):
        pass

    def warning(self, *_, **__):
        pass

    def query_start(self, **_):
        pass

    def query_end(self, **_):
        pass


class CancelToken:
    """Thread-safe cancellation flag polled by long-running build loops."""

    def __init__(self):
        self._ev = threading.Event()

    def cancel(self) -> None:
        self._ev.set()

    @property
    def cancelled(self) -> bool:
        return self._ev.is_set()

    def check(self) -> None:
        if self._ev.is_set():
            raise BuildCancelled("network build cancelled")
