"""Per-request accumulation of time spent in database round-trips."""
from __future__ import annotations

from contextvars import ContextVar, Token

_query_time_ms: ContextVar[float | None] = ContextVar("query_time_ms", default=None)


class QueryClock:
    @staticmethod
    def start() -> Token:
        return _query_time_ms.set(0.0)

    @staticmethod
    def stop(token: Token) -> None:
        _query_time_ms.reset(token)

    @staticmethod
    def running() -> bool:
        return _query_time_ms.get() is not None

    @staticmethod
    def add(delta_ms: float) -> None:
        elapsed = _query_time_ms.get()
        if elapsed is None:
            return
        _query_time_ms.set(elapsed + delta_ms)

    @staticmethod
    def elapsed_ms() -> float | None:
        return _query_time_ms.get()
