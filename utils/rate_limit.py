# =============================================================================
# 🚦 utils/rate_limit.py
# Fixed-Window-Rate-Limiter pro Client-Kennung (z. B. IP)
# -----------------------------------------------------------------------------
# Nur In-Memory: gilt pro Prozess und wird beim Neustart zurückgesetzt.
# Für mehrere Instanzen eine eigene RateLimiter-Implementierung einhängen
# (app.dependency_overrides[get_rate_limiter]).
# =============================================================================

from __future__ import annotations

import threading
import time
from typing import Callable, Dict, List, Optional

from fastapi import Request


def _now_ms() -> float:
    return time.time() * 1000


class RateLimiter:
    """Schnittstelle: ``allow`` zählt die Anfrage mit, wenn sie erlaubt ist."""

    def allow(self, identifier: str, limit: int, window_ms: int) -> bool:
        raise NotImplementedError


class InMemoryRateLimiter(RateLimiter):
    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        self._clock = clock or _now_ms
        self._hits: Dict[str, List[float]] = {}
        self._last_sweep: Optional[float] = None
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._hits)

    def _sweep(self, now: float, window_ms: int) -> None:
        # höchstens einmal pro Fenster; Aufrufer hält den Lock
        if self._last_sweep is not None and now - self._last_sweep < window_ms:
            return
        cutoff = now - window_ms
        expired = [key for key, stamps in self._hits.items() if not stamps or stamps[-1] <= cutoff]
        for key in expired:
            self._hits.pop(key, None)
        self._last_sweep = now

    def allow(self, identifier: str, limit: int, window_ms: int) -> bool:
        with self._lock:
            now = self._clock()
            cutoff = now - window_ms
            self._sweep(now, window_ms)
            timestamps = [t for t in self._hits.get(identifier, []) if t > cutoff]
            if len(timestamps) >= limit:
                if timestamps:
                    self._hits[identifier] = timestamps
                else:
                    self._hits.pop(identifier, None)
                return False
            timestamps.append(now)
            self._hits[identifier] = timestamps
            return True

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
            self._last_sweep = None


_limiter = InMemoryRateLimiter()


def get_rate_limiter() -> RateLimiter:
    return _limiter


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for") or ""
    first = forwarded.split(",")[0].strip()
    if first:
        return first
    real_ip = (request.headers.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
