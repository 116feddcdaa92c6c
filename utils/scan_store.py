# =============================================================================
# 📡 utils/scan_store.py
# In-Memory-Scanstatus pro QR-ID + Benachrichtigung wartender Streams (SSE)
# -----------------------------------------------------------------------------
# Prozesslokal wie der Rate-Limiter; geht beim Neustart verloren.
# =============================================================================

from __future__ import annotations

import asyncio
import re
import threading
import time
from typing import Any, Callable, Dict, Optional, Set, Tuple

QR_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")

ScanStatus = Dict[str, Any]
_Listener = Tuple[asyncio.AbstractEventLoop, asyncio.Queue]


def is_valid_qr_id(qr_id: Any) -> bool:
    return isinstance(qr_id, str) and bool(QR_ID_PATTERN.fullmatch(qr_id))


class ScanStore:
    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        self._clock = clock or (lambda: time.time() * 1000)
        self._scans: Dict[str, int] = {}
        self._listeners: Dict[str, Set[_Listener]] = {}
        self._lock = threading.Lock()

    def record_scan(self, qr_id: str) -> None:
        if not is_valid_qr_id(qr_id):
            return
        scanned_at = int(self._clock())
        payload = {"scanned": True, "scannedAt": scanned_at}
        with self._lock:
            self._scans[qr_id] = scanned_at
            listeners = self._listeners.pop(qr_id, set())

        for loop, queue in listeners:
            try:
                loop.call_soon_threadsafe(queue.put_nowait, payload)
            except RuntimeError:
                # Event-Loop des Streams ist bereits geschlossen
                continue

    def get_status(self, qr_id: str) -> Optional[ScanStatus]:
        if not is_valid_qr_id(qr_id):
            return None
        with self._lock:
            scanned_at = self._scans.get(qr_id)
        if scanned_at is None:
            return {"scanned": False}
        return {"scanned": True, "scannedAt": scanned_at}

    def subscribe(self, qr_id: str) -> Tuple[asyncio.Queue, Callable[[], None]]:
        """
        Registriert eine Queue für den nächsten Scan dieser ID.
        Muss innerhalb eines laufenden Event-Loops aufgerufen werden.
        """
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        listener = (loop, queue)
        if not is_valid_qr_id(qr_id):
            return queue, lambda: None

        with self._lock:
            self._listeners.setdefault(qr_id, set()).add(listener)

        def unsubscribe() -> None:
            with self._lock:
                listeners = self._listeners.get(qr_id)
                if listeners is None:
                    return
                listeners.discard(listener)
                if not listeners:
                    self._listeners.pop(qr_id, None)

        return queue, unsubscribe

    def listener_count(self, qr_id: str) -> int:
        with self._lock:
            return len(self._listeners.get(qr_id, ()))

    def reset(self) -> None:
        with self._lock:
            self._scans.clear()
            self._listeners.clear()


scan_store = ScanStore()


def get_scan_store() -> ScanStore:
    return scan_store
