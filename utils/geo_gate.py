# =============================================================================
# 📍 utils/geo_gate.py
# -----------------------------------------------------------------------------
# Client-seitiger Geo-Gate-Ablauf als explizite Zustandsmaschine:
#
#   loading ──► permission_needed | denied | allowed
#      ▲                │            │
#      └──── retry() ───┴────────────┘
#
# Unabhängig vom UI testbar: Standortquelle und HTTP-Client werden
# hereingereicht, Zustandswechsel gehen an einen optionalen Listener.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

POSITION_TIMEOUT_MS = 15_000

MSG_VERIFYING = "Verifying your location…"
MSG_REQUESTING = "Requesting location access…"
MSG_RETRYING = "Retrying…"
MSG_UNSUPPORTED = (
    "Your browser doesn't support location services. "
    "Please use a modern browser to access this QR."
)
MSG_PERMISSION_DENIED = (
    "This QR code requires your location to work. "
    "Please allow location access in your browser settings and try again."
)
MSG_TIMEOUT = (
    "Location request timed out. "
    "Please make sure location services are enabled and try again."
)
MSG_UNAVAILABLE = (
    "Could not determine your location. "
    "Please check that location services are turned on."
)
MSG_NOT_VERIFIED = "Could not verify your location. Please try again."
MSG_OUTSIDE_AREA = "You're outside the allowed area for this QR code."
MSG_FAILED = "Something went wrong while checking your location. Please try again."


class GateStatus(str, Enum):
    LOADING = "loading"
    PERMISSION_NEEDED = "permission_needed"
    DENIED = "denied"
    ALLOWED = "allowed"


@dataclass(frozen=True)
class GateState:
    status: GateStatus
    message: Optional[str] = None

    @classmethod
    def loading(cls, message: str) -> "GateState":
        return cls(GateStatus.LOADING, message)

    @classmethod
    def permission_needed(cls, message: str) -> "GateState":
        return cls(GateStatus.PERMISSION_NEEDED, message)

    @classmethod
    def denied(cls, message: str) -> "GateState":
        return cls(GateStatus.DENIED, message)

    @classmethod
    def allowed(cls) -> "GateState":
        return cls(GateStatus.ALLOWED)

    @property
    def can_retry(self) -> bool:
        return self.status in (GateStatus.PERMISSION_NEEDED, GateStatus.DENIED)


@dataclass(frozen=True)
class Position:
    latitude: float
    longitude: float
    accuracy: Optional[float] = None


@dataclass(frozen=True)
class PositionOptions:
    enable_high_accuracy: bool = True
    timeout_ms: int = POSITION_TIMEOUT_MS
    maximum_age_ms: int = 0


class PositionError(Exception):
    """Fehler der Standortabfrage, Codes wie die Geolocation-API."""

    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3

    def __init__(self, code: int, message: str = "") -> None:
        super().__init__(message or f"geolocation error {code}")
        self.code = code


class PositionProvider:
    """Standortquelle des Geräts (Browser, Mobil-App, Test-Double)."""

    async def get_current_position(self, options: PositionOptions) -> Position:
        raise NotImplementedError


_POSITION_ERROR_MESSAGES = {
    PositionError.PERMISSION_DENIED: MSG_PERMISSION_DENIED,
    PositionError.TIMEOUT: MSG_TIMEOUT,
    PositionError.POSITION_UNAVAILABLE: MSG_UNAVAILABLE,
}


class GeoGate:
    def __init__(
        self,
        qr_id: str,
        client: httpx.AsyncClient,
        position_provider: Optional[PositionProvider],
        redirect_url: Optional[str] = None,
        navigate: Optional[Callable[[str], Any]] = None,
        on_change: Optional[Callable[[GateState], Any]] = None,
        position_timeout_ms: int = POSITION_TIMEOUT_MS,
    ) -> None:
        self.qr_id = qr_id
        self._client = client
        self._provider = position_provider
        self.redirect_url = redirect_url
        self._navigate = navigate
        self._on_change = on_change
        self._options = PositionOptions(timeout_ms=position_timeout_ms)

        self._state = GateState.loading(MSG_VERIFYING)
        self._attempt = 0
        self._closed = False
        self.redirected_to: Optional[str] = None
        self.content_html: Optional[str] = None

    # ---------------------------------------------------------------------
    # Zustand
    # ---------------------------------------------------------------------
    @property
    def state(self) -> GateState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def terminated(self) -> bool:
        return self._closed or self.redirected_to is not None or self._state.status is GateStatus.ALLOWED

    def close(self) -> None:
        """Abbau (Seite verlassen): laufende Versuche ändern den Zustand nicht mehr."""
        self._closed = True

    def _is_current(self, attempt: int) -> bool:
        return not self._closed and attempt == self._attempt

    def _set(self, attempt: int, state: GateState) -> None:
        if not self._is_current(attempt):
            return
        self._state = state
        if self._on_change is not None:
            self._on_change(state)

    # ---------------------------------------------------------------------
    # Ablauf
    # ---------------------------------------------------------------------
    async def retry(self) -> None:
        if self._closed or self.redirected_to is not None:
            return
        self._attempt += 1
        self._set(self._attempt, GateState.loading(MSG_RETRYING))
        await self.validate()

    async def validate(self) -> None:
        if self._closed or self.redirected_to is not None:
            return
        self._attempt += 1
        attempt = self._attempt

        # 1. Standortdienste vorhanden?
        if self._provider is None:
            self._set(attempt, GateState.permission_needed(MSG_UNSUPPORTED))
            return

        # 2. Standort anfragen
        self._set(attempt, GateState.loading(MSG_REQUESTING))
        try:
            position = await self._request_position()
            if not self._is_current(attempt):
                return

            # 3. Server prüfen lassen
            self._set(attempt, GateState.loading(MSG_VERIFYING))
            response = await self._client.post(
                f"/qrs/{quote(self.qr_id, safe='')}/geo-check",
                json={"lat": position.latitude, "lng": position.longitude},
            )
            if not self._is_current(attempt):
                return

            if not response.is_success:
                logger.info(f"🔒 Geo-Check für {self.qr_id} fehlgeschlagen: HTTP {response.status_code}")
                self._set(attempt, GateState.denied(MSG_NOT_VERIFIED))
                return

            data = response.json()
            if not isinstance(data, dict):
                raise ValueError("unexpected geo-check response")

            if data.get("allowed") is True:
                # Ziel und Inhalt kommen erst mit der Freigabe vom Server
                target = data.get("redirectUrl")
                if not isinstance(target, str) or not target:
                    target = self.redirect_url
                if target:
                    self.redirected_to = target
                    if self._navigate is not None:
                        self._navigate(target)
                    return
                html = data.get("html")
                self.content_html = html if isinstance(html, str) else None
                self._set(attempt, GateState.allowed())
            else:
                self._set(attempt, GateState.denied(MSG_OUTSIDE_AREA))

        except PositionError as exc:
            message = _POSITION_ERROR_MESSAGES.get(exc.code)
            if message is None:
                self._set(attempt, GateState.denied(MSG_FAILED))
            else:
                self._set(attempt, GateState.permission_needed(message))
        except Exception as exc:
            # Netzwerk-/Antwortfehler: nie durchlassen (fail-closed)
            logger.warning(f"⚠️ Geo-Gate-Fehler für {self.qr_id}: {exc!r}")
            self._set(attempt, GateState.denied(MSG_FAILED))

    async def _request_position(self) -> Position:
        assert self._provider is not None
        try:
            return await asyncio.wait_for(
                self._provider.get_current_position(self._options),
                timeout=self._options.timeout_ms / 1000,
            )
        except asyncio.TimeoutError:
            raise PositionError(PositionError.TIMEOUT, "position request timed out") from None
