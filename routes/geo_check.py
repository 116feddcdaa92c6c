# =============================================================================
# 📍 Geo-Lock-Prüfung
# -----------------------------------------------------------------------------
#       POST /qrs/{qr_id}/geo-check   Body: {"lat": .., "lng": ..}
#
# Reihenfolge: Rate-Limit (IP) → Body prüfen → QR laden → Radius prüfen.
# Antwort: {"allowed": bool} | 400 / 404 / 429
# Bei allowed=true für einen geo-gesperrten QR zusätzlich der freigegebene
# Inhalt: {"redirectUrl": ..} oder {"html": ..} (Landing-Body).
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from models.qrcode import QRCode
from routes.utils import api_error, templates
from utils.geo import is_scan_allowed, is_valid_coordinate
from utils.landing import build_landing_view
from utils.qr_repository import QRRepository, get_qr_repository
from utils.qr_types import RedirectResolution, resolve_qr_scan
from utils.rate_limit import RateLimiter, client_ip, get_rate_limiter
from utils.scan_store import is_valid_qr_id
from utils.settings import geo_check_rate_limit, geo_check_window_ms

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Geo-Check"])


def _unlocked_content(qr: QRCode) -> Dict[str, Any]:
    """Geschützter Inhalt, den die Gate-Seite erst nach erfolgreicher Prüfung erhält."""
    resolution = resolve_qr_scan(qr.content_type, qr.content, qr.meta)
    if isinstance(resolution, RedirectResolution):
        return {"redirectUrl": resolution.url}
    view = build_landing_view(resolution, qr.content_type, qr.landing_theme)
    return {"html": templates.get_template("_landing_body.html").render(view=view)}


@router.post("/qrs/{qr_id}/geo-check", response_model=None)
async def geo_check(
    qr_id: str,
    request: Request,
    limiter: RateLimiter = Depends(get_rate_limiter),
    repo: QRRepository = Depends(get_qr_repository),
) -> JSONResponse:
    """
    Prüft, ob der gemeldete Standort innerhalb des Geo-Locks des QR-Codes liegt.
    Keine Änderungen außer dem Rate-Limit-Zähler.
    """
    # --- 1) Rate-Limit: 30 Prüfungen pro Minute und IP -----------------------
    ip = client_ip(request)
    if not limiter.allow(f"geo:{ip}", geo_check_rate_limit(), geo_check_window_ms()):
        logger.warning(f"🚦 Geo-Check Rate-Limit erreicht (ip={ip}, qr={qr_id})")
        return api_error(429, "rate_limited", "Too many requests")

    # --- 2) Body prüfen ------------------------------------------------------
    try:
        body: Any = await request.json()
    except ValueError:
        # JSONDecodeError, UnicodeDecodeError und zu lange Ganzzahlen
        return api_error(400, "invalid_body", "Invalid JSON body")

    if not isinstance(body, dict):
        return api_error(400, "invalid_body", "Body must be a JSON object")

    lat = body.get("lat")
    lng = body.get("lng")
    if not is_valid_coordinate(lat, lng):
        return api_error(400, "invalid_coordinates", "Invalid coordinates. lat: -90..90, lng: -180..180")

    # --- 3) QR laden ---------------------------------------------------------
    qr = repo.get(qr_id) if is_valid_qr_id(qr_id) else None
    if qr is None:
        return api_error(404, "not_found", "QR not found")

    # --- 4/5) Geo-Lock prüfen -------------------------------------------------
    allowed = is_scan_allowed(qr.meta, float(lat), float(lng))
    logger.info(f"📍 Geo-Check qr={qr_id} allowed={allowed}")

    payload: Dict[str, Any] = {"allowed": allowed}
    if allowed and qr.has_geo_lock and qr.is_active:
        payload.update(_unlocked_content(qr))
    return JSONResponse(payload)
