# =============================================================================
# 🔄 Scan-Seite (QR-Resolver)
# -----------------------------------------------------------------------------
# Eine einzige Route:
#       GET /q/{qr_id}
#
# Ablauf:
#   QR laden → Status prüfen → Scan zählen → Typ auflösen →
#   Geo-Gate (falls geoLock) | Redirect | Landing-Page
# =============================================================================

from __future__ import annotations

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from models.qrcode import QRCode
from routes.utils import templates
from utils.geo_gate import MSG_VERIFYING, POSITION_TIMEOUT_MS
from utils.landing import build_landing_view
from utils.qr_repository import QRRepository, get_qr_repository
from utils.qr_types import RedirectResolution, resolve_qr_scan
from utils.scan_store import ScanStore, get_scan_store, is_valid_qr_id
from utils.user_agent import parse_browser_name, parse_device_type, parse_os_name

logger = logging.getLogger(__name__)

router = APIRouter(tags=["QR-Resolver"])

ResponseType = Union[RedirectResponse, HTMLResponse]


def _country_code(request: Request) -> Optional[str]:
    # Cloudflare → Vercel; "XX" = unbekannt
    for header in ("cf-ipcountry", "x-vercel-ip-country"):
        value = (request.headers.get(header) or "").strip().upper()
        if value and value != "XX":
            return value
    return None


def _track_scan(repo: QRRepository, store: ScanStore, qr: QRCode, request: Request) -> None:
    user_agent = request.headers.get("user-agent", "")
    try:
        repo.record_scan(
            qr,
            device_type=parse_device_type(user_agent),
            browser=parse_browser_name(user_agent),
            os_name=parse_os_name(user_agent),
            country_code=_country_code(request),
            referrer=request.headers.get("referer"),
        )
    except Exception as exc:
        # Analytics darf den Scan nie blockieren
        repo.db.rollback()
        logger.error(f"❌ Scan für {qr.id} konnte nicht gespeichert werden: {exc!r}")
    store.record_scan(qr.id)


# =============================================================================
# ✅ Resolver für alle QR-Codes
# =============================================================================
@router.get("/q/{qr_id}", response_model=None)
def scan_page(
    qr_id: str,
    request: Request,
    repo: QRRepository = Depends(get_qr_repository),
    store: ScanStore = Depends(get_scan_store),
) -> ResponseType:
    """
    Zentrale Scan-Seite. Entscheidet anhand des QR-Typs und des Geo-Locks,
    was der scannende Nutzer sieht.
    """
    if not is_valid_qr_id(qr_id):
        raise HTTPException(404, "QR-Code nicht gefunden")

    qr = repo.get(qr_id)
    if qr is None:
        raise HTTPException(404, "QR-Code nicht gefunden")

    # --- Deaktiviert / Entwurf / archiviert ------------------------------------
    if not qr.is_active:
        return templates.TemplateResponse(request, "qr_disabled.html", {}, status_code=410)

    # --- Scan tracking -------------------------------------------------------
    if qr.analytics_enabled:
        _track_scan(repo, store, qr, request)

    # --- Geo-Lock: Inhalt liefert erst der Geo-Check nach erfolgreicher Prüfung ---
    if qr.has_geo_lock:
        return templates.TemplateResponse(
            request,
            "geo_gate.html",
            {
                "qr_id": qr.id,
                "initial_message": MSG_VERIFYING,
                "position_timeout_ms": POSITION_TIMEOUT_MS,
            },
        )

    resolution = resolve_qr_scan(qr.content_type, qr.content, qr.meta)
    if isinstance(resolution, RedirectResolution):
        return RedirectResponse(resolution.url)

    view = build_landing_view(resolution, qr.content_type, qr.landing_theme)
    return templates.TemplateResponse(request, "scan_landing.html", {"view": view})
