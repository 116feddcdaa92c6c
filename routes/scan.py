# =============================================================================
# 📡 Scan-Status
# -----------------------------------------------------------------------------
#   POST /scan                     {"qrId": ..}  → {"ok": true}
#   GET  /scan/status?qrId=..      → {"scanned": bool, "scannedAt"?: ms}
#   GET  /scan/status/stream?qrId= → Server-Sent Events, ein Event, dann Ende
# =============================================================================

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse

from routes.utils import api_error
from utils.scan_store import ScanStore, get_scan_store, is_valid_qr_id
from utils.settings import scan_stream_timeout_seconds

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scan", tags=["Scan"])


def _sse_message(data: Dict[str, Any]) -> str:
    return f"data: {json.dumps(data)}\n\n"


@router.post("", response_model=None)
async def mark_scanned(request: Request, store: ScanStore = Depends(get_scan_store)) -> JSONResponse:
    try:
        body: Any = await request.json()
    except ValueError:
        # JSONDecodeError, UnicodeDecodeError und zu lange Ganzzahlen
        return api_error(400, "invalid_body", "Invalid JSON")

    qr_id = body.get("qrId") if isinstance(body, dict) else None
    if not is_valid_qr_id(qr_id):
        return api_error(400, "invalid_qr_id", "Invalid or missing qrId")

    store.record_scan(qr_id)
    return JSONResponse({"ok": True})


@router.get("/status", response_model=None)
def scan_status(qrId: Optional[str] = None, store: ScanStore = Depends(get_scan_store)) -> JSONResponse:
    status = store.get_status(qrId) if is_valid_qr_id(qrId) else None
    if status is None:
        return api_error(400, "invalid_qr_id", "Invalid or missing qrId")
    return JSONResponse(status)


async def _wait_for_scan(
    store: ScanStore,
    qr_id: str,
    request: Request,
    timeout: float,
) -> AsyncIterator[str]:
    status = store.get_status(qr_id)
    if status and status.get("scanned"):
        yield _sse_message(status)
        return

    queue, unsubscribe = store.subscribe(qr_id)
    try:
        # Scan kann zwischen Statusabfrage und Anmeldung passiert sein
        status = store.get_status(qr_id)
        if status and status.get("scanned"):
            yield _sse_message(status)
            return

        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.info(f"⏱️ Scan-Stream für {qr_id} ohne Scan beendet")
                return
            try:
                payload = await asyncio.wait_for(queue.get(), timeout=min(remaining, 1.0))
            except asyncio.TimeoutError:
                if await request.is_disconnected():
                    return
                continue
            yield _sse_message(payload)
            return
    finally:
        unsubscribe()


@router.get("/status/stream", response_model=None)
async def scan_status_stream(
    request: Request,
    qrId: Optional[str] = None,
    store: ScanStore = Depends(get_scan_store),
):
    if not is_valid_qr_id(qrId):
        return api_error(400, "invalid_qr_id", "Invalid or missing qrId")

    return StreamingResponse(
        _wait_for_scan(store, qrId, request, float(scan_stream_timeout_seconds())),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-store, no-cache, must-revalidate",
            "Connection": "keep-alive",
        },
    )
