from __future__ import annotations

from pathlib import Path

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.templating import Jinja2Templates

from utils.settings import app_domain

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


# --------------------------------------------------------------------------- #
# ❌ Einheitliche Fehlerantwort: {"error": <code>, "message": <text>}
# --------------------------------------------------------------------------- #
def api_error(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse({"error": error, "message": message}, status_code=status_code)


# --------------------------------------------------------------------------- #
# 🌐 Öffentliche Scan-URL
# --------------------------------------------------------------------------- #
def build_scan_url(request: Request, qr_id: str) -> str:
    base_url = str(request.base_url).rstrip("/")
    if "127.0.0.1" in base_url or "localhost" in base_url:
        return f"{base_url}/q/{qr_id}"
    return f"{(app_domain() or base_url)}/q/{qr_id}"
