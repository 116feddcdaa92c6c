# =============================================================================
# 🚀 QR Scan Service – Hauptapplikation (main.py)
# =============================================================================

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.responses import Response

from database import engine, ensure_tables
from utils.settings import log_level

# -------------------------------------------------------------------------
# 1️⃣ Logging
# -------------------------------------------------------------------------
logging.basicConfig(
    level=log_level(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

# -------------------------------------------------------------------------
# 2️⃣ FastAPI App
# -------------------------------------------------------------------------
app = FastAPI(title="QR Scan Service", version="1.0")
ensure_tables(engine)

# -------------------------------------------------------------------------
# 3️⃣ Routen laden
# -------------------------------------------------------------------------
from routes import api  # noqa: E402
from routes import geo_check  # noqa: E402
from routes import qr_resolve  # noqa: E402
from routes import scan  # noqa: E402

# zentraler Resolver (Scan-Seite /q/<id>)
app.include_router(qr_resolve.router)

# Geo-Lock-Prüfung + Scan-Status
app.include_router(geo_check.router)
app.include_router(scan.router)

# Verwaltung der QR-Definitionen
app.include_router(api.router)


# -------------------------------------------------------------------------
# 4️⃣ Health
# -------------------------------------------------------------------------
@app.get("/health")
def health():
    return {"ok": True}


# -------------------------------------------------------------------------
# 5️⃣ Chrome DevTools Well-Known-Anfrage (noise-free logs)
# -------------------------------------------------------------------------
@app.get("/.well-known/appspecific/com.chrome.devtools.json", include_in_schema=False)
def chrome_devtools_well_known() -> Response:
    # Chrome fragt diesen Pfad lokal ab; 204 statt 404-Lograuschen
    return Response(status_code=204)
