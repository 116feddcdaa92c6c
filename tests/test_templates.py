# tests/test_templates.py
from pathlib import Path

from routes.utils import TEMPLATES_DIR


def test_templates_exist():
    base = Path(TEMPLATES_DIR)

    required = [
        "scan_landing.html",
        "_landing_body.html",
        "geo_gate.html",
        "qr_disabled.html",
    ]

    missing = [f for f in required if not (base / f).exists()]
    assert not missing, f"❌ Fehlende Templates: {missing}"
