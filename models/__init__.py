# =============================================================================
# 📦 models/__init__.py
# =============================================================================

from .qrcode import QRCode
from .qr_scan import QRScan
