# =============================================================================
# 📊 models/qr_scan.py
# -----------------------------------------------------------------------------
# SQLAlchemy-Modell für QR-Code-Scans.
# Jeder Datensatz entspricht einem einzelnen Scan (Gerät, Browser, Land, Zeit).
# =============================================================================

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from database import Base


def utc_now():
    """Gibt aktuelle UTC-Zeit (timezone-aware) zurück."""
    return datetime.now(timezone.utc)


class QRScan(Base):
    __tablename__ = "qr_scans"

    # ---------------------------------------------------------------------
    # 🔹 Primär- & Fremdschlüssel
    # ---------------------------------------------------------------------
    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    qr_id = Column(String(64), ForeignKey("qr_codes.id", ondelete="CASCADE"), nullable=False, index=True)

    # ---------------------------------------------------------------------
    # 🔹 Scan-Informationen
    # ---------------------------------------------------------------------
    device_type = Column(String(20), nullable=True)     # mobile, tablet, desktop
    browser = Column(String(50), nullable=True)
    os = Column(String(50), nullable=True)
    country_code = Column(String(8), nullable=True)     # aus CDN-Headern
    referrer = Column(String(255), nullable=True)

    # ---------------------------------------------------------------------
    # 🔹 Zeitstempel (UTC-aware)
    # ---------------------------------------------------------------------
    scanned_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    qr = relationship("QRCode", back_populates="scans")

    def __repr__(self):
        return (
            f"<QRScan(id={self.id}, qr_id='{self.qr_id}', device='{self.device_type}', "
            f"country='{self.country_code}', scanned_at={self.scanned_at})>"
        )
