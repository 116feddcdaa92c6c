# =============================================================================
# 📦 QRCode Model – gespeicherte QR-Definition (SQLAlchemy 2.0)
# =============================================================================

from __future__ import annotations

import secrets
from datetime import datetime
from typing import Any, Dict, Optional, TYPE_CHECKING

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text, event, func
from sqlalchemy.engine import Connection
from sqlalchemy.orm import Mapped, Mapper, mapped_column, relationship

from database import Base

if TYPE_CHECKING:
    from models.qr_scan import QRScan


QR_ID_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
QR_ID_LENGTH = 12


def generate_qr_id(length: int = QR_ID_LENGTH) -> str:
    """URL-sichere Zufalls-ID (0-9, A-Z, a-z)."""
    return "".join(secrets.choice(QR_ID_ALPHABET) for _ in range(length))


# =============================================================================
# 🧩 QRCode-Datenmodell
# =============================================================================
class QRCode(Base):
    """
    Eine QR-Definition. ``content`` wird je nach ``content_type`` interpretiert,
    ``meta`` (Spalte ``metadata``) enthält u. a. den optionalen ``geoLock``.
    """
    __tablename__ = "qr_codes"

    # ---------------------------------------------------------------------
    # 🧾 Basisattribute
    # ---------------------------------------------------------------------
    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_qr_id)
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(512), default="")

    content_type: Mapped[str] = mapped_column(String(32), nullable=False)   # url, vcard, wifi, ...
    content: Mapped[str] = mapped_column(Text, default="")
    # "metadata" ist in Declarative reserviert → Attribut heißt meta
    meta: Mapped[Optional[Dict[str, Any]]] = mapped_column("metadata", JSON, nullable=True)

    # ---------------------------------------------------------------------
    # 🎨 Landing / Status / Analytics
    # ---------------------------------------------------------------------
    landing_theme: Mapped[str] = mapped_column(String(20), default="default")
    analytics_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    status: Mapped[str] = mapped_column(String(20), default="active")
    scan_count: Mapped[int] = mapped_column(Integer, default=0)

    # ---------------------------------------------------------------------
    # 🔗 Beziehungen
    # ---------------------------------------------------------------------
    scans: Mapped[list["QRScan"]] = relationship(
        "QRScan",
        back_populates="qr",
        cascade="all, delete-orphan",
        lazy="select",
    )

    # ---------------------------------------------------------------------
    # 🕒 Zeitstempel
    # ---------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @property
    def has_geo_lock(self) -> bool:
        # auch ein unlesbarer geoLock sperrt (Geo-Check verweigert dann)
        return (self.meta or {}).get("geoLock") is not None

    def __repr__(self) -> str:
        return (
            f"<QRCode(id='{self.id}', type='{self.content_type}', "
            f"status='{self.status}', theme='{self.landing_theme}')>"
        )


# =============================================================================
# ⚙️ Event: Automatische ID-Erzeugung
# =============================================================================
@event.listens_for(QRCode, "before_insert")  # type: ignore[misc]
def set_qr_id(mapper: Mapper, connection: Connection, target: Any) -> None:
    """
    Garantiert, dass jeder QR-Code eine gültige ID erhält.
    """
    if not getattr(target, "id", None):
        target.id = generate_qr_id()
