# utils/qr_repository.py
# =============================================================================
# ✅ Speicherzugriff für QR-Definitionen und Scan-Events
# - Lesen / Anlegen / Ändern / Löschen / Zählen
# - Scan protokollieren (Zähler + Event)
# - Scan-Auswertung (pro Tag, Gerät, Land, Referrer)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.qr_scan import QRScan
from models.qrcode import QRCode

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {
    "name",
    "content_type",
    "content",
    "meta",
    "landing_theme",
    "analytics_enabled",
    "status",
}


class QRRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, qr_id: str) -> Optional[QRCode]:
        return self.db.get(QRCode, qr_id)

    def get_for_owner(self, qr_id: str, owner_id: str) -> Optional[QRCode]:
        qr = self.get(qr_id)
        if qr is None or qr.owner_id != owner_id:
            return None
        return qr

    def list_for_owner(self, owner_id: str, limit: int = 50) -> List[QRCode]:
        return (
            self.db.query(QRCode)
            .filter(QRCode.owner_id == owner_id)
            .order_by(QRCode.created_at.desc())
            .limit(limit)
            .all()
        )

    def count_for_owner(self, owner_id: str) -> int:
        return self.db.query(QRCode).filter(QRCode.owner_id == owner_id).count()

    def create(
        self,
        owner_id: str,
        content_type: str,
        content: str,
        name: str = "",
        meta: Optional[Dict[str, Any]] = None,
        landing_theme: str = "default",
        analytics_enabled: bool = True,
        status: str = "active",
        qr_id: Optional[str] = None,
    ) -> QRCode:
        qr = QRCode(
            owner_id=owner_id,
            name=name,
            content_type=content_type,
            content=content,
            meta=meta or None,
            landing_theme=landing_theme,
            analytics_enabled=analytics_enabled,
            status=status,
            scan_count=0,
        )
        if qr_id:
            qr.id = qr_id
        self.db.add(qr)
        self.db.commit()
        self.db.refresh(qr)
        logger.info(f"✅ QR-Code gespeichert (id={qr.id}, type={content_type}, owner={owner_id})")
        return qr

    def update(self, qr: QRCode, **fields: Any) -> QRCode:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Nicht änderbare Felder: {sorted(unknown)}")
        for key, value in fields.items():
            setattr(qr, key, value)
        self.db.commit()
        self.db.refresh(qr)
        logger.info(f"✏️ QR-Code aktualisiert (id={qr.id})")
        return qr

    def delete(self, qr: QRCode) -> None:
        self.db.delete(qr)
        self.db.commit()
        logger.info(f"🗑️ QR-Code gelöscht (id={qr.id})")

    def record_scan(
        self,
        qr: QRCode,
        device_type: Optional[str] = None,
        browser: Optional[str] = None,
        os_name: Optional[str] = None,
        country_code: Optional[str] = None,
        referrer: Optional[str] = None,
    ) -> QRScan:
        scan = QRScan(
            qr_id=qr.id,
            device_type=device_type,
            browser=browser,
            os=os_name,
            country_code=country_code,
            referrer=(referrer or "")[:255] or None,
        )
        qr.scan_count = (qr.scan_count or 0) + 1
        self.db.add(scan)
        self.db.commit()
        return scan

    # ---------------------------------------------------------------------
    # 📊 Auswertung der Scan-Events
    # ---------------------------------------------------------------------
    def scan_analytics(self, qr: QRCode, top_countries: int = 20, top_referrers: int = 10) -> Dict[str, Any]:
        scans = self.db.query(QRScan).filter(QRScan.qr_id == qr.id)
        scan_count = func.count(QRScan.id)

        last_scanned_at = scans.with_entities(func.max(QRScan.scanned_at)).scalar()

        day = func.date(QRScan.scanned_at)
        by_day = scans.with_entities(day, scan_count).group_by(day).order_by(day).all()

        by_device = (
            scans.with_entities(QRScan.device_type, scan_count)
            .group_by(QRScan.device_type)
            .order_by(scan_count.desc(), QRScan.device_type)
            .all()
        )

        by_country = (
            scans.with_entities(QRScan.country_code, scan_count)
            .group_by(QRScan.country_code)
            .order_by(scan_count.desc(), QRScan.country_code)
            .limit(top_countries)
            .all()
        )

        by_referrer = (
            scans.filter(QRScan.referrer.isnot(None), QRScan.referrer != "")
            .with_entities(QRScan.referrer, scan_count)
            .group_by(QRScan.referrer)
            .order_by(scan_count.desc(), QRScan.referrer)
            .limit(top_referrers)
            .all()
        )

        return {
            "lastScannedAt": last_scanned_at.isoformat() if last_scanned_at else None,
            # SQLite liefert date() als String, PostgreSQL als date
            "scansByDay": [{"date": str(d), "scans": n} for d, n in by_day if d is not None],
            "scansByDevice": [{"device": d or "unknown", "scans": n} for d, n in by_device],
            "scansByCountry": [{"country": c or "unknown", "scans": n} for c, n in by_country],
            "scansByReferrer": [{"referrer": r, "scans": n} for r, n in by_referrer],
        }


def get_qr_repository(db: Session = Depends(get_db)) -> QRRepository:
    return QRRepository(db)
