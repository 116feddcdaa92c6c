from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import BaseModel, Field, field_validator

from models.qrcode import QRCode
from routes.utils import build_scan_url
from utils.geo import GeoLock
from utils.qr_repository import QRRepository, get_qr_repository
from utils.qr_types import resolve_qr_scan

router = APIRouter(prefix="/api/v1", tags=["QR API"])

# Bereich des Radius-Reglers im Editor
GEO_LOCK_MIN_RADIUS = 30
GEO_LOCK_MAX_RADIUS = 5000

ContentTypeField = Literal[
    "url",
    "vcard",
    "wifi",
    "text",
    "email",
    "sms",
    "phone",
    "location",
    "event",
    "whatsapp",
    "smart_redirect",
]
LandingThemeField = Literal["default", "minimal", "card", "full"]
StatusField = Literal["draft", "active", "archived"]


def _clean_metadata(value: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if value is None:
        return None
    cleaned = {k: v for k, v in value.items() if v is not None}
    if "geoLock" in cleaned:
        lock = GeoLock.from_metadata(cleaned)
        if not GEO_LOCK_MIN_RADIUS <= lock.radius_meters <= GEO_LOCK_MAX_RADIUS:
            raise ValueError(
                f"geoLock radiusMeters must be between {GEO_LOCK_MIN_RADIUS} and {GEO_LOCK_MAX_RADIUS}"
            )
        cleaned["geoLock"] = lock.to_metadata()
    return cleaned


class CreateQRIn(BaseModel):
    name: str = Field(default="", max_length=512)
    contentType: ContentTypeField
    content: str
    message: Optional[str] = Field(default=None, max_length=1000)
    metadata: Optional[Dict[str, Any]] = None
    landingTheme: LandingThemeField = "default"
    analyticsEnabled: bool = True
    status: StatusField = "active"

    @field_validator("metadata")
    @classmethod
    def check_metadata(cls, value: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        return _clean_metadata(value)


class UpdateQRIn(BaseModel):
    name: Optional[str] = Field(default=None, max_length=512)
    contentType: Optional[ContentTypeField] = None
    content: Optional[str] = None
    message: Optional[str] = Field(default=None, max_length=1000)
    metadata: Optional[Dict[str, Any]] = None
    landingTheme: Optional[LandingThemeField] = None
    analyticsEnabled: Optional[bool] = None
    status: Optional[StatusField] = None

    @field_validator("metadata")
    @classmethod
    def check_metadata(cls, value: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        return _clean_metadata(value)


def get_current_user_id(x_user_id: Optional[str] = Header(default=None, alias="X-User-Id")) -> str:
    """Identität kommt vom vorgeschalteten Auth-Provider (opaque)."""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return user_id


def _with_message(metadata: Optional[Dict[str, Any]], message: Optional[str]) -> Optional[Dict[str, Any]]:
    if message is None:
        return metadata
    merged = dict(metadata or {})
    if message.strip():
        merged["message"] = message.strip()
    else:
        merged.pop("message", None)
    return merged


def _serialize_qr(qr: QRCode, request: Request) -> dict[str, Any]:
    return {
        "id": qr.id,
        "name": qr.name,
        "contentType": qr.content_type,
        "content": qr.content,
        "metadata": qr.meta or {},
        "landingTheme": qr.landing_theme,
        "analyticsEnabled": qr.analytics_enabled,
        "status": qr.status,
        "scanCount": qr.scan_count,
        "scanUrl": build_scan_url(request, qr.id),
        "createdAt": qr.created_at.isoformat() if qr.created_at else None,
        "updatedAt": qr.updated_at.isoformat() if qr.updated_at else None,
    }


def _owned_or_404(repo: QRRepository, qr_id: str, user_id: str) -> QRCode:
    qr = repo.get_for_owner(qr_id, user_id)
    if not qr:
        raise HTTPException(status_code=404, detail="QR not found")
    return qr


@router.get("/qrs")
def list_qrs(
    request: Request,
    limit: int = 50,
    repo: QRRepository = Depends(get_qr_repository),
    user_id: str = Depends(get_current_user_id),
):
    limit = max(1, min(limit, 200))
    rows = repo.list_for_owner(user_id, limit=limit)
    return {
        "items": [_serialize_qr(r, request) for r in rows],
        "count": len(rows),
        "total": repo.count_for_owner(user_id),
    }


@router.post("/qrs", status_code=201)
def create_qr(
    payload: CreateQRIn,
    request: Request,
    repo: QRRepository = Depends(get_qr_repository),
    user_id: str = Depends(get_current_user_id),
):
    qr = repo.create(
        owner_id=user_id,
        name=payload.name,
        content_type=payload.contentType,
        content=payload.content,
        meta=_with_message(payload.metadata, payload.message),
        landing_theme=payload.landingTheme,
        analytics_enabled=payload.analyticsEnabled,
        status=payload.status,
    )
    return _serialize_qr(qr, request)


@router.get("/qrs/{qr_id}")
def get_qr(
    qr_id: str,
    request: Request,
    repo: QRRepository = Depends(get_qr_repository),
    user_id: str = Depends(get_current_user_id),
):
    return _serialize_qr(_owned_or_404(repo, qr_id, user_id), request)


@router.get("/qrs/{qr_id}/resolution")
def preview_resolution(
    qr_id: str,
    repo: QRRepository = Depends(get_qr_repository),
    user_id: str = Depends(get_current_user_id),
):
    qr = _owned_or_404(repo, qr_id, user_id)
    return resolve_qr_scan(qr.content_type, qr.content, qr.meta).to_dict()


@router.get("/qrs/{qr_id}/analytics")
def qr_analytics(
    qr_id: str,
    repo: QRRepository = Depends(get_qr_repository),
    user_id: str = Depends(get_current_user_id),
):
    qr = _owned_or_404(repo, qr_id, user_id)
    return {
        "qr": {
            "id": qr.id,
            "name": qr.name,
            "contentType": qr.content_type,
            "createdAt": qr.created_at.isoformat() if qr.created_at else None,
            "scanCount": qr.scan_count,
        },
        **repo.scan_analytics(qr),
    }


@router.patch("/qrs/{qr_id}")
def update_qr(
    qr_id: str,
    payload: UpdateQRIn,
    request: Request,
    repo: QRRepository = Depends(get_qr_repository),
    user_id: str = Depends(get_current_user_id),
):
    qr = _owned_or_404(repo, qr_id, user_id)

    fields: Dict[str, Any] = {}
    if payload.name is not None:
        fields["name"] = payload.name
    if payload.contentType is not None:
        fields["content_type"] = payload.contentType
    if payload.content is not None:
        fields["content"] = payload.content
    if payload.landingTheme is not None:
        fields["landing_theme"] = payload.landingTheme
    if payload.analyticsEnabled is not None:
        fields["analytics_enabled"] = payload.analyticsEnabled
    if payload.status is not None:
        fields["status"] = payload.status

    if payload.metadata is not None or payload.message is not None:
        base = payload.metadata if payload.metadata is not None else (qr.meta or {})
        fields["meta"] = _with_message(base, payload.message) or None

    qr = repo.update(qr, **fields)
    return _serialize_qr(qr, request)


@router.delete("/qrs/{qr_id}")
def delete_qr(
    qr_id: str,
    repo: QRRepository = Depends(get_qr_repository),
    user_id: str = Depends(get_current_user_id),
):
    qr = _owned_or_404(repo, qr_id, user_id)
    repo.delete(qr)
    return {"ok": True, "id": qr_id}
