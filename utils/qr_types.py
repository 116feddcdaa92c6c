# =============================================================================
# 🔄 utils/qr_types.py
# -----------------------------------------------------------------------------
# Scan-Verhalten pro QR-Typ: sofortige Weiterleitung oder Landing-Page mit
# Aktionen (Anrufen, E-Mail, SMS, WhatsApp, ...).
# Reine Funktion von (content_type, content, metadata) – keine Seiteneffekte.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union
from urllib.parse import quote, urlencode

from utils.qr_formats import (
    google_calendar_url,
    maps_url,
    normalize_phone,
    parse_event_string,
    parse_vcard,
    parse_wifi_string,
    phone_digits,
    vcard_data_uri,
)


class QRContentType(str, Enum):
    URL = "url"
    VCARD = "vcard"
    WIFI = "wifi"
    TEXT = "text"
    EMAIL = "email"
    SMS = "sms"
    PHONE = "phone"
    LOCATION = "location"
    EVENT = "event"
    WHATSAPP = "whatsapp"
    SMART_REDIRECT = "smart_redirect"


CONTENT_TYPES = tuple(t.value for t in QRContentType)


@dataclass(frozen=True)
class QRAction:
    label: str
    href: str
    variant: str = "primary"  # "primary" | "secondary"
    subtitle: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"label": self.label, "href": self.href, "variant": self.variant}
        if self.subtitle is not None:
            out["subtitle"] = self.subtitle
        return out


@dataclass(frozen=True)
class RedirectResolution:
    url: str
    behavior: str = field(default="redirect", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"behavior": self.behavior, "url": self.url}


@dataclass(frozen=True)
class LandingResolution:
    actions: Tuple[QRAction, ...] = ()
    display_content: Optional[str] = None
    structured: Optional[Mapping[str, Any]] = None
    landing_style: Optional[str] = None
    behavior: str = field(default="landing", init=False)

    @property
    def primary_actions(self) -> Tuple[QRAction, ...]:
        return tuple(a for a in self.actions if a.variant == "primary")

    @property
    def secondary_actions(self) -> Tuple[QRAction, ...]:
        return tuple(a for a in self.actions if a.variant == "secondary")

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "behavior": self.behavior,
            "actions": [a.to_dict() for a in self.actions],
        }
        if self.display_content is not None:
            out["displayContent"] = self.display_content
        if self.structured is not None:
            out["structured"] = dict(self.structured)
        if self.landing_style is not None:
            out["landingStyle"] = self.landing_style
        return out


QRTypeResolution = Union[RedirectResolution, LandingResolution]

Metadata = Optional[Mapping[str, Any]]


# Überschriften pro Typ
TYPE_LABELS: Dict[QRContentType, str] = {
    QRContentType.URL: "Link",
    QRContentType.VCARD: "Contact",
    QRContentType.WIFI: "Wi‑Fi",
    QRContentType.TEXT: "Message",
    QRContentType.EMAIL: "Email",
    QRContentType.SMS: "SMS",
    QRContentType.PHONE: "Call",
    QRContentType.LOCATION: "Location",
    QRContentType.EVENT: "Event",
    QRContentType.WHATSAPP: "WhatsApp",
    QRContentType.SMART_REDIRECT: "Smart redirect",
}

_PRIMARY_ACTION_TYPES = {
    QRContentType.PHONE,
    QRContentType.EMAIL,
    QRContentType.SMS,
    QRContentType.WHATSAPP,
}


def _meta_str(metadata: Metadata, key: str) -> str:
    if not metadata:
        return ""
    value = metadata.get(key)
    return value.strip() if isinstance(value, str) else ""


def _landing_style(metadata: Metadata) -> Optional[str]:
    return _meta_str(metadata, "landingStyle") or None


def _empty(message: str) -> LandingResolution:
    return LandingResolution(actions=(), display_content=message)


# =============================================================================
# ✅ Einzelne Typen
# =============================================================================
def _resolve_url(content: str, metadata: Metadata) -> QRTypeResolution:
    if content.startswith("http://") or content.startswith("https://"):
        return RedirectResolution(url=content)
    if not content:
        return _empty("No URL set.")
    href = content if ":" in content else f"https://{content}"
    return LandingResolution(
        actions=(QRAction(label="Open link", href=href, subtitle=content),),
        display_content=content,
    )


def _resolve_phone(content: str, metadata: Metadata) -> QRTypeResolution:
    number = normalize_phone(content)
    if not number:
        return _empty("No number set.")
    return LandingResolution(
        actions=(QRAction(label="Call now", href=f"tel:{number}", subtitle=number),),
    )


def _resolve_email(content: str, metadata: Metadata) -> QRTypeResolution:
    if not content:
        return _empty("No email set.")
    params = {}
    subject = _meta_str(metadata, "subject")
    body = _meta_str(metadata, "body")
    if subject:
        params["subject"] = subject
    if body:
        params["body"] = body
    href = f"mailto:{content}"
    if params:
        href += "?" + urlencode(params, quote_via=quote)
    return LandingResolution(
        actions=(QRAction(label="Send email", href=href, subtitle=content),),
    )


def _resolve_sms(content: str, metadata: Metadata) -> QRTypeResolution:
    number = normalize_phone(content)
    if not number:
        return _empty("No number set.")
    message = _meta_str(metadata, "message")
    href = f"sms:{number}?body={quote(message, safe='')}" if message else f"sms:{number}"
    return LandingResolution(
        actions=(QRAction(label="Send SMS", href=href, subtitle=number),),
    )


def _resolve_whatsapp(content: str, metadata: Metadata) -> QRTypeResolution:
    number = phone_digits(content)
    if not number:
        return _empty("No number set.")
    message = _meta_str(metadata, "message")
    href = f"https://wa.me/{number}"
    if message:
        href += f"?text={quote(message, safe='')}"
    return LandingResolution(
        actions=(QRAction(label="Open in WhatsApp", href=href, subtitle=number),),
    )


def _resolve_text(content: str, metadata: Metadata) -> QRTypeResolution:
    return LandingResolution(
        display_content=content or "No content.",
        landing_style=_landing_style(metadata),
    )


def _resolve_wifi(content: str, metadata: Metadata) -> QRTypeResolution:
    wifi = parse_wifi_string(content)
    if not wifi.get("ssid"):
        return _resolve_text(content, metadata)

    lines = [f"Network: {wifi['ssid']}"]
    if wifi.get("password"):
        lines.append(f"Password: {wifi['password']}")
    lines.append(f"Security: {wifi['security']}")
    if wifi.get("hidden"):
        lines.append("Hidden network")
    return LandingResolution(
        display_content="\n".join(lines),
        structured=wifi,
        landing_style=_landing_style(metadata),
    )


def _resolve_vcard(content: str, metadata: Metadata) -> QRTypeResolution:
    card = parse_vcard(content)
    if not card:
        return _resolve_text(content, metadata)

    name = " ".join(p for p in (card.get("first_name"), card.get("last_name")) if p)
    lines = [v for v in (name, card.get("organization"), card.get("phone"), card.get("email")) if v]

    actions = [QRAction(label="Add to contacts", href=vcard_data_uri(content), variant="secondary")]
    phone = normalize_phone(card.get("phone", ""))
    if phone:
        actions.append(QRAction(label="Call", href=f"tel:{phone}", variant="secondary", subtitle=phone))
    if card.get("email"):
        actions.append(
            QRAction(label="Email", href=f"mailto:{card['email']}", variant="secondary", subtitle=card["email"])
        )
    return LandingResolution(
        actions=tuple(actions),
        display_content="\n".join(lines),
        structured=card,
        landing_style=_landing_style(metadata),
    )


def _resolve_event(content: str, metadata: Metadata) -> QRTypeResolution:
    event = parse_event_string(content)
    if not event:
        return _resolve_text(content, metadata)

    lines = [str(event["title"])]
    if event.get("start"):
        lines.append(f"Start: {event['start']}")
    if event.get("end"):
        lines.append(f"End: {event['end']}")
    if event.get("location"):
        lines.append(str(event["location"]))
    if event.get("description"):
        lines.append(str(event["description"]))

    actions: Tuple[QRAction, ...] = ()
    if event.get("start") and event.get("end"):
        actions = (QRAction(label="Add to calendar", href=google_calendar_url(event), variant="secondary"),)
    return LandingResolution(
        actions=actions,
        display_content="\n".join(lines),
        structured=event,
        landing_style=_landing_style(metadata),
    )


def _resolve_location(content: str, metadata: Metadata) -> QRTypeResolution:
    if not content:
        return _empty("No content.")
    return LandingResolution(
        actions=(QRAction(label="Open in maps", href=maps_url(content), variant="secondary"),),
        display_content=content,
        landing_style=_landing_style(metadata),
    )


def _resolve_smart_redirect(content: str, metadata: Metadata) -> QRTypeResolution:
    redirects = (metadata or {}).get("smartRedirect") or {}
    if not isinstance(redirects, Mapping):
        redirects = {}
    for key in ("fallback", "ios", "android"):
        value = redirects.get(key)
        if isinstance(value, str) and value.strip():
            return RedirectResolution(url=value.strip())
    return RedirectResolution(url=content or "https://example.com")


_RESOLVERS: Dict[QRContentType, Callable[[str, Metadata], QRTypeResolution]] = {
    QRContentType.URL: _resolve_url,
    QRContentType.PHONE: _resolve_phone,
    QRContentType.EMAIL: _resolve_email,
    QRContentType.SMS: _resolve_sms,
    QRContentType.WHATSAPP: _resolve_whatsapp,
    QRContentType.TEXT: _resolve_text,
    QRContentType.WIFI: _resolve_wifi,
    QRContentType.VCARD: _resolve_vcard,
    QRContentType.EVENT: _resolve_event,
    QRContentType.LOCATION: _resolve_location,
    QRContentType.SMART_REDIRECT: _resolve_smart_redirect,
}


# =============================================================================
# ✅ Öffentliche API
# =============================================================================
def resolve_qr_scan(
    content_type: Union[QRContentType, str],
    content: str,
    metadata: Metadata = None,
) -> QRTypeResolution:
    """
    Entscheidet, wie ein Scan behandelt wird.
    Unbekannter Typ → ``ValueError`` (Programmierfehler, kein Nutzerfehler).
    """
    resolver = _RESOLVERS[QRContentType(content_type)]
    return resolver((content or "").strip(), metadata)


def get_qr_type_label(content_type: Union[QRContentType, str]) -> str:
    return TYPE_LABELS[QRContentType(content_type)]


def has_primary_action(content_type: Union[QRContentType, str]) -> bool:
    return QRContentType(content_type) in _PRIMARY_ACTION_TYPES
