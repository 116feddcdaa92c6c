"""
utils/qr_formats.py
────────────────────────────────────────────
Inhaltsformate der QR-Typen:
- Telefonnummern normalisieren
- WIFI:-String (Android/iOS-Standard) bauen & lesen
- vCard 3.0 bauen & lesen
- Event-JSON lesen + Google-Calendar-Link
- Karten-Link für Standorte
────────────────────────────────────────────
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlencode

_NON_DIGITS = re.compile(r"\D")


# =============================================================================
# 📞 Telefon
# =============================================================================
def normalize_phone(value: str) -> str:
    """
    Ziffern einer Nummer. Ein führendes ``+`` bleibt erhalten (internationales
    Format); ohne ``+`` werden führende Nullen entfernt.
    """
    raw = (value or "").strip()
    digits = _NON_DIGITS.sub("", raw)
    if not digits:
        return ""
    if raw.startswith("+"):
        return f"+{digits}"
    return digits.lstrip("0")


def phone_digits(value: str) -> str:
    """Nur Ziffern, ohne führende Nullen (z. B. für wa.me-Links)."""
    return _NON_DIGITS.sub("", value or "").lstrip("0")


# =============================================================================
# 📶 WIFI
# =============================================================================
WIFI_SECURITIES = ("WPA", "WEP", "nopass")


def _escape_wifi(value: str) -> str:
    out = value.replace("\\", "\\\\")
    for ch in ";:,":
        out = out.replace(ch, "\\" + ch)
    return out


def build_wifi_string(ssid: str, password: str = "", security: str = "WPA", hidden: bool = False) -> str:
    if security not in WIFI_SECURITIES:
        security = "WPA"
    parts = [f"WIFI:T:{security}", f"S:{_escape_wifi(ssid.strip())}", f"P:{_escape_wifi(password.strip())}"]
    if hidden:
        parts.append("H:true")
    return ";".join(parts) + ";;"


def _split_unescaped(text: str, sep: str) -> List[str]:
    parts: List[str] = []
    current: List[str] = []
    escaped = False
    for ch in text:
        if escaped:
            current.append(ch)
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == sep:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    parts.append("".join(current))
    return parts


def parse_wifi_string(content: str) -> Dict[str, Any]:
    """Liest ``WIFI:T:..;S:..;P:..;H:..;;``. Unbekanntes Format → nur Defaults."""
    out: Dict[str, Any] = {"security": "WPA"}
    raw = (content or "").strip()
    if not raw.upper().startswith("WIFI:"):
        return out

    for pair in _split_unescaped(raw[5:], ";"):
        if ":" not in pair:
            continue
        key, value = pair.split(":", 1)
        key = key.strip().upper()
        value = value.strip()
        if key == "T":
            out["security"] = value if value in ("WEP", "nopass") else "WPA"
        elif key == "S":
            out["ssid"] = value
        elif key == "P":
            out["password"] = value
        elif key == "H":
            out["hidden"] = value.lower() == "true"
    return out


# =============================================================================
# 👤 vCard 3.0
# =============================================================================
def _vcard_escape(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )


def _vcard_unescape(value: str) -> str:
    return value.replace("\\n", "\n").replace("\\;", ";").replace("\\\\", "\\")


def build_vcard(
    first_name: str = "",
    last_name: str = "",
    organization: str = "",
    phone: str = "",
    email: str = "",
) -> str:
    lines = ["BEGIN:VCARD", "VERSION:3.0"]
    fn = " ".join(p for p in (first_name, last_name) if p).strip()
    if fn:
        lines.append(f"FN:{_vcard_escape(fn)}")
    if first_name.strip():
        lines.append(f"N:{_vcard_escape(last_name)};{_vcard_escape(first_name)};;;")
    if organization.strip():
        lines.append(f"ORG:{_vcard_escape(organization.strip())}")
    if phone.strip():
        lines.append(f"TEL:{normalize_phone(phone)}")
    if email.strip():
        lines.append(f"EMAIL:{_vcard_escape(email.strip())}")
    lines.append("END:VCARD")
    return "\r\n".join(lines)


def parse_vcard(content: str) -> Dict[str, str]:
    """Best-effort: Name, Organisation, Telefon, E-Mail aus einer vCard."""
    out: Dict[str, str] = {}
    full_name = ""
    for line in (content or "").replace("\r\n", "\n").split("\n"):
        if ":" not in line:
            continue
        key, raw_value = line.split(":", 1)
        value = _vcard_unescape(raw_value).strip()
        if not value:
            continue
        # Parameter wie TEL;TYPE=cell abschneiden
        name = key.split(";", 1)[0].strip().upper()
        if name == "FN":
            full_name = value
        elif name == "N":
            parts = [_vcard_unescape(p).strip() for p in re.split(r"(?<!\\);", raw_value)]
            if len(parts) > 1 and parts[1]:
                out["first_name"] = parts[1]
            if parts and parts[0]:
                out["last_name"] = parts[0]
        elif name == "ORG":
            out["organization"] = value
        elif name == "TEL" and "phone" not in out:
            out["phone"] = value
        elif name == "EMAIL" and "email" not in out:
            out["email"] = value

    if full_name and "first_name" not in out:
        first, _, last = full_name.rpartition(" ")
        if first:
            out["first_name"] = first
            out.setdefault("last_name", last)
        else:
            out["first_name"] = last
    return out


def vcard_data_uri(content: str) -> str:
    return "data:text/vcard;charset=utf-8," + quote(content, safe="")


# =============================================================================
# 📅 Event
# =============================================================================
EVENT_PREFIX = "EVENT:"


def build_event_string(
    title: str,
    start: str,
    end: str,
    location: str = "",
    description: str = "",
) -> str:
    payload = {
        "title": title.strip(),
        "start": start,
        "end": end,
        "location": location.strip(),
        "description": description.strip(),
    }
    return EVENT_PREFIX + json.dumps(payload, ensure_ascii=False)


def parse_event_string(content: str) -> Optional[Dict[str, Any]]:
    raw = (content or "").strip()
    if raw.startswith(EVENT_PREFIX):
        raw = raw[len(EVENT_PREFIX):]
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(data, dict) or not isinstance(data.get("title"), str):
        return None
    return data


def _calendar_stamp(value: str) -> str:
    stamp = re.sub(r"[-:]", "", value or "")
    stamp = re.sub(r"\.\d{3}", "", stamp)
    return stamp[:15]


def google_calendar_url(event: Dict[str, Any]) -> str:
    params = {
        "action": "TEMPLATE",
        "text": str(event.get("title") or ""),
        "dates": f"{_calendar_stamp(str(event.get('start') or ''))}/{_calendar_stamp(str(event.get('end') or ''))}",
    }
    if event.get("location"):
        params["location"] = str(event["location"])
    if event.get("description"):
        params["details"] = str(event["description"])
    return f"https://calendar.google.com/calendar/render?{urlencode(params)}"


# =============================================================================
# 📍 Standort
# =============================================================================
def maps_query(content: str) -> str:
    raw = (content or "").strip()
    if raw.lower().startswith("geo:"):
        raw = raw[4:].split("?", 1)[0]
    return raw


def maps_url(content: str) -> str:
    return "https://www.google.com/maps/search/?" + urlencode({"api": "1", "query": maps_query(content)})
