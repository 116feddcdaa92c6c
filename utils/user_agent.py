from __future__ import annotations

import re
from typing import Optional

_TABLET_RE = re.compile(r"ipad|android(?!.*mobile)|kindle|playbook|silk|nexus\s?(7|9|10)|sm-t|gt-p|tab", re.I)
_MOBILE_RE = re.compile(
    r"mobile|android|webos|iphone|ipod|blackberry|iemobile|opera\s?mini|windows\s?phone", re.I
)

# Reihenfolge zählt: spezifischere Muster zuerst
_BROWSER_RULES = [
    (re.compile(r"edg(e|a|ios)?/", re.I), "Edge"),
    (re.compile(r"opr/", re.I), "Opera"),
    (re.compile(r"samsungbrowser/", re.I), "Samsung Browser"),
    (re.compile(r"ucbrowser/", re.I), "UC Browser"),
    (re.compile(r"firefox|fxios/", re.I), "Firefox"),
    (re.compile(r"crios/", re.I), "Chrome"),
    (re.compile(r"chrome/", re.I), "Chrome"),
    (re.compile(r"safari/", re.I), "Safari"),
]

_OS_RULES = [
    (re.compile(r"windows\s?phone", re.I), "Windows Phone"),
    (re.compile(r"windows", re.I), "Windows"),
    (re.compile(r"iphone|ipad|ipod", re.I), "iOS"),
    (re.compile(r"macintosh|mac\s?os", re.I), "macOS"),
    (re.compile(r"android", re.I), "Android"),
    (re.compile(r"cros", re.I), "Chrome OS"),
    (re.compile(r"linux", re.I), "Linux"),
]


def parse_device_type(user_agent: str) -> str:
    ua = user_agent or ""
    if _TABLET_RE.search(ua):
        return "tablet"
    if _MOBILE_RE.search(ua):
        return "mobile"
    return "desktop"


def parse_browser_name(user_agent: str) -> Optional[str]:
    for pattern, name in _BROWSER_RULES:
        if pattern.search(user_agent or ""):
            return name
    return None


def parse_os_name(user_agent: str) -> Optional[str]:
    for pattern, name in _OS_RULES:
        if pattern.search(user_agent or ""):
            return name
    return None
