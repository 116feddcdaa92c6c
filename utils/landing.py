# =============================================================================
# 🎨 utils/landing.py
# Landing-Seite nach dem Scan: Themes, Icons, Aufteilung der Aktionen
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple, Union

from utils.qr_types import (
    LandingResolution,
    QRAction,
    QRContentType,
    get_qr_type_label,
)

DEFAULT_LANDING_THEME = "default"


@dataclass(frozen=True)
class LandingTheme:
    id: str
    label: str
    description: str
    wrapper: str
    container: str
    title: str
    content_block: str
    cta: str
    cta_secondary: str
    show_header_icon: bool = True


LANDING_THEMES: Dict[str, LandingTheme] = {
    "default": LandingTheme(
        id="default",
        label="Classic",
        description="Clean slate gradient, emerald CTA, soft card",
        wrapper="landing landing--default",
        container="landing__container",
        title="landing__title",
        content_block="landing__content landing__content--card",
        cta="btn btn--emerald",
        cta_secondary="btn btn--ghost",
    ),
    "minimal": LandingTheme(
        id="minimal",
        label="Minimal",
        description="Editorial look, borders only, no shadows",
        wrapper="landing landing--minimal",
        container="landing__container",
        title="landing__title landing__title--serif",
        content_block="landing__content landing__content--bordered",
        cta="btn btn--outline",
        cta_secondary="btn btn--link",
        show_header_icon=False,
    ),
    "card": LandingTheme(
        id="card",
        label="Card",
        description="Warm amber accent, single prominent card",
        wrapper="landing landing--card",
        container="landing__container landing__container--card",
        title="landing__title",
        content_block="landing__content landing__content--amber",
        cta="btn btn--amber",
        cta_secondary="btn btn--amber-soft",
    ),
    "full": LandingTheme(
        id="full",
        label="Hero",
        description="Bold indigo gradient, large type, dot grid",
        wrapper="landing landing--full",
        container="landing__container landing__container--wide",
        title="landing__title landing__title--hero",
        content_block="landing__content landing__content--glass",
        cta="btn btn--indigo btn--lg",
        cta_secondary="btn btn--glass",
    ),
}

# Icon-Namen (lucide) pro Typ
TYPE_ICONS: Dict[str, str] = {
    QRContentType.PHONE.value: "phone",
    QRContentType.EMAIL.value: "mail",
    QRContentType.SMS.value: "message-square",
    QRContentType.WHATSAPP.value: "message-circle",
    QRContentType.URL.value: "link-2",
    QRContentType.VCARD.value: "user",
    QRContentType.WIFI.value: "wifi",
    QRContentType.EVENT.value: "calendar",
    QRContentType.LOCATION.value: "map-pin",
}
DEFAULT_ICON = "external-link"


def get_theme(theme_id: str | None) -> LandingTheme:
    return LANDING_THEMES.get(theme_id or DEFAULT_LANDING_THEME, LANDING_THEMES[DEFAULT_LANDING_THEME])


def icon_for_type(content_type: Union[QRContentType, str]) -> str:
    return TYPE_ICONS.get(QRContentType(content_type).value, DEFAULT_ICON)


def icon_for_href(href: str, content_type: Union[QRContentType, str]) -> str:
    if href.startswith("tel:"):
        return "phone"
    if href.startswith("mailto:"):
        return "mail"
    if href.startswith("sms:"):
        return "message-square"
    if "wa.me/" in href:
        return "message-circle"
    if href.startswith("http"):
        return "link-2"
    return icon_for_type(content_type)


@dataclass(frozen=True)
class ActionButton:
    label: str
    href: str
    subtitle: str | None
    icon: str
    css_class: str
    opens_new_tab: bool


@dataclass(frozen=True)
class LandingView:
    content_type: str
    type_label: str
    icon: str
    theme: LandingTheme
    primary_actions: Tuple[ActionButton, ...]
    secondary_actions: Tuple[ActionButton, ...]
    display_content: str | None


def _button(action: QRAction, content_type: Union[QRContentType, str], theme: LandingTheme) -> ActionButton:
    is_primary = action.variant == "primary"
    return ActionButton(
        label=action.label,
        href=action.href,
        subtitle=action.subtitle,
        icon=icon_for_href(action.href, content_type),
        css_class=theme.cta if is_primary else theme.cta_secondary,
        opens_new_tab=action.href.startswith("http"),
    )


def build_landing_view(
    resolution: LandingResolution,
    content_type: Union[QRContentType, str],
    theme_id: str | None = DEFAULT_LANDING_THEME,
) -> LandingView:
    """Bereitet eine Landing-Auflösung für das Template auf."""
    if not isinstance(resolution, LandingResolution):
        raise TypeError("build_landing_view expects a landing resolution")

    theme = get_theme(theme_id)
    return LandingView(
        content_type=QRContentType(content_type).value,
        type_label=get_qr_type_label(content_type),
        icon=icon_for_type(content_type),
        theme=theme,
        primary_actions=tuple(_button(a, content_type, theme) for a in resolution.primary_actions),
        secondary_actions=tuple(_button(a, content_type, theme) for a in resolution.secondary_actions),
        display_content=resolution.display_content,
    )
