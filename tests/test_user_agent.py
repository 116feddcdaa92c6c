from __future__ import annotations

from utils.user_agent import parse_browser_name, parse_device_type, parse_os_name

IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
IPAD = (
    "Mozilla/5.0 (iPad; CPU OS 16_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.0 Mobile/15E148 Safari/604.1"
)
WINDOWS_EDGE = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.0.0"
)
ANDROID_CHROME = (
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36"
)


def test_iphone():
    assert parse_device_type(IPHONE) == "mobile"
    assert parse_os_name(IPHONE) == "iOS"
    assert parse_browser_name(IPHONE) == "Safari"


def test_ipad_is_tablet():
    assert parse_device_type(IPAD) == "tablet"


def test_windows_edge():
    assert parse_device_type(WINDOWS_EDGE) == "desktop"
    assert parse_os_name(WINDOWS_EDGE) == "Windows"
    assert parse_browser_name(WINDOWS_EDGE) == "Edge"


def test_android_chrome():
    assert parse_device_type(ANDROID_CHROME) == "mobile"
    assert parse_os_name(ANDROID_CHROME) == "Android"
    assert parse_browser_name(ANDROID_CHROME) == "Chrome"


def test_empty_user_agent():
    assert parse_device_type("") == "desktop"
    assert parse_browser_name("") is None
    assert parse_os_name("") is None
