from __future__ import annotations

from urllib.parse import unquote

from utils.qr_formats import (
    build_event_string,
    build_vcard,
    build_wifi_string,
    google_calendar_url,
    maps_query,
    normalize_phone,
    parse_event_string,
    parse_vcard,
    parse_wifi_string,
    phone_digits,
    vcard_data_uri,
)


def test_normalize_phone():
    assert normalize_phone("+1 (555) 123-4567") == "+15551234567"
    assert normalize_phone("00491701234567") == "491701234567"
    assert normalize_phone("") == ""
    assert phone_digits("+1 555") == "1555"


def test_wifi_string_escaping():
    assert build_wifi_string("My:Net", "pa;ss", "nopass") == "WIFI:T:nopass;S:My\\:Net;P:pa\\;ss;;"
    assert build_wifi_string("Net", security="bogus").startswith("WIFI:T:WPA;")


def test_parse_wifi_string():
    parsed = parse_wifi_string("WIFI:T:WEP;S:Home\\;Net;P:abc\\\\def;H:true;;")
    assert parsed == {"security": "WEP", "ssid": "Home;Net", "password": "abc\\def", "hidden": True}


def test_parse_wifi_unknown_format():
    assert parse_wifi_string("hello") == {"security": "WPA"}


def test_parse_vcard_with_params_and_escapes():
    content = "\r\n".join(
        [
            "BEGIN:VCARD",
            "VERSION:3.0",
            "N:Doe\\;Smith;Jane;;;",
            "ORG:ACME\\; Inc",
            "TEL;TYPE=cell:+1 555 000",
            "TEL;TYPE=work:+1 555 111",
            "EMAIL;TYPE=internet:jane@example.com",
            "END:VCARD",
        ]
    )
    card = parse_vcard(content)
    assert card == {
        "last_name": "Doe;Smith",
        "first_name": "Jane",
        "organization": "ACME; Inc",
        "phone": "+1 555 000",
        "email": "jane@example.com",
    }


def test_parse_vcard_full_name_only():
    card = parse_vcard("BEGIN:VCARD\nFN:Grace Brewster Hopper\nEND:VCARD")
    assert card["first_name"] == "Grace Brewster"
    assert card["last_name"] == "Hopper"


def test_vcard_data_uri_is_decodable():
    content = build_vcard("Ada", "Lovelace")
    uri = vcard_data_uri(content)
    assert unquote(uri.split(",", 1)[1]) == content


def test_event_string():
    content = build_event_string(" Launch ", "2026-05-01T10:00:00.000Z", "2026-05-01T11:00:00.000Z")
    event = parse_event_string(content)
    assert event["title"] == "Launch"
    assert "dates=20260501T100000%2F20260501T110000" in google_calendar_url(event)


def test_event_string_invalid():
    assert parse_event_string("EVENT:{not json") is None
    assert parse_event_string('EVENT:{"start": "x"}') is None


def test_maps_query():
    assert maps_query("geo:52.52,13.405?z=12") == "52.52,13.405"
    assert maps_query("Alexanderplatz, Berlin") == "Alexanderplatz, Berlin"
