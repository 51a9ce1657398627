from __future__ import annotations

from datetime import date, datetime

import pytest

from students import normalize


@pytest.mark.parametrize("value", [None, "", "  ", "null", "undefined"])
def test_absent_tokens(value):
    assert normalize.clean_optional(value) is None


@pytest.mark.parametrize(("value", "expected"), [(3, 3), ("4", 4), (" 2 ", 2), ("abc", None), ("", None), (True, None)])
def test_parse_int(value, expected):
    assert normalize.parse_int(value) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2024-06-01", date(2024, 6, 1)),
        ("2024-06-01T08:00:00Z", date(2024, 6, 1)),
        (datetime(2024, 6, 1, 8, 0), date(2024, 6, 1)),
        ("June 1", None),
        ("undefined", None),
    ],
)
def test_parse_date(value, expected):
    assert normalize.parse_date(value) == expected


def test_personal_values_keep_only_recognized_fields():
    values = normalize.personal_values({"first_name": " Ana ", "nickname": "Annie", "major_id": "x"})

    assert values == {"first_name": "Ana", "major_id": None}


def test_blank_photo_is_dropped_not_nulled():
    assert normalize.personal_values({"profile_picture_url": ""}) == {}


def test_address_only_when_a_part_is_present():
    assert normalize.address_values({"permanent_city": "null"}, "permanent") is None
    assert normalize.address_values({"current_zip_code": "1100"}, "current") == {
        "street": None,
        "city": None,
        "province": None,
        "zip_code": "1100",
    }


def test_contact_prefers_mobile_over_home_phone():
    both = normalize.contact_values({"mobile_phone": "0917", "home_phone": "02-555"})
    home_only = normalize.contact_values({"mobile_phone": "", "home_phone": "02-555"})

    assert both["phone_number"] == "0917"
    assert home_only["phone_number"] == "02-555"


def test_guardian_fields_map_to_columns():
    values = normalize.guardian_values({"guardian_phone": "0917-555-0101"})

    assert values["guardian_phone_number"] == "0917-555-0101"
    assert values["guardian_full_name"] is None
