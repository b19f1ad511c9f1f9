from datetime import date

import pytest

from beolcho.shared.validators import mask_phone, parse_request_date, validate_coordinates, validate_kr_phone


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("01012345678", "010-1234-5678"),
        ("010-1234-5678", "010-1234-5678"),
        ("+82 10 1234 5678", "010-1234-5678"),
        ("0541234567", "054-123-4567"),
        ("021234567", "02-123-4567"),
    ],
)
def test_validate_kr_phone(raw, expected):
    assert validate_kr_phone(raw) == expected


@pytest.mark.parametrize("raw", ["1234", "110-1234-5678", "010123456789"])
def test_validate_kr_phone_rejects(raw):
    with pytest.raises(ValueError):
        validate_kr_phone(raw)


def test_mask_phone():
    assert mask_phone("010-1234-5678") == "010-1234-****"
    assert mask_phone("") == ""


def test_validate_coordinates():
    assert validate_coordinates(35.9, 128.28) == (35.9, 128.28)
    with pytest.raises(ValueError):
        validate_coordinates(95.0, 128.0)


def test_parse_request_date():
    assert parse_request_date("2025-09-01") == date(2025, 9, 1)
    with pytest.raises(ValueError):
        parse_request_date("2025/09/01")
    with pytest.raises(ValueError):
        parse_request_date("")
