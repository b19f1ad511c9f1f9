"""Shared validation utilities"""

import re
from datetime import date
from typing import Optional, Union


def validate_kr_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a Korean phone number to dashed form.

    Args:
        phone: Phone number string in various formats (01012345678, 010-1234-5678, +82 10 ...)

    Returns:
        Dashed phone number (010-1234-5678, 054-123-4567, 02-123-4567)

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    digits = re.sub(r"\D", "", phone)

    # Handle +82 country prefix
    if digits.startswith("82"):
        digits = "0" + digits[2:]

    if not digits.startswith("0") or not 9 <= len(digits) <= 11:
        raise ValueError("전화번호 형식이 올바르지 않습니다.")

    # Seoul area code is two digits, everything else three
    if digits.startswith("02"):
        head, rest = digits[:2], digits[2:]
    else:
        head, rest = digits[:3], digits[3:]

    if len(rest) < 7:
        raise ValueError("전화번호 형식이 올바르지 않습니다.")

    return f"{head}-{rest[:-4]}-{rest[-4:]}"


def mask_phone(phone: Optional[str]) -> str:
    """Hide the last four digits for public listings"""
    if not phone:
        return ""
    if "-" in phone:
        parts = phone.split("-")
        return f"{parts[0]}-{parts[1]}-****" if len(parts) == 3 else "****"
    return phone[:-4] + "****" if len(phone) > 4 else "****"


def validate_coordinates(lat: float, lng: float) -> tuple[float, float]:
    if not -90 <= lat <= 90 or not -180 <= lng <= 180:
        raise ValueError("좌표 값이 올바르지 않습니다.")
    return lat, lng


def parse_request_date(value: Union[str, date, None]) -> date:
    """Calendar date without time component (YYYY-MM-DD)"""
    if isinstance(value, date):
        return value
    if not value:
        raise ValueError("날짜를 입력해주세요.")
    try:
        return date.fromisoformat(value.strip())
    except ValueError as e:
        raise ValueError("날짜 형식은 YYYY-MM-DD 이어야 합니다.") from e
