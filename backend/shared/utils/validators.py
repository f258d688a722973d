"""
Shared validators for input sanitization.
"""

import re
from typing import Optional
from urllib.parse import urlparse

# Hosts that must never appear in user-supplied URLs (SSRF)
BLOCKED_HOSTS = [
    "localhost",
    "127.0.0.1",
    "0.0.0.0",
    "10.",
    "192.168.",
    "169.254.",
    "[::1]",
    "metadata.google",
]
_PRIVATE_172 = re.compile(r"^172\.(1[6-9]|2[0-9]|3[01])\.")

BLOCKED_SCHEMES = {"javascript", "data", "file", "ftp", "mailto", "tel"}

MAX_URL_LENGTH = 2048

GSTIN_PATTERN = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z]{1}[1-9A-Z]{1}Z[0-9A-Z]{1}$")

INDIA_COUNTRY_CODE = "+91"

_GPS_PATTERN = re.compile(r"^\s*(-?\d{1,2}(?:\.\d+)?)\s*,\s*(-?\d{1,3}(?:\.\d+)?)\s*$")


def validate_url(url: Optional[str]) -> Optional[str]:
    """
    Validate a user-supplied http(s) URL (images, voice notes, payment proofs).

    Returns:
        The stripped URL, or None for empty input

    Raises:
        ValueError: If the URL is malformed or points at an internal host
    """
    if url is None:
        return None
    url = url.strip()
    if not url:
        return None

    if len(url) > MAX_URL_LENGTH:
        raise ValueError(f"URL too long (max {MAX_URL_LENGTH} characters)")

    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    if scheme in BLOCKED_SCHEMES:
        raise ValueError(f"URL scheme not allowed: {scheme}")
    if scheme not in ("http", "https"):
        raise ValueError("Only HTTP/HTTPS URLs are allowed")

    host = parsed.netloc.lower()
    if not host:
        raise ValueError("URL has no host")
    for blocked in BLOCKED_HOSTS:
        if host.startswith(blocked) or blocked in host:
            raise ValueError("Internal URLs are not allowed")
    if _PRIVATE_172.match(host):
        raise ValueError("Internal URLs are not allowed")

    return url


def normalize_phone(phone: str) -> str:
    """
    Normalize an Indian mobile number to +91XXXXXXXXXX.

    Accepts "9876543210", "09876543210", "919876543210", "+91 98765-43210".
    """
    if phone is None:
        raise ValueError("Phone number is required")
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 11 and digits.startswith("0"):
        digits = digits[1:]
    elif len(digits) == 12 and digits.startswith("91"):
        digits = digits[2:]
    if len(digits) != 10:
        raise ValueError(f"Invalid phone number: {phone}")
    return INDIA_COUNTRY_CODE + digits


def whatsapp_number(phone: str) -> str:
    """Digits-only form used in wa.me links (country code, no plus)."""
    return normalize_phone(phone).lstrip("+")


def normalize_gst_number(gstin: str) -> str:
    return re.sub(r"\s", "", gstin).upper()


def is_valid_gst_number(gstin: Optional[str]) -> bool:
    """15-character GSTIN: state code, PAN, entity number, 'Z', checksum."""
    if not gstin:
        return False
    return GSTIN_PATTERN.match(gstin) is not None


def validate_gps(coordinates: Optional[str]) -> Optional[str]:
    """
    Validate a "lat,lng" pair and return it without spaces.

    Raises:
        ValueError: If the pair is malformed or out of range
    """
    if coordinates is None or not coordinates.strip():
        return None
    match = _GPS_PATTERN.match(coordinates)
    if match is None:
        raise ValueError("GPS coordinates must look like 'lat,lng'")
    lat, lng = float(match.group(1)), float(match.group(2))
    if not -90 <= lat <= 90 or not -180 <= lng <= 180:
        raise ValueError("GPS coordinates out of range")
    return f"{match.group(1)},{match.group(2)}"


def sanitize_text(text: Optional[str], max_length: int) -> Optional[str]:
    """Strip control characters and truncate. Empty strings become None."""
    if text is None:
        return None
    text = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", text).strip()
    if not text:
        return None
    return text[:max_length]
