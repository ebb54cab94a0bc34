"""
Encoding Utilities

Pure, stateless conversions used around the signing primitives:
- Text <-> UTF-8 bytes (the signing input is always UTF-8)
- Bytes <-> standard Base64 with padding (signature values)
- Bytes <-> Base64url without padding (JWK coordinates, RFC 7518)

Decoders raise ValueError on malformed input; callers translate that
into the error kind that fits their operation.
"""

import base64
import binascii
import re


# Characters allowed in each alphabet (padding handled separately)
_BASE64_RE = re.compile(r'^[A-Za-z0-9+/]*={0,2}$')
_BASE64URL_RE = re.compile(r'^[A-Za-z0-9_-]*$')


def str_to_bytes(text: str) -> bytes:
    """Encode text as UTF-8."""
    return text.encode('utf-8')


def bytes_to_str(data: bytes) -> str:
    """Decode UTF-8 bytes to text."""
    return data.decode('utf-8')


def bytes_to_base64(data: bytes) -> str:
    """Encode bytes as standard, padded Base64."""
    return base64.b64encode(data).decode('ascii')


def base64_to_bytes(b64: str) -> bytes:
    """
    Decode standard Base64.

    Surrounding and embedded ASCII whitespace is ignored and missing
    padding is restored, the same leniency a browser's atob() shows for
    pasted text. Anything outside the alphabet is rejected.

    Args:
        b64: Base64 text

    Returns:
        Decoded bytes

    Raises:
        ValueError: If the text is not valid Base64
    """
    if not isinstance(b64, str):
        raise ValueError("Base64 input must be text")

    compact = re.sub(r'\s+', '', b64)
    if not _BASE64_RE.match(compact):
        raise ValueError("Invalid Base64: unexpected character")

    stripped = compact.rstrip('=')
    if len(stripped) % 4 == 1:
        raise ValueError("Invalid Base64: truncated input")

    padded = stripped + '=' * (-len(stripped) % 4)
    try:
        decoded = base64.b64decode(padded, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"Invalid Base64: {exc}") from exc
    # Unused trailing bits must be zero so each byte string has one encoding
    if base64.b64encode(decoded).decode('ascii') != padded:
        raise ValueError("Invalid Base64: non-canonical encoding")
    return decoded


def bytes_to_base64url(data: bytes) -> str:
    """Encode bytes as Base64url without padding."""
    return base64.urlsafe_b64encode(data).decode('ascii').rstrip('=')


def base64url_to_bytes(b64url: str) -> bytes:
    """
    Decode unpadded Base64url.

    Raises:
        ValueError: If the text is not valid Base64url
    """
    if not isinstance(b64url, str):
        raise ValueError("Base64url input must be text")
    if not _BASE64URL_RE.match(b64url) or len(b64url) % 4 == 1:
        raise ValueError("Invalid Base64url value")

    padded = b64url + '=' * (-len(b64url) % 4)
    try:
        decoded = base64.urlsafe_b64decode(padded)
    except binascii.Error as exc:
        raise ValueError(f"Invalid Base64url value: {exc}") from exc
    if bytes_to_base64url(decoded) != b64url:
        raise ValueError("Invalid Base64url value: non-canonical encoding")
    return decoded


def int_to_base64url(value: int, length: int) -> str:
    """Encode a non-negative integer as fixed-width big-endian Base64url."""
    return bytes_to_base64url(value.to_bytes(length, 'big'))


def base64url_to_int(b64url: str, length: int) -> int:
    """
    Decode a fixed-width big-endian Base64url integer.

    Args:
        b64url: Encoded value
        length: Required byte length (32 for P-256 coordinates)

    Raises:
        ValueError: If the value is malformed or has the wrong length
    """
    raw = base64url_to_bytes(b64url)
    if len(raw) != length:
        raise ValueError(f"Expected {length} bytes, got {len(raw)}")
    return int.from_bytes(raw, 'big')
