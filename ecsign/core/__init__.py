# Core Utilities Module
"""
Encoding helpers shared by every other module:
- Text <-> UTF-8 bytes
- Bytes <-> standard Base64 (signatures)
- Bytes <-> unpadded Base64url (JWK coordinates)
"""

from .encoding import (
    str_to_bytes,
    bytes_to_str,
    bytes_to_base64,
    base64_to_bytes,
    bytes_to_base64url,
    base64url_to_bytes,
    int_to_base64url,
    base64url_to_int,
)

__all__ = [
    'str_to_bytes',
    'bytes_to_str',
    'bytes_to_base64',
    'base64_to_bytes',
    'bytes_to_base64url',
    'base64url_to_bytes',
    'int_to_base64url',
    'base64url_to_int',
]
