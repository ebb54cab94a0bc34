# Signing Module
"""
Envelope signing and verification:
- Timestamped {message, timestamp} envelope
- Compact JSON serialization (the exact signing input)
- ECDSA P-256 / SHA-256 signatures, Base64 of raw r || s

Verification is byte-exact over the serialized envelope.
"""

from .signer import (
    MessageEnvelope,
    EnvelopeSigner,
    sign,
    verify,
    load_public_key,
    utc_timestamp,
    der_to_raw,
    raw_to_der,
)

__all__ = [
    'MessageEnvelope',
    'EnvelopeSigner',
    'sign',
    'verify',
    'load_public_key',
    'utc_timestamp',
    'der_to_raw',
    'raw_to_der',
]
