"""
Envelope Signing and Verification

Implements the signing workflow:
- Wrap the user's message in a timestamped envelope
- Serialize it once to compact JSON (key order: message, timestamp)
- Sign the UTF-8 bytes with ECDSA P-256 / SHA-256
- Encode the raw r || s signature (64 bytes) as Base64

Signature format:
    Base64( r (32 bytes, big-endian) | s (32 bytes, big-endian) )

This is the IEEE P1363 layout WebCrypto uses. The cryptography library
produces and expects DER, so signatures are converted at this boundary.

Verification always runs over the serialized envelope exactly as it was
signed; a parsed-and-reserialized copy may differ byte for byte.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

from ..config import HASH_ALGORITHM, COORDINATE_SIZE, SIGNATURE_SIZE
from ..core.encoding import str_to_bytes, bytes_to_base64, base64_to_bytes
from ..errors import KeyImportError, SigningError, VerificationError
from ..keys.jwk import EcJwk, parse_jwk


logger = logging.getLogger(__name__)

PublicKeyInput = Union[ec.EllipticCurvePublicKey, EcJwk, Dict[str, Any], str]


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """
    ISO-8601 UTC timestamp with millisecond precision and 'Z' suffix.

    Matches JavaScript's Date.prototype.toISOString(), e.g.
    2026-10-17T09:30:00.123Z
    """
    now = now or datetime.now(timezone.utc)
    now = now.astimezone(timezone.utc)
    return now.strftime('%Y-%m-%dT%H:%M:%S.') + f"{now.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class MessageEnvelope:
    """The {message, timestamp} structure that is actually signed."""
    message: str
    timestamp: str

    @classmethod
    def create(cls, message: str, now: Optional[datetime] = None) -> 'MessageEnvelope':
        return cls(message=message, timestamp=utc_timestamp(now))

    def to_dict(self) -> Dict[str, str]:
        return {'message': self.message, 'timestamp': self.timestamp}

    def serialize(self) -> str:
        """Compact JSON, same bytes JSON.stringify would produce."""
        return json.dumps(self.to_dict(), separators=(',', ':'), ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MessageEnvelope':
        """
        Raises:
            VerificationError: If the object is not an envelope
        """
        if not isinstance(data, dict):
            raise VerificationError("Message envelope must be a JSON object")
        message = data.get('message')
        timestamp = data.get('timestamp')
        if not isinstance(message, str) or not isinstance(timestamp, str):
            raise VerificationError(
                "Message envelope needs string 'message' and 'timestamp' fields"
            )
        return cls(message=message, timestamp=timestamp)

    @classmethod
    def parse(cls, serialized: str) -> 'MessageEnvelope':
        """Parse serialized envelope JSON."""
        try:
            data = json.loads(serialized)
        except (TypeError, ValueError, RecursionError) as exc:
            raise VerificationError(f"Malformed message JSON: {exc}") from exc
        return cls.from_dict(data)


# ============================================================================
# Signature format conversion
# ============================================================================

def der_to_raw(der_signature: bytes) -> bytes:
    """Convert a DER ECDSA signature to fixed-width r || s."""
    r, s = decode_dss_signature(der_signature)
    return r.to_bytes(COORDINATE_SIZE, 'big') + s.to_bytes(COORDINATE_SIZE, 'big')


def raw_to_der(raw_signature: bytes) -> bytes:
    """Convert fixed-width r || s to DER."""
    if len(raw_signature) != SIGNATURE_SIZE:
        raise ValueError(f"Raw signature must be {SIGNATURE_SIZE} bytes")
    r = int.from_bytes(raw_signature[:COORDINATE_SIZE], 'big')
    s = int.from_bytes(raw_signature[COORDINATE_SIZE:], 'big')
    return encode_dss_signature(r, s)


# ============================================================================
# Sign / verify
# ============================================================================

def sign(message: str,
         private_key: Optional[ec.EllipticCurvePrivateKey],
         now: Optional[datetime] = None) -> Tuple[str, str]:
    """
    Sign a message inside a fresh timestamped envelope.

    Args:
        message: User-entered text (trimmed before wrapping)
        private_key: Signing key handle
        now: Override for the envelope timestamp

    Returns:
        Tuple of (serialized_envelope, base64_signature)

    Raises:
        SigningError: If no key is loaded or the message is blank
    """
    if private_key is None:
        raise SigningError("No private key loaded")
    if not isinstance(message, str):
        raise SigningError("Message must be text")

    text = message.strip()
    if not text:
        raise SigningError("Message empty")

    serialized = MessageEnvelope.create(text, now).serialize()
    try:
        der_signature = private_key.sign(str_to_bytes(serialized), ec.ECDSA(HASH_ALGORITHM))
    except (TypeError, ValueError) as exc:
        raise SigningError(f"Signing failed: {exc}") from exc

    signature = bytes_to_base64(der_to_raw(der_signature))
    logger.debug("Signed envelope of %d bytes", len(serialized))
    return serialized, signature


def load_public_key(public_key: PublicKeyInput) -> ec.EllipticCurvePublicKey:
    """
    Turn any accepted public key form into a key handle.

    Raises:
        VerificationError: If the key is malformed
    """
    if isinstance(public_key, ec.EllipticCurvePublicKey):
        return public_key
    try:
        return parse_jwk(public_key).to_public_key()
    except KeyImportError as exc:
        raise VerificationError(f"Invalid public key: {exc}") from exc


def verify(serialized_envelope: str,
           base64_signature: str,
           public_key: PublicKeyInput) -> bool:
    """
    Verify a signature over the exact serialized envelope.

    Args:
        serialized_envelope: Envelope JSON exactly as it was signed
        base64_signature: Base64 of the raw r || s signature
        public_key: Key handle, EcJwk, JWK dict or JWK JSON text

    Returns:
        True if the signature is valid, False on cryptographic mismatch

    Raises:
        VerificationError: For malformed signature, key or envelope
    """
    if not isinstance(serialized_envelope, str):
        raise VerificationError("Message must be text")
    # Structure check only; the original string is what gets verified
    MessageEnvelope.parse(serialized_envelope)

    try:
        raw_signature = base64_to_bytes(base64_signature)
    except ValueError as exc:
        raise VerificationError(f"Invalid signature encoding: {exc}") from exc

    key = load_public_key(public_key)

    if len(raw_signature) != SIGNATURE_SIZE:
        logger.debug("Signature has %d bytes, expected %d", len(raw_signature), SIGNATURE_SIZE)
        return False

    try:
        key.verify(raw_to_der(raw_signature), str_to_bytes(serialized_envelope),
                   ec.ECDSA(HASH_ALGORITHM))
        return True
    except InvalidSignature:
        return False


class EnvelopeSigner:
    """
    ECDSA envelope signer bound to one key pair.

    Example:
        signer = EnvelopeSigner(key_pair.private_key, key_pair.public_key)
        envelope_json, signature = signer.sign("hello world")
        assert signer.verify_with_key(envelope_json, signature)
    """

    def __init__(self, private_key: Optional[ec.EllipticCurvePrivateKey],
                 public_key: Optional[ec.EllipticCurvePublicKey] = None):
        self._private_key = private_key
        self._public_key = public_key

    def sign(self, message: str, now: Optional[datetime] = None) -> Tuple[str, str]:
        """Sign a message; see sign()."""
        return sign(message, self._private_key, now)

    def verify_with_key(self, serialized_envelope: str, base64_signature: str) -> bool:
        """Verify using the bound public key."""
        if self._public_key is None:
            raise VerificationError("No public key")
        return verify(serialized_envelope, base64_signature, self._public_key)
