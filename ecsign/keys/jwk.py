"""
Typed JSON Web Key records for ECDSA P-256.

Only the members the workbench produces are accepted:
    kty, crv, x, y, d, ext, key_ops

Anything else, a missing required member, or a coordinate that does not
decode to exactly 32 bytes is rejected with KeyImportError at the parse
boundary. Member order on output is fixed so that exporting the same key
twice is byte-identical.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from cryptography.hazmat.primitives.asymmetric import ec

from ..config import CURVE, CURVE_NAME, KEY_TYPE, COORDINATE_SIZE, JSON_INDENT
from ..core.encoding import int_to_base64url, base64url_to_int
from ..errors import KeyImportError


logger = logging.getLogger(__name__)

ALLOWED_MEMBERS = ('kty', 'crv', 'x', 'y', 'd', 'ext', 'key_ops')
KNOWN_KEY_OPS = ('sign', 'verify')


@dataclass(frozen=True)
class EcJwk:
    """
    EC JWK on the P-256 curve.

    A public JWK carries x and y. A private JWK carries d and, usually,
    the public coordinates as well.
    """
    x: Optional[str]
    y: Optional[str]
    d: Optional[str] = None
    ext: bool = True
    key_ops: Optional[Tuple[str, ...]] = None
    kty: str = KEY_TYPE
    crv: str = CURVE_NAME

    def __post_init__(self):
        if self.key_ops is not None:
            object.__setattr__(self, 'key_ops', tuple(self.key_ops))

    @property
    def is_private(self) -> bool:
        return self.d is not None

    @property
    def has_public_coordinates(self) -> bool:
        return self.x is not None and self.y is not None

    # ------------------------------------------------------------------
    # Construction from key handles
    # ------------------------------------------------------------------

    @classmethod
    def from_public_key(cls, public_key: ec.EllipticCurvePublicKey,
                        key_ops: Optional[Sequence[str]] = None) -> 'EcJwk':
        """Export a public key handle."""
        numbers = public_key.public_numbers()
        return cls(
            x=int_to_base64url(numbers.x, COORDINATE_SIZE),
            y=int_to_base64url(numbers.y, COORDINATE_SIZE),
            key_ops=key_ops,
        )

    @classmethod
    def from_private_key(cls, private_key: ec.EllipticCurvePrivateKey,
                         key_ops: Optional[Sequence[str]] = None) -> 'EcJwk':
        """Export a private key handle, including its public coordinates."""
        numbers = private_key.private_numbers()
        public = numbers.public_numbers
        return cls(
            x=int_to_base64url(public.x, COORDINATE_SIZE),
            y=int_to_base64url(public.y, COORDINATE_SIZE),
            d=int_to_base64url(numbers.private_value, COORDINATE_SIZE),
            key_ops=key_ops,
        )

    def public_jwk(self) -> 'EcJwk':
        """
        Derive the public JWK from this record.

        Raises:
            KeyImportError: If x or y is missing
        """
        if not self.has_public_coordinates:
            raise KeyImportError("JWK has no public coordinates (x, y)")
        return EcJwk(x=self.x, y=self.y, ext=True)

    # ------------------------------------------------------------------
    # Conversion to key handles
    # ------------------------------------------------------------------

    def to_public_key(self) -> ec.EllipticCurvePublicKey:
        """
        Build a verification key handle.

        Raises:
            KeyImportError: If coordinates are missing or not on the curve
        """
        if not self.has_public_coordinates:
            raise KeyImportError("JWK has no public coordinates (x, y)")
        try:
            x = base64url_to_int(self.x, COORDINATE_SIZE)
            y = base64url_to_int(self.y, COORDINATE_SIZE)
            return ec.EllipticCurvePublicNumbers(x, y, CURVE).public_key()
        except ValueError as exc:
            raise KeyImportError(f"Invalid public key coordinates: {exc}") from exc

    def to_private_key(self) -> ec.EllipticCurvePrivateKey:
        """
        Build a signing key handle from d.

        When x and y are present they must match the point derived from d.

        Raises:
            KeyImportError: If d is missing, invalid, or inconsistent with x/y
        """
        if self.d is None:
            raise KeyImportError("JWK is not a private key (missing 'd')")
        try:
            private_value = base64url_to_int(self.d, COORDINATE_SIZE)
            private_key = ec.derive_private_key(private_value, CURVE)
        except ValueError as exc:
            raise KeyImportError(f"Invalid private scalar: {exc}") from exc

        if self.has_public_coordinates:
            derived = EcJwk.from_public_key(private_key.public_key())
            if (derived.x, derived.y) != (self.x, self.y):
                raise KeyImportError("Public coordinates do not match private key")

        return private_key

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with fixed member order; absent members are omitted."""
        data: Dict[str, Any] = {'kty': self.kty, 'crv': self.crv}
        if self.x is not None:
            data['x'] = self.x
        if self.y is not None:
            data['y'] = self.y
        if self.d is not None:
            data['d'] = self.d
        data['ext'] = self.ext
        if self.key_ops is not None:
            data['key_ops'] = list(self.key_ops)
        return data

    def to_json(self, indent: Optional[int] = JSON_INDENT) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], require_private: bool = False) -> 'EcJwk':
        """
        Validate and build a JWK record.

        Args:
            data: Parsed JSON object
            require_private: Demand a private scalar 'd'

        Raises:
            KeyImportError: On any shape mismatch
        """
        if not isinstance(data, dict):
            raise KeyImportError("JWK must be a JSON object")

        unknown = sorted(set(data) - set(ALLOWED_MEMBERS))
        if unknown:
            raise KeyImportError(f"Unknown JWK member(s): {', '.join(unknown)}")

        if data.get('kty') != KEY_TYPE:
            raise KeyImportError(f"Unsupported key type: {data.get('kty')!r} (expected 'EC')")
        if data.get('crv') != CURVE_NAME:
            raise KeyImportError(f"Unsupported curve: {data.get('crv')!r} (expected 'P-256')")

        for member in ('x', 'y', 'd'):
            value = data.get(member)
            if value is not None and not isinstance(value, str):
                raise KeyImportError(f"JWK member '{member}' must be a string")

        x, y, d = data.get('x'), data.get('y'), data.get('d')
        if (x is None) != (y is None):
            raise KeyImportError("JWK must carry both 'x' and 'y' or neither")
        if require_private and d is None:
            raise KeyImportError("JWK is not a private key (missing 'd')")
        if d is None and x is None:
            raise KeyImportError("Public JWK is missing 'x' and 'y'")

        for member, value in (('x', x), ('y', y), ('d', d)):
            if value is None:
                continue
            try:
                base64url_to_int(value, COORDINATE_SIZE)
            except ValueError as exc:
                raise KeyImportError(f"JWK member '{member}' is invalid: {exc}") from exc

        ext = data.get('ext', True)
        if not isinstance(ext, bool):
            raise KeyImportError("JWK member 'ext' must be a boolean")

        key_ops = data.get('key_ops')
        if key_ops is not None:
            if (not isinstance(key_ops, list)
                    or not all(op in KNOWN_KEY_OPS for op in key_ops)):
                raise KeyImportError("JWK member 'key_ops' must list 'sign'/'verify'")

        return cls(x=x, y=y, d=d, ext=ext, key_ops=key_ops)

    @classmethod
    def from_json(cls, text: str, require_private: bool = False) -> 'EcJwk':
        """Parse JWK JSON text."""
        try:
            data = json.loads(text)
        except (TypeError, ValueError, RecursionError) as exc:
            raise KeyImportError(f"Malformed JWK JSON: {exc}") from exc
        return cls.from_dict(data, require_private=require_private)


def parse_jwk(value: Union['EcJwk', Dict[str, Any], str],
              require_private: bool = False) -> EcJwk:
    """Accept an EcJwk, a parsed dict, or JSON text."""
    if isinstance(value, EcJwk):
        if require_private and not value.is_private:
            raise KeyImportError("JWK is not a private key (missing 'd')")
        return value
    if isinstance(value, str):
        return EcJwk.from_json(value.strip(), require_private=require_private)
    return EcJwk.from_dict(value, require_private=require_private)
