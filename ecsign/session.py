"""
Session State

Everything the workbench knows during one run lives in a single
SessionState owned by the caller and passed explicitly to KeyManager and
Workbench. Nothing is persisted; every setter overwrites the previous
value (last writer wins).
"""

from dataclasses import dataclass
from typing import Optional

from cryptography.hazmat.primitives.asymmetric import ec

from .config import CURVE
from .exchange.package import SignedPackage
from .keys.jwk import EcJwk


@dataclass
class KeyPair:
    """ECDSA P-256 key pair. public_key is None for a bare private import."""
    private_key: Optional[ec.EllipticCurvePrivateKey]
    public_key: Optional[ec.EllipticCurvePublicKey]

    @classmethod
    def generate(cls) -> 'KeyPair':
        """Generate a new P-256 key pair."""
        private_key = ec.generate_private_key(CURVE)
        return cls(private_key, private_key.public_key())

    @property
    def can_sign(self) -> bool:
        return self.private_key is not None

    @property
    def can_verify(self) -> bool:
        return self.public_key is not None


@dataclass
class SessionState:
    """Current key material and the most recent signing results."""
    key_pair: Optional[KeyPair] = None
    public_jwk: Optional[EcJwk] = None
    private_jwk: Optional[EcJwk] = None
    last_envelope_json: Optional[str] = None
    last_signature: Optional[str] = None
    last_package: Optional[SignedPackage] = None

    @property
    def has_key(self) -> bool:
        return self.key_pair is not None

    @property
    def has_signature(self) -> bool:
        return self.last_envelope_json is not None and self.last_signature is not None

    def replace_keys(self, key_pair: KeyPair,
                     public_jwk: Optional[EcJwk],
                     private_jwk: Optional[EcJwk]) -> None:
        """
        Install new key material.

        Results tied to the previous key are cleared; packages already
        exported stay verifiable because they carry their own public key.
        """
        self.key_pair = key_pair
        self.public_jwk = public_jwk
        self.private_jwk = private_jwk
        self.last_envelope_json = None
        self.last_signature = None
        self.last_package = None

    def record_signature(self, envelope_json: str, signature: str) -> None:
        self.last_envelope_json = envelope_json
        self.last_signature = signature
        self.last_package = None

    def record_package(self, package: SignedPackage) -> None:
        self.last_package = package

    def clear(self) -> None:
        """Forget everything (end of session)."""
        self.key_pair = None
        self.public_jwk = None
        self.private_jwk = None
        self.last_envelope_json = None
        self.last_signature = None
        self.last_package = None
