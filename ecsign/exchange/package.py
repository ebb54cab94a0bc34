"""
Signed Package Exchange

A SignedPackage is the only transportable artifact of the workbench:

    {
      "message": {"message": ..., "timestamp": ...},
      "signature": "<Base64 r || s>",
      "publicKeyJwk": {"kty": "EC", "crv": "P-256", "x": ..., "y": ..., "ext": true},
      "algorithm": "ECDSA-P256-SHA256"
    }

It is self-contained: verification needs nothing else. Files are written
as 2-space indented UTF-8 JSON, the same text JSON.stringify(obj, null, 2)
produces.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Union

from ..config import ALGORITHM_TAG, JSON_INDENT
from ..errors import ExportError, KeyImportError, VerificationError
from ..keys.jwk import EcJwk, parse_jwk
from ..signing.signer import MessageEnvelope, verify


logger = logging.getLogger(__name__)

PACKAGE_MEMBERS = ('message', 'signature', 'publicKeyJwk', 'algorithm')


@dataclass(frozen=True)
class SignedPackage:
    """Envelope + signature + public key + algorithm tag."""
    message: MessageEnvelope
    signature: str
    public_key_jwk: EcJwk
    algorithm: str = ALGORITHM_TAG

    @property
    def serialized_message(self) -> str:
        """The exact bytes that were signed."""
        return self.message.serialize()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'message': self.message.to_dict(),
            'signature': self.signature,
            'publicKeyJwk': self.public_key_jwk.to_dict(),
            'algorithm': self.algorithm,
        }

    def to_json(self, indent: int = JSON_INDENT) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SignedPackage':
        """
        Raises:
            VerificationError: If the document is not a signed package
        """
        if not isinstance(data, dict):
            raise VerificationError("Signed package must be a JSON object")
        missing = [member for member in PACKAGE_MEMBERS if member not in data]
        if missing:
            raise VerificationError(f"Signed package is missing: {', '.join(missing)}")
        if not isinstance(data['signature'], str):
            raise VerificationError("Package signature must be a Base64 string")
        if not isinstance(data['algorithm'], str):
            raise VerificationError("Package algorithm must be a string")

        try:
            public_key_jwk = EcJwk.from_dict(data['publicKeyJwk'])
        except KeyImportError as exc:
            raise VerificationError(f"Invalid package public key: {exc}") from exc

        return cls(
            message=MessageEnvelope.from_dict(data['message']),
            signature=data['signature'],
            public_key_jwk=public_key_jwk,
            algorithm=data['algorithm'],
        )

    @classmethod
    def from_json(cls, text: str) -> 'SignedPackage':
        try:
            data = json.loads(text)
        except (TypeError, ValueError, RecursionError) as exc:
            raise VerificationError(f"Malformed package JSON: {exc}") from exc
        return cls.from_dict(data)


def build_package(envelope: Union[MessageEnvelope, str],
                  signature: str,
                  public_key_jwk: Union[EcJwk, Dict[str, Any], str],
                  algorithm: str = ALGORITHM_TAG) -> SignedPackage:
    """
    Assemble a SignedPackage. No I/O.

    Args:
        envelope: MessageEnvelope or its serialized JSON
        signature: Base64 signature
        public_key_jwk: Public key as EcJwk, dict or JSON text
        algorithm: Algorithm tag

    Raises:
        VerificationError: If the envelope or key is malformed
    """
    if isinstance(envelope, str):
        envelope = MessageEnvelope.parse(envelope)
    try:
        jwk = parse_jwk(public_key_jwk)
    except KeyImportError as exc:
        raise VerificationError(f"Invalid public key: {exc}") from exc
    if jwk.is_private:
        # Never ship the private scalar inside a package
        jwk = jwk.public_jwk()
    return SignedPackage(message=envelope, signature=signature,
                         public_key_jwk=jwk, algorithm=algorithm)


def verify_package(package: SignedPackage) -> bool:
    """
    Verify a package over the re-serialization of its envelope.

    Returns:
        True if valid, False on cryptographic mismatch

    Raises:
        VerificationError: If the algorithm is unsupported or inputs are malformed
    """
    if package.algorithm != ALGORITHM_TAG:
        raise VerificationError(f"Unsupported algorithm: {package.algorithm!r}")
    return verify(package.serialized_message, package.signature, package.public_key_jwk)


# ============================================================================
# File artifacts
# ============================================================================

def export_artifact(obj: Any, filename: str,
                    directory: Union[str, Path] = ".") -> Path:
    """
    Save pretty-printed JSON to directory/filename.

    Args:
        obj: JSON-compatible object, or anything with to_dict()
        filename: Target file name
        directory: Target directory (created if missing)

    Returns:
        Path of the written file

    Raises:
        ExportError: If the file cannot be written
    """
    if hasattr(obj, 'to_dict'):
        obj = obj.to_dict()
    path = Path(directory) / filename
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(obj, indent=JSON_INDENT, ensure_ascii=False),
                        encoding='utf-8')
    except (OSError, TypeError, ValueError) as exc:
        raise ExportError(f"Could not write {path}: {exc}") from exc
    logger.info("Exported %s", path)
    return path


def write_example(package: SignedPackage, path: Union[str, Path]) -> Path:
    """Write the hand-off file the external verifier loads its example from."""
    path = Path(path)
    return export_artifact(package, path.name, path.parent)


def load_example(path: Union[str, Path]) -> SignedPackage:
    """
    Read a signed package hand-off file.

    Raises:
        VerificationError: If the file is missing or not a signed package
    """
    path = Path(path)
    try:
        text = path.read_text(encoding='utf-8')
    except OSError as exc:
        raise VerificationError(f"No example available at {path}") from exc
    return SignedPackage.from_json(text)
