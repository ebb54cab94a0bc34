"""
Key Manager

Owns the session's ECDSA P-256 key material:
- Generate an extractable key pair and export both halves as JWK
- Import a private JWK for signing (public half derived from x/y if present)
- Export the last-known JWKs, in memory or as pretty-printed JSON files
- Report which dependent actions are currently enabled

State transitions:
    NO_KEY -> KEY_LOADED      (generate / import_private)
    KEY_LOADED -> KEY_LOADED  (replace: the previous key is dropped)

A failed operation leaves the session untouched.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional, Union

from cryptography.exceptions import UnsupportedAlgorithm

from ..config import PUBLIC_KEY_FILENAME, PRIVATE_KEY_FILENAME
from ..errors import ExportError, KeyGenerationError
from ..exchange.package import export_artifact
from ..session import KeyPair, SessionState
from .jwk import EcJwk, parse_jwk


logger = logging.getLogger(__name__)


class KeyState(Enum):
    """Whether the session currently holds a key."""
    NO_KEY = "no_key"
    KEY_LOADED = "key_loaded"


class Action(Enum):
    """User-triggered workbench actions."""
    GENERATE = "generate"
    IMPORT_PRIVATE = "import_private"
    EXPORT_PUBLIC = "export_public"
    EXPORT_PRIVATE = "export_private"
    SIGN = "sign"
    VERIFY = "verify"
    MAKE_PACKAGE = "make_package"
    EXTERNAL_VERIFIER = "external_verifier"


ALWAYS_ENABLED = frozenset({Action.GENERATE, Action.IMPORT_PRIVATE, Action.EXTERNAL_VERIFIER})


class KeyManager:
    """
    Generates, imports and exports the session key pair.

    Example:
        >>> session = SessionState()
        >>> manager = KeyManager(session)
        >>> manager.generate()
        >>> print(manager.export_public().to_json())
    """

    def __init__(self, session: Optional[SessionState] = None):
        """
        Args:
            session: Session state to operate on (a fresh one if None)
        """
        self._session = session if session is not None else SessionState()

    @property
    def session(self) -> SessionState:
        return self._session

    @property
    def state(self) -> KeyState:
        return KeyState.KEY_LOADED if self._session.has_key else KeyState.NO_KEY

    @property
    def key_pair(self) -> Optional[KeyPair]:
        return self._session.key_pair

    # ========================================================================
    # Generate / import
    # ========================================================================

    def generate(self) -> KeyPair:
        """
        Generate a fresh P-256 key pair and export both halves.

        Returns:
            The new key pair (also stored in the session)

        Raises:
            KeyGenerationError: If the primitive rejects the parameters
        """
        try:
            key_pair = KeyPair.generate()
            public_jwk = EcJwk.from_public_key(key_pair.public_key, key_ops=['verify'])
            private_jwk = EcJwk.from_private_key(key_pair.private_key, key_ops=['sign'])
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise KeyGenerationError(f"Key generation failed: {exc}") from exc

        self._session.replace_keys(key_pair, public_jwk, private_jwk)
        logger.info("Generated P-256 key pair")
        return key_pair

    def import_private(self, jwk: Union[EcJwk, Dict[str, Any], str]) -> EcJwk:
        """
        Import a private JWK for signing.

        If the JWK carries x and y, a matching public JWK
        {kty, crv, x, y, ext: true} is derived and verification becomes
        available; otherwise the public key stays absent.

        Args:
            jwk: JWK as JSON text, parsed dict, or EcJwk

        Returns:
            The imported private JWK

        Raises:
            KeyImportError: On malformed JSON or JWK shape mismatch
        """
        private_jwk = parse_jwk(jwk, require_private=True)
        private_key = private_jwk.to_private_key()

        if private_jwk.has_public_coordinates:
            public_jwk = private_jwk.public_jwk()
            public_key = private_key.public_key()
        else:
            public_jwk = None
            public_key = None

        self._session.replace_keys(KeyPair(private_key, public_key), public_jwk, private_jwk)
        logger.info("Imported private key (public half %s)",
                    "derived" if public_jwk else "absent")
        return private_jwk

    # ========================================================================
    # Export
    # ========================================================================

    def export_public(self) -> EcJwk:
        """
        Raises:
            ExportError: If no public key is available
        """
        if self._session.public_jwk is None:
            raise ExportError("No public key to export")
        return self._session.public_jwk

    def export_private(self) -> EcJwk:
        """
        Raises:
            ExportError: If no private key is available
        """
        if self._session.private_jwk is None:
            raise ExportError("No private key to export")
        return self._session.private_jwk

    def export_public_file(self, directory: Union[str, Path] = ".") -> Path:
        """Write public-key.jwk.json; returns its path."""
        return export_artifact(self.export_public().to_dict(), PUBLIC_KEY_FILENAME, directory)

    def export_private_file(self, directory: Union[str, Path] = ".") -> Path:
        """Write private-key.jwk.json; returns its path."""
        return export_artifact(self.export_private().to_dict(), PRIVATE_KEY_FILENAME, directory)

    # ========================================================================
    # Enabled actions
    # ========================================================================

    def enabled_actions(self) -> FrozenSet[Action]:
        """Actions whose key prerequisites are met."""
        enabled = set(ALWAYS_ENABLED)
        key_pair = self._session.key_pair
        if key_pair is not None and key_pair.can_sign:
            enabled.update({Action.SIGN, Action.EXPORT_PRIVATE})
        if self._session.public_jwk is not None:
            enabled.update({Action.VERIFY, Action.EXPORT_PUBLIC})
        return frozenset(enabled)

    def is_enabled(self, action: Action) -> bool:
        return action in self.enabled_actions()
