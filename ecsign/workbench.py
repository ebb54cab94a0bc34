"""
Signing Workbench

The action layer behind the console front end. Each public method is one
user action; it runs to completion, records what happened in the activity
log, and returns a result dict:

    {'success': bool, 'message': str, ...action-specific keys}

Errors are caught here, at the triggering action, and never leave the
session half-updated: every state change happens after the last call that
can fail.
"""

from pathlib import Path
from typing import Any, Callable, Dict, FrozenSet, Optional, Union

from .config import ALGORITHM_TAG, PACKAGE_FILENAME, WorkbenchConfig
from .errors import (
    ExportError,
    SignatureToolError,
    SigningError,
    VerificationError,
)
from .exchange.external_verifier import ExternalVerifier, VerificationMode
from .exchange.package import build_package, export_artifact, write_example
from .integration.activity_log import ActivityLog, EventType
from .keys.key_manager import Action, KeyManager
from .session import SessionState
from .signing.signer import sign, verify


# Error raised when an action is attempted before its prerequisites exist
DISABLED_ERRORS = {
    Action.SIGN: (SigningError, "No private key loaded"),
    Action.VERIFY: (VerificationError, "No public key."),
    Action.EXPORT_PUBLIC: (ExportError, "No public key to export"),
    Action.EXPORT_PRIVATE: (ExportError, "No private key to export"),
    Action.MAKE_PACKAGE: (SigningError, "Nothing signed yet"),
}


class Workbench:
    """
    Key generation, signing, local verification and packaging for one session.

    Example:
        >>> bench = Workbench()
        >>> bench.generate()['success']
        True
        >>> bench.sign("hello world")['success']
        True
        >>> bench.verify_local()['verified']
        True
    """

    def __init__(self, config: Optional[WorkbenchConfig] = None,
                 session: Optional[SessionState] = None,
                 activity_log: Optional[ActivityLog] = None):
        """
        Args:
            config: Export directory, example path and log size
            session: Session state (fresh if None)
            activity_log: Log to record into (fresh if None)
        """
        self.config = config or WorkbenchConfig()
        self.session = session if session is not None else SessionState()
        self.keys = KeyManager(self.session)
        self.log = (activity_log if activity_log is not None
                    else ActivityLog(max_entries=self.config.max_log_entries))

    # ========================================================================
    # Action plumbing
    # ========================================================================

    def enabled_actions(self) -> FrozenSet[Action]:
        """Actions whose prerequisites are met right now."""
        enabled = set(self.keys.enabled_actions())
        if self.session.has_signature and self.session.public_jwk is not None:
            enabled.add(Action.MAKE_PACKAGE)
        return frozenset(enabled)

    def is_enabled(self, action: Action) -> bool:
        return action in self.enabled_actions()

    def _require(self, action: Action) -> None:
        if not self.is_enabled(action):
            error_class, message = DISABLED_ERRORS[action]
            raise error_class(message)

    def _run(self, failure_prefix: str,
             body: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
        """Run an action body and turn workbench errors into a logged result."""
        try:
            return body()
        except SignatureToolError as exc:
            self.log.error(f"{failure_prefix}: {exc}", error=type(exc).__name__)
            return {
                'success': False,
                'message': str(exc),
                'error': type(exc).__name__,
            }

    # ========================================================================
    # Keys
    # ========================================================================

    def generate(self) -> Dict[str, Any]:
        """Generate a fresh key pair, replacing any current key."""
        def body():
            self.log.info("Generating key pair...")
            self.keys.generate()
            self.log.record(EventType.KEY_GENERATED, "Key pair created.")
            return {
                'success': True,
                'message': "Key pair created.",
                'public_jwk': self.session.public_jwk,
            }
        return self._run("Error generating key", body)

    def import_private(self, raw: Optional[str]) -> Dict[str, Any]:
        """
        Import a pasted private JWK.

        Empty input is treated as a cancelled prompt and changes nothing.
        """
        if raw is None or not raw.strip():
            return {'success': False, 'message': "Import cancelled."}

        def body():
            self.keys.import_private(raw)
            public_jwk = self.session.public_jwk
            self.log.record(EventType.KEY_IMPORTED, "Private key imported.",
                            public_key=public_jwk is not None)
            return {
                'success': True,
                'message': "Private key imported.",
                'public_jwk': public_jwk,
            }
        return self._run("Import failed", body)

    def export_public(self, directory: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
        """Save public-key.jwk.json."""
        def body():
            self._require(Action.EXPORT_PUBLIC)
            path = self.keys.export_public_file(directory or self.config.export_dir)
            self.log.record(EventType.KEY_EXPORTED, f"Public key saved to {path}.")
            return {'success': True, 'message': f"Public key saved to {path}.", 'path': path}
        return self._run("Export failed", body)

    def export_private(self, directory: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
        """Save private-key.jwk.json. Only ever on explicit request."""
        def body():
            self._require(Action.EXPORT_PRIVATE)
            path = self.keys.export_private_file(directory or self.config.export_dir)
            self.log.record(EventType.KEY_EXPORTED, f"Private key saved to {path}.")
            return {'success': True, 'message': f"Private key saved to {path}.", 'path': path}
        return self._run("Export failed", body)

    # ========================================================================
    # Sign / verify
    # ========================================================================

    def sign(self, message: str) -> Dict[str, Any]:
        """Sign a message in a fresh timestamped envelope."""
        def body():
            self._require(Action.SIGN)
            envelope_json, signature = sign(message, self.session.key_pair.private_key)
            self.session.record_signature(envelope_json, signature)
            self.log.record(EventType.MESSAGE_SIGNED, "Message signed.")
            return {
                'success': True,
                'message': "Message signed.",
                'envelope_json': envelope_json,
                'signature': signature,
            }
        return self._run("Signing failed", body)

    def verify_local(self) -> Dict[str, Any]:
        """
        Verify the last signature with the session public key.

        A mismatch is a normal result (success True, verified False).
        """
        def body():
            self._require(Action.VERIFY)
            if not self.session.has_signature:
                raise VerificationError("Nothing to verify; sign a message first")

            ok = verify(self.session.last_envelope_json,
                        self.session.last_signature,
                        self.session.public_jwk)
            text = "Verification SUCCESS" if ok else "Verification FAILED"
            self.log.record(
                EventType.SIGNATURE_VERIFIED if ok else EventType.SIGNATURE_FAILED, text
            )
            return {'success': True, 'message': text, 'verified': ok}
        return self._run("Verification error", body)

    # ========================================================================
    # Packages
    # ========================================================================

    def make_package(self) -> Dict[str, Any]:
        """Bundle the last signature into a SignedPackage."""
        def body():
            self._require(Action.MAKE_PACKAGE)
            package = build_package(
                self.session.last_envelope_json,
                self.session.last_signature,
                self.session.public_jwk,
                ALGORITHM_TAG,
            )
            self.session.record_package(package)
            self.log.record(EventType.PACKAGE_CREATED, "Example package created.")
            return {'success': True, 'message': "Example package created.", 'package': package}
        return self._run("Package failed", body)

    def export_package(self, filename: str = PACKAGE_FILENAME,
                       directory: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
        """Save the last package as pretty-printed JSON."""
        def body():
            if self.session.last_package is None:
                raise ExportError("No package to export")
            path = export_artifact(self.session.last_package, filename,
                                   directory or self.config.export_dir)
            self.log.info(f"Package saved to {path}.")
            return {'success': True, 'message': f"Package saved to {path}.", 'path': path}
        return self._run("Export failed", body)

    def open_external_verifier(self,
                               mode: VerificationMode = VerificationMode.BYTE_EXACT
                               ) -> Dict[str, Any]:
        """
        Hand the last package to a fresh, independent ExternalVerifier.

        The package is passed through the example file only; the verifier
        gets no reference to this session.
        """
        def body():
            example_path = self.config.example_path
            if self.session.last_package is not None:
                write_example(self.session.last_package, example_path)
            verifier = ExternalVerifier(example_path=example_path, mode=mode)
            self.log.record(EventType.EXTERNAL_VERIFIER_OPENED, "External verifier opened.")
            return {'success': True, 'message': "External verifier opened.", 'verifier': verifier}
        return self._run("External verifier failed", body)
