"""
External Verifier

A stateless verification surface for a third party who only has the
contents of a signed package. It takes three independent free-text
fields and reports exactly one outcome:

    VERIFIED | INVALID | ERROR: <message>

INVALID means the inputs were well-formed but the signature does not
match. ERROR means the inputs could not be interpreted at all.

By default the pasted message text is verified byte for byte (after
trimming surrounding whitespace), the same rule the local verifier uses.
RESERIALIZE mode parses the pasted JSON and verifies its compact
re-serialization instead; it tolerates reformatting during copy-paste at
the cost of no longer binding the signature to the pasted bytes.

The example hand-off is an explicit file written by the workbench, not
shared memory.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from ..config import JSON_INDENT
from ..errors import SignatureToolError, VerificationError
from ..signing.signer import verify
from .package import load_example


logger = logging.getLogger(__name__)


class VerificationMode(Enum):
    """How the pasted message text becomes the verified byte sequence."""
    BYTE_EXACT = "byte_exact"
    RESERIALIZE = "reserialize"


class Outcome(Enum):
    """The three possible verifier results."""
    VERIFIED = "VERIFIED"
    INVALID = "INVALID"
    ERROR = "ERROR"


@dataclass(frozen=True)
class VerificationReport:
    """Outcome plus a message for ERROR results."""
    outcome: Outcome
    detail: str = ""

    @property
    def verified(self) -> bool:
        return self.outcome is Outcome.VERIFIED

    def __str__(self) -> str:
        if self.outcome is Outcome.ERROR:
            return f"ERROR: {self.detail}"
        return self.outcome.value


@dataclass
class VerifierFields:
    """The three free-text inputs."""
    signature: str = ""
    public_key: str = ""
    message: str = ""


def message_bytes_source(message_text: str, mode: VerificationMode) -> str:
    """
    Produce the envelope string to verify from pasted message text.

    Raises:
        VerificationError: If the text is not valid JSON in RESERIALIZE mode
    """
    text = message_text.strip()
    if mode is VerificationMode.BYTE_EXACT:
        return text
    try:
        parsed = json.loads(text)
        return json.dumps(parsed, separators=(',', ':'), ensure_ascii=False)
    except (ValueError, RecursionError) as exc:
        raise VerificationError(f"Malformed message JSON: {exc}") from exc


def verify_fields(signature_text: str,
                  public_key_text: str,
                  message_text: str,
                  mode: VerificationMode = VerificationMode.BYTE_EXACT) -> VerificationReport:
    """
    Verify three pasted fields.

    Never raises for bad input; structural problems become an ERROR report.
    """
    try:
        for label, value in (('Signature', signature_text),
                             ('Public key', public_key_text),
                             ('Message', message_text)):
            if not value or not value.strip():
                raise VerificationError(f"{label} field is empty")

        envelope_json = message_bytes_source(message_text, mode)
        valid = verify(envelope_json, signature_text.strip(), public_key_text.strip())
    except SignatureToolError as exc:
        logger.info("External verification error: %s", exc)
        return VerificationReport(Outcome.ERROR, str(exc))

    return VerificationReport(Outcome.VERIFIED if valid else Outcome.INVALID)


class ExternalVerifier:
    """
    Independent verifier holding only its own text fields.

    Example:
        verifier = ExternalVerifier(example_path="signed-package.example.json")
        verifier.load_example()
        print(verifier.verify())   # VERIFIED
    """

    def __init__(self, example_path: Optional[Union[str, Path]] = None,
                 mode: VerificationMode = VerificationMode.BYTE_EXACT):
        """
        Args:
            example_path: Hand-off file for load_example()
            mode: Message handling mode
        """
        self.example_path = Path(example_path) if example_path is not None else None
        self.mode = mode
        self.fields = VerifierFields()
        self.last_report: Optional[VerificationReport] = None

    def set_fields(self, signature: Optional[str] = None,
                   public_key: Optional[str] = None,
                   message: Optional[str] = None) -> None:
        """Replace any of the three text fields."""
        if signature is not None:
            self.fields.signature = signature
        if public_key is not None:
            self.fields.public_key = public_key
        if message is not None:
            self.fields.message = message

    def load_example(self) -> Optional[str]:
        """
        Fill the fields from the example hand-off file.

        The message field receives the exact signed serialization so that
        byte-exact verification of an untouched example succeeds.

        Returns:
            None on success, otherwise a short notice for the user
        """
        if self.example_path is None:
            return "No sample available."
        try:
            package = load_example(self.example_path)
        except VerificationError as exc:
            logger.info("Example not loaded: %s", exc)
            return "No sample available."

        self.fields = VerifierFields(
            signature=package.signature,
            public_key=package.public_key_jwk.to_json(indent=JSON_INDENT),
            message=package.serialized_message,
        )
        return None

    def verify(self) -> VerificationReport:
        """Verify the current fields."""
        self.last_report = verify_fields(
            self.fields.signature,
            self.fields.public_key,
            self.fields.message,
            self.mode,
        )
        return self.last_report
