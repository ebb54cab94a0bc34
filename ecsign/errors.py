"""
Error kinds raised by the signing workbench.

A failed verification is not an error: it is a normal False result.
These exceptions cover structural problems only.
"""


class SignatureToolError(Exception):
    """Base class for all workbench errors."""
    pass


class KeyGenerationError(SignatureToolError):
    """Raised when the primitive rejects key generation."""
    pass


class KeyImportError(SignatureToolError):
    """Raised when a JWK (or its JSON text) is malformed or mismatched."""
    pass


class SigningError(SignatureToolError):
    """Raised when no private key is loaded or the message is empty."""
    pass


class VerificationError(SignatureToolError):
    """Raised for structurally invalid verification inputs."""
    pass


class ExportError(SignatureToolError):
    """Raised when there is no key to export or the file cannot be written."""
    pass
