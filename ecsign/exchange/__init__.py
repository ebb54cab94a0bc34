# Package Exchange Module
"""
Signed package exchange:
- SignedPackage {message, signature, publicKeyJwk, algorithm} - package.py
- Pretty-printed JSON artifacts and the example hand-off file - package.py
- Stateless external verifier (VERIFIED / INVALID / ERROR) - external_verifier.py
"""

from .package import (
    SignedPackage,
    build_package,
    verify_package,
    export_artifact,
    write_example,
    load_example,
)

from .external_verifier import (
    ExternalVerifier,
    VerificationMode,
    VerificationReport,
    VerifierFields,
    Outcome,
    verify_fields,
)

__all__ = [
    # Package
    'SignedPackage',
    'build_package',
    'verify_package',
    'export_artifact',
    'write_example',
    'load_example',
    # External verifier
    'ExternalVerifier',
    'VerificationMode',
    'VerificationReport',
    'VerifierFields',
    'Outcome',
    'verify_fields',
]
