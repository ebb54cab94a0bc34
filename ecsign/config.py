"""
Workbench configuration.

Fixed protocol constants live at module level; per-run settings are
collected in WorkbenchConfig.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec


# Signature scheme
CURVE = ec.SECP256R1()          # P-256
CURVE_NAME = "P-256"            # JWK "crv"
KEY_TYPE = "EC"                 # JWK "kty"
HASH_ALGORITHM = hashes.SHA256()
COORDINATE_SIZE = 32            # Bytes per coordinate / scalar
SIGNATURE_SIZE = 64             # Raw r || s
ALGORITHM_TAG = "ECDSA-P256-SHA256"

# Export artifacts
PUBLIC_KEY_FILENAME = "public-key.jwk.json"
PRIVATE_KEY_FILENAME = "private-key.jwk.json"
PACKAGE_FILENAME = "signed-package.json"
EXAMPLE_FILENAME = "signed-package.example.json"
JSON_INDENT = 2

# Activity log
DEFAULT_MAX_LOG_ENTRIES = 200


@dataclass
class WorkbenchConfig:
    """Per-run settings for the workbench."""
    export_dir: Path = Path(".")
    example_path: Optional[Path] = None
    max_log_entries: int = DEFAULT_MAX_LOG_ENTRIES

    def __post_init__(self):
        self.export_dir = Path(self.export_dir)
        if self.example_path is None:
            self.example_path = self.export_dir / EXAMPLE_FILENAME
        else:
            self.example_path = Path(self.example_path)
        if self.max_log_entries < 1:
            raise ValueError("max_log_entries must be positive")
