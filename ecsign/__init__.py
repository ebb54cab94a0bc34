# ECSign
"""
ECDSA P-256 message signing workbench:
- Key generation, private JWK import and JWK export - keys
- Timestamped envelope signing and byte-exact verification - signing
- Signed packages and the external verifier - exchange
- Activity log - integration
- Console front end - main

All cryptography is delegated to the `cryptography` library.
"""

__version__ = "1.0.0"
