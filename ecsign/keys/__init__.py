# Key Management Module
"""
ECDSA P-256 key handling:
- Key pair generation and private JWK import - key_manager.py
- Typed JWK records validated at the parse boundary - jwk.py
- JWK export as pretty-printed JSON files
"""

# Lazy imports to avoid circular import issues (session -> exchange -> keys.jwk)
def __getattr__(name):
    """Resolve public names from the submodules on first access."""
    if name in ('EcJwk', 'parse_jwk'):
        from . import jwk
        return getattr(jwk, name)
    if name in ('KeyManager', 'KeyState', 'Action'):
        from . import key_manager
        return getattr(key_manager, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = [
    'EcJwk',
    'parse_jwk',
    'KeyManager',
    'KeyState',
    'Action',
]
