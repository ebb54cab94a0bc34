"""
Unit tests for key management.

Tests:
- JWK parsing and validation
- Key pair generation and export
- Private JWK import (with and without public coordinates)
- Enabled actions per key state
"""

import json

import pytest

from ecsign.errors import ExportError, KeyImportError
from ecsign.keys.jwk import EcJwk, parse_jwk
from ecsign.keys.key_manager import Action, KeyManager, KeyState
from ecsign.session import KeyPair, SessionState


def generated_private_jwk():
    """Private JWK dict for a fresh key pair."""
    key_pair = KeyPair.generate()
    return EcJwk.from_private_key(key_pair.private_key).to_dict()


class TestEcJwk:
    """Tests for the typed JWK record."""

    def test_public_export_shape(self):
        """Public export should carry kty, crv, x, y and ext."""
        key_pair = KeyPair.generate()
        jwk = EcJwk.from_public_key(key_pair.public_key).to_dict()

        assert list(jwk) == ['kty', 'crv', 'x', 'y', 'ext']
        assert jwk['kty'] == 'EC'
        assert jwk['crv'] == 'P-256'
        assert jwk['ext'] is True
        assert len(jwk['x']) == 43
        assert len(jwk['y']) == 43

    def test_private_export_has_d(self):
        """Private export should carry d after the coordinates."""
        jwk = generated_private_jwk()
        assert list(jwk) == ['kty', 'crv', 'x', 'y', 'd', 'ext']
        assert len(jwk['d']) == 43

    def test_public_key_handle(self):
        """A public JWK should rebuild the same public key."""
        key_pair = KeyPair.generate()
        jwk = EcJwk.from_public_key(key_pair.public_key)
        rebuilt = jwk.to_public_key()
        assert rebuilt.public_numbers() == key_pair.public_key.public_numbers()

    def test_public_jwk_drops_private_members(self):
        """Derived public JWK should not contain d or key_ops."""
        private = EcJwk.from_dict(generated_private_jwk())
        public = private.public_jwk().to_dict()
        assert 'd' not in public
        assert 'key_ops' not in public
        assert public['ext'] is True

    def test_from_json(self):
        """JSON text should parse into a record."""
        jwk = EcJwk.from_json(json.dumps(generated_private_jwk()))
        assert jwk.is_private

    def test_malformed_json_rejected(self):
        """Non-JSON text should raise KeyImportError."""
        with pytest.raises(KeyImportError):
            EcJwk.from_json("not json")

    def test_non_object_rejected(self):
        """A JSON array is not a JWK."""
        with pytest.raises(KeyImportError):
            EcJwk.from_json("[1, 2, 3]")

    def test_unknown_member_rejected(self):
        """Unknown members should be rejected explicitly."""
        jwk = generated_private_jwk()
        jwk['kid'] = 'abc'
        with pytest.raises(KeyImportError, match="kid"):
            EcJwk.from_dict(jwk)

    def test_wrong_curve_rejected(self):
        """Only P-256 is supported."""
        jwk = generated_private_jwk()
        jwk['crv'] = 'P-384'
        with pytest.raises(KeyImportError):
            EcJwk.from_dict(jwk)

    def test_wrong_key_type_rejected(self):
        """Only EC keys are supported."""
        jwk = generated_private_jwk()
        jwk['kty'] = 'RSA'
        with pytest.raises(KeyImportError):
            EcJwk.from_dict(jwk)

    def test_missing_coordinate_rejected(self):
        """x without y is a shape mismatch."""
        jwk = generated_private_jwk()
        del jwk['y']
        with pytest.raises(KeyImportError):
            EcJwk.from_dict(jwk)

    def test_public_without_coordinates_rejected(self):
        """A JWK with neither d nor x/y carries no key."""
        with pytest.raises(KeyImportError):
            EcJwk.from_dict({'kty': 'EC', 'crv': 'P-256', 'ext': True})

    def test_short_coordinate_rejected(self):
        """Coordinates must decode to 32 bytes."""
        jwk = generated_private_jwk()
        jwk['x'] = jwk['x'][:-4]
        with pytest.raises(KeyImportError):
            EcJwk.from_dict(jwk)

    def test_non_boolean_ext_rejected(self):
        """ext must be a boolean."""
        jwk = generated_private_jwk()
        jwk['ext'] = "true"
        with pytest.raises(KeyImportError):
            EcJwk.from_dict(jwk)

    def test_unknown_key_op_rejected(self):
        """Only sign/verify key_ops are meaningful here."""
        jwk = generated_private_jwk()
        jwk['key_ops'] = ['encrypt']
        with pytest.raises(KeyImportError):
            EcJwk.from_dict(jwk)

    def test_require_private(self):
        """parse_jwk should demand d when asked to."""
        key_pair = KeyPair.generate()
        public = EcJwk.from_public_key(key_pair.public_key)
        with pytest.raises(KeyImportError):
            parse_jwk(public, require_private=True)
        with pytest.raises(KeyImportError):
            parse_jwk(public.to_json(), require_private=True)

    def test_mismatched_coordinates_rejected(self):
        """d from one key with x/y from another should be rejected."""
        jwk_a = generated_private_jwk()
        jwk_b = generated_private_jwk()
        jwk_a['x'], jwk_a['y'] = jwk_b['x'], jwk_b['y']
        with pytest.raises(KeyImportError, match="do not match"):
            EcJwk.from_dict(jwk_a).to_private_key()


class TestKeyGeneration:
    """Tests for KeyManager.generate."""

    def test_initial_state(self):
        """A fresh manager holds no key."""
        manager = KeyManager()
        assert manager.state == KeyState.NO_KEY
        assert manager.key_pair is None

    def test_generate(self):
        """Generation should load a key and export both halves."""
        manager = KeyManager()
        manager.generate()

        assert manager.state == KeyState.KEY_LOADED
        assert manager.export_public().key_ops == ('verify',)
        assert manager.export_private().key_ops == ('sign',)
        assert manager.export_private().is_private

    def test_key_ops_not_shared(self):
        """key_ops handed in or exported cannot be changed from outside."""
        ops = ['verify']
        jwk = EcJwk.from_public_key(KeyPair.generate().public_key, key_ops=ops)
        ops.append('sign')
        assert jwk.key_ops == ('verify',)

        manager = KeyManager()
        manager.generate()
        with pytest.raises(AttributeError):
            manager.export_public().key_ops.append('sign')
        assert manager.export_public().to_dict()['key_ops'] == ['verify']

    def test_generate_writes_session(self):
        """The manager should operate on the session it was given."""
        session = SessionState()
        KeyManager(session).generate()
        assert session.has_key
        assert session.public_jwk is not None

    def test_regenerate_replaces_key(self):
        """A second generation replaces the first key."""
        manager = KeyManager()
        manager.generate()
        first_x = manager.export_public().x
        manager.generate()
        assert manager.export_public().x != first_x

    def test_export_idempotent(self):
        """Exporting the same key twice yields identical JSON."""
        manager = KeyManager()
        manager.generate()
        assert manager.export_public().to_json() == manager.export_public().to_json()
        assert manager.export_private().to_json() == manager.export_private().to_json()

    def test_export_without_key(self):
        """Export with no key loaded should raise ExportError."""
        manager = KeyManager()
        with pytest.raises(ExportError):
            manager.export_public()
        with pytest.raises(ExportError):
            manager.export_private()


class TestKeyFiles:
    """Tests for JWK file export."""

    def test_public_file(self, tmp_path):
        """public-key.jwk.json should be 2-space indented JSON."""
        manager = KeyManager()
        manager.generate()
        path = manager.export_public_file(tmp_path)

        assert path.name == "public-key.jwk.json"
        content = path.read_text(encoding='utf-8')
        assert content == json.dumps(manager.export_public().to_dict(), indent=2)
        assert json.loads(content)['kty'] == 'EC'

    def test_private_file(self, tmp_path):
        """private-key.jwk.json should contain d."""
        manager = KeyManager()
        manager.generate()
        path = manager.export_private_file(tmp_path)

        assert path.name == "private-key.jwk.json"
        assert 'd' in json.loads(path.read_text(encoding='utf-8'))

    def test_file_export_idempotent(self, tmp_path):
        """Writing the same key twice yields identical bytes."""
        manager = KeyManager()
        manager.generate()
        first = manager.export_public_file(tmp_path / "a").read_bytes()
        second = manager.export_public_file(tmp_path / "b").read_bytes()
        assert first == second

    def test_file_export_without_key(self, tmp_path):
        """No key, no file."""
        with pytest.raises(ExportError):
            KeyManager().export_public_file(tmp_path)
        assert not (tmp_path / "public-key.jwk.json").exists()


class TestPrivateImport:
    """Tests for KeyManager.import_private."""

    def test_import_with_coordinates(self):
        """Importing a full private JWK derives the public JWK."""
        source = generated_private_jwk()
        manager = KeyManager()
        manager.import_private(json.dumps(source))

        public = manager.export_public().to_dict()
        assert public == {
            'kty': 'EC', 'crv': 'P-256',
            'x': source['x'], 'y': source['y'],
            'ext': True,
        }
        assert manager.key_pair.can_verify

    def test_import_without_coordinates(self):
        """Without x/y the public key stays absent."""
        source = generated_private_jwk()
        del source['x']
        del source['y']
        manager = KeyManager()
        manager.import_private(source)

        assert manager.key_pair.can_sign
        assert not manager.key_pair.can_verify
        with pytest.raises(ExportError):
            manager.export_public()

    def test_import_accepts_dict(self):
        """A parsed dict is accepted as well as text."""
        manager = KeyManager()
        jwk = manager.import_private(generated_private_jwk())
        assert jwk.is_private

    def test_import_malformed_json(self):
        """Malformed JSON should raise KeyImportError."""
        with pytest.raises(KeyImportError):
            KeyManager().import_private("{not json")

    def test_import_public_jwk_rejected(self):
        """A public JWK cannot be imported for signing."""
        key_pair = KeyPair.generate()
        public = EcJwk.from_public_key(key_pair.public_key).to_json()
        with pytest.raises(KeyImportError):
            KeyManager().import_private(public)

    def test_failed_import_keeps_previous_key(self):
        """A failed import must not touch the current key."""
        manager = KeyManager()
        manager.generate()
        before = manager.export_public()

        with pytest.raises(KeyImportError):
            manager.import_private('{"kty": "EC"}')

        assert manager.export_public() == before
        assert manager.state == KeyState.KEY_LOADED


class TestEnabledActions:
    """Tests for enabled action tracking."""

    def test_no_key(self):
        """Only key-independent actions are enabled initially."""
        enabled = KeyManager().enabled_actions()
        assert enabled == {Action.GENERATE, Action.IMPORT_PRIVATE, Action.EXTERNAL_VERIFIER}

    def test_after_generate(self):
        """A full key pair enables signing, verifying and both exports."""
        manager = KeyManager()
        manager.generate()
        enabled = manager.enabled_actions()
        for action in (Action.SIGN, Action.VERIFY, Action.EXPORT_PUBLIC, Action.EXPORT_PRIVATE):
            assert action in enabled

    def test_after_bare_private_import(self):
        """A private key without coordinates cannot verify."""
        source = generated_private_jwk()
        del source['x']
        del source['y']
        manager = KeyManager()
        manager.import_private(source)

        assert manager.is_enabled(Action.SIGN)
        assert manager.is_enabled(Action.EXPORT_PRIVATE)
        assert not manager.is_enabled(Action.VERIFY)
        assert not manager.is_enabled(Action.EXPORT_PUBLIC)
