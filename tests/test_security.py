"""
Security tests for ECSign.

Tests specifically for security-related scenarios:
- Tampering with envelope, signature or public key
- Key mismatch across independent key pairs
- Malformed and hostile inputs
- Private key material never leaking into packages
"""

import json

import pytest

from ecsign.errors import VerificationError
from ecsign.exchange.external_verifier import Outcome, VerificationMode, verify_fields
from ecsign.exchange.package import SignedPackage, build_package
from ecsign.keys.jwk import EcJwk
from ecsign.session import KeyPair
from ecsign.signing.signer import sign, verify


def replace_char(text, index):
    """Replace the character at index with a different printable one."""
    replacement = 'x' if text[index] != 'x' else 'y'
    return text[:index] + replacement + text[index + 1:]


def replace_b64_char(text, index):
    """Replace the character at index with a different Base64 character."""
    replacement = 'A' if text[index] != 'A' else 'B'
    return text[:index] + replacement + text[index + 1:]


def never_true(envelope_json, signature, public_key):
    """verify() must give False or raise VerificationError, never True."""
    try:
        return verify(envelope_json, signature, public_key) is False
    except VerificationError:
        return True


class TestTamperSensitivity:
    """Single-character mutations must never verify."""

    def setup_method(self):
        self.key_pair = KeyPair.generate()
        self.public_jwk = EcJwk.from_public_key(self.key_pair.public_key)
        self.envelope_json, self.signature = sign("hello world", self.key_pair.private_key)

    def test_baseline(self):
        """The untouched inputs verify."""
        assert verify(self.envelope_json, self.signature, self.public_jwk)

    def test_every_envelope_character(self):
        """Mutating any character of the signed envelope breaks verification."""
        for i in range(len(self.envelope_json)):
            tampered = replace_char(self.envelope_json, i)
            assert never_true(tampered, self.signature, self.public_jwk), f"position {i}"

    def test_every_signature_character(self):
        """Mutating any character of the signature breaks verification."""
        for i in range(len(self.signature)):
            tampered = replace_b64_char(self.signature, i)
            assert never_true(self.envelope_json, tampered, self.public_jwk), f"position {i}"

    def test_every_public_coordinate_character(self):
        """Mutating any character of x or y breaks verification."""
        base = self.public_jwk.to_dict()
        for member in ('x', 'y'):
            for i in range(len(base[member])):
                jwk = dict(base)
                jwk[member] = replace_b64_char(base[member], i)
                assert never_true(self.envelope_json, self.signature, jwk), f"{member}[{i}]"

    def test_truncated_signature(self):
        """Dropping bytes from the signature is a mismatch."""
        assert never_true(self.envelope_json, self.signature[:-4], self.public_jwk)

    def test_swapped_r_and_s(self):
        """Swapping the two signature halves does not verify."""
        from ecsign.core.encoding import base64_to_bytes, bytes_to_base64
        raw = base64_to_bytes(self.signature)
        swapped = bytes_to_base64(raw[32:] + raw[:32])
        assert verify(self.envelope_json, swapped, self.public_jwk) is False


class TestKeyMismatch:
    """Signatures are bound to one key pair."""

    def test_independent_pairs(self):
        """A signature by A never verifies under B."""
        for _ in range(5):
            key_a = KeyPair.generate()
            key_b = KeyPair.generate()
            envelope_json, signature = sign("bound to A", key_a.private_key)
            assert verify(envelope_json, signature, key_a.public_key)
            assert verify(envelope_json, signature, key_b.public_key) is False

    def test_package_with_substituted_key(self):
        """Replacing the package's public key invalidates it."""
        key_a = KeyPair.generate()
        key_b = KeyPair.generate()
        envelope_json, signature = sign("package", key_a.private_key)
        jwk_b = EcJwk.from_public_key(key_b.public_key).to_json()

        report = verify_fields(signature, jwk_b, envelope_json)
        assert report.outcome is Outcome.INVALID


class TestHostileInputs:
    """Malformed or adversarial inputs."""

    def test_json_injection_in_message(self):
        """JSON-looking messages are escaped, not merged into the envelope."""
        key_pair = KeyPair.generate()
        payload = '","timestamp":"1970-01-01T00:00:00.000Z'
        envelope_json, signature = sign(payload, key_pair.private_key)

        parsed = json.loads(envelope_json)
        assert parsed['message'] == payload
        assert parsed['timestamp'] != "1970-01-01T00:00:00.000Z"
        assert verify(envelope_json, signature, key_pair.public_key)

    def test_point_not_on_curve(self):
        """Coordinates off the curve are rejected as structural errors."""
        key_pair = KeyPair.generate()
        envelope_json, signature = sign("curve check", key_pair.private_key)
        jwk = EcJwk.from_public_key(key_pair.public_key).to_dict()
        jwk['y'] = jwk['x']

        with pytest.raises(VerificationError):
            verify(envelope_json, signature, jwk)

    def test_all_zero_signature(self):
        """r = s = 0 never verifies."""
        key_pair = KeyPair.generate()
        envelope_json, _ = sign("zero", key_pair.private_key)
        zero = "A" * 86 + "=="
        assert verify(envelope_json, zero, key_pair.public_key) is False

    @pytest.mark.parametrize("public_key", [
        "",
        "null",
        "[]",
        '{"kty": "EC", "crv": "P-256", "x": 1, "y": 2}',
        '{"kty": "oct", "k": "AAAA"}',
    ])
    def test_bad_public_key_fields(self, public_key):
        """Every malformed key field yields ERROR, never VERIFIED."""
        key_pair = KeyPair.generate()
        envelope_json, signature = sign("bad keys", key_pair.private_key)
        report = verify_fields(signature, public_key, envelope_json)
        assert report.outcome is Outcome.ERROR
        assert report.detail

    def test_extra_envelope_members_change_bytes(self):
        """An attacker-added member changes the signed bytes."""
        key_pair = KeyPair.generate()
        envelope_json, signature = sign("original", key_pair.private_key)
        data = json.loads(envelope_json)
        data['admin'] = True
        extended = json.dumps(data, separators=(',', ':'))
        assert verify(extended, signature, key_pair.public_key) is False

    @pytest.mark.parametrize("mode", list(VerificationMode))
    def test_deeply_nested_message(self, mode):
        """Deeply nested JSON in the message field is an ERROR, not a crash."""
        key_pair = KeyPair.generate()
        envelope_json, signature = sign("nested", key_pair.private_key)
        public_text = EcJwk.from_public_key(key_pair.public_key).to_json()

        for hostile in ("[" * 100000, "[" * 5000 + "]" * 5000):
            report = verify_fields(signature, public_text, hostile, mode)
            assert report.outcome is Outcome.ERROR

    def test_deeply_nested_public_key(self):
        """Deeply nested JSON in the key field is an ERROR, not a crash."""
        key_pair = KeyPair.generate()
        envelope_json, signature = sign("nested", key_pair.private_key)
        report = verify_fields(signature, "[" * 100000, envelope_json)
        assert report.outcome is Outcome.ERROR
        assert "Malformed JWK JSON" in report.detail

    def test_deeply_nested_package(self):
        """A deeply nested package document is a VerificationError."""
        with pytest.raises(VerificationError):
            SignedPackage.from_json('{"message":' + "[" * 100000)


class TestPrivateKeyHandling:
    """Private key material stays out of shareable artifacts."""

    def test_package_never_contains_d(self):
        """Even given the private JWK, the package carries only x/y."""
        key_pair = KeyPair.generate()
        envelope_json, signature = sign("no leaks", key_pair.private_key)
        private_jwk = EcJwk.from_private_key(key_pair.private_key)

        package = build_package(envelope_json, signature, private_jwk)
        assert private_jwk.d not in package.to_json()
        assert 'd' not in package.to_dict()['publicKeyJwk']
