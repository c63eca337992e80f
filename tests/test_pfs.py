import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519

from vpnkit.pfs import PFSContext


def test_both_sides_agree():
    alice = PFSContext()
    bob = PFSContext()
    secret_a = alice.compute_shared_secret(bob.public_key_der())
    secret_b = bob.compute_shared_secret(alice.public_key_der())
    assert secret_a == secret_b
    assert len(secret_a) == 32


def test_public_key_is_p256_der():
    ctx = PFSContext()
    key = serialization.load_der_public_key(ctx.public_key_der())
    assert isinstance(key, ec.EllipticCurvePublicKey)
    assert key.curve.name == "secp256r1"


def test_shared_secret_stored():
    alice = PFSContext()
    bob = PFSContext()
    assert alice.shared_secret is None
    secret = alice.compute_shared_secret(bob.public_key_der())
    assert alice.shared_secret == secret


def test_rotate_clears_secret_and_changes_key():
    alice = PFSContext()
    bob = PFSContext()
    old_public = alice.public_key_der()
    old_secret = alice.compute_shared_secret(bob.public_key_der())
    alice.rotate_keys()
    assert alice.shared_secret is None
    assert alice.public_key_der() != old_public
    new_secret = alice.compute_shared_secret(bob.public_key_der())
    assert new_secret != old_secret
    assert bob.compute_shared_secret(alice.public_key_der()) == new_secret


def test_malformed_peer_key():
    ctx = PFSContext()
    with pytest.raises(ValueError):
        ctx.compute_shared_secret(b"not a der key")


def test_non_ec_peer_key():
    ctx = PFSContext()
    other = ed25519.Ed25519PrivateKey.generate().public_key().public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    with pytest.raises(ValueError):
        ctx.compute_shared_secret(other)
    assert ctx.shared_secret is None


def test_wrong_curve_peer_key():
    ctx = PFSContext()
    other = ec.generate_private_key(ec.SECP384R1()).public_key().public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    with pytest.raises(ValueError):
        ctx.compute_shared_secret(other)