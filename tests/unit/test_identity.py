import pytest

from nwfetch.domain.errors import IdentityError
from nwfetch.domain.identity import Keypair, seed_from_hex, verify_signature
from tests.conftest import SEED


def test_same_seed_derives_same_identity():
    a = Keypair.from_seed(SEED)
    b = Keypair.from_seed(SEED)
    assert a.public_key == b.public_key
    assert a.node_id == b.node_id
    assert len(a.public_key) == 32


def test_generated_keypairs_differ():
    assert Keypair.generate().public_key != Keypair.generate().public_key


def test_seed_must_be_32_bytes():
    with pytest.raises(IdentityError):
        Keypair.from_seed(b"short")


def test_sign_and_verify():
    kp = Keypair.from_seed(SEED)
    sig = kp.sign(b"challenge")
    assert verify_signature(kp.public_key, sig, b"challenge")
    assert not verify_signature(kp.public_key, sig, b"other")


def test_clear_zeroes_seed_and_blocks_signing():
    kp = Keypair.from_seed(SEED)
    public_key = kp.public_key
    kp.clear()
    assert kp.cleared
    assert bytes(kp._seed) == bytes(32)
    assert kp.public_key == public_key
    with pytest.raises(IdentityError):
        kp.sign(b"x")
    kp.clear()


def test_seed_from_hex():
    assert seed_from_hex(SEED.hex()) == SEED
    assert Keypair.from_hex_seed(SEED.hex()).public_key == Keypair.from_seed(SEED).public_key
    with pytest.raises(IdentityError):
        seed_from_hex("zz")
    with pytest.raises(IdentityError):
        seed_from_hex("00" * 31)
