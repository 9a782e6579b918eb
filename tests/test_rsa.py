# pylint: disable=missing-module-docstring,redefined-outer-name
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import os
import stat

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
import pytest

import rsastream
import rsastream.rsa as rsau
from rsastream.randstate import RandState

textbook_pub = rsau.RSAPubKey(3233, 17)
textbook_priv = rsau.RSAPrivKey(3233, 413)


@pytest.fixture(scope="module")
def keypair() -> tuple[rsau.RSAPubKey, rsau.RSAPrivKey]:
    priv = rsau.RSAPrivKey.generate(256, 20, RandState(11), "alice")
    return priv.pub, priv


def test_textbook_encrypt_decrypt():
    assert textbook_pub.encrypt(65) == 2790
    assert textbook_priv.decrypt(2790) == 65


@pytest.mark.parametrize("flow", [-1, 1])
def test_overflow_underflow_c_rsa(flow):
    with pytest.raises(ValueError):
        textbook_priv.c_rsa(textbook_priv.mod * flow)
    with pytest.raises(ValueError):
        textbook_pub.c_rsa(textbook_pub.mod * flow)


def test_encrypt_decrypt_all_textbook():
    for m in range(3233):
        assert textbook_priv.decrypt(textbook_pub.encrypt(m)) == m


def test_sign_verify(keypair):
    pub, priv = keypair
    for m in [0, 1, 2, 65, 2**200 + 7, pub.mod - 1]:
        assert pub.verify(m, priv.sign(m))


def test_verify_perturbed_fails(keypair):
    pub, priv = keypair
    m = 123456789
    s = priv.sign(m)
    assert not pub.verify(m + 1, s)
    assert not pub.verify(m, s + 1)
    assert not pub.verify(m, s ^ 1)


@pytest.mark.parametrize("signature", [-1, "mod"])
def test_verify_out_of_range_fails(keypair, signature):
    pub, _ = keypair
    if signature == "mod":
        signature = pub.mod
    assert not pub.verify(0, signature)


def test_generate(keypair):
    pub, priv = keypair
    assert priv.pub is pub
    assert pub.mod == priv.mod
    assert pub.username == "alice"
    assert pub.mod.bit_length() >= 256
    assert pub.signature == priv.sign(rsastream.username_to_int("alice"))
    assert pub.verify_owner()
    assert priv.decrypt(pub.encrypt(424242)) == 424242


def test_verify_owner_tampered(keypair):
    pub, _ = keypair
    assert not rsau.RSAPubKey(pub.mod, pub.expo, pub.signature, "mallory").verify_owner()
    assert not rsau.RSAPubKey(pub.mod, pub.expo, pub.signature + 1, "alice").verify_owner()
    assert not rsau.RSAPubKey(pub.mod, pub.expo, pub.signature, "not.alice").verify_owner()


def test_generate_username_validates():
    with pytest.raises(ValueError, match="base-62"):
        rsau.RSAPrivKey.generate(64, 20, RandState(1), "bad name")
    with pytest.raises(ValueError, match="too long"):
        rsau.RSAPrivKey.generate(16, 20, RandState(1), "zzzzzzzzzzzzzzzz")


def test_public_export(keypair, tmp_path):
    pub, _ = keypair
    des = tmp_path / "rsa.pub"
    pub.export(des)
    lines = des.read_text(encoding="ascii").splitlines()
    assert lines == [format(pub.mod, "x"), format(pub.expo, "x"), format(pub.signature, "x"), "alice"]
    assert all(line == line.lower() for line in lines[:3])


def test_public_import(keypair, tmp_path):
    pub, _ = keypair
    des = tmp_path / "rsa.pub"
    pub.export(des)
    res = rsau.RSAPubKey.import_key(des)
    assert res == pub
    assert res.signature == pub.signature
    assert res.username == pub.username
    assert res.verify_owner()


def test_private_export_import(keypair, tmp_path):
    _, priv = keypair
    des = tmp_path / "rsa.priv"
    priv.export(des)
    assert des.read_text(encoding="ascii") == f"{priv.mod:x}\n{priv.expo:x}\n"
    res = rsau.RSAPrivKey.import_key(des)
    assert res == priv
    assert res.pub is None


@pytest.mark.skipif(os.name != "posix", reason="File modes are POSIX only")
def test_private_export_mode(keypair, tmp_path):
    _, priv = keypair
    des = tmp_path / "rsa.priv"
    priv.export(des)
    assert stat.S_IMODE(os.stat(des).st_mode) == 0o600


def test_import_uppercase_and_no_trailing_newline(tmp_path):
    des = tmp_path / "rsa.priv"
    des.write_text("CA1\n19D", encoding="ascii")
    assert rsau.RSAPrivKey.import_key(des) == rsau.RSAPrivKey(3233, 413)


@pytest.mark.parametrize("content", ["", "ca1\n", "ca1\n11\n", "ca1\n11\nzz\nalice\n", "ca1\n11\n3\n"])
def test_public_import_validates(tmp_path, content):
    des = tmp_path / "rsa.pub"
    des.write_text(content, encoding="ascii")
    with pytest.raises(IOError):
        rsau.RSAPubKey.import_key(des)


@pytest.mark.parametrize("content", ["", "ca1\n", "ca1\nnothex\n", "0xca1\n19d\n", "ca1\n-19d\n", "c_a1\n19d\n"])
def test_private_import_validates(tmp_path, content):
    des = tmp_path / "rsa.priv"
    des.write_text(content, encoding="ascii")
    with pytest.raises(IOError):
        rsau.RSAPrivKey.import_key(des)


def test_import_missing_file(tmp_path):
    with pytest.raises(OSError):
        rsau.RSAPubKey.import_key(tmp_path / "absent.pub")


def test_public_export_pem(tmp_path):
    template_key = rsa.generate_private_key(public_exponent=65537, key_size=1024)
    pubs = template_key.public_key().public_numbers()
    key = rsau.RSAPubKey(pubs.n, pubs.e)
    des = tmp_path / "rsa.pub.pem"
    key.export_pem(des)
    assert des.read_text(encoding="ascii").startswith("-----BEGIN RSA PUBLIC KEY-----\n")
    with open(des, "rb") as fi:
        interkey = serialization.load_pem_public_key(fi.read())
    assert interkey.public_numbers() == pubs


@pytest.mark.parametrize("payload", [b"", b"\x00", b"\xff\x00\x01", b"Quick!", b"A" * 64])
def test_integer_bytes(payload):
    n = rsau.bytes_to_integer(payload)
    assert rsau.integer_to_bytes(n) == payload.lstrip(b"\x00")


@pytest.mark.parametrize("raw", [b"ca1\n11\n3\n\xc3\xa9mile\n", b"c\xe91\n11\n3\nalice\n"])
def test_public_import_non_ascii(tmp_path, raw):
    des = tmp_path / "rsa.pub"
    des.write_bytes(raw)
    with pytest.raises(IOError, match="not ASCII"):
        rsau.RSAPubKey.import_key(des)


def test_private_import_non_ascii(tmp_path):
    des = tmp_path / "rsa.priv"
    des.write_bytes(b"ca1\n19\xffd\n")
    with pytest.raises(IOError, match="not ASCII"):
        rsau.RSAPrivKey.import_key(des)


@pytest.mark.skipif(os.name != "posix", reason="File modes are POSIX only")
@pytest.mark.parametrize("existing", [False, True])
def test_private_export_never_exposed(keypair, tmp_path, mocker, existing):
    _, priv = keypair
    des = tmp_path / "rsa.priv"
    if existing:
        des.write_text("stale\n", encoding="ascii")
        os.chmod(des, 0o644)
    modes = []
    real_write = rsau.write_priv

    def write_and_record(f, key):
        modes.append(stat.S_IMODE(os.stat(des).st_mode))
        real_write(f, key)

    mocker.patch("rsastream.rsa.write_priv", side_effect=write_and_record)
    old_umask = os.umask(0o022)
    try:
        priv.export(des)
    finally:
        os.umask(old_umask)
    assert modes == [0o600]
    assert stat.S_IMODE(os.stat(des).st_mode) == 0o600
    assert rsau.RSAPrivKey.import_key(des) == priv
