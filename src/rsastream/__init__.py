"""Textbook RSA over byte streams, built from first principles.

Provides RSA key generation, block encryption and decryption of arbitrary byte streams, and signing of the key
owner's name. The number theory underneath (modular exponentiation, Miller-Rabin, modular inverse) is implemented
by hand. Academic use only: the random state is not cryptographically secure and nothing is constant time.

Typical usage example:

    rng = RandState(2025)
    pk = RSAPrivKey.generate(1024, 50, rng, "alice")
    with open("msg.txt", "rb") as fin, open("msg.enc", "w") as fout:
        encrypt_file(fin, fout, pk.pub)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from rsastream.keygen import generate_key_pair
from rsastream.keygen import make_priv
from rsastream.keygen import username_to_int
from rsastream.numtheory import gcd
from rsastream.numtheory import is_prime
from rsastream.numtheory import make_prime
from rsastream.numtheory import mod_inverse
from rsastream.numtheory import mod_pow
from rsastream.randstate import RandState
from rsastream.rsa import RSAPrivKey
from rsastream.rsa import RSAPubKey
from rsastream.stream import decrypt_file
from rsastream.stream import encrypt_file
from rsastream.stream import iter_decrypt
from rsastream.stream import iter_encrypt

__version__ = "0.1.0"
__all__ = [
    "RandState",
    "RSAPrivKey",
    "RSAPubKey",
    "mod_pow",
    "is_prime",
    "make_prime",
    "gcd",
    "mod_inverse",
    "generate_key_pair",
    "make_priv",
    "username_to_int",
    "encrypt_file",
    "decrypt_file",
    "iter_encrypt",
    "iter_decrypt",
]
