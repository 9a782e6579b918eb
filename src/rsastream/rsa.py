"""Provides the RSA keys: encryption, decryption, signing, verification and key files.

Facilitates "textbook" RSA on single integers. Handles key generation into key objects, the plain-text key records
(hex fields, one per line) and a PKCS#1 PEM export of the public half for use with other tools.

Typical usage example:

    pk = RSAPrivKey.generate(1024, 50, RandState(7), "alice")
    c = pk.pub.encrypt(65)
    m = pk.decrypt(c)
    pk.pub.export("rsa.pub")
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import base64
import logging
import os
import pathlib
import re
import typing

from pyasn1.codec.der import encoder
from pyasn1_modules import rfc8017

from rsastream import keygen
from rsastream import numtheory
from rsastream.randstate import RandState

logger = logging.getLogger(__name__)

PEM_TYPES = {
    "PKCS1_PUB": ("-----BEGIN RSA PUBLIC KEY-----", "-----END RSA PUBLIC KEY-----"),
}

PRIVATE_KEY_MODE = 0o600
_HEX_FIELD = re.compile(r"[0-9a-fA-F]+")


class RSAKey:
    """The overall RSA key class implementation.

    Holds the components strictly mandatory in both a public and a private key.

    Attributes:
        mod: The modulus of the keypair.
        expo: The exponent of the key, whether private or public.
    """

    def __init__(self, mod: int, expo: int) -> None:
        self.mod = mod
        self.expo = expo

    def c_rsa(self, message: int) -> int:
        """Performs core RSA operation. (Encrypt/Decrypt/Sign/Verify).

        Args:
            message: The int-marshalled message.

        Returns:
            The message raised to the key exponent modulo the key modulus.

        Raises:
            ValueError: If the message is out of range for the current key.
        """
        if not 0 <= message < self.mod:
            raise ValueError("Message representative must be in range [0, mod-1]")
        return numtheory.mod_pow(message, self.expo, self.mod)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RSAKey):
            return NotImplemented
        return type(self) is type(other) and (self.mod, self.expo) == (other.mod, other.expo)

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.mod, self.expo))


class RSAPubKey(RSAKey):
    """RSA Public Key, carrying the owner's username and its signature.

    Attributes:
        mod: The modulus of the keypair.
        expo: The public exponent.
        signature: The username signed with the matching private key.
        username: The owner of the key.
    """

    def __init__(self, mod: int, expo: int, signature: int = 0, username: str = "") -> None:
        super().__init__(mod, expo)
        self.signature = signature
        self.username = username

    def encrypt(self, message: int) -> int:
        """Encrypts a single message representative."""
        return self.c_rsa(message)

    def verify(self, message: int, signature: int) -> bool:
        """Verify that `signature` is a signature of `message` under this key.

        Args:
            message: The signed integer.
            signature: The signature to check.

        Returns:
            True if `signature**e mod n == message`, False otherwise.
        """
        try:
            return self.c_rsa(signature) == message
        except ValueError:
            return False

    def verify_owner(self) -> bool:
        """Check the embedded signature against the embedded username.

        Returns:
            True if the key was signed by the holder of the matching private key, False otherwise.
        """
        try:
            owner = keygen.username_to_int(self.username)
        except ValueError:
            return False
        return self.verify(owner, self.signature)

    def export(self, file: pathlib.Path | str) -> None:
        """Export the Public RSA key to file as a 4-line text record.

        Args:
            file: The file to export the public key to.
        """
        with open(file, "w", encoding="ascii") as f:
            write_pub(f, self)

    @classmethod
    def import_key(cls, file: pathlib.Path | str) -> "RSAPubKey":
        """Import the Public RSA key from a text record file.

        Args:
            file: The file to import the public key from.

        Returns:
            An RSAPubKey object with the imported public key.
        """
        with open(file, "r", encoding="ascii") as f:
            return read_pub(f)

    def export_pem(self, file: pathlib.Path | str) -> None:
        """Export the modulus and exponent as a PKCS#1 public key PEM.

        The signature and username have no place in PKCS#1 and are left out.

        Args:
            file: The file to export the public key to.
        """
        keydata = rfc8017.RSAPublicKey()
        keydata["modulus"] = self.mod
        keydata["publicExponent"] = self.expo
        encdata = encoder.encode(keydata)
        write_pem(file, "PKCS1_PUB", encdata)


class RSAPrivKey(RSAKey):
    """RSA Private Key class implementation.

    Only the modulus and private exponent are kept; the primes are discarded after generation.

    Attributes:
        mod: The modulus of the keypair.
        expo: The private exponent of the key.
        pub: The matching public key, when known.
    """

    def __init__(self, mod: int, priv_exp: int, pub: RSAPubKey | None = None) -> None:
        super().__init__(mod, priv_exp)
        self.pub: RSAPubKey | None = pub

    def decrypt(self, ciphertext: int) -> int:
        """Decrypts a single ciphertext representative."""
        return self.c_rsa(ciphertext)

    def sign(self, message: int) -> int:
        """Signs `message` with the private exponent.

        Args:
            message: The integer to sign. Must be below the modulus.

        Returns:
            The signature.
        """
        return self.c_rsa(message)

    def export(self, file: pathlib.Path | str) -> None:
        """Exports the RSA Private Key to a 2-line text record, readable only by the owner.

        Args:
            file: The file to export to.
        """
        fd = os.open(file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, PRIVATE_KEY_MODE)
        with os.fdopen(fd, "w", encoding="ascii") as f:
            # An existing file keeps its old mode through os.open.
            if os.chmod in os.supports_fd:
                os.chmod(fd, PRIVATE_KEY_MODE)
            write_priv(f, self)

    @classmethod
    def import_key(cls, file: pathlib.Path | str) -> "RSAPrivKey":
        """Imports the RSA Private Key from a text record file.

        Args:
            file: The file to import.

        Returns:
            The imported RSA Private Key.
        """
        with open(file, "r", encoding="ascii") as f:
            return read_priv(f)

    @classmethod
    def generate(cls, size: int, iters: int, rng: RandState, username: str) -> "RSAPrivKey":
        """Generates an RSA Private Key, and its signed Public Key.

        Args:
            size: Minimum bit length of the modulus.
            iters: Miller-Rabin iterations per prime candidate.
            rng: Random state for all draws.
            username: Owner of the key, signed into the public key.

        Returns:
            A new RSA Private Key with the public key attached as `pub`.

        Raises:
            ValueError: If the username is not a base-62 numeral or spells a number too large for the modulus.
        """
        owner = keygen.username_to_int(username)
        p, q, n, e = keygen.generate_key_pair(size, iters, rng)
        d = keygen.make_priv(e, p, q)
        del p, q
        key = cls(n, d)
        try:
            signature = key.sign(owner)
        except ValueError as exc:
            raise ValueError(f"Username {username!r} is too long for a {n.bit_length()}-bit key.") from exc
        key.pub = RSAPubKey(n, e, signature, username)
        logger.debug("Generated %d-bit key pair for %s", n.bit_length(), username)
        return key


def _read_field(f: typing.TextIO, name: str) -> str:
    try:
        line = f.readline()
    except UnicodeDecodeError as exc:
        raise IOError(f"Key file is not ASCII text before the {name} field.") from exc
    if not line:
        raise IOError(f"Key file ends before the {name} field.")
    return line.strip()


def _read_hex(f: typing.TextIO, name: str) -> int:
    field = _read_field(f, name)
    try:
        return parse_hex(field)
    except ValueError as exc:
        raise IOError(f"Key field {name} is not hexadecimal: {field!r}") from exc


def parse_hex(field: str) -> int:
    """Parses plain hexadecimal digits, without sign, prefix or separators.

    Raises:
        ValueError: If `field` holds anything but hex digits.
    """
    if not _HEX_FIELD.fullmatch(field):
        raise ValueError(f"Not a plain hexadecimal number: {field[:32]!r}")
    return int(field, 16)


def write_pub(f: typing.TextIO, key: RSAPubKey) -> None:
    """Writes a public key record to an open text stream."""
    f.write(f"{key.mod:x}\n")
    f.write(f"{key.expo:x}\n")
    f.write(f"{key.signature:x}\n")
    f.write(f"{key.username}\n")


def read_pub(f: typing.TextIO) -> RSAPubKey:
    """Reads a public key record from an open text stream.

    Args:
        f: The stream, positioned at the start of the record.

    Returns:
        The public key.

    Raises:
        IOError: If a field is missing or not hexadecimal.
    """
    n = _read_hex(f, "modulus")
    e = _read_hex(f, "exponent")
    s = _read_hex(f, "signature")
    username = _read_field(f, "username")
    return RSAPubKey(n, e, s, username)


def write_priv(f: typing.TextIO, key: RSAPrivKey) -> None:
    """Writes a private key record to an open text stream."""
    f.write(f"{key.mod:x}\n")
    f.write(f"{key.expo:x}\n")


def read_priv(f: typing.TextIO) -> RSAPrivKey:
    """Reads a private key record from an open text stream.

    Raises:
        IOError: If a field is missing or not hexadecimal.
    """
    n = _read_hex(f, "modulus")
    d = _read_hex(f, "exponent")
    return RSAPrivKey(n, d)


def write_pem(file: pathlib.Path | str, subtype: str, data: bytes) -> None:
    """Writes a PEM encoded file.

    Args:
        file: The file to write.
        subtype: The subtype of PEM encoding to write.
        data: The data to write.
    """
    curr_type = PEM_TYPES[subtype]
    payload = base64.b64encode(data).decode()
    with open(file, "w", encoding="ascii") as f:
        f.write(curr_type[0] + "\n")
        res = "\n".join(payload[i:i + 64] for i in range(0, len(payload), 64))
        res += "\n" if res else ""
        f.write(res)
        f.write(curr_type[1] + "\n")


def bytes_to_integer(msg: bytes) -> int:
    """Converts a byte string to an integer, big-endian and unsigned.

    Args:
        msg: The bytes to convert.

    Returns:
        The representative integer.
    """
    return int.from_bytes(msg, byteorder="big", signed=False)


def integer_to_bytes(msg: int) -> bytes:
    """Converts an integer to its minimal big-endian byte string.

    Args:
        msg: The integer to unmarshal. Must be >= 0.

    Returns:
        The representative bytes; empty for 0.
    """
    return msg.to_bytes((msg.bit_length() + 7) // 8, byteorder="big", signed=False)
