"""Block framing of byte streams for RSA encryption and decryption.

Plaintext is cut into chunks of `k - 1` bytes, where `k = (bits(n) - 1) // 8`. Each chunk is prefixed with a
0xFF sentinel byte, so leading zero bytes survive the trip through an integer and the block stays below `n`.
Every encrypted block is written as one lowercase hex line.

Typical usage example:

    with open("msg.txt", "rb") as fin, open("msg.enc", "w") as fout:
        encrypt_file(fin, fout, pubkey)
    with open("msg.enc") as fin, open("msg.out", "wb") as fout:
        decrypt_file(fin, fout, privkey)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging
import typing

from rsastream.rsa import bytes_to_integer
from rsastream.rsa import integer_to_bytes
from rsastream.rsa import parse_hex
from rsastream.rsa import RSAPrivKey
from rsastream.rsa import RSAPubKey

logger = logging.getLogger(__name__)

SENTINEL = b"\xff"


def block_size(mod: int) -> int:
    """Largest block byte count guaranteed to stay below `mod`.

    Args:
        mod: The key modulus.

    Returns:
        `(bits(mod) - 1) // 8`.

    Raises:
        ValueError: If the modulus leaves no room for a payload byte next to the sentinel.
    """
    k = (mod.bit_length() - 1) // 8
    if k < 2:
        raise ValueError(f"A {mod.bit_length()}-bit modulus is too small to carry framed blocks.")
    return k


def iter_encrypt(infile: typing.BinaryIO, key: RSAPubKey) -> typing.Iterator[str]:
    """Encrypt a byte stream block by block.

    Reads one full frame of `k - 1` bytes at a time (the last one may be shorter) and stops at the first empty
    read.

    Args:
        infile: Binary stream of plaintext.
        key: The public key to encrypt with.

    Yields:
        The lowercase hex encoding of each ciphertext block, without newline.
    """
    k = block_size(key.mod)
    for chunk in iter(lambda: infile.read(k - 1), b""):
        m = bytes_to_integer(SENTINEL + chunk)
        yield f"{key.encrypt(m):x}"


def iter_decrypt(lines: typing.Iterable[str], key: RSAPrivKey) -> typing.Iterator[bytes]:
    """Decrypt hex lines produced by `iter_encrypt`.

    Blank lines are skipped.

    Args:
        lines: The ciphertext lines.
        key: The private key to decrypt with.

    Yields:
        The plaintext chunk of each block, sentinel removed.

    Raises:
        ValueError: If a line is not hexadecimal, is out of range for the key, or does not decrypt to a framed
            block.
    """
    for lineno, line in enumerate(lines, start=1):
        row = line.strip()
        if not row:
            continue
        try:
            c = parse_hex(row)
        except ValueError as exc:
            raise ValueError(f"Line {lineno} is not a hexadecimal block: {row[:32]!r}") from exc
        block = integer_to_bytes(key.decrypt(c))
        if block[:1] != SENTINEL:
            raise ValueError(f"Decryption error on line {lineno}.")
        yield block[1:]


def encrypt_file(infile: typing.BinaryIO, outfile: typing.TextIO, key: RSAPubKey) -> int:
    """Encrypt `infile` into `outfile`, one hex line per block.

    Args:
        infile: Binary stream of plaintext.
        outfile: Text stream receiving the ciphertext.
        key: The public key to encrypt with.

    Returns:
        The number of blocks written.
    """
    count = 0
    for row in iter_encrypt(infile, key):
        outfile.write(row + "\n")
        count += 1
    logger.debug("Encrypted %d blocks", count)
    return count


def decrypt_file(infile: typing.TextIO, outfile: typing.BinaryIO, key: RSAPrivKey) -> int:
    """Decrypt the hex lines of `infile` into `outfile`.

    Args:
        infile: Text stream of ciphertext lines.
        outfile: Binary stream receiving the plaintext.
        key: The private key to decrypt with.

    Returns:
        The number of blocks decrypted.
    """
    count = 0
    for chunk in iter_decrypt(infile, key):
        outfile.write(chunk)
        count += 1
    logger.debug("Decrypted %d blocks", count)
    return count
