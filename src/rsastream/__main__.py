"""The Command Line Interface for the utility.

Subcommands generate a key pair, encrypt and decrypt streams, and verify the owner signature of a public key.
Data goes through stdin/stdout unless files are given; diagnostics go to stderr.

Typical usage example:

    rsastream keygen -b 1024 -u alice
    rsastream encrypt -i message.txt -o message.enc
    python -m rsastream decrypt -i message.enc
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import argparse
import contextlib
import getpass
import logging
import pathlib
import sys
import typing

import rsastream
from rsastream import stream

logger = logging.getLogger("rsastream")


class HelpData(typing.NamedTuple):
    description: str
    format: typing.Type = str
    default: typing.Any = None


help_dict: dict[str, HelpData] = {
    "keygen":
        HelpData("Key generation utility."),
    "encrypt":
        HelpData("Encryption utility. Checks the public key signature first."),
    "decrypt":
        HelpData("Decryption utility."),
    "verify":
        HelpData("Public key signature verification utility."),
    "public_key":
        HelpData(
            description="Location of the public key file.",
            format=pathlib.Path,
            default=pathlib.Path("rsa.pub"),
        ),
    "private_key":
        HelpData(
            description="Location of the private key file.",
            format=pathlib.Path,
            default=pathlib.Path("rsa.priv"),
        ),
    "infile":
        HelpData(
            description="Input file (default: stdin).",
            format=pathlib.Path,
        ),
    "outfile":
        HelpData(
            description="Output file (default: stdout).",
            format=pathlib.Path,
        ),
    "bits":
        HelpData(
            description="Minimum bits of the public modulus.",
            format=int,
            default=1024,
        ),
    "iters":
        HelpData(
            description="Miller-Rabin iterations for testing primes.",
            format=int,
            default=50,
        ),
    "seed":
        HelpData(
            description="Random seed (default: current time).",
            format=int,
        ),
    "username":
        HelpData(
            description="Owner signed into the public key, letters and digits only (default: current user).",
            format=str,
        ),
    "pem":
        HelpData(
            description="Also export the public key as PKCS#1 PEM to this file.",
            format=pathlib.Path,
        ),
}


def _option(parser: argparse.ArgumentParser, name: str, *flags: str) -> None:
    data = help_dict[name]
    parser.add_argument(*flags, dest=name, type=data.format, default=data.default, help=data.description)


iofiles = argparse.ArgumentParser(add_help=False)
_option(iofiles, "infile", "--infile", "-i")
_option(iofiles, "outfile", "--outfile", "-o")
corep = argparse.ArgumentParser(prog="rsastream")
corep.add_argument("--version", action="version", version=f"%(prog)s {rsastream.__version__}")
corep.add_argument("--verbose", "-v", action="store_true", help="Log key details and progress to stderr")
commands = corep.add_subparsers(dest="subcommand", title="Subcommands", required=True)

keygen = commands.add_parser("keygen", help=help_dict["keygen"].description)
_option(keygen, "bits", "--bits", "-b")
_option(keygen, "iters", "--iters", "-i")
_option(keygen, "public_key", "--public-key", "-n")
_option(keygen, "private_key", "--private-key", "-d")
_option(keygen, "seed", "--seed", "-s")
_option(keygen, "username", "--username", "-u")
_option(keygen, "pem", "--pem")

encrypt = commands.add_parser("encrypt", parents=[iofiles], help=help_dict["encrypt"].description)
_option(encrypt, "public_key", "--public-key", "-n")
decrypt = commands.add_parser("decrypt", parents=[iofiles], help=help_dict["decrypt"].description)
_option(decrypt, "private_key", "--private-key", "-n")
verify = commands.add_parser("verify", help=help_dict["verify"].description)
_option(verify, "public_key", "--public-key", "-n")


def fail(message: str) -> typing.NoReturn:
    """Report a fatal error and exit with status 1."""
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def load_public(file: pathlib.Path) -> rsastream.RSAPubKey:
    try:
        pub = rsastream.RSAPubKey.import_key(file)
    except (OSError, ValueError) as exc:
        fail(f"Unable to read public key {file}: {exc}")
    logger.info("user = %s", pub.username)
    logger.info("s (%d bits) = %d", pub.signature.bit_length(), pub.signature)
    logger.info("n (%d bits) = %d", pub.mod.bit_length(), pub.mod)
    logger.info("e (%d bits) = %d", pub.expo.bit_length(), pub.expo)
    return pub


def load_private(file: pathlib.Path) -> rsastream.RSAPrivKey:
    try:
        priv = rsastream.RSAPrivKey.import_key(file)
    except (OSError, ValueError) as exc:
        fail(f"Unable to read private key {file}: {exc}")
    logger.info("n (%d bits) = %d", priv.mod.bit_length(), priv.mod)
    logger.info("d (%d bits) = %d", priv.expo.bit_length(), priv.expo)
    return priv


def open_stream(file: pathlib.Path | None, mode: str, stack: contextlib.ExitStack) -> typing.IO:
    """Open `file` in `mode` on `stack`, or fall back to stdin/stdout when no file was given."""
    binary = "b" in mode
    if file is None:
        std = sys.stdin if "r" in mode else sys.stdout
        return std.buffer if binary else std
    try:
        return stack.enter_context(open(file, mode, encoding=None if binary else "ascii"))
    except OSError as exc:
        fail(f"Unable to open {file}: {exc}")


def run_keygen(args: argparse.Namespace) -> None:
    rng = rsastream.RandState(args.seed)
    username = args.username if args.username is not None else getpass.getuser()
    logger.info("seed = %d", rng.seed_value)
    try:
        priv = rsastream.RSAPrivKey.generate(args.bits, args.iters, rng, username)
    except ValueError as exc:
        fail(str(exc))
    pub = priv.pub
    try:
        pub.export(args.public_key)
        priv.export(args.private_key)
        if args.pem is not None:
            pub.export_pem(args.pem)
    except OSError as exc:
        fail(f"Unable to write key files: {exc}")
    logger.info("user = %s", username)
    logger.info("s (%d bits) = %d", pub.signature.bit_length(), pub.signature)
    logger.info("n (%d bits) = %d", pub.mod.bit_length(), pub.mod)
    logger.info("e (%d bits) = %d", pub.expo.bit_length(), pub.expo)
    logger.info("d (%d bits) = %d", priv.expo.bit_length(), priv.expo)


def run_encrypt(args: argparse.Namespace) -> None:
    pub = load_public(args.public_key)
    if not pub.verify_owner():
        fail("Signature was not verified.")
    try:
        stream.block_size(pub.mod)
    except ValueError as exc:
        fail(str(exc))
    with contextlib.ExitStack() as stack:
        infile = open_stream(args.infile, "rb", stack)
        outfile = open_stream(args.outfile, "w", stack)
        try:
            stream.encrypt_file(infile, outfile, pub)
        except ValueError as exc:
            fail(str(exc))


def run_decrypt(args: argparse.Namespace) -> None:
    priv = load_private(args.private_key)
    with contextlib.ExitStack() as stack:
        infile = open_stream(args.infile, "r", stack)
        outfile = open_stream(args.outfile, "wb", stack)
        try:
            stream.decrypt_file(infile, outfile, priv)
        except ValueError as exc:
            fail(str(exc))


def run_verify(args: argparse.Namespace) -> None:
    pub = load_public(args.public_key)
    if not pub.verify_owner():
        fail("Signature was not verified.")
    print(f"Signature of {pub.username} verified.")


def main(argv: list[str] | None = None) -> None:
    """Core Command Line Interface."""
    args = corep.parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING,
                        format="%(message)s",
                        stream=sys.stderr)
    match args.subcommand:
        case "keygen":
            run_keygen(args)
        case "encrypt":
            run_encrypt(args)
        case "decrypt":
            run_decrypt(args)
        case "verify":
            run_verify(args)


if __name__ == "__main__":
    main()
