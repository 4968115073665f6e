#!/usr/bin/env python3
"""
NodeVault -- Password-sealed wallet seeds and node identity lifecycle.

Offline seed tooling for account holders, plus a shortcut to run the API.
None of the seed commands touch the network or the account database.

Usage:
  python main.py generate-seed
  python main.py generate-seed --seal
  python main.py check-seed "abandon abandon ... art"
  python main.py decrypt-seed <encrypted_seed>
  python main.py serve --port 8000

Passwords are always read with a hidden prompt, never from arguments.
"""

import argparse
import getpass
import sys
from typing import Optional

from core.errors import CryptoError
from vault.credentials import CredentialVault


def _prompt_password(confirm: bool = False) -> Optional[str]:
    """Read a password without echo. Returns None if confirmation does not match."""
    password = getpass.getpass("  Password: ")
    if confirm and getpass.getpass("  Confirm password: ") != password:
        print("  [!] Passwords do not match.")
        return None
    return password


def cmd_generate_seed(vault: CredentialVault, args: argparse.Namespace) -> int:
    phrase = vault.generate_seed_phrase()
    if not args.seal:
        print(phrase)
        return 0
    password = _prompt_password(confirm=True)
    if password is None:
        return 1
    print(vault.encrypt_secret(phrase.encode("utf-8"), password))
    return 0


def cmd_check_seed(vault: CredentialVault, args: argparse.Namespace) -> int:
    phrase = " ".join(args.words) if args.words else sys.stdin.read()
    if vault.validate_seed_phrase(phrase):
        print("  Seed phrase is valid.")
        return 0
    print("  [!] Seed phrase is NOT valid (unknown word or bad checksum).")
    return 1


def cmd_decrypt_seed(vault: CredentialVault, args: argparse.Namespace) -> int:
    password = _prompt_password()
    try:
        plaintext = vault.decrypt_secret(args.blob.strip(), password)
    except CryptoError as e:
        print(f"  [!] {e.message}")
        return 1
    print(plaintext.decode("utf-8", errors="replace"))
    return 0


def cmd_serve(vault: CredentialVault, args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nodevault",
        description="Password-sealed wallet seeds and node identity lifecycle.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py generate-seed --seal > seed.txt
  python main.py check-seed < phrase.txt
  python main.py decrypt-seed "$(cat seed.txt)"
  SECRET_KEY=... python main.py serve
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    gen = sub.add_parser("generate-seed", help="Print a new 24-word seed phrase")
    gen.add_argument(
        "--seal",
        action="store_true",
        help="Encrypt the phrase under a password and print the base64 blob instead",
    )
    gen.set_defaults(func=cmd_generate_seed)

    check = sub.add_parser("check-seed", help="Validate a seed phrase (words as arguments or on stdin)")
    check.add_argument("words", nargs="*", metavar="WORD", help="Seed phrase words")
    check.set_defaults(func=cmd_check_seed)

    dec = sub.add_parser("decrypt-seed", help="Decrypt a sealed seed blob returned at signup")
    dec.add_argument("blob", metavar="ENCRYPTED_SEED", help="Base64 blob from the signup response")
    dec.set_defaults(func=cmd_decrypt_seed)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development)")
    serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[list[str]] = None, vault: Optional[CredentialVault] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 2
    return args.func(vault or CredentialVault(), args)


if __name__ == "__main__":
    sys.exit(main())
