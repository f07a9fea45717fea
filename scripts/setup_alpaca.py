#!/usr/bin/env python3
"""Alpaca credential setup script.

Stores the Alpaca API key pair in the system keychain, where
``config.Settings`` picks it up ahead of the environment and ``.env``.

Usage:
    python -m scripts.setup_alpaca                  # prompt for the key pair
    python -m scripts.setup_alpaca --from-env       # copy the pair from .env
    python -m scripts.setup_alpaca --from-env --clean
    python -m scripts.setup_alpaca --list
    python -m scripts.setup_alpaca --delete

Generate a key pair on the Alpaca dashboard under "API Keys". Paper
trading keys need ``APCA_API_BASE_URL=https://paper-api.alpaca.markets``.
"""

import argparse
import getpass
import re
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import dotenv_values

from integrations.alpaca_client import AlpacaClient
from integrations.exceptions import ProviderError
from services.credential_manager import (
    CREDENTIAL_KEYS,
    delete_credential,
    get_credential,
    list_credentials,
    set_credential,
)


def _mask(value: str) -> str:
    if len(value) <= 4:
        return "*" * len(value)
    return value[:4] + "*" * (len(value) - 4)


def verify(key_id: str, secret_key: str) -> str:
    """Check the key pair against the account endpoint; returns the currency."""
    return AlpacaClient(key_id=key_id, secret_key=secret_key).get_account_currency()


def store(credentials: dict[str, str]) -> bool:
    ok = True
    for key, value in sorted(credentials.items()):
        if set_credential(key, value):
            print(f"  Stored {key} in keychain")
        else:
            print(f"  Failed to store {key}")
            ok = False
    return ok


def prompt() -> dict[str, str]:
    """Ask for the key pair on the terminal."""
    key_id = input("APCA_API_KEY_ID: ").strip()
    secret_key = getpass.getpass("APCA_API_SECRET_KEY: ").strip()
    return {"APCA_API_KEY_ID": key_id, "APCA_API_SECRET_KEY": secret_key}


def read_env_file(env_path: Path) -> dict[str, str]:
    """Return the non-empty credential values of a ``.env`` file."""
    values = dotenv_values(env_path)
    return {key: values[key] for key in CREDENTIAL_KEYS if values.get(key)}


def _clean_env_file(env_path: Path, keys_to_remove: list[str]) -> None:
    """Remove credential lines from .env, preserving everything else."""
    lines = env_path.read_text().splitlines(keepends=True)
    pattern = re.compile(
        r"^(" + "|".join(re.escape(k) for k in keys_to_remove) + r")\s*="
    )
    cleaned = [line for line in lines if not pattern.match(line)]
    env_path.write_text("".join(cleaned))
    print(f"Removed {len(keys_to_remove)} credential(s) from {env_path}")


def setup(credentials: dict[str, str], *, check: bool = True) -> int:
    missing = sorted(CREDENTIAL_KEYS - {k for k, v in credentials.items() if v})
    if missing:
        print(f"Error: missing {', '.join(missing)}")
        return 1

    if check:
        print("Verifying credentials...")
        try:
            currency = verify(
                credentials["APCA_API_KEY_ID"], credentials["APCA_API_SECRET_KEY"]
            )
        except ProviderError as e:
            print(f"Error: {e}")
            print()
            print("Common issues:")
            print("  - Paper trading keys used against the live endpoint")
            print("  - Key pair was regenerated on the dashboard")
            return 1
        print(f"  Account currency: {currency}")

    return 0 if store(credentials) else 1


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Store Alpaca API credentials in the system keychain"
    )
    action = parser.add_mutually_exclusive_group()
    action.add_argument(
        "--from-env",
        action="store_true",
        help="Read the key pair from the .env file instead of prompting",
    )
    action.add_argument(
        "--list", action="store_true", help="Show the credentials in the keychain"
    )
    action.add_argument(
        "--delete", action="store_true", help="Remove the credentials from the keychain"
    )
    parser.add_argument(
        "--clean",
        action="store_true",
        help="With --from-env, remove the stored credentials from .env",
    )
    parser.add_argument(
        "--no-verify",
        dest="verify",
        action="store_false",
        help="Store the credentials without contacting Alpaca first",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=Path(__file__).parent.parent / ".env",
        help="Path to .env file (default: %(default)s)",
    )
    args = parser.parse_args(argv)

    if args.list:
        stored = list_credentials()
        if not stored:
            print("No credentials stored in keychain.")
        for key, value in stored.items():
            print(f"  {key} = {_mask(value)}")
        return 0

    if args.delete:
        for key in sorted(CREDENTIAL_KEYS):
            if get_credential(key) is None:
                continue
            if delete_credential(key):
                print(f"  Deleted {key}")
            else:
                print(f"  Failed to delete {key}")
        return 0

    if args.from_env:
        if not args.env_file.exists():
            print(f"No .env file found at {args.env_file}")
            return 1
        credentials = read_env_file(args.env_file)
    else:
        credentials = prompt()

    exit_code = setup(credentials, check=args.verify)
    if exit_code == 0 and args.from_env and args.clean:
        _clean_env_file(args.env_file, sorted(credentials))
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
