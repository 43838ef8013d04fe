"""
Ed25519 Key Management for solclient.

Solana keypairs are handled as JSON arrays of 64 integers (secret key
followed by public key), the same format the Solana CLI writes to
``~/.config/solana/id.json``.

The program identity lives in ~/.solclient/.env as KEY_PAIR (JSON array)
or PROGRAM_ID (base58 public key).

Dependencies: solders (keypair / pubkey types), python-dotenv
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from ..pneuma.errors import ConfigurationUnavailableError


# Default config file
SOLCLIENT_ENV = Path.home() / ".solclient" / ".env"


def parse_keypair(value: str) -> Keypair:
    """
    Parse a JSON byte array into a Keypair.

    Raises:
        ConfigurationUnavailableError: If the value is not a 64-byte JSON array
    """
    try:
        raw = json.loads(value)
    except json.JSONDecodeError as exc:
        raise ConfigurationUnavailableError(f"Keypair is not valid JSON: {exc}") from exc

    if not isinstance(raw, list) or not all(isinstance(b, int) and 0 <= b <= 255 for b in raw):
        raise ConfigurationUnavailableError("Keypair must be a JSON array of byte values")
    if len(raw) != 64:
        raise ConfigurationUnavailableError(f"Keypair must be 64 bytes, got {len(raw)}")

    try:
        return Keypair.from_bytes(bytes(raw))
    except Exception as exc:
        raise ConfigurationUnavailableError(f"Invalid keypair bytes: {exc}") from exc


def read_keypair_file(path: Path) -> Keypair:
    """
    Read a Solana CLI style keypair file.

    Raises:
        ConfigurationUnavailableError: If the file is missing or unparseable
    """
    path = Path(path).expanduser()
    if not path.exists():
        raise ConfigurationUnavailableError(f"Keypair file not found: {path}")
    return parse_keypair(path.read_text(encoding="utf-8"))


def parse_pubkey(value: str) -> Pubkey:
    try:
        return Pubkey.from_string(value.strip())
    except Exception as exc:
        raise ConfigurationUnavailableError(f"Invalid public key {value!r}: {exc}") from exc


def load_program_id(env_path: Optional[Path] = None) -> Pubkey:
    """
    Load the program identity from .env file or environment.

    KEY_PAIR (the program keypair) wins over PROGRAM_ID when both are set.

    Args:
        env_path: Path to .env file (default: ~/.solclient/.env)

    Returns:
        Program public key

    Raises:
        ConfigurationUnavailableError: If neither KEY_PAIR nor PROGRAM_ID is usable
    """
    env_path = env_path or SOLCLIENT_ENV

    if env_path.exists():
        load_dotenv(env_path, override=False)

    keypair_json = os.environ.get("KEY_PAIR")
    if keypair_json:
        return parse_keypair(keypair_json).pubkey()

    program_id = os.environ.get("PROGRAM_ID")
    if program_id:
        return parse_pubkey(program_id)

    raise ConfigurationUnavailableError(
        f"Program identity not found. Set KEY_PAIR or PROGRAM_ID in {env_path}"
    )
