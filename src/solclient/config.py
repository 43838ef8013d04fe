"""
Configuration - payer identity, program identity and RPC endpoint.

The payer keypair and endpoint come from the Solana CLI configuration
(the same file ``solana config set`` writes). The program identity comes
from ~/.solclient/.env (see ``sigil.keys``). Environment variables
override both files.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from .pneuma.errors import ConfigurationUnavailableError
from .pneuma.rpc import COMMITMENT_LEVELS, DEFAULT_COMMITMENT
from .sigil.keys import load_program_id, read_keypair_file

logger = logging.getLogger(__name__)

SOLANA_CLI_CONFIG = Path.home() / ".config" / "solana" / "cli" / "config.yml"
DEFAULT_RPC_URL = "http://localhost:8899"
DEFAULT_KEYPAIR_PATH = Path.home() / ".config" / "solana" / "id.json"


@dataclass(frozen=True)
class Configuration:
    """
    Everything the client needs before it can connect.

    Attributes:
        rpc_url: JSON-RPC endpoint of the ledger node
        payer: Keypair that signs and funds every transaction
        program_id: Public key of the deployed program
        commitment: Commitment level used for reads and confirmation
    """
    rpc_url: str
    payer: Keypair
    program_id: Pubkey
    commitment: str = DEFAULT_COMMITMENT


def _read_cli_config(path: Path) -> dict[str, Any]:
    if not path.exists():
        logger.debug("Solana CLI config not found at %s, using defaults", path)
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationUnavailableError(f"Cannot parse {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationUnavailableError(f"{path} must contain a mapping")
    return data


def load_configuration(
    cli_config_path: Optional[Path] = None,
    env_path: Optional[Path] = None,
) -> Configuration:
    """
    Load the client configuration.

    Args:
        cli_config_path: Solana CLI config file (default: SOLANA_CONFIG_FILE
                         or ~/.config/solana/cli/config.yml)
        env_path: solclient .env file (default: ~/.solclient/.env)

    Raises:
        ConfigurationUnavailableError: If key material or endpoint is missing
                                       or cannot be parsed
    """
    if cli_config_path is None:
        cli_config_path = Path(os.environ.get("SOLANA_CONFIG_FILE", str(SOLANA_CLI_CONFIG)))
    cli_config = _read_cli_config(Path(cli_config_path).expanduser())

    rpc_url = os.environ.get("SOLANA_RPC_URL") or cli_config.get("json_rpc_url") or DEFAULT_RPC_URL
    keypair_path = (
        os.environ.get("PAYER_KEYPAIR_PATH")
        or cli_config.get("keypair_path")
        or str(DEFAULT_KEYPAIR_PATH)
    )

    commitment = os.environ.get("SOLCLIENT_COMMITMENT", DEFAULT_COMMITMENT)
    if commitment not in COMMITMENT_LEVELS:
        raise ConfigurationUnavailableError(
            f"Unknown commitment {commitment!r}, expected one of {', '.join(COMMITMENT_LEVELS)}"
        )

    payer = read_keypair_file(Path(keypair_path))
    program_id = load_program_id(env_path)

    logger.info("RPC endpoint: %s", rpc_url)
    logger.info("payer: %s, program: %s", payer.pubkey(), program_id)

    return Configuration(
        rpc_url=str(rpc_url),
        payer=payer,
        program_id=program_id,
        commitment=commitment,
    )
