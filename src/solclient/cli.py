"""
solclient CLI

Increments the counter stored in the payer's instance account of a
deployed Solana program, creating the account on first use.

Configuration:
  ~/.config/solana/cli/config.yml  - json_rpc_url, keypair_path (payer)
  ~/.solclient/.env                - KEY_PAIR or PROGRAM_ID (program)
  SOLCLIENT_LOG                    - log level (default: WARNING)
"""

from __future__ import annotations

import logging
import os
import sys

import click

from .config import load_configuration
from .pneuma.errors import ClientError
from .theurgy.pipeline import execute_application


# ============ Constants ============

VERSION = "0.1.0"

logger = logging.getLogger("solclient")


def _configure_logging() -> None:
    level_name = os.environ.get("SOLCLIENT_LOG", "WARNING").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ============ Main Command ============


@click.command()
@click.version_option(version=VERSION, prog_name="solclient")
def cli() -> None:
    """Increment the counter in this payer's program instance account."""
    _configure_logging()

    try:
        configuration = load_configuration()
        result = execute_application(configuration)
    except ClientError as exc:
        logger.error("%s", exc)
        click.secho(f"ERROR: {exc}", fg="red", err=True)
        sys.exit(exc.exit_code)

    if result.created:
        click.echo(f"  Created instance account: {result.address}")
    else:
        click.echo(f"  Instance account: {result.address}")
    click.echo(f"  TX: {result.signature}")
    if result.counter is not None:
        click.echo(f"  Counter: {result.counter}")
    click.secho("SUCCESS: Counter transaction confirmed!", fg="green")


# ============ Entry Points ============


def main() -> None:
    """solclient CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
