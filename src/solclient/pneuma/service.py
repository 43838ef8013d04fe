"""
SolanaService - the connect / verify / resolve / provision / mutate pipeline.

``SolanaService`` is the disconnected half: it only knows its
configuration. ``connect()`` checks the node and the payer account and
returns a ``Session``, which carries the RPC handle and performs every
network operation. Operations invoked on the service itself raise
``NotConnectedError``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from ..config import Configuration
from .derive import SEED, derive_instance_address
from .errors import (
    AccountDerivationError,
    NotConnectedError,
    TransactionRejectedError,
)
from .layout import RECORD_SIZE, decode_record, mutation_payload
from .rpc import LedgerAccount, RpcClient
from .tx import build_create_instance_ix, build_program_ix, sign_and_send

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstanceAccount:
    """
    Result of resolving the derived instance address.

    Attributes:
        address: Derived address (stable for a payer/program pair)
        account: Current record, or None if the address is absent
    """
    address: Pubkey
    account: Optional[LedgerAccount]

    @property
    def exists(self) -> bool:
        return self.account is not None

    @property
    def counter(self) -> Optional[int]:
        if self.account is None:
            return None
        return decode_record(self.account.data)["counter"]


class SolanaService:
    def __init__(
        self,
        configuration: Configuration,
        transport: Optional[httpx.BaseTransport] = None,
        poll_interval: float = 0.5,
    ) -> None:
        self.configuration = configuration
        self._transport = transport
        self._poll_interval = poll_interval

    def connect(self) -> "Session":
        """
        Open an RPC session and check it is usable.

        Queries the node version, then the payer account.

        Raises:
            NetworkError: If the node is unreachable or the URL is malformed
            AccountNotFoundError: If the payer account does not exist
        """
        config = self.configuration
        logger.info("connecting to solana node at %s", config.rpc_url)

        client = RpcClient(
            config.rpc_url,
            commitment=config.commitment,
            transport=self._transport,
        )
        try:
            version = client.get_version()
            logger.info("RPC version: %s", version)

            payer_account = client.get_account(config.payer.pubkey())
            logger.info("payer account: %s lamports", payer_account.lamports)
        except Exception:
            client.close()
            raise

        return Session(
            client=client,
            payer=config.payer,
            program_id=config.program_id,
            payer_account=payer_account,
            poll_interval=self._poll_interval,
        )

    def _not_connected(self, operation: str) -> NotConnectedError:
        return NotConnectedError(f"{operation} requires a connected session; call connect() first")

    def is_program_deployed(self) -> bool:
        raise self._not_connected("is_program_deployed")

    def resolve_instance_address(self) -> InstanceAccount:
        raise self._not_connected("resolve_instance_address")

    def ensure_instance_account(self, address: Pubkey) -> InstanceAccount:
        raise self._not_connected("ensure_instance_account")

    def submit_mutation(self, address: Pubkey) -> dict[str, Any]:
        raise self._not_connected("submit_mutation")

    def get_or_create_instance_account(self) -> InstanceAccount:
        raise self._not_connected("get_or_create_instance_account")


class Session:
    """A connected client. Lives for as long as the process needs it."""

    def __init__(
        self,
        client: RpcClient,
        payer: Keypair,
        program_id: Pubkey,
        payer_account: LedgerAccount,
        poll_interval: float = 0.5,
    ) -> None:
        self.client = client
        self.payer = payer
        self.program_id = program_id
        self.payer_account = payer_account
        self.poll_interval = poll_interval

    def close(self) -> None:
        self.client.close()

    def is_program_deployed(self) -> bool:
        """
        Check that the program account exists and is executable.

        Every call is a fresh round trip; deployment state may change
        between calls.

        Raises:
            AccountNotFoundError: If no account exists at the program id
        """
        logger.info("program pubkey: %s", self.program_id)
        account = self.client.get_account(self.program_id)
        logger.info(
            "program account: owner=%s executable=%s", account.owner, account.executable
        )
        return account.executable

    def instance_address(self) -> Pubkey:
        return derive_instance_address(self.payer.pubkey(), self.program_id, SEED)

    def resolve_instance_address(self) -> InstanceAccount:
        """Derive the instance address and look it up."""
        address = self.instance_address()
        logger.info("program instance account pubkey: %s", address)
        account = self.client.get_account_info(address)
        logger.info("program instance account %s", "exists" if account else "absent")
        return InstanceAccount(address=address, account=account)

    def ensure_instance_account(self, address: Pubkey) -> InstanceAccount:
        """
        Create the instance account, funded to be rent exempt.

        Losing a creation race to another client for the same payer is
        not an error; any other creation failure propagates.

        Raises:
            TransactionRejectedError: If creation failed for any other reason
            AccountDerivationError: If the address ends up held by another owner
        """
        logger.info("creating program instance at %s", address)

        lamports = self.client.get_minimum_balance_for_rent_exemption(RECORD_SIZE)
        logger.info("minimum balance for rent exemption: %s", lamports)

        ix = build_create_instance_ix(
            payer=self.payer.pubkey(),
            address=address,
            seed=SEED,
            lamports=lamports,
            space=RECORD_SIZE,
            program_id=self.program_id,
        )

        try:
            result = sign_and_send(self.client, [ix], self.payer, poll_interval=self.poll_interval)
            logger.info("account created, signature: %s", result["signature"])
        except TransactionRejectedError as exc:
            if not exc.is_account_in_use():
                raise
            logger.warning("instance account %s was created concurrently, continuing", address)

        account = self.client.get_account(address)
        if account.owner != self.program_id:
            raise AccountDerivationError(
                f"Instance account {address} is owned by {account.owner}, not {self.program_id}"
            )
        logger.info("program instance account: %s lamports, %d bytes", account.lamports, len(account.data))
        return InstanceAccount(address=address, account=account)

    def get_or_create_instance_account(self) -> InstanceAccount:
        instance = self.resolve_instance_address()
        if instance.exists:
            return instance
        return self.ensure_instance_account(instance.address)

    def submit_mutation(self, address: Pubkey) -> dict[str, Any]:
        """
        Send the counter instruction for the instance account and wait for it.

        Errors are surfaced unchanged; nothing is retried.

        Returns:
            Dict with signature and status
        """
        ix = build_program_ix(self.program_id, address, mutation_payload())
        result = sign_and_send(self.client, [ix], self.payer, poll_interval=self.poll_interval)
        logger.info("mutation signature: %s", result["signature"])
        return result
