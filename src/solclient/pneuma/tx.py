"""
Transaction Builder - Build, sign, and send Solana transactions.

Uses solders for instructions, messages and signing, and the httpx-based
RpcClient for sending. The payer signs and pays fees for everything.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.system_program import CreateAccountWithSeedParams, create_account_with_seed
from solders.transaction import Transaction

from .errors import TransactionRejectedError
from .rpc import RpcClient

logger = logging.getLogger(__name__)


def build_create_instance_ix(
    payer: Pubkey,
    address: Pubkey,
    seed: str,
    lamports: int,
    space: int,
    program_id: Pubkey,
) -> Instruction:
    """
    Build the system instruction allocating an instance account.

    The payer funds the account and is the base of the seed derivation;
    the program becomes the owner.
    """
    return create_account_with_seed(
        CreateAccountWithSeedParams(
            from_pubkey=payer,
            to_pubkey=address,
            base=payer,
            seed=seed,
            lamports=lamports,
            space=space,
            owner=program_id,
        )
    )


def build_program_ix(program_id: Pubkey, address: Pubkey, data: bytes) -> Instruction:
    """Build an instruction for the program with the instance account writable, not signing."""
    return Instruction(
        program_id,
        data,
        [AccountMeta(pubkey=address, is_signer=False, is_writable=True)],
    )


def sign_and_send(
    client: RpcClient,
    instructions: Sequence[Instruction],
    payer: Keypair,
    wait: bool = True,
    poll_interval: float = 0.5,
) -> dict[str, Any]:
    """
    Sign a transaction with a fresh blockhash and send it.

    Args:
        client: Connected RPC client
        instructions: Instructions, in execution order
        payer: Fee payer and sole signer
        wait: Whether to wait for confirmation
        poll_interval: Confirmation polling interval in seconds

    Returns:
        Dict with signature and optionally status

    Raises:
        TransactionRejectedError: If signing fails or the network rejects
                                  the transaction
    """
    recent = client.get_latest_blockhash()
    logger.info("recent blockhash: %s", recent.blockhash)

    tx = Transaction.new_with_payer(list(instructions), payer.pubkey())
    try:
        tx.sign([payer], recent.blockhash)
    except Exception as exc:
        raise TransactionRejectedError(f"Signing failed: {exc}") from exc

    signature = str(tx.signatures[0])
    sent = client.send_raw_transaction(bytes(tx))
    if sent != signature:
        logger.warning("node reported signature %s, expected %s", sent, signature)
    result: dict[str, Any] = {"signature": sent}

    if wait:
        status = client.confirm_transaction(
            sent,
            recent.last_valid_block_height,
            poll_interval=poll_interval,
        )
        result["status"] = status
        logger.info("confirmed %s at slot %s", sent, status.get("slot"))

    return result
