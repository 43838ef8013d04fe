"""
Theurgy Pipeline - Increment the counter held in the payer's instance account.

Flow:
1. Connect (node version + payer account)
2. Verify the program is deployed (executable)
3. Resolve the derived instance address
4. Create the instance account if absent (rent exempt)
5. Send the counter instruction and wait for confirmation
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from solders.pubkey import Pubkey

from ..config import Configuration
from ..pneuma.errors import AccountNotFoundError, ProgramNotDeployedError
from ..pneuma.service import Session, SolanaService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    address: Pubkey
    created: bool
    signature: str
    counter: Optional[int]


def verify_deployment(session: Session) -> None:
    """
    Raise ProgramNotDeployedError unless the program is usable.

    A missing program account and a non-executable one are treated alike.
    """
    try:
        deployed = session.is_program_deployed()
    except AccountNotFoundError as exc:
        raise ProgramNotDeployedError(f"program {session.program_id} was not deployed") from exc
    if not deployed:
        raise ProgramNotDeployedError(f"program {session.program_id} is not executable")


def execute_application(
    configuration: Configuration,
    transport: Optional[httpx.BaseTransport] = None,
    poll_interval: float = 0.5,
) -> PipelineResult:
    """Run the whole pipeline once. Any failure propagates as a ClientError."""
    service = SolanaService(configuration, transport=transport, poll_interval=poll_interval)
    session = service.connect()
    try:
        verify_deployment(session)

        instance = session.resolve_instance_address()
        created = False
        if not instance.exists:
            instance = session.ensure_instance_account(instance.address)
            created = True

        result = session.submit_mutation(instance.address)

        after = session.resolve_instance_address()
        counter = after.counter if after.exists else None
        logger.info("counter is now %s", counter)

        return PipelineResult(
            address=instance.address,
            created=created,
            signature=result["signature"],
            counter=counter,
        )
    finally:
        session.close()
