"""
Derived instance addresses.

An instance account lives at ``sha256(base || seed || owner)``, the
address ``create_account_with_seed`` allocates. The computation is pure,
so anyone holding the payer key, the seed and the program id can
reproduce it without touching the network.
"""

from __future__ import annotations

from solders.pubkey import Pubkey

from .errors import AccountDerivationError

SEED = "WHATEVER"
MAX_SEED_LEN = 32
PDA_MARKER = b"ProgramDerivedAddress"


def derive_instance_address(base: Pubkey, program_id: Pubkey, seed: str = SEED) -> Pubkey:
    """
    Compute the instance account address for a payer/program pair.

    Args:
        base: Payer public key
        program_id: Owner program id
        seed: Seed string (at most 32 bytes)

    Raises:
        AccountDerivationError: If the seed or owner is rejected
    """
    if len(seed.encode("utf-8")) > MAX_SEED_LEN:
        raise AccountDerivationError(f"Seed longer than {MAX_SEED_LEN} bytes: {seed!r}")
    if bytes(program_id).endswith(PDA_MARKER):
        raise AccountDerivationError(f"Illegal owner for derived address: {program_id}")
    try:
        return Pubkey.create_with_seed(base, seed, program_id)
    except Exception as exc:
        raise AccountDerivationError(f"Cannot derive address from seed {seed!r}: {exc}") from exc
