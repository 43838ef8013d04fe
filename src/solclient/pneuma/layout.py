"""
Record layout shared with the on-chain counter program.

The program stores a single borsh struct in each instance account. The
client never interprets the account beyond this layout; its size decides
the rent-exempt balance and must match what the program expects.
"""

from __future__ import annotations

from borsh_construct import CStruct, U32

GreetingLayout = CStruct("counter" / U32)


def default_record() -> dict[str, int]:
    return {"counter": 0}


def encode_record(record: dict[str, int]) -> bytes:
    return GreetingLayout.build(record)


def decode_record(data: bytes) -> dict[str, int]:
    """Decode account data into a record dict, ignoring trailing bytes."""
    if len(data) < RECORD_SIZE:
        raise ValueError(f"Record data too short: {len(data)} < {RECORD_SIZE} bytes")
    parsed = GreetingLayout.parse(data[:RECORD_SIZE])
    return {"counter": parsed.counter}


def mutation_payload() -> bytes:
    """Instruction data for the counter increment (the default record, borsh encoded)."""
    return encode_record(default_record())


RECORD_SIZE = len(encode_record(default_record()))
