"""
Shared fixtures: an in-process ledger node behind httpx.MockTransport.

The fake node speaks the JSON-RPC methods the client uses, decodes the
signed transactions it receives and applies the two instructions the
client sends (system create-with-seed and the counter increment). It
counts calls per method so tests can assert which round trips happened.
"""

from __future__ import annotations

import base64
import hashlib
import json
import struct
from collections import Counter
from typing import Any, Optional

import httpx
import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from solclient.config import Configuration

SYSTEM_PROGRAM = "11111111111111111111111111111111"
BPF_LOADER = "BPFLoaderUpgradeab1e11111111111111111111111"
LAMPORTS_PER_SOL = 1_000_000_000
FEE = 5_000


def rent_minimum(size: int) -> int:
    return (128 + size) * 3480 * 2


class RpcFailure(Exception):
    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


class FakeLedger:
    def __init__(self) -> None:
        self.accounts: dict[str, dict[str, Any]] = {}
        self.calls: Counter[str] = Counter()
        self.statuses: dict[str, dict[str, Any]] = {}
        self.transactions: list[Transaction] = []
        self.slot = 100
        self.block_height = 90
        self.blockhash = str(Hash(bytes(range(32))))
        # Hooks for failure scenarios
        self.before_send: Optional[Any] = None
        self.confirm = True

    # ---- state helpers ----

    def add_account(
        self,
        pubkey: Pubkey,
        lamports: int,
        owner: str = SYSTEM_PROGRAM,
        executable: bool = False,
        data: bytes = b"",
    ) -> None:
        self.accounts[str(pubkey)] = {
            "lamports": lamports,
            "owner": owner,
            "executable": executable,
            "data": bytearray(data),
        }

    def counter_of(self, pubkey: Pubkey) -> int:
        return struct.unpack_from("<I", bytes(self.accounts[str(pubkey)]["data"]))[0]

    def instruction_count(self, program: str) -> int:
        count = 0
        for tx in self.transactions:
            keys = tx.message.account_keys
            for ix in tx.message.instructions:
                if str(keys[ix.program_id_index]) == program:
                    count += 1
        return count

    # ---- transport ----

    def handle(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        method = body["method"]
        params = body.get("params") or []
        self.calls[method] += 1
        try:
            result = getattr(self, f"rpc_{method}")(params)
        except RpcFailure as failure:
            error: dict[str, Any] = {"code": failure.code, "message": failure.message}
            if failure.data is not None:
                error["data"] = failure.data
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": error})
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    # ---- RPC methods ----

    def _context(self, value: Any) -> dict[str, Any]:
        return {"context": {"slot": self.slot}, "value": value}

    def rpc_getVersion(self, params: list) -> dict[str, Any]:
        return {"solana-core": "1.18.26", "feature-set": 3241752014}

    def rpc_getAccountInfo(self, params: list) -> dict[str, Any]:
        account = self.accounts.get(params[0])
        if account is None:
            return self._context(None)
        return self._context(
            {
                "lamports": account["lamports"],
                "owner": account["owner"],
                "executable": account["executable"],
                "data": [base64.b64encode(bytes(account["data"])).decode(), "base64"],
                "rentEpoch": 18446744073709551615,
                "space": len(account["data"]),
            }
        )

    def rpc_getMinimumBalanceForRentExemption(self, params: list) -> int:
        return rent_minimum(params[0])

    def rpc_getLatestBlockhash(self, params: list) -> dict[str, Any]:
        return self._context(
            {"blockhash": self.blockhash, "lastValidBlockHeight": self.block_height + 150}
        )

    def rpc_getBlockHeight(self, params: list) -> int:
        return self.block_height

    def rpc_getSignatureStatuses(self, params: list) -> dict[str, Any]:
        return self._context([self.statuses.get(sig) for sig in params[0]])

    def rpc_sendTransaction(self, params: list) -> str:
        tx = Transaction.from_bytes(base64.b64decode(params[0]))
        if self.before_send is not None:
            self.before_send(tx)
        if not tx.is_signed():
            raise RpcFailure(-32602, "invalid transaction: missing signature")
        if str(tx.message.recent_blockhash) != self.blockhash:
            raise RpcFailure(
                -32002,
                "Transaction simulation failed: Blockhash not found",
                {"err": "BlockhashNotFound", "logs": []},
            )

        keys = [str(k) for k in tx.message.account_keys]
        payer = self.accounts.get(keys[0])
        if payer is None or payer["lamports"] < FEE:
            raise RpcFailure(
                -32002,
                "Transaction simulation failed: Attempt to debit an account but found no record of a prior credit.",
                {"err": "AccountNotFound", "logs": []},
            )

        for index, ix in enumerate(tx.message.instructions):
            program = keys[ix.program_id_index]
            accounts = [keys[i] for i in ix.accounts]
            err = self._execute(program, accounts, bytes(ix.data), keys[0])
            if err is not None:
                raise RpcFailure(
                    -32002,
                    f"Transaction simulation failed: Error processing Instruction {index}",
                    {"err": {"InstructionError": [index, err]}, "logs": []},
                )

        payer["lamports"] -= FEE
        self.transactions.append(tx)
        self.slot += 1
        signature = str(tx.signatures[0])
        if self.confirm:
            self.statuses[signature] = {
                "slot": self.slot,
                "confirmations": 0,
                "err": None,
                "status": {"Ok": None},
                "confirmationStatus": "confirmed",
            }
        return signature

    # ---- instruction processing ----

    def _execute(self, program: str, accounts: list[str], data: bytes, payer: str) -> Any:
        if program == SYSTEM_PROGRAM:
            return self._create_account_with_seed(accounts, data)
        target = self.accounts.get(program)
        if target is None or not target["executable"]:
            return "ProgramAccountNotFound"
        return self._increment(program, accounts)

    def _create_account_with_seed(self, accounts: list[str], data: bytes) -> Any:
        (variant,) = struct.unpack_from("<I", data, 0)
        if variant != 3:
            return "InvalidInstructionData"
        offset = 4
        base = data[offset:offset + 32]
        offset += 32
        (seed_len,) = struct.unpack_from("<Q", data, offset)
        offset += 8
        seed = data[offset:offset + seed_len]
        offset += seed_len
        lamports, space = struct.unpack_from("<QQ", data, offset)
        offset += 16
        owner = data[offset:offset + 32]

        funder, target = accounts[0], accounts[1]
        expected = Pubkey.from_bytes(hashlib.sha256(base + seed + owner).digest())
        if str(expected) != target:
            return {"Custom": 5}  # AddressWithSeedMismatch
        if target in self.accounts:
            return {"Custom": 0}  # AccountAlreadyInUse
        if self.accounts[funder]["lamports"] < lamports + FEE:
            return {"Custom": 1}  # ResultWithNegativeLamports

        self.accounts[funder]["lamports"] -= lamports
        self.accounts[target] = {
            "lamports": lamports,
            "owner": str(Pubkey.from_bytes(owner)),
            "executable": False,
            "data": bytearray(space),
        }
        return None

    def _increment(self, program: str, accounts: list[str]) -> Any:
        if not accounts:
            return "NotEnoughAccountKeys"
        account = self.accounts.get(accounts[0])
        if account is None or account["owner"] != program:
            return "IncorrectProgramId"
        (counter,) = struct.unpack_from("<I", bytes(account["data"]))
        struct.pack_into("<I", account["data"], 0, counter + 1)
        return None


@pytest.fixture()
def payer() -> Keypair:
    return Keypair()


@pytest.fixture()
def program() -> Keypair:
    return Keypair()


@pytest.fixture()
def ledger(payer: Keypair, program: Keypair) -> FakeLedger:
    """A funded payer and a deployed, executable program."""
    fake = FakeLedger()
    fake.add_account(payer.pubkey(), 10 * LAMPORTS_PER_SOL)
    fake.add_account(program.pubkey(), 1_141_440, owner=BPF_LOADER, executable=True)
    return fake


@pytest.fixture()
def configuration(payer: Keypair, program: Keypair) -> Configuration:
    return Configuration(
        rpc_url="http://127.0.0.1:8899",
        payer=payer,
        program_id=program.pubkey(),
    )
