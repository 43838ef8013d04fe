"""
JSON-RPC Client for Solana nodes.

Lightweight alternative to solana-py: uses httpx for HTTP and solders for
the wire types. Covers the handful of methods the client needs: node
version, account lookup, rent-exemption minimum, recent blockhash,
transaction submission and confirmation polling.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from solders.hash import Hash
from solders.pubkey import Pubkey

from ..utils import b64decode_str, b64encode_str
from .errors import (
    AccountNotFoundError,
    ConfigurationUnavailableError,
    NetworkError,
    RpcResponseError,
    TransactionRejectedError,
)

logger = logging.getLogger(__name__)

# Ordered weakest to strongest
COMMITMENT_LEVELS = ("processed", "confirmed", "finalized")
DEFAULT_COMMITMENT = "confirmed"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class LedgerAccount:
    """
    An account record as returned by getAccountInfo.

    Attributes:
        lamports: Balance in lamports
        owner: Owning program id
        executable: Whether the account holds a deployed program
        data: Raw account data
        rent_epoch: Next epoch rent is due
    """
    lamports: int
    owner: Pubkey
    executable: bool
    data: bytes
    rent_epoch: int = 0

    @classmethod
    def from_rpc(cls, value: Any) -> "LedgerAccount":
        if not isinstance(value, dict):
            raise NetworkError("Malformed account in RPC response")
        data_field = value.get("data") or ["", "base64"]
        if not isinstance(data_field, list) or len(data_field) != 2:
            raise NetworkError("Malformed account data in RPC response")
        encoded, encoding = data_field
        if encoding != "base64":
            raise NetworkError(f"Unexpected account data encoding: {encoding}")
        try:
            return cls(
                lamports=int(value["lamports"]),
                owner=Pubkey.from_string(value["owner"]),
                executable=bool(value["executable"]),
                data=b64decode_str(encoded),
                rent_epoch=int(value.get("rentEpoch") or 0),
            )
        except Exception as exc:
            raise NetworkError(f"Malformed account in RPC response: {exc}") from exc


def _context_value(method: str, result: Any) -> Any:
    """Unwrap ``{"context": ..., "value": ...}``; the value itself may be null."""
    if not isinstance(result, dict) or "value" not in result:
        raise NetworkError(f"{method} returned a malformed result: {result!r}")
    return result["value"]


def _as_int(method: str, result: Any) -> int:
    if isinstance(result, bool) or not isinstance(result, int):
        raise NetworkError(f"{method} returned a non-integer result: {result!r}")
    return result


@dataclass(frozen=True)
class RecentBlockhash:
    blockhash: Hash
    last_valid_block_height: int


class RpcClient:
    """
    Blocking JSON-RPC session against a single node.

    One ``httpx.Client`` is opened per RpcClient and reused for every call.
    ``transport`` lets callers substitute an in-process node.
    """

    def __init__(
        self,
        url: str,
        commitment: str = DEFAULT_COMMITMENT,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if commitment not in COMMITMENT_LEVELS:
            raise ConfigurationUnavailableError(f"Unknown commitment level: {commitment}")
        try:
            parsed = httpx.URL(url)
        except (httpx.InvalidURL, TypeError) as exc:
            raise NetworkError(f"Malformed RPC URL {url!r}: {exc}") from exc
        if parsed.scheme not in ("http", "https") or not parsed.host:
            raise NetworkError(f"Malformed RPC URL {url!r}: expected http(s)://host[:port]")

        self.url = url
        self.commitment = commitment
        self._http = httpx.Client(timeout=timeout, transport=transport)
        self._request_id = 0

    def close(self) -> None:
        self._http.close()

    def call(self, method: str, params: Optional[list] = None) -> Any:
        """
        Make a JSON-RPC call.

        Args:
            method: RPC method name (e.g., "getAccountInfo")
            params: RPC parameters

        Returns:
            Result field from the RPC response

        Raises:
            NetworkError: If the node is unreachable or the response is malformed
            RpcResponseError: If the node returned a JSON-RPC error object
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params or [],
        }

        try:
            response = self._http.post(self.url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise NetworkError(f"{method} failed: {exc}") from exc
        except ValueError as exc:
            raise NetworkError(f"{method} returned a malformed response: {exc}") from exc

        if not isinstance(data, dict):
            raise NetworkError(f"{method} returned a malformed response")

        if "error" in data:
            error = data["error"]
            if not isinstance(error, dict):
                raise RpcResponseError(code=0, message=str(error))
            code = error.get("code", 0)
            raise RpcResponseError(
                code=code if isinstance(code, int) and not isinstance(code, bool) else 0,
                message=str(error.get("message", "unknown error")),
                data=error.get("data"),
            )

        if "result" not in data:
            raise NetworkError(f"{method} response has neither result nor error")
        return data["result"]

    # ---------------------------------------------------------------------
    # Queries
    # ---------------------------------------------------------------------

    def get_version(self) -> dict[str, Any]:
        result = self.call("getVersion")
        if not isinstance(result, dict):
            raise NetworkError(f"getVersion returned a malformed result: {result!r}")
        return result

    def get_account_info(self, pubkey: Pubkey) -> Optional[LedgerAccount]:
        """
        Look up an account.

        Returns:
            The account, or None if nothing exists at the address
        """
        result = self.call(
            "getAccountInfo",
            [str(pubkey), {"encoding": "base64", "commitment": self.commitment}],
        )
        value = _context_value("getAccountInfo", result)
        if value is None:
            return None
        return LedgerAccount.from_rpc(value)

    def get_account(self, pubkey: Pubkey) -> LedgerAccount:
        """
        Fetch an account that must exist.

        Raises:
            AccountNotFoundError: If nothing exists at the address
        """
        account = self.get_account_info(pubkey)
        if account is None:
            raise AccountNotFoundError(str(pubkey))
        return account

    def get_minimum_balance_for_rent_exemption(self, size: int) -> int:
        result = self.call(
            "getMinimumBalanceForRentExemption",
            [size, {"commitment": self.commitment}],
        )
        return _as_int("getMinimumBalanceForRentExemption", result)

    def get_latest_blockhash(self) -> RecentBlockhash:
        result = self.call("getLatestBlockhash", [{"commitment": self.commitment}])
        value = _context_value("getLatestBlockhash", result)
        try:
            return RecentBlockhash(
                blockhash=Hash.from_string(value["blockhash"]),
                last_valid_block_height=int(value["lastValidBlockHeight"]),
            )
        except Exception as exc:
            raise NetworkError(f"Malformed getLatestBlockhash response: {exc}") from exc

    def get_block_height(self) -> int:
        result = self.call("getBlockHeight", [{"commitment": self.commitment}])
        return _as_int("getBlockHeight", result)

    def get_signature_status(self, signature: str) -> Optional[dict[str, Any]]:
        result = self.call(
            "getSignatureStatuses",
            [[signature], {"searchTransactionHistory": True}],
        )
        statuses = _context_value("getSignatureStatuses", result)
        if not isinstance(statuses, list) or len(statuses) != 1:
            raise NetworkError(f"getSignatureStatuses returned a malformed value: {statuses!r}")
        status = statuses[0]
        if status is not None and not isinstance(status, dict):
            raise NetworkError(f"getSignatureStatuses returned a malformed status: {status!r}")
        return status

    # ---------------------------------------------------------------------
    # Submission
    # ---------------------------------------------------------------------

    def send_raw_transaction(self, raw_tx: bytes) -> str:
        """
        Submit a signed, serialized transaction.

        Returns:
            Transaction signature (base58)

        Raises:
            TransactionRejectedError: If preflight simulation or the node
                                      refused the transaction
        """
        try:
            result = self.call(
                "sendTransaction",
                [
                    b64encode_str(raw_tx),
                    {"encoding": "base64", "preflightCommitment": self.commitment},
                ],
            )
        except RpcResponseError as exc:
            err = exc.data.get("err") if isinstance(exc.data, dict) else None
            raise TransactionRejectedError(exc.message, err=err) from exc
        if not isinstance(result, str) or not result:
            raise NetworkError(f"sendTransaction returned a malformed signature: {result!r}")
        return result

    def confirm_transaction(
        self,
        signature: str,
        last_valid_block_height: int,
        poll_interval: float = 0.5,
    ) -> dict[str, Any]:
        """
        Wait until a signature reaches this client's commitment level.

        Polls until the transaction is confirmed, fails, or its blockhash
        expires. There is no wall-clock timeout: the blockhash validity
        window bounds the wait.

        Returns:
            The signature status dict

        Raises:
            TransactionRejectedError: If the transaction failed or expired
        """
        wanted = COMMITMENT_LEVELS.index(self.commitment)
        while True:
            status = self.get_signature_status(signature)
            if status is not None:
                if status.get("err") is not None:
                    raise TransactionRejectedError(
                        f"Transaction {signature} failed: {status['err']}",
                        err=status["err"],
                        signature=signature,
                    )
                level = status.get("confirmationStatus") or "processed"
                if level in COMMITMENT_LEVELS and COMMITMENT_LEVELS.index(level) >= wanted:
                    return status

            if self.get_block_height() > last_valid_block_height:
                raise TransactionRejectedError(
                    f"Transaction {signature} expired before confirmation "
                    f"(block height passed {last_valid_block_height})",
                    signature=signature,
                )
            logger.debug("waiting for %s to reach %s", signature, self.commitment)
            time.sleep(poll_interval)
