"""
Error taxonomy for the solclient protocol layer.

Every failure surfaced to callers is a ``ClientError`` subclass so the
CLI (and library users) can branch on the kind of failure instead of
parsing messages.
"""

from __future__ import annotations

from typing import Any, Optional


class ClientError(RuntimeError):
    exit_code: int = 1


class NotConnectedError(ClientError):
    pass


class ConfigurationUnavailableError(ClientError):
    pass


class ProgramNotDeployedError(ClientError):
    pass


class AccountDerivationError(ClientError):
    pass


class NetworkError(ClientError):
    pass


class RpcResponseError(NetworkError):
    """JSON-RPC ``error`` object returned by the node."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message
        self.data = data


class AccountNotFoundError(NetworkError):
    def __init__(self, address: str) -> None:
        super().__init__(f"Account not found: {address}")
        self.address = address


# SystemError::AccountAlreadyInUse
_ACCOUNT_IN_USE = {"Custom": 0}


class TransactionRejectedError(ClientError):
    """
    The network (or the local signer) refused a transaction.

    ``err`` holds the raw transaction error object reported by the node
    (e.g. ``{"InstructionError": [0, {"Custom": 0}]}``) when there is one.
    """

    def __init__(self, message: str, err: Any = None, signature: Optional[str] = None) -> None:
        super().__init__(message)
        self.err = err
        self.signature = signature

    def is_account_in_use(self, instruction_index: int = 0) -> bool:
        """True if the given instruction failed because its target account already exists."""
        if not isinstance(self.err, dict):
            return False
        failure = self.err.get("InstructionError")
        if not isinstance(failure, (list, tuple)) or len(failure) != 2:
            return False
        return failure[0] == instruction_index and failure[1] == _ACCOUNT_IN_USE
