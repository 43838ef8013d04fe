__all__ = [
    # Configuration
    "Configuration",
    "load_configuration",
    # Service
    "SolanaService",
    "Session",
    "InstanceAccount",
    "execute_application",
    "PipelineResult",
    # RPC
    "RpcClient",
    "LedgerAccount",
    # Derivation / layout
    "SEED",
    "RECORD_SIZE",
    "derive_instance_address",
    "decode_record",
    # Errors
    "ClientError",
    "NotConnectedError",
    "ConfigurationUnavailableError",
    "ProgramNotDeployedError",
    "AccountDerivationError",
    "NetworkError",
    "RpcResponseError",
    "AccountNotFoundError",
    "TransactionRejectedError",
    # Keys
    "parse_keypair",
    "read_keypair_file",
]

from .config import Configuration, load_configuration
from .pneuma.derive import SEED, derive_instance_address
from .pneuma.errors import (
    AccountDerivationError,
    AccountNotFoundError,
    ClientError,
    ConfigurationUnavailableError,
    NetworkError,
    NotConnectedError,
    ProgramNotDeployedError,
    RpcResponseError,
    TransactionRejectedError,
)
from .pneuma.layout import RECORD_SIZE, decode_record
from .pneuma.rpc import LedgerAccount, RpcClient
from .pneuma.service import InstanceAccount, Session, SolanaService
from .sigil.keys import parse_keypair, read_keypair_file
from .theurgy.pipeline import PipelineResult, execute_application
