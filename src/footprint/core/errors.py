from enum import Enum
from typing import Optional


class FootprintError(Exception):
    pass


class DataSourceError(FootprintError):
    pass


class RateLimitError(DataSourceError):
    pass


# Substring the RPC node puts in its error when a key is excluded from the
# secondary account index (getProgramAccounts unavailable for that key).
INDEX_EXCLUSION_MARKER = "excluded from account secondary indexes"


class RpcError(DataSourceError):
    """Deterministic node-side failure: a JSON-RPC error object or an HTTP 4xx."""

    def __init__(self, code: Optional[int], message: str) -> None:
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message

    @property
    def excluded_from_index(self) -> bool:
        return INDEX_EXCLUSION_MARKER in self.message.lower()


class InvalidAddressError(FootprintError):
    pass


class AccountQueryError(FootprintError):
    pass


class IndexingExcludedError(AccountQueryError):
    pass


class TransactionResolutionError(FootprintError):
    def __init__(self, signature: str, reason: str) -> None:
        super().__init__(f"Could not resolve transaction {signature}: {reason}")
        self.signature = signature


class AccountLookupError(FootprintError):
    def __init__(self, address: str, reason: str) -> None:
        super().__init__(f"Could not look up account {address}: {reason}")
        self.address = address


class ErrorKind(str, Enum):
    """Caller-facing category of a failed query."""

    INVALID_ADDRESS = "invalid_address"
    INDEXING_EXCLUDED = "indexing_excluded"
    ACCOUNT_QUERY_FAILED = "account_query_failed"


def error_kind(exc: Exception) -> ErrorKind:
    if isinstance(exc, InvalidAddressError):
        return ErrorKind.INVALID_ADDRESS
    if isinstance(exc, IndexingExcludedError):
        return ErrorKind.INDEXING_EXCLUDED
    return ErrorKind.ACCOUNT_QUERY_FAILED
