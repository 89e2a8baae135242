from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from footprint.config import settings
from footprint.core.errors import ErrorKind


# Configuration model

@dataclass(frozen=True)
class QueryConfig:
    """
    User input / run configuration for one program query.
    """

    address: str
    cluster: str = settings.DEFAULT_CLUSTER
    page_size: int = settings.ACCOUNT_PAGE_SIZE
    min_size: int = 0                  # 0 = unfiltered
    cpi_limit: int = settings.CPI_SIGNATURE_LIMIT

    def __post_init__(self) -> None:
        if self.cluster not in settings.CLUSTERS:
            raise ValueError(f"Unknown cluster {self.cluster!r}")
        if int(self.page_size) <= 0:
            raise ValueError("page_size must be > 0")
        if int(self.min_size) < 0:
            raise ValueError("min_size must be >= 0")
        if int(self.cpi_limit) <= 0:
            raise ValueError("cpi_limit must be > 0")


# Ledger entities

@dataclass(frozen=True)
class Account:

    address: str
    size_bytes: int
    is_executable: bool
    owner: str
    balance: int                            # lamports
    classification: Optional[str] = None    # set by the special-program resolver


@dataclass(frozen=True)
class CpiEdge:

    caller: str
    callee: str
    involved_accounts: Tuple[str, ...]
    payload: str                            # instruction data as encoded by the ledger
    occurred_at: Optional[datetime]
    signature: str = ""


# Snapshot + pagination

@dataclass(frozen=True)
class Snapshot:
    """
    Full, immutable result of one account listing.

    ``paginated`` is False for special-program results, which are bounded by
    their signature window and always shown whole.
    """

    address: str
    accounts: Tuple[Account, ...]
    total_count: int
    paginated: bool = True
    program_type: Optional[str] = None

    def __post_init__(self) -> None:
        if self.total_count != len(self.accounts):
            raise ValueError(
                f"total_count {self.total_count} != {len(self.accounts)} accounts"
            )

    @classmethod
    def of(cls, address: str, accounts, **kwargs) -> "Snapshot":
        accounts = tuple(accounts)
        return cls(address=address, accounts=accounts, total_count=len(accounts), **kwargs)


@dataclass(frozen=True)
class PaginationWindow:

    snapshot: Snapshot
    page_size: int
    offset: int = 0

    @property
    def end(self) -> int:
        if not self.snapshot.paginated:
            return self.snapshot.total_count
        return min(self.offset + self.page_size, self.snapshot.total_count)

    @property
    def visible_accounts(self) -> Tuple[Account, ...]:
        return self.snapshot.accounts[: self.end]

    @property
    def has_more(self) -> bool:
        if not self.snapshot.paginated:
            return False
        return self.offset + self.page_size < self.snapshot.total_count

    @property
    def total_count(self) -> int:
        return self.snapshot.total_count


# IDL

@dataclass(frozen=True)
class IdlAccount:
    name: str
    is_mut: bool = False


@dataclass(frozen=True)
class IdlInstruction:
    name: str
    accounts: Tuple[IdlAccount, ...] = ()


@dataclass(frozen=True)
class ProgramIdl:
    name: Optional[str]
    version: Optional[str]
    instructions: Tuple[IdlInstruction, ...] = ()


# Aggregate

@dataclass(frozen=True)
class SummaryStep:
    title: str
    description: str


@dataclass(frozen=True)
class AggregateResult:

    address: str
    cluster: str
    window: PaginationWindow
    cpi_edges: Tuple[CpiEdge, ...] = ()
    steps: Tuple[SummaryStep, ...] = ()
    idl: Optional[ProgramIdl] = None
    warnings: Tuple[str, ...] = ()

    @property
    def accounts(self) -> Tuple[Account, ...]:
        return self.window.visible_accounts

    @property
    def has_more(self) -> bool:
        return self.window.has_more

    @property
    def total_accounts(self) -> int:
        return self.window.total_count

    @property
    def program_type(self) -> Optional[str]:
        return self.window.snapshot.program_type


# Session

@dataclass(frozen=True)
class QuerySession:
    """
    State of the single active query session. Replaced wholesale on every
    change; ``error`` holds at most one message for the last failed query
    and ``error_kind`` says which kind of failure it was.
    """

    generation: int = 0
    config: Optional[QueryConfig] = None
    result: Optional[AggregateResult] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
