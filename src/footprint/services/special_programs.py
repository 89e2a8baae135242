from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from functools import partial
from typing import Callable, Dict, List, Optional

from footprint.config import settings
from footprint.core.errors import AccountLookupError, AccountQueryError
from footprint.core.models import Account
from footprint.footprint_logging.logger import get_logger
from footprint.ports.ledger_port import LedgerPort
from footprint.services.transactions import resolve_transactions

logger = get_logger(__name__)


@dataclass(frozen=True)
class SpecialProgramResult:
    program_type: str
    accounts: List[Account]


Strategy = Callable[..., SpecialProgramResult]


def _collect_addresses(txs) -> List[str]:
    # first-seen order across signatures, then instructions, then account positions
    seen = set()
    out: List[str] = []
    for tx in txs:
        for ix in tx.instructions:
            for key in tx.accounts_of(ix):
                if key in seen:
                    continue
                seen.add(key)
                out.append(key)
    return out


def _lookup(ledger: LedgerPort, account: Account) -> Account:
    try:
        info = ledger.get_account_info(account.address)
    except Exception as e:
        raise AccountLookupError(account.address, str(e)) from e
    if info is None:
        return account
    return replace(account, size_bytes=max(0, int(info.data_len)), balance=max(0, int(info.lamports)))


def _lookup_safe(ledger: LedgerPort, account: Account) -> Account:
    try:
        return _lookup(ledger, account)
    except AccountLookupError as e:
        logger.warning("special_account_lookup_failed", address=account.address, error=str(e))
        return account


def signature_window_strategy(
    ledger: LedgerPort,
    address: str,
    *,
    program_type: str,
    classification: str,
    nominal_size: int,
    signature_limit: int = settings.SPECIAL_PROGRAM_SIGNATURE_LIMIT,
    max_workers: int = settings.FETCH_MAX_WORKERS,
) -> SpecialProgramResult:
    """
    Collects the accounts touched by the program's most recent transactions
    instead of listing everything it owns (which nodes refuse for these ids).
    """
    try:
        signatures = ledger.list_recent_signatures(address, signature_limit)[:signature_limit]
    except Exception as e:
        raise AccountQueryError(f"Failed to fetch recent transactions for {program_type}: {e}") from e

    txs = resolve_transactions(ledger, signatures, max_workers=max_workers)
    nominal = [
        Account(
            address=key,
            size_bytes=nominal_size,
            is_executable=False,
            owner=address,
            balance=0,
            classification=classification,
        )
        for key in _collect_addresses(txs)
    ]

    if nominal:
        workers = max(1, min(max_workers, len(nominal)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            accounts = list(executor.map(lambda a: _lookup_safe(ledger, a), nominal))
    else:
        accounts = []

    logger.info(
        "special_program_resolved",
        address=address,
        program_type=program_type,
        transactions=len(txs),
        accounts=len(accounts),
    )
    return SpecialProgramResult(program_type=program_type, accounts=accounts)


SPECIAL_PROGRAMS: Dict[str, Strategy] = {
    settings.TOKEN_PROGRAM_ID: partial(
        signature_window_strategy,
        program_type="Token Program",
        classification="Token Account",
        nominal_size=settings.TOKEN_ACCOUNT_SIZE,
    ),
    settings.SYSTEM_PROGRAM_ID: partial(
        signature_window_strategy,
        program_type="System Program",
        classification="System Account",
        nominal_size=settings.SYSTEM_ACCOUNT_SIZE,
    ),
    settings.METADATA_PROGRAM_ID: partial(
        signature_window_strategy,
        program_type="Metadata Program",
        classification="Metadata Account",
        nominal_size=settings.METADATA_ACCOUNT_SIZE,
    ),
}


class SpecialProgramResolver:

    def __init__(
        self,
        ledger: LedgerPort,
        strategies: Optional[Dict[str, Strategy]] = None,
        signature_limit: int = settings.SPECIAL_PROGRAM_SIGNATURE_LIMIT,
        max_workers: int = settings.FETCH_MAX_WORKERS,
    ) -> None:
        self.ledger = ledger
        self.strategies = SPECIAL_PROGRAMS if strategies is None else strategies
        self.signature_limit = signature_limit
        self.max_workers = max_workers

    def is_special(self, address: str) -> bool:
        return address in self.strategies

    def resolve(self, address: str) -> Optional[SpecialProgramResult]:
        """None means "not special": use the standard account listing."""
        strategy = self.strategies.get(address)
        if strategy is None:
            return None
        return strategy(
            self.ledger,
            address,
            signature_limit=self.signature_limit,
            max_workers=self.max_workers,
        )
