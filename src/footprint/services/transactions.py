from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import List, Sequence

from footprint.config import settings
from footprint.core.dto import ParsedTransaction, SignatureInfo
from footprint.core.errors import TransactionResolutionError
from footprint.footprint_logging.logger import get_logger
from footprint.ports.ledger_port import LedgerPort

logger = get_logger(__name__)


def _resolve_one(ledger: LedgerPort, signature: str) -> ParsedTransaction:
    try:
        tx = ledger.get_parsed_transaction(signature)
    except Exception as e:
        raise TransactionResolutionError(signature, str(e)) from e
    if tx is None:
        raise TransactionResolutionError(signature, "not available (pruned or unknown)")
    return tx


def _resolve_safe(ledger: LedgerPort, signature: str):
    try:
        return _resolve_one(ledger, signature)
    except TransactionResolutionError as e:
        logger.warning("transaction_skipped", signature=signature, error=str(e))
        return None


def resolve_transactions(
    ledger: LedgerPort,
    signatures: Sequence[SignatureInfo],
    max_workers: int = settings.FETCH_MAX_WORKERS,
) -> List[ParsedTransaction]:
    """
    Fetch the transactions for ``signatures`` concurrently.

    Output keeps the order of ``signatures``; transactions that fail to
    resolve are dropped.
    """
    sigs = [s.signature for s in signatures if s.signature]
    if not sigs:
        return []

    workers = max(1, min(max_workers, len(sigs)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        # map() yields in submission order regardless of completion order
        resolved = list(executor.map(lambda sig: _resolve_safe(ledger, sig), sigs))

    return [tx for tx in resolved if tx is not None]
