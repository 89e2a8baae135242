from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from footprint.config import settings
from footprint.core.dto import ParsedTransaction
from footprint.core.models import CpiEdge
from footprint.footprint_logging.logger import get_logger
from footprint.ports.ledger_port import LedgerPort
from footprint.services.transactions import resolve_transactions

logger = get_logger(__name__)


class CpiExtractor:
    """
    Derives cross-program invocation edges from a program's recent transactions.

    - Window: the ``limit`` most recent signatures referencing the program
    - Every inner instruction with a known program id becomes one edge
    - Caller is the transaction fee payer

    Attribution is approximate: an inner instruction is reported for any
    transaction that mentions the program, even when some other program in
    that transaction was the direct invoker.
    """

    def __init__(self, ledger: LedgerPort, max_workers: int = settings.FETCH_MAX_WORKERS) -> None:
        self.ledger = ledger
        self.max_workers = max_workers

    def extract(self, address: str, limit: int = settings.CPI_SIGNATURE_LIMIT) -> List[CpiEdge]:
        signatures = self.ledger.list_recent_signatures(address, limit)[:limit]
        txs = resolve_transactions(self.ledger, signatures, max_workers=self.max_workers)

        edges: List[CpiEdge] = []
        for tx in txs:
            edges.extend(self._edges_for(tx))

        logger.info(
            "cpi_edges_extracted",
            address=address,
            signatures=len(signatures),
            transactions=len(txs),
            edges=len(edges),
        )
        return edges

    # -------------------------
    # Helpers
    # -------------------------

    def _edges_for(self, tx: ParsedTransaction) -> List[CpiEdge]:
        caller = tx.fee_payer
        if caller is None:
            return []

        occurred_at = self._block_datetime(tx.block_time)
        edges: List[CpiEdge] = []
        for ix in tx.iter_inner():
            callee = tx.program_of(ix)
            if not callee:
                continue
            edges.append(
                CpiEdge(
                    caller=caller,
                    callee=callee,
                    involved_accounts=tx.accounts_of(ix),
                    payload=ix.data,
                    occurred_at=occurred_at,
                    signature=tx.signature,
                )
            )
        return edges

    @staticmethod
    def _block_datetime(block_time: Optional[int]) -> Optional[datetime]:
        if block_time is None:
            return None
        return datetime.fromtimestamp(int(block_time), tz=timezone.utc)
