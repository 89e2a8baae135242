from __future__ import annotations

from typing import List, Optional

from footprint.core.dto import RawAccount
from footprint.core.errors import AccountQueryError, IndexingExcludedError, RpcError
from footprint.core.models import Account, Snapshot
from footprint.footprint_logging.logger import get_logger
from footprint.ports.ledger_port import LedgerPort

logger = get_logger(__name__)


class AccountSnapshotBuilder:
    """
    Lists every account owned by a program and freezes the result into a
    Snapshot. No retries here; the caller decides whether to query again.
    """

    def __init__(self, ledger: LedgerPort) -> None:
        self.ledger = ledger

    def build(self, address: str, min_size: Optional[int] = None) -> Snapshot:
        data_size = int(min_size) if min_size and int(min_size) > 0 else None

        try:
            rows = self.ledger.list_program_accounts(address, data_size=data_size)
        except RpcError as e:
            if e.excluded_from_index:
                logger.error("account_query_index_excluded", address=address, error=e.message)
                raise IndexingExcludedError(
                    f"{e.message}. This address cannot be listed on this cluster; "
                    "try a different program address or cluster."
                ) from e
            raise AccountQueryError(f"Failed to fetch accounts: {e}") from e
        except Exception as e:
            raise AccountQueryError(f"Failed to fetch accounts: {e}") from e

        accounts = self._normalize(rows)
        logger.info("account_snapshot_built", address=address, total=len(accounts), data_size=data_size)
        return Snapshot.of(address, accounts)

    @staticmethod
    def _normalize(rows: List[RawAccount]) -> List[Account]:
        return [
            Account(
                address=r.pubkey,
                size_bytes=max(0, int(r.data_len)),
                is_executable=bool(r.executable),
                owner=r.owner,
                balance=max(0, int(r.lamports)),
            )
            for r in rows
        ]
