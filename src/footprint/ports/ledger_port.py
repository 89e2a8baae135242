from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional
from footprint.core.dto import ParsedTransaction, RawAccount, RawAccountInfo, SignatureInfo

class LedgerPort(ABC):
    """
    Abstract Class for the ledger queries the footprint engine needs.
    """

    # --- Program-owned accounts ---

    @abstractmethod
    def list_program_accounts(self, owner: str, data_size: Optional[int] = None) -> List[RawAccount]:
        """All accounts owned by ``owner``; ``data_size`` keeps only that exact length."""
        raise NotImplementedError

    # --- Recent activity ---

    @abstractmethod
    def list_recent_signatures(self, address: str, limit: int) -> List[SignatureInfo]:
        """Most recent first."""
        raise NotImplementedError

    @abstractmethod
    def get_parsed_transaction(self, signature: str) -> Optional[ParsedTransaction]:
        raise NotImplementedError

    # --- Single account ---

    @abstractmethod
    def get_account_info(self, address: str) -> Optional[RawAccountInfo]:
        raise NotImplementedError
