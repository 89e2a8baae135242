from footprint.ports.ledger_port import LedgerPort
from footprint.core.dto import ParsedTransaction, RawAccount, RawAccountInfo, SignatureInfo
from typing import Dict, Iterable, List, Optional

class StaticLedgerAdapter(LedgerPort):
    """
    In-memory ledger. ``failures`` maps a method name (or "method:key") to an
    exception raised when that call is made.
    """

    def __init__(self,
                 program_accounts: Optional[Dict[str, List[RawAccount]]] = None,
                 signatures: Optional[Dict[str, List[SignatureInfo]]] = None,
                 transactions: Optional[Iterable[ParsedTransaction]] = None,
                 account_infos: Optional[Dict[str, RawAccountInfo]] = None,
                 failures: Optional[Dict[str, Exception]] = None,
                 ):
        self._accounts = program_accounts or {}
        self._signatures = signatures or {}
        self._txs = {t.signature: t for t in (transactions or [])}
        self._infos = account_infos or {}
        self._failures = failures or {}
        self.calls: List[str] = []

    def _record(self, method: str, key: str) -> None:
        self.calls.append(f"{method}:{key}")
        err = self._failures.get(f"{method}:{key}") or self._failures.get(method)
        if err is not None:
            raise err

    def list_program_accounts(self, owner, data_size = None):
        self._record("list_program_accounts", owner)
        items = list(self._accounts.get(owner, []))
        if data_size:
            items = [a for a in items if a.data_len == data_size]
        return items

    def list_recent_signatures(self, address, limit):
        self._record("list_recent_signatures", address)
        return list(self._signatures.get(address, []))[:limit]

    def get_parsed_transaction(self, signature):
        self._record("get_parsed_transaction", signature)
        return self._txs.get(signature)

    def get_account_info(self, address):
        self._record("get_account_info", address)
        return self._infos.get(address)
