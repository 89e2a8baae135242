import base64
import itertools
from typing import Any, Dict, List, Optional

import requests

from footprint.config.settings import (
    DEFAULT_CLUSTER,
    RPC_MAX_RETRIES,
    RPC_REQUESTS_PER_SEC,
    RPC_TIMEOUT_SEC,
    cluster_url,
)

from footprint.adapters.ledger.rate_limiter import SimpleRateLimiter, backoff_sleep
from footprint.core.dto import (
    InnerInstructionSet,
    Instruction,
    ParsedTransaction,
    RawAccount,
    RawAccountInfo,
    SignatureInfo,
)
from footprint.core.errors import DataSourceError, RateLimitError, RpcError
from footprint.footprint_logging.logger import get_logger
from footprint.ports.ledger_port import LedgerPort

logger = get_logger(__name__)

_RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class SolanaRpcAdapter(LedgerPort):

    def __init__(
        self,
        cluster: str = DEFAULT_CLUSTER,
        rpc_url: Optional[str] = None,
        timeout_sec: float = RPC_TIMEOUT_SEC,
        max_retries: int = RPC_MAX_RETRIES,
        requests_per_sec: float = RPC_REQUESTS_PER_SEC,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._url = rpc_url or cluster_url(cluster)
        self._timeout = timeout_sec
        self._max_retries = max_retries

        self._rl = SimpleRateLimiter(requests_per_sec)
        self._session = session or requests.Session()
        self._ids = itertools.count(1)

    @property
    def url(self) -> str:
        return self._url

    # ---------- internal ----------

    def _call(self, method: str, params: List[Any]) -> Any:
        body = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }

        last_err: Optional[Exception] = None

        for attempt in range(self._max_retries):
            try:
                self._rl.wait()
                resp = self._session.post(self._url, json=body, timeout=self._timeout)
                if resp.status_code in _RETRYABLE_STATUS:
                    if resp.status_code == 429:
                        raise RateLimitError(f"{method}: HTTP 429")
                    raise DataSourceError(f"{method}: HTTP {resp.status_code}")
                try:
                    resp.raise_for_status()
                except requests.HTTPError as e:
                    # remaining 4xx: the same request fails the same way
                    raise RpcError(resp.status_code, f"{method}: {e}") from e
                data = resp.json()
            except RpcError:
                raise
            except (requests.RequestException, ValueError, DataSourceError) as e:
                last_err = e
                logger.warning("rpc_retry", method=method, attempt=attempt, error=str(e))
                backoff_sleep(attempt)
                continue

            err = data.get("error") if isinstance(data, dict) else None
            if err:
                # node-side errors are deterministic; surface them without retrying
                if isinstance(err, dict):
                    raise RpcError(err.get("code"), str(err.get("message", "")))
                raise RpcError(None, str(err))

            if not isinstance(data, dict) or "result" not in data:
                raise DataSourceError(f"Invalid RPC response for {method}: {data}")
            return data["result"]

        raise DataSourceError(f"{method} failed after retries: {last_err}")

    @staticmethod
    def _data_len(account: Dict[str, Any]) -> int:
        space = account.get("space")
        if isinstance(space, int):
            return space
        data = account.get("data")
        if isinstance(data, list) and data and isinstance(data[0], str):
            return len(base64.b64decode(data[0]))
        return 0

    @staticmethod
    def _data_bytes(account: Dict[str, Any]) -> bytes:
        data = account.get("data")
        if isinstance(data, list) and data and isinstance(data[0], str):
            return base64.b64decode(data[0])
        return b""

    @staticmethod
    def _parse_instruction(raw: Dict[str, Any]) -> Instruction:
        data = raw.get("data") or ""
        if "programIdIndex" in raw:
            return Instruction.compiled(raw["programIdIndex"], raw.get("accounts") or [], data)
        return Instruction.decoded(raw.get("programId") or "", raw.get("accounts") or [], data)

    @staticmethod
    def _account_keys(message: Dict[str, Any], meta: Dict[str, Any]) -> List[str]:
        keys: List[str] = []
        for k in message.get("accountKeys") or []:
            keys.append(k["pubkey"] if isinstance(k, dict) else str(k))
        # v0 messages: keys loaded from lookup tables follow the static keys
        loaded = meta.get("loadedAddresses") or {}
        keys.extend(loaded.get("writable") or [])
        keys.extend(loaded.get("readonly") or [])
        return keys

    # ---------- port methods ----------

    def list_program_accounts(self, owner: str, data_size: Optional[int] = None) -> List[RawAccount]:
        cfg: Dict[str, Any] = {"encoding": "base64"}
        if data_size:
            cfg["filters"] = [{"dataSize": int(data_size)}]

        rows = self._call("getProgramAccounts", [owner, cfg])
        if not isinstance(rows, list):
            raise DataSourceError(f"Invalid getProgramAccounts result: {rows}")

        out: List[RawAccount] = []
        for r in rows:
            acc = r.get("account") or {}
            out.append(
                RawAccount(
                    pubkey=r.get("pubkey", ""),
                    owner=acc.get("owner", ""),
                    data_len=self._data_len(acc),
                    executable=bool(acc.get("executable", False)),
                    lamports=int(acc.get("lamports", 0)),
                )
            )
        return out

    def list_recent_signatures(self, address: str, limit: int) -> List[SignatureInfo]:
        rows = self._call("getSignaturesForAddress", [address, {"limit": int(limit)}])
        if not isinstance(rows, list):
            raise DataSourceError(f"Invalid getSignaturesForAddress result: {rows}")
        return [
            SignatureInfo(
                signature=r.get("signature", ""),
                block_time=r.get("blockTime"),
            )
            for r in rows
        ]

    def get_parsed_transaction(self, signature: str) -> Optional[ParsedTransaction]:
        result = self._call(
            "getTransaction",
            [signature, {"encoding": "json", "maxSupportedTransactionVersion": 0}],
        )
        if not result:
            return None

        tx = result.get("transaction") or {}
        message = tx.get("message") or {}
        meta = result.get("meta") or {}

        inner = tuple(
            InnerInstructionSet(
                index=int(group.get("index", 0)),
                instructions=tuple(self._parse_instruction(ix) for ix in group.get("instructions") or []),
            )
            for group in meta.get("innerInstructions") or []
        )
        signatures = tx.get("signatures") or [signature]

        return ParsedTransaction(
            signature=signatures[0],
            account_keys=tuple(self._account_keys(message, meta)),
            instructions=tuple(self._parse_instruction(ix) for ix in message.get("instructions") or []),
            inner_instructions=inner,
            block_time=result.get("blockTime"),
        )

    def get_account_info(self, address: str) -> Optional[RawAccountInfo]:
        result = self._call("getAccountInfo", [address, {"encoding": "base64"}])
        value = (result or {}).get("value")
        if not value:
            return None
        return RawAccountInfo(
            owner=value.get("owner", ""),
            data_len=self._data_len(value),
            executable=bool(value.get("executable", False)),
            lamports=int(value.get("lamports", 0)),
            data=self._data_bytes(value),
        )
