from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional

from footprint.config import settings
from footprint.core.addresses import validate_address
from footprint.core.errors import AccountQueryError, ErrorKind, FootprintError, error_kind
from footprint.core.models import AggregateResult, PaginationWindow, QueryConfig, QuerySession, Snapshot
from footprint.footprint_logging.logger import bind_program, get_logger
from footprint.ports.ledger_port import LedgerPort
from footprint.services.aggregator import aggregate, with_window
from footprint.services.cpi_extractor import CpiExtractor
from footprint.services.idl_fetcher import IdlFetcher
from footprint.services.pagination import advance, open_window
from footprint.services.snapshot_builder import AccountSnapshotBuilder
from footprint.services.special_programs import SpecialProgramResolver

logger = get_logger(__name__)

ProgressFn = Callable[[str, dict], None]


@dataclass(frozen=True)
class QueryTicket:
    generation: int
    config: QueryConfig


@dataclass(frozen=True)
class QueryOutcome:
    generation: int
    config: QueryConfig
    result: Optional[AggregateResult] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None


def _default_ledger(cluster: str) -> LedgerPort:
    from footprint.adapters.ledger.solana_rpc_adapter import SolanaRpcAdapter

    return SolanaRpcAdapter(cluster=cluster)


class ProgramExplorer:
    """
    Owns the single active query session for one program at a time.

    - Accounts (special-program bypass or full listing), CPI edges and the
      IDL are fetched concurrently and joined into one AggregateResult
    - Accounts are mandatory; CPI and IDL failures only add warnings
    - Last query wins: completions from an older generation are dropped
    - ``load_more`` only moves the pagination window over the snapshot

    ``begin``/``commit``/``load_more`` are meant to be called from one thread;
    ``execute`` may run anywhere.
    """

    def __init__(
        self,
        ledger_factory: Callable[[str], LedgerPort] = _default_ledger,
        max_workers: int = settings.FETCH_MAX_WORKERS,
        special_signature_limit: int = settings.SPECIAL_PROGRAM_SIGNATURE_LIMIT,
        on_progress: Optional[ProgressFn] = None,
    ) -> None:
        self._ledger_factory = ledger_factory
        self._ledgers: Dict[str, LedgerPort] = {}
        self.max_workers = max_workers
        self.special_signature_limit = special_signature_limit
        self._on_progress = on_progress

        self._generation = 0
        self._session = QuerySession()

    @property
    def session(self) -> QuerySession:
        return self._session

    @property
    def generation(self) -> int:
        return self._generation

    # -------------------------
    # Query lifecycle
    # -------------------------

    def begin(self, cfg: QueryConfig) -> QueryTicket:
        self._generation += 1
        # previous result stays visible; only the error channel is reset
        self._session = replace(self._session, generation=self._generation, error=None, error_kind=None)
        logger.info("query_started", address=cfg.address, cluster=cfg.cluster, generation=self._generation)
        return QueryTicket(generation=self._generation, config=cfg)

    def execute(self, ticket: QueryTicket) -> QueryOutcome:
        cfg = ticket.config
        self._emit("start", {"address": cfg.address, "cluster": cfg.cluster})

        try:
            address = validate_address(cfg.address)
        except FootprintError as e:
            return self._failed(ticket, e)

        log = bind_program(address)
        ledger = self._ledger(cfg.cluster)

        # leaving the block joins all three paths, so no fetch outlives the query
        with ThreadPoolExecutor(max_workers=3) as executor:
            accounts_f = executor.submit(self._account_window, ledger, address, cfg)
            cpi_f = executor.submit(CpiExtractor(ledger, self.max_workers).extract, address, cfg.cpi_limit)
            idl_f = executor.submit(IdlFetcher(ledger).fetch, address)

            try:
                window = accounts_f.result()
            except FootprintError as e:
                return self._failed(ticket, e)
            except Exception as e:
                log.exception("account_path_crashed", error=str(e))
                return self._failed(ticket, AccountQueryError(f"Failed to fetch accounts: {e}"))
            self._emit("accounts_done", {"total": window.total_count, "visible": len(window.visible_accounts)})

            warnings: List[str] = []
            edges = self._soft_result(cpi_f, "CPI history", warnings) or []
            self._emit("cpi_done", {"edges": len(edges)})
            idl = self._soft_result(idl_f, "IDL", warnings)

        result = aggregate(address, cfg.cluster, window, edges, idl=idl, warnings=warnings)
        self._emit("done", {"accounts": result.total_accounts, "edges": len(result.cpi_edges)})
        return QueryOutcome(generation=ticket.generation, config=cfg, result=result)

    def commit(self, outcome: QueryOutcome) -> bool:
        if outcome.generation != self._generation:
            logger.info(
                "stale_query_discarded",
                generation=outcome.generation,
                current_generation=self._generation,
            )
            return False

        if outcome.error is not None:
            # keep whatever was displayed before; replace the single error message
            self._session = replace(self._session, error=outcome.error, error_kind=outcome.error_kind)
        else:
            self._session = QuerySession(
                generation=outcome.generation,
                config=outcome.config,
                result=outcome.result,
                error=None,
            )
        return True

    def query(self, cfg: QueryConfig) -> QuerySession:
        self.commit(self.execute(self.begin(cfg)))
        return self._session

    def load_more(self) -> QuerySession:
        result = self._session.result
        if result is None:
            return self._session
        window = advance(result.window)
        if window is result.window:
            return self._session
        self._session = replace(self._session, result=with_window(result, window))
        logger.info(
            "window_advanced",
            address=result.address,
            offset=window.offset,
            visible=len(window.visible_accounts),
            has_more=window.has_more,
        )
        return self._session

    # -------------------------
    # Helpers
    # -------------------------

    def _ledger(self, cluster: str) -> LedgerPort:
        if cluster not in self._ledgers:
            self._ledgers[cluster] = self._ledger_factory(cluster)
        return self._ledgers[cluster]

    def _account_window(self, ledger: LedgerPort, address: str, cfg: QueryConfig) -> PaginationWindow:
        resolver = SpecialProgramResolver(
            ledger,
            signature_limit=self.special_signature_limit,
            max_workers=self.max_workers,
        )
        special = resolver.resolve(address)
        if special is not None:
            snapshot = Snapshot.of(
                address,
                special.accounts,
                paginated=False,
                program_type=special.program_type,
            )
        else:
            snapshot = AccountSnapshotBuilder(ledger).build(address, cfg.min_size)
        return open_window(snapshot, cfg.page_size)

    def _soft_result(self, fut: Future, label: str, warnings: List[str]):
        try:
            return fut.result()
        except Exception as e:
            message = f"{label} unavailable: {e}"
            logger.warning("supplementary_fetch_failed", source=label, error=str(e))
            warnings.append(message)
            return None

    def _failed(self, ticket: QueryTicket, exc: Exception) -> QueryOutcome:
        message = str(exc)
        kind = error_kind(exc)
        logger.error(
            "query_failed",
            address=ticket.config.address,
            generation=ticket.generation,
            error=message,
            kind=kind.value,
        )
        self._emit("error", {"message": message, "kind": kind.value})
        return QueryOutcome(
            generation=ticket.generation,
            config=ticket.config,
            error=message,
            error_kind=kind,
        )

    def _emit(self, event: str, data: dict) -> None:
        if self._on_progress is not None:
            self._on_progress(event, data)
