from __future__ import annotations

import argparse
import datetime as dt
import sys

from footprint.config import settings
from footprint.core.models import QueryConfig
from footprint.io.output_writer import write_graph_json, write_result_json, write_summary_md
from footprint.services.explorer import ProgramExplorer


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="footprint", description="Program account + CPI explorer (Solana)")
    p.add_argument("--address", required=False, help="Program address to inspect")
    p.add_argument("--cluster", choices=sorted(settings.CLUSTERS), default=settings.DEFAULT_CLUSTER, help="Ledger cluster")
    p.add_argument("--page-size", type=int, default=settings.ACCOUNT_PAGE_SIZE, help="Accounts per page")
    p.add_argument("--min-size", type=int, default=0, help="Only accounts with exactly this data size (0=any)")
    p.add_argument("--cpi-limit", type=int, default=settings.CPI_SIGNATURE_LIMIT, help="Recent transactions scanned for CPIs")
    p.add_argument("--pages", type=int, default=1, help="Number of account pages to load")
    p.add_argument("--out", default="out", help="Output folder")
    return p


def _make_progress_reporter(cfg: QueryConfig):

    def _short_addr(addr: str) -> str:
        if not addr:
            return ""
        if len(addr) <= 12:
            return addr
        return f"{addr[:6]}...{addr[-4:]}"

    def _ts() -> str:
        return dt.datetime.now().strftime("%H:%M:%S")

    def progress(event: str, data: dict) -> None:
        if event == "start":
            print(f"[{_ts()}] Inspecting {_short_addr(cfg.address)} on {cfg.cluster}")
            return
        if event == "accounts_done":
            print(f"[{_ts()}] Accounts: {data['visible']} shown of {data['total']}")
            return
        if event == "cpi_done":
            print(f"[{_ts()}] CPI edges: {data['edges']}")
            return
        if event == "done":
            print(f"[{_ts()}] Done • {data['accounts']} accounts • {data['edges']} CPI edges")
            return
        if event == "error":
            print(f"[{_ts()}] Error: {data.get('message', 'Unknown error')}", file=sys.stderr)

    return progress


def main() -> int:
    args = build_arg_parser().parse_args()

    if not args.address:
        print("Missing --address", file=sys.stderr)
        return 2

    try:
        cfg = QueryConfig(
            address=args.address,
            cluster=args.cluster,
            page_size=args.page_size,
            min_size=args.min_size,
            cpi_limit=args.cpi_limit,
        )
    except ValueError as exc:
        print(f"Invalid arguments: {exc}", file=sys.stderr)
        return 2

    explorer = ProgramExplorer(on_progress=_make_progress_reporter(cfg))
    session = explorer.query(cfg)
    if session.error is not None or session.result is None:
        return 1

    for _ in range(max(0, args.pages - 1)):
        if not session.result.has_more:
            break
        session = explorer.load_more()

    result = session.result
    for w in result.warnings:
        print(f"Warning: {w}", file=sys.stderr)

    # Outputs
    print("Writing outputs...")
    result_path = write_result_json(result, args.out)
    graph_path = write_graph_json(result, args.out)
    summary_path = write_summary_md(result, args.out)

    print(f"Wrote: {result_path}")
    print(f"Wrote: {graph_path}")
    print(f"Wrote: {summary_path}")
    if result.has_more:
        print(f"More accounts available ({len(result.accounts)}/{result.total_accounts}); use --pages to load more.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
