from __future__ import annotations

import json
from pathlib import Path

from footprint.core.models import AggregateResult
from footprint.io.schemas import graph_to_dict, lamports_to_sol, result_to_dict, short
from footprint.services.aggregator import memory_kinds, owner_distribution, size_distribution


def _write_json(payload, out_dir: str, filename: str) -> str:
    p = Path(out_dir)
    p.mkdir(parents=True, exist_ok=True)

    out_path = p / filename
    with out_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)

    return str(out_path)


def write_result_json(result: AggregateResult, out_dir: str, filename: str = "result.json") -> str:
    return _write_json(result_to_dict(result), out_dir, filename)


def write_graph_json(result: AggregateResult, out_dir: str, filename: str = "graph.json") -> str:
    return _write_json(graph_to_dict(result), out_dir, filename)


def write_summary_md(result: AggregateResult, out_dir: str, filename: str = "summary.md") -> str:
    """
    Developer-facing summary of the visible window.
    """
    p = Path(out_dir)
    p.mkdir(parents=True, exist_ok=True)

    out_path = p / filename
    visible = result.accounts

    lines = []
    lines.append("# Program Footprint\n")
    lines.append(f"- Program: **{result.address}**\n")
    lines.append(f"- Cluster: **{result.cluster}**\n")
    if result.program_type:
        lines.append(f"- Program type: **{result.program_type}**\n")
    lines.append(f"- Accounts: **{len(visible)}** shown of **{result.total_accounts}**")
    lines.append(" (more available)\n" if result.has_more else "\n")
    lines.append(f"- CPI edges: **{len(result.cpi_edges)}**\n")
    lines.append("\n")

    lines.append("## Summary\n\n")
    for i, step in enumerate(result.steps, start=1):
        lines.append(f"{i}. **{step.title}**: {step.description}\n")
    lines.append("\n")

    lines.append("## Account Size Distribution\n\n")
    sizes = size_distribution(visible)
    if not sizes:
        lines.append("_No accounts in view._\n\n")
    else:
        for label, count in sizes.items():
            lines.append(f"- **{label}**: {count}\n")
        kinds = memory_kinds(visible)
        lines.append(f"- Program accounts: {kinds['program']} | data accounts: {kinds['data']}\n\n")

    lines.append("## Owners\n\n")
    owners = owner_distribution(visible)
    if not owners:
        lines.append("_No accounts in view._\n\n")
    else:
        for owner, count in owners.items():
            lines.append(f"- {owner}: {count}\n")
        lines.append("\n")

    lines.append("## Largest Accounts\n\n")
    top = sorted(visible, key=lambda a: a.size_bytes, reverse=True)[:15]
    if not top:
        lines.append("_No accounts in view._\n\n")
    else:
        for a in top:
            label = f" | {a.classification}" if a.classification else ""
            lines.append(
                f"- **{a.size_bytes} bytes** | {a.address} "
                f"| {lamports_to_sol(a.balance)} SOL{label}\n"
            )
        lines.append("\n")

    lines.append("## Cross-Program Invocations\n\n")
    if not result.cpi_edges:
        lines.append("_No recent CPI calls found for this program._\n\n")
    else:
        for e in result.cpi_edges:
            when = e.occurred_at.isoformat() if e.occurred_at is not None else "unknown time"
            lines.append(
                f"- {short(e.caller)} -> {short(e.callee)} "
                f"| {len(e.involved_accounts)} account(s) | {when}\n"
            )
        lines.append("\n")

    if result.idl is not None:
        lines.append("## IDL\n\n")
        lines.append(f"- Name: {result.idl.name or 'unknown'} ({result.idl.version or 'unversioned'})\n")
        for ix in result.idl.instructions:
            accounts = ", ".join(f"{a.name} ({'mutable' if a.is_mut else 'readonly'})" for a in ix.accounts)
            lines.append(f"- `{ix.name}`: {accounts or 'no accounts'}\n")
        lines.append("\n")

    if result.warnings:
        lines.append("## Warnings\n\n")
        for w in result.warnings:
            lines.append(f"- {w}\n")
        lines.append("\n")

    lines.append("## Limitations\n\n")
    lines.append("- CPI edges come from a small window of recent transactions only.\n")
    lines.append("- Every inner instruction of a matching transaction is reported, "
                 "even when the program was not its direct invoker.\n")
    lines.append("- Special programs (token, system, metadata) list only accounts "
                 "touched by recent transactions.\n")

    with out_path.open("w", encoding="utf-8") as f:
        f.writelines(lines)

    return str(out_path)
