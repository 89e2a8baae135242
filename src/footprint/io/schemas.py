from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

from footprint.config import settings
from footprint.core.models import AggregateResult, ProgramIdl
from footprint.services.aggregator import memory_kinds, owner_distribution, size_distribution


def _dec_to_str(x: Decimal) -> str:
    # keep as string for JSON precision safety
    return format(x, "f")


def lamports_to_sol(lamports: int) -> Decimal:
    return Decimal(int(lamports)) / settings.LAMPORTS_PER_SOL


def short(addr: str) -> str:
    return addr if len(addr) <= 12 else f"{addr[:8]}..."


def idl_to_dict(idl: Optional[ProgramIdl]) -> Optional[Dict[str, Any]]:
    if idl is None:
        return None
    return {
        "name": idl.name,
        "version": idl.version,
        "instructions": [
            {
                "name": ix.name,
                "accounts": [{"name": a.name, "is_mut": a.is_mut} for a in ix.accounts],
            }
            for ix in idl.instructions
        ],
    }


def result_to_dict(r: AggregateResult) -> Dict[str, Any]:
    visible = r.accounts
    return {
        "address": r.address,
        "cluster": r.cluster,
        "program_type": r.program_type,
        "total_accounts": r.total_accounts,
        "has_more": r.has_more,
        "accounts": [
            {
                "address": a.address,
                "size_bytes": a.size_bytes,
                "is_executable": a.is_executable,
                "owner": a.owner,
                "balance_lamports": a.balance,
                "balance_sol": _dec_to_str(lamports_to_sol(a.balance)),
                "classification": a.classification,
            }
            for a in visible
        ],
        "cpi_edges": [
            {
                "caller": e.caller,
                "callee": e.callee,
                "involved_accounts": list(e.involved_accounts),
                "payload": e.payload,
                "occurred_at": e.occurred_at.isoformat() if e.occurred_at is not None else None,
                "signature": e.signature,
            }
            for e in r.cpi_edges
        ],
        "steps": [{"title": s.title, "description": s.description} for s in r.steps],
        "breakdowns": {
            "size": dict(size_distribution(visible)),
            "owner": dict(owner_distribution(visible)),
            "memory": memory_kinds(visible),
        },
        "idl": idl_to_dict(r.idl),
        "warnings": list(r.warnings),
    }


def graph_to_dict(r: AggregateResult) -> Dict[str, Any]:
    """Nodes/links for a force-directed view of the program, its accounts and its CPIs."""
    nodes: List[Dict[str, Any]] = [{"id": r.address, "name": "Main Program", "kind": "program"}]
    links: List[Dict[str, Any]] = []
    seen = {r.address}

    for i, a in enumerate(r.accounts, start=1):
        if a.address not in seen:
            seen.add(a.address)
            nodes.append({"id": a.address, "name": f"Account {i}", "kind": "account", "size": a.size_bytes})
        links.append({"source": r.address, "target": a.address, "type": "owns"})

    for e in r.cpi_edges:
        for addr, kind in ((e.caller, "caller"), (e.callee, "cpi_program")):
            if addr in seen:
                continue
            seen.add(addr)
            label = f"CPI Program: {short(addr)}" if kind == "cpi_program" else short(addr)
            nodes.append({"id": addr, "name": label, "kind": kind})
        links.append({"source": e.caller, "target": e.callee, "type": "cpi"})

    return {"nodes": nodes, "links": links}
