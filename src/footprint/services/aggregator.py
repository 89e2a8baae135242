from __future__ import annotations

from collections import OrderedDict
from dataclasses import replace
from typing import Dict, Iterable, Optional, Sequence, Tuple

from footprint.core.models import (
    Account,
    AggregateResult,
    CpiEdge,
    PaginationWindow,
    ProgramIdl,
    SummaryStep,
)

NO_RECENT_ACTIVITY = "No recent activity"

# (upper bound exclusive, label); last bucket is open-ended
SIZE_BUCKETS: Tuple[Tuple[Optional[int], str], ...] = (
    (1000, "< 1KB"),
    (10000, "1KB - 10KB"),
    (100000, "10KB - 100KB"),
    (None, "> 100KB"),
)


def build_steps(address: str, window: PaginationWindow, cpi_edges: Sequence[CpiEdge]) -> Tuple[SummaryStep, ...]:
    visible = window.visible_accounts
    total_size = sum(a.size_bytes for a in visible)

    overview = SummaryStep(
        title="Program Overview",
        description=(
            f"Program {address} owns {window.total_count} account(s); "
            f"{len(cpi_edges)} cross-program invocation(s) observed recently."
        ),
    )
    sizes = SummaryStep(
        title="Account Sizes",
        description=(
            f"{total_size} bytes across the {len(visible)} visible account(s) "
            f"out of {window.total_count} total."
        ),
    )

    latest = latest_activity(cpi_edges)
    activity = SummaryStep(
        title="Latest Activity",
        description=(
            f"Most recent CPI at {latest.isoformat()}" if latest is not None else NO_RECENT_ACTIVITY
        ),
    )
    return (overview, sizes, activity)


def latest_activity(cpi_edges: Iterable[CpiEdge]):
    times = [e.occurred_at for e in cpi_edges if e.occurred_at is not None]
    return max(times) if times else None


def aggregate(
    address: str,
    cluster: str,
    window: PaginationWindow,
    cpi_edges: Sequence[CpiEdge] = (),
    idl: Optional[ProgramIdl] = None,
    warnings: Sequence[str] = (),
) -> AggregateResult:
    edges = tuple(cpi_edges)
    return AggregateResult(
        address=address,
        cluster=cluster,
        window=window,
        cpi_edges=edges,
        steps=build_steps(address, window, edges),
        idl=idl,
        warnings=tuple(warnings),
    )


def with_window(result: AggregateResult, window: PaginationWindow) -> AggregateResult:
    """Same result over a moved window; the steps follow the visible accounts."""
    if window is result.window:
        return result
    return replace(
        result,
        window=window,
        steps=build_steps(result.address, window, result.cpi_edges),
    )


# -------------------------
# Breakdowns
# -------------------------

def size_bucket(size_bytes: int) -> str:
    for upper, label in SIZE_BUCKETS:
        if upper is None or size_bytes < upper:
            return label
    return SIZE_BUCKETS[-1][1]


def size_distribution(accounts: Iterable[Account]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for a in accounts:
        label = size_bucket(a.size_bytes)
        counts[label] = counts.get(label, 0) + 1
    return OrderedDict((label, counts[label]) for _, label in SIZE_BUCKETS if label in counts)


def owner_distribution(accounts: Iterable[Account]) -> Dict[str, int]:
    counts: Dict[str, int] = OrderedDict()
    for a in accounts:
        counts[a.owner] = counts.get(a.owner, 0) + 1
    return counts


def memory_kinds(accounts: Iterable[Account]) -> Dict[str, int]:
    counts = {"program": 0, "data": 0}
    for a in accounts:
        counts["program" if a.is_executable else "data"] += 1
    return counts
