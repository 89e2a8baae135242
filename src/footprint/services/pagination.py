from __future__ import annotations

from dataclasses import replace
from typing import Optional

from footprint.core.models import PaginationWindow, Snapshot


def open_window(snapshot: Snapshot, page_size: int) -> PaginationWindow:
    if page_size <= 0:
        raise ValueError("page_size must be > 0")
    return PaginationWindow(snapshot=snapshot, page_size=page_size, offset=0)


def advance(window: Optional[PaginationWindow]) -> Optional[PaginationWindow]:
    """
    Extend the window by one page over the same snapshot.

    Returns the given window unchanged when there is nothing left to show
    (or no window at all). Never touches the ledger.
    """
    if window is None or not window.has_more:
        return window
    return replace(window, offset=window.offset + window.page_size)
