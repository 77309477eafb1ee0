"""Workbook persistence for statement data."""

from statement_planner.storage.workbook_store import (
    Snapshot,
    StoreResult,
    WorkbookStore,
    refresh_all,
)

__all__ = [
    "Snapshot",
    "StoreResult",
    "WorkbookStore",
    "refresh_all",
]
