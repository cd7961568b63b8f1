"""Backup store layer - reads and writes the app's JSON backup files.

This module re-exports the public backup functions for easy importing.
"""

from flashcount.store.backup import (
    BACKUP_VERSION,
    ImportResult,
    Snapshot,
    apply_advance_results,
    dump_backup,
    import_backup,
    load_backup,
    merge_snapshots,
    snapshot_from_payload,
    snapshot_to_payload,
)

__all__ = [
    "BACKUP_VERSION",
    "ImportResult",
    "Snapshot",
    "apply_advance_results",
    "dump_backup",
    "import_backup",
    "load_backup",
    "merge_snapshots",
    "snapshot_from_payload",
    "snapshot_to_payload",
]
