"""Reconciliation of external records with the discovered topology."""

from netsync.sync.conflicts import AutoPolicy, ConflictLedger, InteractivePolicy, plan_resolutions, resolve_conflicts
from netsync.sync.reconcile import identify, synchronize
from netsync.sync.records import CsvRecordSource, SqlRecordSource, open_record_source
from netsync.sync.update import encode_info, update

__all__ = [
    "AutoPolicy",
    "ConflictLedger",
    "InteractivePolicy",
    "plan_resolutions",
    "resolve_conflicts",
    "identify",
    "synchronize",
    "CsvRecordSource",
    "SqlRecordSource",
    "open_record_source",
    "encode_info",
    "update",
]
