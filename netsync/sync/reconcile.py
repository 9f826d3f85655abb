"""Matching external records against the discovered topology."""

from __future__ import annotations

import re
from typing import Iterable, Protocol

from loguru import logger

from netsync.config import Settings
from netsync.models import Device, IdentifySummary, Record, Topology
from netsync.scribe import note, write_records
from netsync.sync.conflicts import (
    DUPLICATE,
    AutoPolicy,
    ConflictLedger,
    InteractivePolicy,
    resolve_conflicts,
)
from netsync.ui import Prompter


class RecordSource(Protocol):
    def describe(self) -> str: ...

    def fetch(self) -> list[Record]: ...


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _auto_match(device: Device, if_name: str) -> str | None:
    """First interface name (sorted) ending in ``if_name`` after a non-digit."""
    pattern = re.compile(rf"[^0-9]{re.escape(if_name)}$")
    for name in sorted(device.interfaces):
        if pattern.search(name):
            return name
    return None


def cache_row(settings: Settings, serial: str, interface: str, values: Record) -> Record:
    row = {settings.device_field: serial, settings.interface_field: interface}
    for field in settings.info_fields:
        row[field] = values.get(field) or ""
    return row


def synchronize(
    topology: Topology,
    recognized: dict[str, str],
    records: Iterable[Record],
    settings: Settings,
    ledger: ConflictLedger,
    auto_match: bool = False,
    unidentified: list[Record] | None = None,
) -> int:
    """Match records to interfaces; returns the number of new conflicts.

    ``recognized`` caches serial -> node IP across calls.  Records for
    missing interfaces that carry information are appended to
    ``unidentified`` when a list is given.
    """
    conflicts = 0
    for record in records:
        serial = (record.get(settings.device_field) or "").strip().upper()
        if_name = (record.get(settings.interface_field) or "").strip()

        node_ip = recognized.get(serial)
        if node_ip is None:
            found = topology.recognize_device(serial)
            if found is None:
                note("device", f"{serial} unidentified")
                logger.debug(f"{serial} unidentified")
                continue
            node_ip = recognized[serial] = found.node_ip
            note("device", f"{serial} @ {topology.nodes[node_ip].label}")
        device = topology.nodes[node_ip].devices[serial]

        if auto_match and if_name not in device.interfaces:
            match = _auto_match(device, if_name)
            if match is not None:
                logger.debug(f"Matched interface {if_name} to {match} on {serial}")
                if_name = match

        interface = device.interfaces.get(if_name)
        if interface is not None:
            if interface.recognized:
                ledger.add_interface_conflict(device, if_name, DUPLICATE, {**record, settings.interface_field: if_name})
                conflicts += 1
            else:
                interface.recognized = True
                for field in settings.info_fields:
                    interface.info[field] = record.get(field) or ""
            continue

        if all(_is_blank(record.get(field)) for field in settings.info_fields):
            logger.debug(
                f"An unidentified interface ({if_name}) for {topology.device_label(device)} "
                f"contains no information to synchronize and will be ignored."
            )
            continue
        note("device", f"{serial} {if_name} unidentified interface")
        if unidentified is not None:
            unidentified.append(cache_row(settings, serial, if_name, record))
    return conflicts


def reconciled_rows(topology: Topology, settings: Settings) -> list[Record]:
    """Every interface of the topology as a record, for the probe-2 cache."""
    return [
        cache_row(settings, device.serial, interface.name, interface.info)
        for _, device, interface in topology.iter_interfaces()
    ]


def identify(
    topology: Topology,
    source: RecordSource,
    settings: Settings,
    auto_match: bool = False,
    probe_level: int = 0,
    prompter: Prompter | None = None,
) -> IdentifySummary:
    """Fetch records once, reconcile them and resolve the resulting conflicts.

    Without a ``prompter`` (quiet runs) conflicts are resolved automatically.
    At probe level 2 the reconciled and unidentified caches are written.
    """
    records = source.fetch()
    summary = IdentifySummary(records=len(records))
    ledger = ConflictLedger()
    recognized: dict[str, str] = {}
    unidentified: list[Record] | None = [] if probe_level >= 2 else None

    valid = []
    for record in records:
        if _is_blank(record.get(settings.device_field)) or _is_blank(record.get(settings.interface_field)):
            summary.skipped += 1
            continue
        valid.append(record)
    summary.conflicts = synchronize(topology, recognized, valid, settings, ledger, auto_match, unidentified)
    summary.recognized = len(recognized)

    auto = True
    if prompter is not None:
        question = "Do you want to resolve conflicts now" + ("?" if summary.conflicts else " (if any)?")
        auto = not prompter.ask(question)
    policy = AutoPolicy() if auto else InteractivePolicy(prompter, deep=probe_level >= 2)  # type: ignore[arg-type]
    resolve_conflicts(topology, ledger, settings, policy)

    if probe_level >= 2:
        write_records(settings.probe2_cache, settings.cache_fields, reconciled_rows(topology, settings))
        write_records(settings.unidentified_cache, settings.cache_fields, unidentified or [])
    return summary
