"""Write reconciled interface information back onto the devices."""

from __future__ import annotations

from loguru import logger

from netsync.config import Settings
from netsync.exceptions import SnmpError
from netsync.models import Topology, UpdateSummary
from netsync.scribe import note
from netsync.snmp.session import resolve_oid

EMPTY = "(empty)"


def encode_info(info: dict[str, str], fields: list[str]) -> str | None:
    """``field:value,...`` in field order, or ``None`` when every value is blank."""
    values = [(field, (info.get(field) or "").strip()) for field in fields]
    if not any(value for _, value in values):
        return None
    return ",".join(f"{field}:{value or EMPTY}" for field, value in values)


async def update(topology: Topology, settings: Settings) -> UpdateSummary:
    """SET the encoded info of every recognized interface at ``<sync_oid>.<iid>``."""
    base_oid = resolve_oid(settings.sync_oid)
    summary = UpdateSummary()
    for node, device in topology.iter_devices():
        if not device.recognized:
            continue
        session = topology.session(node.ip)
        for name in sorted(device.interfaces):
            interface = device.interfaces[name]
            if not interface.recognized:
                continue
            where = f"{node.label} {device.serial} {name} ({interface.iid})"
            value = encode_info(interface.info, settings.info_fields)
            if value is None:
                logger.debug(f"{where} has nothing to write")
                summary.skipped += 1
                continue
            if session is None:
                error = "no SNMP session"
            else:
                try:
                    await session.set(f"{base_oid}.{interface.iid}", value)
                    error = None
                except SnmpError as e:
                    error = str(e)
            if error is None:
                note("update", f"{where} {value}")
                summary.successful += 1
            else:
                note("update", f"{where} error: {error}", "WARNING")
                summary.failed += 1
                summary.errors.append(f"{where}: {error}")
    return summary
