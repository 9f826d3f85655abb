"""Node probing and the concurrent discovery driver."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Sequence

from loguru import logger

from netsync.config import Settings, SnmpSettings
from netsync.discovery.nodelist import NodeEntry
from netsync.discovery.vendors import resolve_device_interfaces, vendor_from_sysobjectid
from netsync.exceptions import SnmpError
from netsync.models import DiscoverySummary, Node, NodeState, Topology
from netsync.scribe import note
from netsync.snmp.oids import OID_SYS_DESCR, OID_SYS_OBJECT_ID
from netsync.snmp.session import SnmpSession

SessionFactory = Callable[[str, SnmpSettings], Any]


def _deactivate(node: Node, session: Any, reason: str) -> None:
    node.state = NodeState.INACTIVE
    note("node", f"{node.label} {reason}")
    logger.debug(f"{node.label} {reason}")
    session.close()


async def probe_node(node: Node, settings: Settings, session_factory: SessionFactory = SnmpSession) -> Any | None:
    """Probe one node and populate its devices.

    Returns the open session for an active node, ``None`` otherwise (the
    node is then marked inactive and its session closed).
    """
    session = session_factory(node.ip, settings.snmp)
    try:
        await session.open()
        sys_descr, sys_object_id = await session.get(OID_SYS_DESCR, OID_SYS_OBJECT_ID)
    except SnmpError as e:
        logger.debug(f"{node.label}: {e}")
        _deactivate(node, session, "inactive")
        return None
    except Exception as e:
        logger.error(f"SNMP probe failed for {node.label}: {e}")
        _deactivate(node, session, "inactive")
        return None
    if sys_descr is None and sys_object_id is None:
        _deactivate(node, session, "inactive")
        return None

    node.vendor = vendor_from_sysobjectid(sys_object_id, sys_descr)
    try:
        serial2if2name = await resolve_device_interfaces(node.vendor, session)
    except Exception as e:
        logger.error(f"Interface resolution failed for {node.label}: {e}")
        serial2if2name = None
    if not serial2if2name:
        _deactivate(node, session, "no devices detected")
        return None

    serials = node.initialize(serial2if2name)
    node.state = NodeState.ACTIVE
    note("node", f"{node.label} {' '.join(serials)}")
    logger.debug(f"{node.label} ({node.vendor}): {len(serials)} device(s)")
    return session


async def discover(
    entries: Sequence[NodeEntry],
    settings: Settings,
    session_factory: SessionFactory = SnmpSession,
    topology: Topology | None = None,
) -> tuple[Topology, DiscoverySummary]:
    """Probe all candidate nodes concurrently and merge the active ones.

    At most ``settings.workers`` probes run at once; results are merged
    into the topology in input order.
    """
    topology = topology if topology is not None else Topology()
    semaphore = asyncio.Semaphore(settings.workers)

    async def _probe(entry: NodeEntry) -> tuple[Node, Any]:
        node = topology.nodes.get(entry.ip) or Node(ip=entry.ip)
        node.hostname = entry.host
        node.zone_record = entry.line
        async with semaphore:
            session = await probe_node(node, settings, session_factory)
        return node, session

    logger.info(f"Probing {len(entries)} candidate node(s) with {settings.workers} worker(s)...")
    results = await asyncio.gather(*[_probe(entry) for entry in entries], return_exceptions=True)

    summary = DiscoverySummary()
    for entry, result in zip(entries, results):
        if isinstance(result, BaseException):
            logger.error(f"Probe of {entry.ip} failed: {result}")
            topology.drop_node(entry.ip)
            summary.inactive += 1
            continue
        node, session = result
        if session is None:
            topology.drop_node(node.ip)
            summary.inactive += 1
            continue
        topology.add_node(node, session)
        summary.devices += len(node.devices)
        if len(node.devices) > 1:
            summary.stacks += 1
    summary.nodes = len(topology.nodes)

    duplicates = topology.duplicate_serials()
    if duplicates:
        listing = ", ".join(f"{serial} ({', '.join(ips)})" for serial, ips in sorted(duplicates.items()))
        logger.warning(f"Serials reported by more than one node, first node wins: {listing}")
    return topology, summary
