"""Tabular dumps of the topology for verbose runs."""

from __future__ import annotations

from tabulate import tabulate

from netsync.models import Topology
from netsync.sync.update import encode_info


def _flag(value: bool) -> str:
    return "yes" if value else "no"


def device_table(topology: Topology) -> str:
    """One row per device with its recognized interface count."""
    rows = [
        [
            node.ip,
            node.hostname,
            node.vendor,
            device.serial,
            _flag(device.recognized),
            f"{device.recognized_interface_count}/{len(device.interfaces)}",
        ]
        for node, device in topology.iter_devices()
    ]
    return tabulate(rows, headers=["node", "hostname", "vendor", "serial", "recognized", "interfaces"])


def interface_table(topology: Topology, info_fields: list[str]) -> str:
    """One row per interface with the value that an update would write."""
    rows = [
        [
            node.ip,
            device.serial,
            interface.name,
            interface.iid,
            _flag(interface.recognized),
            encode_info(interface.info, info_fields) or "",
        ]
        for node, device, interface in topology.iter_interfaces()
    ]
    return tabulate(rows, headers=["node", "serial", "interface", "iid", "recognized", "info"])
