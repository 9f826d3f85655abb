"""Node discovery: candidate node lists, vendor resolvers and the prober."""

from netsync.discovery.nodelist import NodeEntry, load_nodes, parse_zone_lines
from netsync.discovery.prober import discover, probe_node
from netsync.discovery.vendors import list_vendors, register_vendor, resolve_device_interfaces

__all__ = [
    "NodeEntry",
    "load_nodes",
    "parse_zone_lines",
    "discover",
    "probe_node",
    "list_vendors",
    "register_vendor",
    "resolve_device_interfaces",
]
