"""Pydantic models for the discovered topology and per-stage summaries.

The topology is an arena: nodes own devices keyed by serial, devices own
interfaces keyed by name, and the reverse direction is expressed with keys
(``Device.node_ip``, ``Interface.serial``) rather than object references.
SNMP sessions are held next to the nodes, outside the serialisable state.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterator

from pydantic import BaseModel, Field, PrivateAttr, field_validator

# An external record: field name -> raw string value.
Record = dict[str, str]


class NodeState(str, Enum):
    UNPROBED = "unprobed"
    INACTIVE = "inactive"
    ACTIVE = "active"


class Interface(BaseModel):
    name: str
    iid: int
    serial: str
    info: dict[str, str] = Field(default_factory=dict)
    recognized: bool = False


class Device(BaseModel):
    serial: str
    node_ip: str
    recognized: bool = False
    interfaces: dict[str, Interface] = Field(default_factory=dict)

    @field_validator("serial")
    @classmethod
    def _upper_serial(cls, value: str) -> str:
        return value.upper()

    def add_interface(self, name: str, iid: int, fields: dict[str, str] | None = None) -> Interface:
        """Create or refresh an interface.

        Supplied ``fields`` are merged into the info map and mark the
        interface recognized; without them the interface starts unrecognized.
        """
        fields = fields or {}
        interface = self.interfaces.get(name)
        if interface is None:
            interface = Interface(name=name, iid=iid, serial=self.serial)
            self.interfaces[name] = interface
        interface.iid = iid
        interface.info.update(fields)
        interface.recognized = bool(fields)
        return interface

    @property
    def recognized_interface_count(self) -> int:
        return sum(1 for i in self.interfaces.values() if i.recognized)


class Node(BaseModel):
    ip: str
    hostname: str = ""
    vendor: str = ""
    state: NodeState = NodeState.UNPROBED
    zone_record: str = ""
    devices: dict[str, Device] = Field(default_factory=dict)

    def add_device(self, serial: str, if2name: dict[int, str] | None = None) -> Device:
        """Create or merge a device with its interfaces; resets recognition."""
        serial = serial.upper()
        device = self.devices.get(serial)
        if device is None:
            device = Device(serial=serial, node_ip=self.ip)
            self.devices[serial] = device
        for iid, name in (if2name or {}).items():
            device.add_interface(name, iid)
        device.recognized = False
        return device

    def initialize(self, serial2if2name: dict[str, dict[int, str]]) -> list[str]:
        """Populate the node from a resolver result, returning the serials."""
        return [self.add_device(serial, if2name).serial for serial, if2name in serial2if2name.items()]

    @property
    def label(self) -> str:
        return f"{self.ip} ({self.hostname})"


class Topology(BaseModel):
    """All active nodes, keyed by IP address."""

    nodes: dict[str, Node] = Field(default_factory=dict)
    _sessions: dict[str, Any] = PrivateAttr(default_factory=dict)

    def add_node(self, node: Node, session: Any = None) -> Node:
        self.nodes[node.ip] = node
        if session is not None:
            self._sessions[node.ip] = session
        return node

    def drop_node(self, ip: str) -> None:
        self.nodes.pop(ip, None)
        self._sessions.pop(ip, None)

    def session(self, ip: str) -> Any:
        return self._sessions.get(ip)

    def close_sessions(self) -> None:
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()

    def node_of(self, device: Device) -> Node:
        return self.nodes[device.node_ip]

    def find_device(self, serial: str) -> Device | None:
        """Linear scan for a serial; the first node (by IP order) wins."""
        serial = serial.upper()
        for ip in sorted(self.nodes):
            device = self.nodes[ip].devices.get(serial)
            if device is not None:
                return device
        return None

    def recognize_device(self, serial: str) -> Device | None:
        device = self.find_device(serial)
        if device is not None:
            device.recognized = True
        return device

    def duplicate_serials(self) -> dict[str, list[str]]:
        """Serials that appear under more than one node."""
        seen: dict[str, list[str]] = {}
        for ip in sorted(self.nodes):
            for serial in self.nodes[ip].devices:
                seen.setdefault(serial, []).append(ip)
        return {serial: ips for serial, ips in seen.items() if len(ips) > 1}

    def iter_devices(self) -> Iterator[tuple[Node, Device]]:
        for ip in sorted(self.nodes):
            node = self.nodes[ip]
            for serial in sorted(node.devices):
                yield node, node.devices[serial]

    def iter_interfaces(self) -> Iterator[tuple[Node, Device, Interface]]:
        for node, device in self.iter_devices():
            for name in sorted(device.interfaces):
                yield node, device, device.interfaces[name]

    def device_label(self, device: Device) -> str:
        return f"{device.serial} at {self.node_of(device).label}"

    def interface_label(self, interface: Interface, device: Device) -> str:
        return f"{interface.name} ({interface.iid}) on {self.device_label(device)}"


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" + ("" if count == 1 else "s")


class DiscoverySummary(BaseModel):
    nodes: int = 0
    inactive: int = 0
    devices: int = 0
    stacks: int = 0

    def __str__(self) -> str:
        text = _plural(self.nodes, "node")
        if self.inactive:
            text += f" ({self.inactive} inactive)"
        text += ", " + _plural(self.devices, "device")
        if self.stacks:
            text += f" ({_plural(self.stacks, 'stack')})"
        return text


class IdentifySummary(BaseModel):
    records: int = 0
    skipped: int = 0
    recognized: int = 0
    conflicts: int = 0

    def __str__(self) -> str:
        text = f"{self.recognized} recognized"
        if self.conflicts:
            text += f" ({self.conflicts} conflicts)"
        return text


class UpdateSummary(BaseModel):
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[str] = Field(default_factory=list)

    def __str__(self) -> str:
        text = f"{self.successful} successful"
        if self.failed:
            text += f" ({self.failed} failed)"
        return text
