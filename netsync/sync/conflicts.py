"""Conflict bookkeeping and resolution.

Conflicts found while reconciling are queued in a :class:`ConflictLedger`
that lives for one pass.  :func:`plan_resolutions` turns the ledger and the
remaining unrecognized entities into decisions, and a policy applies them:
:class:`AutoPolicy` keeps what is there, :class:`InteractivePolicy` asks.
"""

from __future__ import annotations

from typing import Iterator, Protocol, Union

from loguru import logger
from pydantic import BaseModel, Field

from netsync.config import Settings
from netsync.models import Device, Record, Topology
from netsync.scribe import note
from netsync.ui import Prompter

DUPLICATE = "duplicate"

InterfaceKey = tuple[str, str, str]
DeviceKey = tuple[str, str]


class ConflictLedger:
    """Conflict bags keyed by ``(node_ip, serial[, interface])``."""

    def __init__(self) -> None:
        self._devices: dict[DeviceKey, dict[str, list[Record]]] = {}
        self._interfaces: dict[InterfaceKey, dict[str, list[Record]]] = {}

    def add_device_conflict(self, device: Device, kind: str, record: Record) -> None:
        bag = self._devices.setdefault((device.node_ip, device.serial), {})
        bag.setdefault(kind, []).append(dict(record))

    def add_interface_conflict(self, device: Device, interface: str, kind: str, record: Record) -> None:
        bag = self._interfaces.setdefault((device.node_ip, device.serial, interface), {})
        bag.setdefault(kind, []).append(dict(record))

    def device_conflicts(self, device: Device) -> dict[str, list[Record]]:
        return self._devices.get((device.node_ip, device.serial), {})

    def interface_conflicts(self, device: Device, interface: str) -> dict[str, list[Record]]:
        return self._interfaces.get((device.node_ip, device.serial, interface), {})

    def pop_device(self, device: Device) -> dict[str, list[Record]]:
        return self._devices.pop((device.node_ip, device.serial), {})

    def pop_interface(self, device: Device, interface: str) -> dict[str, list[Record]]:
        return self._interfaces.pop((device.node_ip, device.serial, interface), {})

    def __len__(self) -> int:
        bags = list(self._devices.values()) + list(self._interfaces.values())
        return sum(len(records) for bag in bags for records in bag.values())

    def clear(self) -> None:
        self._devices.clear()
        self._interfaces.clear()


class Decision(BaseModel):
    node_ip: str
    hostname: str
    serial: str

    @property
    def where(self) -> str:
        return f"{self.serial} at {self.node_ip} ({self.hostname})"


class UnsupportedConflict(Decision):
    kind: str
    record: Record
    interface: str | None = None


class DuplicateRecord(Decision):
    interface: str
    record: Record
    old: str
    new: str


class UnrecognizedInterface(Decision):
    interface: str


class UnrecognizedDevice(Decision):
    interfaces: list[str] = Field(default_factory=list)


AnyDecision = Union[UnsupportedConflict, DuplicateRecord, UnrecognizedInterface, UnrecognizedDevice]


def summarize(prefix: str, values: dict[str, str], fields: list[str]) -> str:
    """``(old) a, b`` style summary of the info fields, in configured order."""
    return prefix + " " + ", ".join(values.get(field, "") for field in fields)


def plan_resolutions(topology: Topology, ledger: ConflictLedger, settings: Settings) -> Iterator[AnyDecision]:
    """Yield pending decisions in sorted node, device, interface order.

    Decisions are produced lazily; each duplicate summary reflects the
    interface as left by the previously applied decision.  The ledger is
    drained as it is walked.
    """
    for node, device in topology.iter_devices():
        base = {"node_ip": node.ip, "hostname": node.hostname, "serial": device.serial}
        if not device.recognized:
            for name in sorted(device.interfaces):
                ledger.pop_interface(device, name)
            ledger.pop_device(device)
            yield UnrecognizedDevice(**base, interfaces=sorted(device.interfaces))
            continue

        for kind, records in sorted(ledger.pop_device(device).items()):
            for record in records:
                yield UnsupportedConflict(**base, kind=kind, record=record)

        for name in sorted(device.interfaces):
            interface = device.interfaces[name]
            if not interface.recognized:
                ledger.pop_interface(device, name)
                yield UnrecognizedInterface(**base, interface=name)
                continue
            for kind, records in sorted(ledger.pop_interface(device, name).items()):
                for record in records:
                    if kind != DUPLICATE:
                        yield UnsupportedConflict(**base, kind=kind, record=record, interface=name)
                        continue
                    yield DuplicateRecord(
                        **base,
                        interface=name,
                        record=record,
                        old=summarize("(old)", interface.info, settings.info_fields),
                        new=summarize("(new)", record, settings.info_fields),
                    )


class ResolutionPolicy(Protocol):
    def apply(self, decision: AnyDecision, topology: Topology, settings: Settings) -> None: ...


def _log_unsupported(decision: UnsupportedConflict) -> None:
    level = "interface" if decision.interface else "device"
    note("general", f"Resolution of an unsupported {level} conflict ({decision.kind}) has been attempted.", "WARNING")


def _log_unrecognized(decision: UnrecognizedInterface | UnrecognizedDevice) -> None:
    message = f"{decision.node_ip} ({decision.hostname}) {decision.serial}"
    if isinstance(decision, UnrecognizedInterface):
        message += f" {decision.interface}"
    note("unrecognized", message)


def _overwrite(topology: Topology, decision: DuplicateRecord, settings: Settings) -> None:
    interface = topology.nodes[decision.node_ip].devices[decision.serial].interfaces[decision.interface]
    for field in settings.info_fields:
        interface.info[field] = decision.record.get(field, "")


class AutoPolicy:
    """Keeps existing values and logs whatever stays unresolved."""

    def apply(self, decision: AnyDecision, topology: Topology, settings: Settings) -> None:
        if isinstance(decision, UnsupportedConflict):
            _log_unsupported(decision)
        elif isinstance(decision, DuplicateRecord):
            logger.info(f"Duplicate interface ({decision.interface}) on {decision.where}, keeping {decision.old}")
        else:
            _log_unrecognized(decision)


class InteractivePolicy:
    """Asks the user; in deep mode unrecognized entities may be initialised."""

    def __init__(self, prompter: Prompter, deep: bool = False):
        self.prompter = prompter
        self.deep = deep

    def apply(self, decision: AnyDecision, topology: Topology, settings: Settings) -> None:
        if isinstance(decision, UnsupportedConflict):
            _log_unsupported(decision)
        elif isinstance(decision, DuplicateRecord):
            message = (
                f"There is more than one entry in the database with information for "
                f"{decision.interface} on {decision.where}."
            )
            if self.prompter.choose(message, [decision.old, decision.new]) == decision.new:
                _overwrite(topology, decision, settings)
        elif isinstance(decision, UnrecognizedInterface):
            if not (self.deep and self._initialize_interface(decision, topology, settings)):
                _log_unrecognized(decision)
        elif not (self.deep and self._initialize_device(decision, topology, settings)):
            _log_unrecognized(decision)

    def _fill(self, device: Device, name: str, hostname: str, settings: Settings) -> None:
        self.prompter.say(f"An interface ({name}) for {device.serial} on {hostname} is missing information.")
        interface = device.interfaces[name]
        interface.info.update(self.prompter.prompt_fields(settings.info_fields))
        interface.recognized = True

    def _initialize_interface(self, decision: UnrecognizedInterface, topology: Topology, settings: Settings) -> bool:
        self.prompter.say(
            f"An unrecognized interface ({decision.interface}) has been detected on {decision.where} "
            f"that is not present in the database."
        )
        if not self.prompter.ask("Would you like to initialize it now?"):
            return False
        device = topology.nodes[decision.node_ip].devices[decision.serial]
        self._fill(device, decision.interface, decision.hostname, settings)
        return True

    def _initialize_device(self, decision: UnrecognizedDevice, topology: Topology, settings: Settings) -> bool:
        self.prompter.say(
            f"An unrecognized device ({decision.serial}) has been detected at {decision.node_ip} "
            f"({decision.hostname}) that is not present in the database."
        )
        if not self.prompter.ask("Would you like to initialize it now?"):
            return False
        device = topology.nodes[decision.node_ip].devices[decision.serial]
        for name in decision.interfaces:
            self._fill(device, name, decision.hostname, settings)
        device.recognized = bool(decision.interfaces)
        return device.recognized


def resolve_conflicts(
    topology: Topology, ledger: ConflictLedger, settings: Settings, policy: ResolutionPolicy
) -> int:
    """Apply ``policy`` to every pending decision; returns how many were handled."""
    handled = 0
    for decision in plan_resolutions(topology, ledger, settings):
        policy.apply(decision, topology, settings)
        handled += 1
    ledger.clear()
    return handled
