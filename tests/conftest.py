"""Shared fixtures for the netsync test suite."""

from __future__ import annotations

from collections import deque
from typing import Iterable

import pytest
from loguru import logger

from netsync.config import Settings
from netsync.exceptions import SnmpError
from netsync.models import Node, NodeState, Topology
from netsync.snmp import oids
from netsync.ui import Prompter

# ── fake SNMP ─────────────────────────────────────────────────────────


class FakeSnmpSession:
    """Serves canned walk tables and scalars; records SETs."""

    def __init__(
        self,
        tables: dict[str, list[tuple[str, str]]] | None = None,
        scalars: dict[str, str] | None = None,
        unreachable: bool = False,
        failing_sets: Iterable[str] = (),
    ):
        self.tables = {oid.lstrip("."): rows for oid, rows in (tables or {}).items()}
        self.scalars = {oid.lstrip("."): value for oid, value in (scalars or {}).items()}
        self.unreachable = unreachable
        self.failing_sets = {oid.lstrip(".") for oid in failing_sets}
        self.sets: list[tuple[str, str]] = []
        self.walked: list[str] = []
        self.closed = False

    async def open(self) -> "FakeSnmpSession":
        return self

    def close(self) -> None:
        self.closed = True

    async def get(self, *oid_list: str) -> list[str | None]:
        if self.unreachable:
            raise SnmpError("SNMP error: No SNMP response received before timeout")
        return [self.scalars.get(oid.lstrip(".")) for oid in oid_list]

    async def walk(self, oid: str) -> list[tuple[str, str]]:
        self.walked.append(oid.lstrip("."))
        return list(self.tables.get(oid.lstrip("."), []))

    async def walk_first(self, *oid_list: str) -> tuple[str | None, list[tuple[str, str]]]:
        for oid in oid_list:
            rows = await self.walk(oid)
            if rows:
                return oid, rows
        return None, []

    async def set(self, oid: str, value: str) -> None:
        if oid.lstrip(".") in self.failing_sets:
            raise SnmpError(f"SNMP set {oid}: notWritable", "notWritable")
        self.sets.append((oid.lstrip("."), value))


def chassis_tables(
    serials: dict[str, str],
    interfaces: dict[int, str],
    if_types: dict[int, int] | None = None,
    name_oid: str = oids.OID_IF_NAME,
) -> dict[str, list[tuple[str, str]]]:
    """IF-MIB and ENTITY-MIB tables for ``{entPhysicalIndex: serial}`` chassis."""
    if_types = if_types or {}
    return {
        oids.OID_IF_TYPE: [(str(iid), str(if_types.get(iid, 6))) for iid in interfaces],
        name_oid: [(str(iid), name) for iid, name in interfaces.items()],
        oids.OID_ENT_PHYSICAL_CLASS: [(index, "3") for index in serials],
        oids.OID_ENT_PHYSICAL_SERIAL_NUM: list(serials.items()),
    }


@pytest.fixture()
def fake_session():
    """Factory fixture returning a FakeSnmpSession."""

    def _make(**kwargs):
        return FakeSnmpSession(**kwargs)

    return _make


@pytest.fixture()
def session_factory():
    """Factory fixture mapping IPs to prepared fake sessions (unknown IPs are unreachable)."""

    def _make(sessions: dict[str, FakeSnmpSession]):
        def _factory(host, snmp_settings):
            return sessions.get(host) or FakeSnmpSession(unreachable=True)

        return _factory

    return _make


# ── settings / topology ───────────────────────────────────────────────


@pytest.fixture()
def make_settings(tmp_path):
    """Factory fixture returning Settings with caches and logs below tmp_path."""

    def _make(**overrides):
        defaults = dict(
            device_field="serial",
            interface_field="if",
            info_fields=["note"],
            probe1_cache=tmp_path / "cache" / "dns.txt",
            probe2_cache=tmp_path / "cache" / "db.csv",
            unidentified_cache=tmp_path / "cache" / "unidentified.csv",
            log_dir=tmp_path / "log",
        )
        defaults.update(overrides)
        return Settings(**defaults)

    return _make


@pytest.fixture()
def make_topology():
    """Factory fixture: ``{ip: (hostname, {serial: {iid: ifName}})}`` -> Topology."""

    def _make(layout, sessions=None):
        sessions = sessions or {}
        topology = Topology()
        for ip, (hostname, serial2if2name) in layout.items():
            node = Node(ip=ip, hostname=hostname, vendor="cisco", state=NodeState.ACTIVE)
            node.initialize(serial2if2name)
            topology.add_node(node, sessions.get(ip, FakeSnmpSession()))
        return topology

    return _make


# ── prompts ───────────────────────────────────────────────────────────


class ScriptedPrompter(Prompter):
    """Prompter fed from a list of answers; everything printed is kept."""

    def __init__(self, answers: Iterable[str]):
        self.answers = deque(answers)
        self.prompts: list[str] = []
        self.output: list[str] = []
        super().__init__(input_fn=self._answer, output_fn=self.output.append)

    def _answer(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.answers.popleft()


@pytest.fixture()
def scripted_prompter():
    """Factory fixture returning a ScriptedPrompter."""

    def _make(*answers):
        return ScriptedPrompter(answers)

    return _make


# ── logging ───────────────────────────────────────────────────────────


@pytest.fixture()
def captured_channels():
    """Collect channel records as ``(channel, level, message)`` tuples."""
    records: list[tuple[str, str, str]] = []
    logger.enable("netsync")
    sink_id = logger.add(
        lambda message: records.append(
            (message.record["extra"]["channel"], message.record["level"].name, message.record["message"])
        ),
        filter=lambda record: bool(record["extra"].get("channel")),
        level="DEBUG",
    )
    yield records
    logger.remove(sink_id)
    logger.disable("netsync")
