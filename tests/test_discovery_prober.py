"""Tests for netsync/discovery/prober.py"""

import asyncio

from conftest import FakeSnmpSession, chassis_tables
from netsync.discovery.nodelist import parse_zone_lines
from netsync.discovery.prober import discover, probe_node
from netsync.models import Node, NodeState
from netsync.snmp import oids

CISCO_SCALARS = {oids.OID_SYS_DESCR: "Cisco IOS Software", oids.OID_SYS_OBJECT_ID: "1.3.6.1.4.1.9.1.1208"}
BROCADE_SCALARS = {oids.OID_SYS_DESCR: "Brocade ICX6450", oids.OID_SYS_OBJECT_ID: "1.3.6.1.4.1.1991.1.3.48.2.1"}


def _session(serials, interfaces, scalars=CISCO_SCALARS):
    return FakeSnmpSession(tables=chassis_tables(serials, interfaces), scalars=scalars)


class TestProbeNode:
    """Tests for probing a single node."""

    def test_active_node(self, make_settings, captured_channels):
        """A responsive node gets its vendor, devices and an open session."""
        session = _session({"1": "1a2b3c4d5e6f"}, {1001: "eth1/1/1", 1002: "eth1/1/2"}, BROCADE_SCALARS)
        node = Node(ip="10.0.0.1", hostname="host1")

        result = asyncio.run(probe_node(node, make_settings(), lambda host, snmp: session))

        assert result is session
        assert node.state == NodeState.ACTIVE
        assert node.vendor == "brocade"
        device = node.devices["1A2B3C4D5E6F"]
        assert {i.name: i.iid for i in device.interfaces.values()} == {"eth1/1/1": 1001, "eth1/1/2": 1002}
        assert ("node", "INFO", "10.0.0.1 (host1) 1A2B3C4D5E6F") in captured_channels

    def test_unreachable_node(self, make_settings, captured_channels):
        """No SNMP answer marks the node inactive and closes the session."""
        session = FakeSnmpSession(unreachable=True)
        node = Node(ip="10.0.0.9", hostname="gone")

        assert asyncio.run(probe_node(node, make_settings(), lambda host, snmp: session)) is None
        assert node.state == NodeState.INACTIVE
        assert session.closed is True
        assert ("node", "INFO", "10.0.0.9 (gone) inactive") in captured_channels

    def test_no_serials(self, make_settings, captured_channels):
        """A responsive node without serials is inactive."""
        session = _session({}, {1: "eth1"})
        node = Node(ip="10.0.0.3", hostname="noserial")

        assert asyncio.run(probe_node(node, make_settings(), lambda host, snmp: session)) is None
        assert node.state == NodeState.INACTIVE
        assert node.devices == {}
        assert ("node", "INFO", "10.0.0.3 (noserial) no devices detected") in captured_channels


class TestDiscover:
    """Tests for the discovery driver."""

    ZONE = [
        "host1.example.com. 3600 IN A 10.0.0.1",
        "host2.example.com. 3600 IN A 10.0.0.2",
        "dead.example.com. 3600 IN A 10.0.0.9",
    ]

    def test_counts_and_topology(self, make_settings, session_factory):
        """Active nodes are merged; inactive ones are counted and dropped."""
        sessions = {
            "10.0.0.1": _session({"1": "S1"}, {1: "Gi1/0/1"}),
            "10.0.0.2": _session({"1001": "A1", "2001": "B2"}, {10101: "Gi1/0/1", 20101: "Gi2/0/1"}),
        }
        stack = sessions["10.0.0.2"].tables
        stack[oids.OID_CISCO_PORT_IF_INDEX] = [("1.1", "10101"), ("2.1", "20101")]
        stack[oids.OID_CISCO_PORT_MODULE_INDEX] = [("1.1", "1"), ("2.1", "2")]
        stack[oids.OID_CISCO_MODULE_SERIAL_NUMBER] = [("1", "A1"), ("2", "B2")]

        topology, summary = asyncio.run(
            discover(parse_zone_lines(self.ZONE), make_settings(workers=2), session_factory(sessions))
        )

        assert sorted(topology.nodes) == ["10.0.0.1", "10.0.0.2"]
        assert (summary.nodes, summary.inactive, summary.devices, summary.stacks) == (2, 1, 3, 1)
        assert str(summary) == "2 nodes (1 inactive), 3 devices (1 stack)"
        assert topology.session("10.0.0.1") is sessions["10.0.0.1"]
        assert topology.nodes["10.0.0.1"].zone_record == self.ZONE[0]

    def test_duplicate_serials_are_reported(self, make_settings, session_factory):
        """A serial on two nodes still resolves to the first node."""
        sessions = {
            "10.0.0.1": _session({"1": "SAME"}, {1: "eth1"}),
            "10.0.0.2": _session({"1": "SAME"}, {1: "eth1"}),
        }
        topology, _ = asyncio.run(discover(parse_zone_lines(self.ZONE[:2]), make_settings(), session_factory(sessions)))

        assert topology.duplicate_serials() == {"SAME": ["10.0.0.1", "10.0.0.2"]}
        assert topology.find_device("SAME").node_ip == "10.0.0.1"

    def test_reprobe_resets_recognition(self, make_settings, session_factory):
        """Probing into an existing topology re-applies interfaces and clears flags."""
        sessions = {"10.0.0.1": _session({"1": "S1"}, {1: "Gi1/0/1"})}
        entries = parse_zone_lines(self.ZONE[:1])
        topology, _ = asyncio.run(discover(entries, make_settings(), session_factory(sessions)))
        topology.recognize_device("S1").interfaces["Gi1/0/1"].recognized = True

        topology, summary = asyncio.run(discover(entries, make_settings(), session_factory(sessions), topology))

        device = topology.nodes["10.0.0.1"].devices["S1"]
        assert summary.devices == 1
        assert device.recognized is False
        assert device.interfaces["Gi1/0/1"].recognized is False
