"""SNMP access layer: OID constants and the per-node async session."""

from netsync.snmp.session import HAS_PYSNMP, SnmpSession, resolve_oid

__all__ = ["HAS_PYSNMP", "SnmpSession", "resolve_oid"]
