"""Async SNMP session bound to one node."""

from __future__ import annotations

import ipaddress
import re
from typing import Any

from loguru import logger

from netsync.config import SnmpSettings
from netsync.exceptions import ConfigurationError, SnmpError
from netsync.snmp.oids import SYMBOLIC_OIDS

# Optional pysnmp import
try:
    from pysnmp.hlapi.asyncio import (
        CommunityData,
        ContextData,
        EndOfMibView,
        NoSuchInstance,
        NoSuchObject,
        ObjectIdentity,
        ObjectType,
        OctetString,
        SnmpEngine,
        Udp6TransportTarget,
        UdpTransportTarget,
        UsmUserData,
        bulk_walk_cmd,
        get_cmd,
        set_cmd,
        usmAesCfb128Protocol,
        usmAesCfb192Protocol,
        usmAesCfb256Protocol,
        usmDESPrivProtocol,
        usmHMAC128SHA224AuthProtocol,
        usmHMAC192SHA256AuthProtocol,
        usmHMAC256SHA384AuthProtocol,
        usmHMAC384SHA512AuthProtocol,
        usmHMACMD5AuthProtocol,
        usmHMACSHAAuthProtocol,
    )

    HAS_PYSNMP = True
except ImportError:
    HAS_PYSNMP = False

_DOTTED_OID = re.compile(r"^\.?\d+(\.\d+)+$")


def resolve_oid(name: str) -> str:
    """Map ``ifAlias`` style names or dotted OIDs to a dotted OID without a leading dot."""
    if name in SYMBOLIC_OIDS:
        return SYMBOLIC_OIDS[name]
    if _DOTTED_OID.match(name):
        return name.lstrip(".")
    raise ConfigurationError(f"unknown OID '{name}' (use a dotted OID or one of {', '.join(SYMBOLIC_OIDS)})")


def render_value(val: Any) -> str:
    """Render an SNMP value as text; octet strings keep their raw bytes detectable."""
    if hasattr(val, "asOctets"):
        return val.asOctets().decode("utf-8", errors="replace")
    if hasattr(val, "asTuple"):
        return ".".join(str(part) for part in val.asTuple())
    try:
        return str(int(val))
    except (TypeError, ValueError):
        return str(val)


def _auth_data(settings: SnmpSettings) -> Any:
    if settings.version in ("1", "2c"):
        return CommunityData(settings.community, mpModel=0 if settings.version == "1" else 1)

    auth_protocols = {
        "MD5": usmHMACMD5AuthProtocol,
        "SHA": usmHMACSHAAuthProtocol,
        "SHA224": usmHMAC128SHA224AuthProtocol,
        "SHA256": usmHMAC192SHA256AuthProtocol,
        "SHA384": usmHMAC256SHA384AuthProtocol,
        "SHA512": usmHMAC384SHA512AuthProtocol,
    }
    priv_protocols = {
        "DES": usmDESPrivProtocol,
        "AES": usmAesCfb128Protocol,
        "AES128": usmAesCfb128Protocol,
        "AES192": usmAesCfb192Protocol,
        "AES256": usmAesCfb256Protocol,
    }
    kwargs: dict[str, Any] = {}
    if settings.sec_level in ("authNoPriv", "authPriv"):
        proto = auth_protocols.get(settings.auth_proto.upper())
        if proto is None:
            raise ConfigurationError(f"unsupported SNMPv3 AuthProto '{settings.auth_proto}'")
        kwargs.update(authKey=settings.auth_pass, authProtocol=proto)
    if settings.sec_level == "authPriv":
        proto = priv_protocols.get(settings.priv_proto.upper())
        if proto is None:
            raise ConfigurationError(f"unsupported SNMPv3 PrivProto '{settings.priv_proto}'")
        kwargs.update(privKey=settings.priv_pass, privProtocol=proto)
    return UsmUserData(settings.sec_name, **kwargs)


class SnmpSession:
    """One SNMP engine, credential set and transport target for a node.

    All reads go through ``walk``/``get`` and return rendered strings;
    ``walk`` yields ``(instance_suffix, value)`` pairs where the suffix is
    the dotted index below the walked column (``"1001"``, ``"1.3"``, ...).
    """

    def __init__(self, host: str, settings: SnmpSettings):
        if not HAS_PYSNMP:
            raise SnmpError("pysnmp is not installed")
        self.host = host
        self.settings = settings
        self._engine: Any = None
        self._auth: Any = None
        self._target: Any = None

    async def open(self) -> "SnmpSession":
        self._engine = SnmpEngine()
        self._auth = _auth_data(self.settings)
        address = (self.host, self.settings.remote_port)
        transport = UdpTransportTarget
        if ipaddress.ip_address(self.host).version == 6:
            transport = Udp6TransportTarget
        self._target = await transport.create(address, timeout=self.settings.timeout, retries=self.settings.retries)
        return self

    def close(self) -> None:
        if self._engine is not None:
            self._engine.close_dispatcher()
            self._engine = None

    async def get(self, *oids: str) -> list[str | None]:
        """GET one or more scalar OIDs; missing instances come back as ``None``."""
        error_indication, error_status, _, var_binds = await get_cmd(
            self._engine,
            self._auth,
            self._target,
            ContextData(),
            *[ObjectType(ObjectIdentity(oid.lstrip("."))) for oid in oids],
            lookupMib=False,
        )
        if error_indication:
            raise SnmpError(f"SNMP error [{self.host}]: {error_indication}")
        if error_status:
            raise SnmpError(f"SNMP error [{self.host}]: {error_status.prettyPrint()}", str(error_status.prettyPrint()))
        values: list[str | None] = []
        for _, val in var_binds:
            if isinstance(val, (NoSuchObject, NoSuchInstance, EndOfMibView)):
                values.append(None)
            else:
                values.append(render_value(val).strip())
        return values

    async def walk(self, oid: str) -> list[tuple[str, str]]:
        """Bulk-walk a column, returning ``(instance_suffix, value)`` pairs with values trimmed."""
        base = tuple(int(part) for part in oid.lstrip(".").split("."))
        results: list[tuple[str, str]] = []
        async for error_indication, error_status, _, var_binds in bulk_walk_cmd(
            self._engine,
            self._auth,
            self._target,
            ContextData(),
            0,
            25,
            ObjectType(ObjectIdentity(oid.lstrip("."))),
            lexicographicMode=False,
            lookupMib=False,
        ):
            if error_indication:
                logger.warning(f"SNMP walk error [{self.host}] on {oid}: {error_indication}")
                break
            if error_status:
                logger.warning(f"SNMP walk error [{self.host}] on {oid}: {error_status.prettyPrint()}")
                break
            for var_bind_oid, val in var_binds:
                if isinstance(val, (NoSuchObject, NoSuchInstance, EndOfMibView)):
                    continue
                full = tuple(int(part) for part in var_bind_oid)
                if full[: len(base)] != base:
                    continue
                suffix = ".".join(str(part) for part in full[len(base) :])
                results.append((suffix, render_value(val).strip()))
        return results

    async def walk_first(self, *oids: str) -> tuple[str | None, list[tuple[str, str]]]:
        """Walk each OID in order and return the first one that yields rows."""
        for oid in oids:
            rows = await self.walk(oid)
            if rows:
                return oid, rows
        return None, []

    async def set(self, oid: str, value: str) -> None:
        """SET an OctetString instance; raises :class:`SnmpError` on failure."""
        error_indication, error_status, error_index, _ = await set_cmd(
            self._engine,
            self._auth,
            self._target,
            ContextData(),
            ObjectType(ObjectIdentity(oid.lstrip(".")), OctetString(value)),
            lookupMib=False,
        )
        if error_indication:
            raise SnmpError(f"SNMP set [{self.host}] {oid}: {error_indication}")
        if error_status:
            status = error_status.prettyPrint()
            raise SnmpError(f"SNMP set [{self.host}] {oid}: {status} at {error_index}", status)
