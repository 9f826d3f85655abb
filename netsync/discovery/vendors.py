"""Vendor registry and per-vendor interface/serial resolution.

A resolver turns an open SNMP session into ``{serial: {iid: ifName}}``.
The generic part (candidate interfaces, ENTITY-MIB serials, single-chassis
assembly) is shared; vendors only differ in their proprietary serial OIDs
and in how a stack maps interfaces onto member serials.
"""

from __future__ import annotations

import re
from typing import Any, Callable

from netsync.discovery._util import _is_clean_serial
from netsync.scribe import note
from netsync.snmp import oids

# {serial: {iid: ifName}}
SerialMap = dict[str, dict[int, str]]

_ENTERPRISE_VENDORS = {9: "cisco", 1991: "brocade", 11: "hp"}
_DESCR_KEYWORDS = (
    ("cisco", "cisco"),
    ("brocade", "brocade"),
    ("foundry", "foundry"),
    ("procurve", "hp"),
    ("hewlett", "hp"),
    ("hp ", "hp"),
)
_ENTERPRISES_PREFIX = (1, 3, 6, 1, 4, 1)

# Brocade port descriptions: <unit>/<module>/<port>
_BROCADE_PORT = re.compile(r"^(\d+)(/\d+)+$")


def vendor_from_sysobjectid(sys_object_id: str | None, sys_descr: str | None = None) -> str:
    """Derive the vendor tag from the sysObjectID enterprise, falling back to sysDescr."""
    if sys_object_id:
        parts = tuple(int(p) for p in sys_object_id.strip(".").split(".") if p.isdigit())
        if parts[: len(_ENTERPRISES_PREFIX)] == _ENTERPRISES_PREFIX and len(parts) > len(_ENTERPRISES_PREFIX):
            vendor = _ENTERPRISE_VENDORS.get(parts[len(_ENTERPRISES_PREFIX)])
            if vendor:
                return vendor
    descr = (sys_descr or "").lower()
    for keyword, vendor in _DESCR_KEYWORDS:
        if keyword in descr:
            return vendor
    return "unknown"


class VendorResolver:
    """Generic resolver; subclasses supply the vendor-specific pieces."""

    serial_oids: tuple[str, ...] = ()

    def __init__(self, vendor: str):
        self.vendor = vendor

    async def interfaces(self, session: Any) -> dict[int, str]:
        """Candidate interfaces ``{iid: name}`` with non-data ifTypes removed."""
        types = dict(await session.walk(oids.OID_IF_TYPE))
        _, name_rows = await session.walk_first(oids.OID_IF_NAME, oids.OID_IF_DESCR)
        names = dict(name_rows)

        if2name: dict[int, str] = {}
        for suffix, type_value in types.items():
            name = names.get(suffix)
            if name is None or not suffix.isdigit() or not type_value.isdigit():
                note("general", f"Malformed IF-MIB results have been received (ifIndex {suffix})", "WARNING")
                continue
            if_type = int(type_value)
            if if_type in oids.IGNORED_IF_TYPES:
                continue
            if if_type != oids.IF_TYPE_ETHERNET_CSMACD:
                note("general", f"A foreign ifType ({if_type}) has been encountered on interface {name}")
            if2name[int(suffix)] = name
        return if2name

    async def serials(self, session: Any) -> list[str]:
        """Chassis serials from ENTITY-MIB, else from the vendor's own OIDs."""
        found: list[str] = []
        serial_rows = await session.walk(oids.OID_ENT_PHYSICAL_SERIAL_NUM)
        if serial_rows:
            classes = dict(await session.walk(oids.OID_ENT_PHYSICAL_CLASS))
            for suffix, serial in serial_rows:
                if classes.get(suffix) == str(oids.ENT_PHYSICAL_CLASS_CHASSIS) and _is_clean_serial(serial):
                    found.append(serial.strip())
        if not found:
            found = [serial.strip() for serial in await self.fallback_serials(session) if _is_clean_serial(serial)]

        unique: dict[str, str] = {}
        for serial in found:
            unique.setdefault(serial.upper(), serial)
        return list(unique.values())

    async def fallback_serials(self, session: Any) -> list[str]:
        _, rows = await session.walk_first(*self.serial_oids)
        return [value for _, value in rows]

    async def stack_join(self, session: Any) -> dict[int, str]:
        """Map each ifIndex of a stack to its member serial."""
        note("general", f"Interface mapping attempted on an unsupported device vendor ({self.vendor})", "WARNING")
        return {}

    async def resolve(self, session: Any) -> SerialMap | None:
        if2name = await self.interfaces(session)
        serials = await self.serials(session)
        if not serials:
            note("general", f"No serials could be found for a {self.vendor} device.", "WARNING")
            return None
        if len(serials) == 1:
            return {serials[0]: if2name}

        result: SerialMap = {}
        for iid, serial in sorted((await self.stack_join(session)).items()):
            if iid not in if2name or not _is_clean_serial(serial):
                continue
            result.setdefault(serial.strip(), {})[iid] = if2name[iid]
        return result


_VENDOR_REGISTRY: dict[str, type[VendorResolver]] = {}


def register_vendor(*names: str) -> Callable[[type[VendorResolver]], type[VendorResolver]]:
    """Decorator to register a resolver class under one or more vendor tags.

    Usage::

        @register_vendor("brocade", "foundry")
        class BrocadeResolver(VendorResolver):
            ...
    """

    def decorator(cls: type[VendorResolver]) -> type[VendorResolver]:
        for name in names:
            _VENDOR_REGISTRY[name.lower()] = cls
        return cls

    return decorator


@register_vendor("unsupported")
class UnsupportedResolver(VendorResolver):
    async def fallback_serials(self, session: Any) -> list[str]:
        note("general", f"Serial retrieval attempted on an unsupported device vendor ({self.vendor})", "WARNING")
        return []


@register_vendor("cisco")
class CiscoResolver(VendorResolver):
    serial_oids = (oids.OID_CISCO_MODULE_SERIAL_NUMBER, oids.OID_CISCO_MODULE_SERIAL_NUMBER_STRING)

    async def stack_join(self, session: Any) -> dict[int, str]:
        port2if = await session.walk(oids.OID_CISCO_PORT_IF_INDEX)
        port2module = dict(await session.walk(oids.OID_CISCO_PORT_MODULE_INDEX))
        _, module_rows = await session.walk_first(*self.serial_oids)
        module2serial = dict(module_rows)

        if2serial: dict[int, str] = {}
        for port, if_index in port2if:
            serial = module2serial.get(port2module.get(port, ""))
            if serial is not None and if_index.isdigit():
                if2serial[int(if_index)] = serial
        return if2serial


@register_vendor("brocade", "foundry")
class BrocadeResolver(VendorResolver):
    serial_oids = (oids.OID_BROCADE_CHAS_UNIT_SER_NUM, oids.OID_BROCADE_CHAS_SER_NUM)

    async def stack_join(self, session: Any) -> dict[int, str]:
        port2if = await session.walk(oids.OID_BROCADE_SW_PORT_IF_INDEX)
        port2descr = dict(await session.walk(oids.OID_BROCADE_SW_PORT_DESCR))
        unit2serial = dict(await session.walk(oids.OID_BROCADE_CHAS_UNIT_SER_NUM))

        if2serial: dict[int, str] = {}
        for port, if_index in port2if:
            m = _BROCADE_PORT.match(port2descr.get(port, ""))
            if not m or not if_index.isdigit():
                continue
            serial = unit2serial.get(m.group(1))
            if serial is not None:
                if2serial[int(if_index)] = serial
        return if2serial


@register_vendor("hp")
class HpResolver(VendorResolver):
    serial_oids = (oids.OID_HP_HTTP_MG_SERIAL_NUMBER,)

    async def stack_join(self, session: Any) -> dict[int, str]:
        note("general", "Interface mapping of HP stacks is not supported", "WARNING")
        return {}


def get_resolver(vendor: str) -> VendorResolver:
    """Return the resolver registered for ``vendor``, or the unsupported one."""
    cls = _VENDOR_REGISTRY.get(vendor.lower(), UnsupportedResolver)
    return cls(vendor)


def list_vendors() -> list[str]:
    """Return a sorted list of registered vendor tags."""
    return sorted(_VENDOR_REGISTRY.keys())


async def resolve_device_interfaces(vendor: str, session: Any) -> SerialMap | None:
    """Resolve ``{serial: {iid: ifName}}`` for a node, or ``None`` without serials."""
    return await get_resolver(vendor).resolve(session)
