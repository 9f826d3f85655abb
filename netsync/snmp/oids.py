"""OID constants used by discovery and update."""

# ── SNMPv2-MIB ─────────────────────────────────────────────────────────
OID_SYS_DESCR = "1.3.6.1.2.1.1.1.0"
OID_SYS_OBJECT_ID = "1.3.6.1.2.1.1.2.0"

# ── IF-MIB ─────────────────────────────────────────────────────────────
OID_IF_DESCR = "1.3.6.1.2.1.2.2.1.2"
OID_IF_TYPE = "1.3.6.1.2.1.2.2.1.3"
OID_IF_NAME = "1.3.6.1.2.1.31.1.1.1.1"
OID_IF_ALIAS = "1.3.6.1.2.1.31.1.1.1.18"

# ── ENTITY-MIB ─────────────────────────────────────────────────────────
OID_ENT_PHYSICAL_CLASS = "1.3.6.1.2.1.47.1.1.1.1.5"
OID_ENT_PHYSICAL_SERIAL_NUM = "1.3.6.1.2.1.47.1.1.1.1.11"

# ── CISCO-STACK-MIB ────────────────────────────────────────────────────
OID_CISCO_MODULE_SERIAL_NUMBER = "1.3.6.1.4.1.9.5.1.3.1.1.3"
OID_CISCO_MODULE_SERIAL_NUMBER_STRING = "1.3.6.1.4.1.9.5.1.3.1.1.26"
OID_CISCO_PORT_MODULE_INDEX = "1.3.6.1.4.1.9.5.1.4.1.1.1"
OID_CISCO_PORT_IF_INDEX = "1.3.6.1.4.1.9.5.1.4.1.1.11"

# ── FOUNDRY-SN-AGENT-MIB / FOUNDRY-SN-SWITCH-GROUP-MIB ─────────────────
OID_BROCADE_CHAS_SER_NUM = "1.3.6.1.4.1.1991.1.1.1.1.2"
OID_BROCADE_CHAS_UNIT_SER_NUM = "1.3.6.1.4.1.1991.1.1.1.4.1.1.2"
OID_BROCADE_SW_PORT_IF_INDEX = "1.3.6.1.4.1.1991.1.1.3.3.1.1.38"
OID_BROCADE_SW_PORT_DESCR = "1.3.6.1.4.1.1991.1.1.3.3.1.1.39"

# ── HP-httpManageable-MIB ──────────────────────────────────────────────
OID_HP_HTTP_MG_SERIAL_NUMBER = "1.3.6.1.4.1.11.2.36.1.1.2.9"

# ifType values that never carry user data.
IF_TYPE_OTHER = 1
IF_TYPE_ETHERNET_CSMACD = 6
IF_TYPE_SOFTWARE_LOOPBACK = 24
IF_TYPE_PROP_VIRTUAL = 53
IGNORED_IF_TYPES = frozenset({IF_TYPE_OTHER, IF_TYPE_SOFTWARE_LOOPBACK, IF_TYPE_PROP_VIRTUAL})

# entPhysicalClass chassis(3)
ENT_PHYSICAL_CLASS_CHASSIS = 3

# Symbolic names accepted for the write-back target.
SYMBOLIC_OIDS = {
    "ifAlias": OID_IF_ALIAS,
    "ifDescr": OID_IF_DESCR,
    "ifName": OID_IF_NAME,
}
