"""Settings model and INI loader.

The configuration is read once (``load_settings``) into an explicit
:class:`Settings` object that is passed to every stage.
"""

from __future__ import annotations

import configparser
from pathlib import Path
from typing import Literal

from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from netsync.exceptions import ConfigurationError

DEFAULT_CONFIG_FILE = Path("/etc/netsync/netsync.ini")


def _split_list(value: str | list[str]) -> list[str]:
    if isinstance(value, list):
        return [v.strip() for v in value if v.strip()]
    return [part.strip() for part in value.split(",") if part.strip()]


class SnmpSettings(BaseModel):
    version: Literal["1", "2c", "3"] = "2c"
    community: str = "public"
    sec_name: str = "initial"
    sec_level: Literal["noAuthNoPriv", "authNoPriv", "authPriv"] = "noAuthNoPriv"
    auth_proto: str = "MD5"
    auth_pass: str | None = None
    priv_proto: str = "DES"
    priv_pass: str | None = None
    remote_port: int = 161
    timeout: float = 2.0
    retries: int = 1

    @field_validator("version", mode="before")
    @classmethod
    def _normalize_version(cls, value: object) -> object:
        if isinstance(value, (int, str)):
            text = str(value).strip().lower().lstrip("v")
            return {"2": "2c"}.get(text, text)
        return value

    @model_validator(mode="after")
    def _check_v3_secrets(self) -> "SnmpSettings":
        if self.version != "3":
            return self
        if self.sec_level in ("authNoPriv", "authPriv") and not self.auth_pass:
            raise ValueError("SNMPv3 security level requires AuthPass")
        if self.sec_level == "authPriv" and not self.priv_pass:
            raise ValueError("SNMPv3 authPriv requires PrivPass")
        return self


class DbSettings(BaseModel):
    url: str | None = None
    dbms: str | None = None
    server: str | None = None
    port: int | None = None
    database: str | None = None
    username: str | None = None
    password: str | None = None

    def sqlalchemy_url(self) -> str:
        """Return the configured URL, assembling one from the parts if needed."""
        if self.url:
            return self.url
        missing = [name for name in ("dbms", "server", "database") if not getattr(self, name)]
        if missing:
            raise ConfigurationError(f"DB configuration is inadequate (missing: {', '.join(missing)})")
        auth = ""
        if self.username:
            auth = self.username + (f":{self.password}" if self.password else "") + "@"
        port = f":{self.port}" if self.port else ""
        return f"{self.dbms}://{auth}{self.server}{port}/{self.database}"


class DnsSettings(BaseModel):
    domain: str | None = None
    server: str | None = None


class Settings(BaseModel):
    device_field: str
    interface_field: str
    info_fields: list[str]
    table: str | None = None
    sync_oid: str = "ifAlias"
    probe1_cache: Path = Path("/var/cache/netsync/dns.txt")
    probe2_cache: Path = Path("/var/cache/netsync/db.csv")
    unidentified_cache: Path = Path("/var/cache/netsync/unidentified.csv")
    log_dir: Path = Path("/var/log/netsync")
    workers: int = Field(default=16, ge=1)
    snmp: SnmpSettings = Field(default_factory=SnmpSettings)
    db: DbSettings = Field(default_factory=DbSettings)
    dns: DnsSettings = Field(default_factory=DnsSettings)

    @field_validator("info_fields", mode="before")
    @classmethod
    def _parse_info_fields(cls, value: object) -> object:
        if isinstance(value, (str, list)):
            return _split_list(value)
        return value

    @field_validator("info_fields")
    @classmethod
    def _require_info_fields(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("at least one informational field is required")
        return value

    @property
    def cache_fields(self) -> list[str]:
        """Column order of the record caches: device, interface, sorted info fields."""
        return [self.device_field, self.interface_field, *sorted(self.info_fields)]


# INI key -> Settings attribute, per section.
_NETSYNC_KEYS = {
    "devicefield": "device_field",
    "interfacefield": "interface_field",
    "infofields": "info_fields",
    "table": "table",
    "syncoid": "sync_oid",
    "probe1cache": "probe1_cache",
    "probe2cache": "probe2_cache",
    "unidentifiedcache": "unidentified_cache",
    "workers": "workers",
}
_SNMP_KEYS = {
    "version": "version",
    "community": "community",
    "secname": "sec_name",
    "seclevel": "sec_level",
    "authproto": "auth_proto",
    "authpass": "auth_pass",
    "privproto": "priv_proto",
    "privpass": "priv_pass",
    "remoteport": "remote_port",
    "timeout": "timeout",
    "retries": "retries",
}
_DB_KEYS = {
    "url": "url",
    "dbms": "dbms",
    "server": "server",
    "port": "port",
    "database": "database",
    "username": "username",
    "password": "password",
}
_DNS_KEYS = {"domain": "domain", "server": "server"}


def _section(parser: configparser.ConfigParser, name: str, keys: dict[str, str]) -> dict[str, str]:
    if not parser.has_section(name):
        return {}
    values: dict[str, str] = {}
    for key, raw in parser.items(name):
        attr = keys.get(key.lower())
        if attr is None:
            logger.debug(f"Ignoring unknown setting {name}.{key}")
            continue
        if raw.strip():
            values[attr] = raw.strip()
    return values


def settings_from_parser(parser: configparser.ConfigParser) -> Settings:
    """Validate a parsed INI document into :class:`Settings`."""
    data: dict[str, object] = dict(_section(parser, "netsync", _NETSYNC_KEYS))
    data["snmp"] = _section(parser, "SNMP", _SNMP_KEYS)
    data["db"] = _section(parser, "DB", _DB_KEYS)
    data["dns"] = _section(parser, "DNS", _DNS_KEYS)
    if parser.has_option("general", "LogDir"):
        data["log_dir"] = parser.get("general", "LogDir")
    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'settings'}: {err['msg']}" for err in exc.errors()
        )
        raise ConfigurationError(f"configuration is inadequate: {problems}") from exc


def load_settings(path: str | Path = DEFAULT_CONFIG_FILE) -> Settings:
    """Read and validate an INI configuration file."""
    path = Path(path)
    parser = configparser.ConfigParser(interpolation=None)
    parser.optionxform = str  # type: ignore[assignment,method-assign]
    try:
        with path.open(encoding="utf-8") as handle:
            parser.read_file(handle)
    except OSError as exc:
        raise ConfigurationError(f"cannot read configuration file {path}: {exc}") from exc
    except configparser.Error as exc:
        raise ConfigurationError(f"the configuration file {path} is malformed: {exc}") from exc
    logger.debug(f"Loaded configuration from {path}")
    return settings_from_parser(parser)
