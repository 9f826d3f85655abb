"""Tests for netsync/config.py"""

import configparser
from pathlib import Path

import pytest

from netsync.config import DbSettings, Settings, SnmpSettings, load_settings, settings_from_parser
from netsync.exceptions import ConfigurationError

INI = """\
[general]
LogDir = /tmp/netsync-log

[netsync]
DeviceField = serial
InterfaceField = port
InfoFields = room, jack ,, note
Table = assets
SyncOID = .1.3.6.1.2.1.31.1.1.1.18
Workers = 4
Probe1Cache = /tmp/dns.txt

[SNMP]
Version = 2
Community = s3cret
Timeout = 5
Retries = 0

[DB]
DBMS = postgresql
Server = db.example.com
Port = 5432
Database = cmdb
Username = netsync
Password = pw%with%percent

[DNS]
Domain = example.com
Server = ns1.example.com
"""


def _parser(text: str) -> configparser.ConfigParser:
    parser = configparser.ConfigParser(interpolation=None)
    parser.optionxform = str  # type: ignore[assignment,method-assign]
    parser.read_string(text)
    return parser


class TestLoadSettings:
    """Tests for reading INI files."""

    def test_full_file(self, tmp_path):
        """Every section lands on its settings model."""
        path = tmp_path / "netsync.ini"
        path.write_text(INI)

        settings = load_settings(path)

        assert (settings.device_field, settings.interface_field) == ("serial", "port")
        assert settings.info_fields == ["room", "jack", "note"]
        assert settings.cache_fields == ["serial", "port", "jack", "note", "room"]
        assert settings.table == "assets"
        assert settings.workers == 4
        assert settings.probe1_cache == Path("/tmp/dns.txt")
        assert settings.log_dir == Path("/tmp/netsync-log")
        assert settings.snmp.version == "2c"
        assert (settings.snmp.community, settings.snmp.timeout, settings.snmp.retries) == ("s3cret", 5.0, 0)
        assert settings.db.password == "pw%with%percent"
        assert settings.dns.server == "ns1.example.com"

    def test_missing_file(self, tmp_path):
        """An unreadable file is a configuration error."""
        with pytest.raises(ConfigurationError):
            load_settings(tmp_path / "missing.ini")

    def test_malformed_file(self, tmp_path):
        """Unparseable INI content is a configuration error."""
        path = tmp_path / "broken.ini"
        path.write_text("DeviceField = serial\n")
        with pytest.raises(ConfigurationError, match="malformed"):
            load_settings(path)

    def test_missing_required_fields(self):
        """DeviceField, InterfaceField and InfoFields are mandatory."""
        with pytest.raises(ConfigurationError, match="inadequate") as excinfo:
            settings_from_parser(_parser("[netsync]\nDeviceField = serial\n"))
        assert "interface_field" in str(excinfo.value)

    def test_empty_info_fields(self):
        """A blank InfoFields list is rejected."""
        with pytest.raises(ConfigurationError):
            settings_from_parser(_parser("[netsync]\nDeviceField = s\nInterfaceField = i\nInfoFields = ,\n"))

    def test_defaults(self):
        """Optional settings fall back to their defaults."""
        settings = settings_from_parser(_parser("[netsync]\nDeviceField = s\nInterfaceField = i\nInfoFields = a\n"))
        assert settings.sync_oid == "ifAlias"
        assert settings.workers == 16
        assert settings.snmp == SnmpSettings()
        assert settings.table is None


class TestSnmpSettings:
    """Tests for SNMP credential validation."""

    @pytest.mark.parametrize("raw,expected", [("1", "1"), ("2", "2c"), ("v2c", "2c"), ("3", "3"), (2, "2c")])
    def test_version_normalisation(self, raw, expected):
        """Common spellings map to 1, 2c or 3."""
        assert SnmpSettings(version=raw).version == expected

    def test_v3_auth_requires_passphrase(self):
        """authNoPriv without AuthPass is invalid."""
        with pytest.raises(ValueError):
            SnmpSettings(version="3", sec_level="authNoPriv")

    def test_v3_priv_requires_passphrase(self):
        """authPriv needs both passphrases."""
        with pytest.raises(ValueError):
            SnmpSettings(version="3", sec_level="authPriv", auth_pass="authpass1")
        settings = SnmpSettings(version="3", sec_level="authPriv", auth_pass="authpass1", priv_pass="privpass1")
        assert settings.priv_proto == "DES"

    def test_v3_error_surfaces_as_configuration_error(self):
        """Invalid SNMP sections are reported through settings_from_parser()."""
        text = "[netsync]\nDeviceField = s\nInterfaceField = i\nInfoFields = a\n[SNMP]\nVersion = 3\nSecLevel = authPriv\n"
        with pytest.raises(ConfigurationError, match="snmp"):
            settings_from_parser(_parser(text))


class TestDbSettings:
    """Tests for SQLAlchemy URL assembly."""

    def test_explicit_url_wins(self):
        """Url is used as-is."""
        assert DbSettings(url="sqlite:///x.db", dbms="mysql").sqlalchemy_url() == "sqlite:///x.db"

    def test_assembled_url(self):
        """DBMS, credentials, server, port and database form the URL."""
        db = DbSettings(dbms="postgresql", server="db", port=5432, database="cmdb", username="u", password="p")
        assert db.sqlalchemy_url() == "postgresql://u:p@db:5432/cmdb"

    def test_assembled_url_without_credentials(self):
        """Credentials and port are optional."""
        assert DbSettings(dbms="mysql", server="db", database="cmdb").sqlalchemy_url() == "mysql://db/cmdb"

    def test_incomplete(self):
        """Missing parts are named in the error."""
        with pytest.raises(ConfigurationError, match="server"):
            DbSettings(dbms="mysql", database="cmdb").sqlalchemy_url()


def test_settings_accepts_comma_string():
    """InfoFields may be given as a comma separated string."""
    settings = Settings(device_field="s", interface_field="i", info_fields="b, a")
    assert settings.info_fields == ["b", "a"]
    assert settings.cache_fields == ["s", "i", "a", "b"]
