"""Exception hierarchy for netsync."""


class NetsyncError(Exception):
    """Base exception for all netsync errors."""


class ConfigurationError(NetsyncError):
    """Required configuration is missing or inconsistent."""


class IncompatibleSourceError(NetsyncError):
    """The record source does not provide the configured columns."""

    def __init__(self, message: str, missing: list[str] | None = None):
        self.missing = missing or []
        super().__init__(message)


class NodeListError(NetsyncError):
    """The node list could not be read."""


class SnmpError(NetsyncError):
    """An SNMP request failed."""

    def __init__(self, message: str, error_status: str | None = None):
        self.error_status = error_status
        super().__init__(message)
