"""Candidate node lists: zone-transfer style lines from a file, stdin or DNS."""

from __future__ import annotations

import re
import sys
from pathlib import Path
from typing import IO, Iterable

from loguru import logger
from pydantic import BaseModel

from netsync.config import DnsSettings
from netsync.discovery._util import _run_cmd, _validate_ip
from netsync.exceptions import ConfigurationError, NodeListError

# host1.example.com.  3600  IN  A  10.0.0.1
_ZONE_LINE = re.compile(r"^(?P<host>[^.\s]+)\S*\s.*\b(?:A|AAAA)\s+(?P<ip>[0-9A-Fa-f:.]+)")


class NodeEntry(BaseModel):
    host: str
    ip: str
    line: str


def parse_zone_line(line: str) -> NodeEntry | None:
    """Parse one A/AAAA record line, or return ``None`` when it is not one."""
    line = line.rstrip("\r\n")
    m = _ZONE_LINE.match(line)
    if not m or not _validate_ip(m.group("ip")):
        return None
    return NodeEntry(host=m.group("host"), ip=m.group("ip"), line=line)


def parse_zone_lines(lines: Iterable[str]) -> list[NodeEntry]:
    """Keep the first entry per IP address, in input order."""
    entries: dict[str, NodeEntry] = {}
    for line in lines:
        entry = parse_zone_line(line)
        if entry is None:
            continue
        if entry.ip in entries:
            logger.debug(f"Skipping repeated node {entry.ip} ({entry.host})")
            continue
        entries[entry.ip] = entry
    return list(entries.values())


def read_node_list(source: str | Path, stdin: IO[str] | None = None) -> list[str]:
    """Read raw lines from a file path, or from stdin when ``source`` is ``-``."""
    if str(source) == "-":
        return (stdin or sys.stdin).read().splitlines()
    try:
        return Path(source).read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise NodeListError(f"cannot read node list {source}: {exc}") from exc


def host_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a ``-D`` host pattern; ``all`` selects every host label."""
    if pattern == "all":
        pattern = r"[^.]+"
    try:
        return re.compile(rf"^({pattern})\.")
    except re.error as exc:
        raise ConfigurationError(f"invalid host pattern '{pattern}': {exc}") from exc


def zone_transfer(dns: DnsSettings, pattern: str = "all") -> list[str]:
    """Fetch the zone with ``dig axfr`` and keep records whose name matches ``pattern``."""
    if not dns.domain or not dns.server:
        raise ConfigurationError("DNS zone transfers need [DNS] domain and server")
    matcher = host_pattern(pattern)
    logger.info(f"Requesting zone transfer of {dns.domain} from {dns.server}")
    output = _run_cmd(["dig", "axfr", dns.domain, f"@{dns.server}", "+nocomments", "+nocmd", "+nostats"])
    records = [line for line in output.splitlines() if line.strip() and not line.startswith(";")]
    if not records:
        raise NodeListError(f"zone transfer of {dns.domain} from {dns.server} returned no records")
    selected = [line for line in records if matcher.match(line.split(None, 1)[0])]
    logger.debug(f"Zone transfer: {len(selected)}/{len(records)} records match '{pattern}'")
    return selected


def load_nodes(
    node_list: str | Path | None = None,
    dns: DnsSettings | None = None,
    dns_pattern: str | None = None,
    stdin: IO[str] | None = None,
) -> list[NodeEntry]:
    """Resolve the configured node source into parsed entries."""
    if dns_pattern is not None:
        lines = zone_transfer(dns or DnsSettings(), dns_pattern)
    elif node_list is not None:
        lines = read_node_list(node_list, stdin=stdin)
    else:
        raise NodeListError("no node list given (use a file, '-' for stdin, or -D for DNS)")
    return parse_zone_lines(lines)
