"""The discover, identify and update stages chained into one run."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import IO

from loguru import logger
from pydantic import BaseModel, Field

from netsync.config import Settings
from netsync.discovery.nodelist import load_nodes
from netsync.discovery.prober import SessionFactory, discover
from netsync.models import DiscoverySummary, IdentifySummary, UpdateSummary
from netsync.report import device_table, interface_table
from netsync.scribe import write_lines
from netsync.snmp.session import SnmpSession
from netsync.sync.reconcile import identify
from netsync.sync.records import open_record_source
from netsync.sync.update import update
from netsync.ui import Prompter, open_terminal


class RunOptions(BaseModel):
    probe_level: int = Field(default=0, ge=0, le=2)
    node_list: str | None = "-"
    use_dns: bool = False
    host_pattern: str = "all"
    csv: Path | None = None
    auto_match: bool = False
    update: bool = False
    quiet: bool = False
    verbose: bool = False


class RunResult(BaseModel):
    discovery: DiscoverySummary
    identify: IdentifySummary | None = None
    update: UpdateSummary | None = None


def _source_label(options: RunOptions) -> str:
    if options.use_dns:
        return "DNS"
    return "STDIN" if options.node_list in (None, "-") else str(options.node_list)


def _default_prompter(options: RunOptions) -> Prompter | None:
    """Prompts on stdin, or on the controlling terminal when stdin carried the node list."""
    if options.use_dns or options.node_list not in (None, "-"):
        return Prompter()
    prompter = open_terminal()
    if prompter is None:
        logger.warning(
            "No terminal available for prompts (node list read from stdin), resolving conflicts automatically"
        )
    return prompter


async def run_async(
    settings: Settings,
    options: RunOptions,
    session_factory: SessionFactory = SnmpSession,
    prompter: Prompter | None = None,
    stdin: IO[str] | None = None,
) -> RunResult:
    """Run the stages up to the requested probe level."""
    source = None
    if options.probe_level != 1:
        source = open_record_source(settings, options.csv)

    entries = load_nodes(
        node_list=None if options.use_dns else options.node_list,
        dns=settings.dns,
        dns_pattern=options.host_pattern if options.use_dns else None,
        stdin=stdin,
    )
    logger.info(f"discovering (using {_source_label(options)})...")
    topology, discovered = await discover(entries, settings, session_factory)
    result = RunResult(discovery=discovered)
    try:
        logger.info(f"discovered {discovered}")
        if options.verbose and topology.nodes:
            logger.info("\n" + device_table(topology))

        if options.probe_level >= 1:
            active = [entry.line for entry in entries if entry.ip in topology.nodes]
            write_lines(settings.probe1_cache, active)
        if options.probe_level == 1 or source is None:
            return result

        logger.info(f"identifying (using {source.describe()})...")
        owned = None
        if prompter is None and not options.quiet:
            prompter = owned = _default_prompter(options)
        try:
            result.identify = identify(
                topology,
                source,
                settings,
                auto_match=options.auto_match,
                probe_level=options.probe_level,
                prompter=None if options.quiet else prompter,
            )
        finally:
            if owned is not None:
                owned.close()
        logger.info(f"identified {result.identify}")
        if options.verbose and topology.nodes:
            logger.info("\n" + interface_table(topology, settings.info_fields))
        if options.probe_level == 2 or not options.update:
            return result

        logger.info("updating...")
        result.update = await update(topology, settings)
        logger.info(f"updated {result.update}")
        return result
    finally:
        topology.close_sessions()


def run(settings: Settings, options: RunOptions, **kwargs) -> RunResult:  # type: ignore[no-untyped-def]
    """Synchronous entry point around :func:`run_async`."""
    return asyncio.run(run_async(settings, options, **kwargs))
