"""Command-line interface for a netsync run."""

from __future__ import annotations

import argparse
import os
from pathlib import Path

from loguru import logger

from netsync import __version__, configure_logging
from netsync.config import DEFAULT_CONFIG_FILE, load_settings
from netsync.exceptions import NetsyncError
from netsync.pipeline import RunOptions, run
from netsync.scribe import Scribe
from netsync.snmp.session import HAS_PYSNMP


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Build argparse parser for a netsync run."""
    parser = argparse.ArgumentParser(
        prog="netsync",
        description="Discover network devices via SNMP, reconcile them with an asset database "
        "and write interface information back to the devices.",
    )
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    chatter = parser.add_mutually_exclusive_group()
    chatter.add_argument("-v", "--verbose", action="store_true", help="Verbose. Print everything.")
    chatter.add_argument("-q", "--quiet", action="store_true", help="Quiet. Print nothing but warnings.")
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path(os.environ.get("NETSYNC_CONFIG", DEFAULT_CONFIG_FILE)),
        help=f"Configuration file to use (default: $NETSYNC_CONFIG or {DEFAULT_CONFIG_FILE})",
    )
    parser.add_argument(
        "-p",
        "--probe-level",
        type=int,
        choices=[0, 1, 2],
        default=0,
        help="Probe level: 1 stops after node discovery, 2 stops after identification (default: 0)",
    )
    parser.add_argument("-D", "--dns", action="store_true", help="Use a DNS zone transfer to retrieve the node list")
    parser.add_argument(
        "-m",
        "--match",
        metavar="PATTERN",
        default="all",
        help="Only discover DNS hosts matching PATTERN (default: all)",
    )
    parser.add_argument("-d", "--csv", type=Path, metavar="CSV", help="CSV record source to use instead of the database")
    parser.add_argument("-a", "--auto-match", action="store_true", help="Enable interface auto-matching")
    parser.add_argument("-u", "--update", action="store_true", help="Write interface information to the devices")
    parser.add_argument("nodes", nargs="?", default="-", help="Zone-file style node list ('-' for stdin, default)")
    return parser.parse_args(args)


def main(args: list[str] | None = None) -> int:
    """Main entry point; returns the process exit code."""
    parsed = parse_args(args)
    configure_logging(level="DEBUG" if parsed.verbose else "WARNING" if parsed.quiet else "INFO")

    if not HAS_PYSNMP:
        logger.error("pysnmp is required (pip install pysnmp)")
        return 1

    options = RunOptions(
        probe_level=parsed.probe_level,
        node_list=parsed.nodes,
        use_dns=parsed.dns,
        host_pattern=parsed.match,
        csv=parsed.csv,
        auto_match=parsed.auto_match,
        update=parsed.update,
        quiet=parsed.quiet,
        verbose=parsed.verbose,
    )
    try:
        logger.info(f"configuring (using {parsed.config})...")
        settings = load_settings(parsed.config)
        with Scribe(settings.log_dir):
            run(settings, options)
    except NetsyncError as e:
        logger.error(str(e))
        return 1
    except OSError as e:
        logger.error(f"I/O error: {e}")
        return 1
    except EOFError:
        logger.error("Input ended while waiting for an answer")
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 1
    return 0
