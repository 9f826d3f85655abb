"""Entry point for ``python -m netsync`` and the ``netsync`` console script.

Examples:
  netsync -c /etc/netsync/netsync.ini -p 1 zone.txt
  dig axfr example.com @ns1 | netsync -a -u
  netsync -D -m 'sw-.*' -d records.csv -u
"""

from __future__ import annotations

import os
import sys

from tabulate import tabulate

from netsync import __version__, configure_logging
from netsync import glogger
from netsync.cli import main as cli_main


def _print_startup_banner() -> None:
    startup_rows = [
        ["version", __version__],
        ["python", sys.version.split()[0]],
    ]

    for var in ("NETSYNC_CONFIG", "LOGURU_LEVEL", "BUILDTIME"):
        val = os.environ.get(var)
        if val:
            startup_rows.append([var, val])

    table_str = tabulate(startup_rows, tablefmt="mixed_grid")
    lines = table_str.split("\n")
    table_width = len(lines[0])
    title = "netsync starting up"
    title_border = "┍" + "━" * (table_width - 2) + "┑"
    title_row = "│ " + title.center(table_width - 4) + " │"
    separator = lines[0].replace("┍", "┝").replace("┑", "┥").replace("┯", "┿")

    glogger.opt(raw=True).info(
        "\n{}\n", title_border + "\n" + title_row + "\n" + separator + "\n" + "\n".join(lines[1:])
    )


def main() -> None:
    """Print the banner (unless quiet) and run the CLI."""
    args = sys.argv[1:]
    if not {"-q", "--quiet", "-h", "--help", "-V", "--version"} & set(args):
        configure_logging()
        _print_startup_banner()
    sys.exit(cli_main(args))


if __name__ == "__main__":
    main()
