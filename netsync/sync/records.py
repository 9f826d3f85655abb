"""External record sources: a SQL table (via SQLAlchemy) or a CSV file.

Both sources return plain ``{field: value}`` maps restricted to the
configured device, interface and info fields.
"""

from __future__ import annotations

import csv
from pathlib import Path

from loguru import logger
from sqlalchemy import MetaData, Table, create_engine, select
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError

from netsync.config import Settings
from netsync.exceptions import ConfigurationError, IncompatibleSourceError, NetsyncError
from netsync.models import Record


def required_fields(settings: Settings) -> list[str]:
    return [settings.device_field, settings.interface_field, *settings.info_fields]


def _check_columns(available: list[str], settings: Settings, source: str) -> list[str]:
    """Return the configured columns in source order, or raise when any is missing."""
    wanted = set(required_fields(settings))
    present = [column for column in available if column in wanted]
    missing = sorted(wanted - set(present))
    if missing:
        raise IncompatibleSourceError(f"incompatible record source {source} (missing: {', '.join(missing)})", missing)
    return present


class CsvRecordSource:
    """A CSV file whose header row names the columns."""

    def __init__(self, path: str | Path, settings: Settings):
        self.path = Path(path)
        self.settings = settings

    def describe(self) -> str:
        return str(self.path)

    def fetch(self) -> list[Record]:
        try:
            with self.path.open(encoding="utf-8", newline="") as handle:
                reader = csv.DictReader(handle)
                columns = _check_columns(list(reader.fieldnames or []), self.settings, self.describe())
                records = [{column: (row.get(column) or "") for column in columns} for row in reader]
        except OSError as exc:
            raise NetsyncError(f"cannot read record source {self.path}: {exc}") from exc
        logger.debug(f"Read {len(records)} records from {self.path}")
        return records


class SqlRecordSource:
    """A database table, reflected through SQLAlchemy."""

    def __init__(self, settings: Settings):
        if not settings.table:
            raise ConfigurationError("a SQL record source requires [netsync] Table")
        self.settings = settings
        self.url = settings.db.sqlalchemy_url()

    def describe(self) -> str:
        return f"{self.url.split('://', 1)[0]} table {self.settings.table}"

    def fetch(self) -> list[Record]:
        engine = create_engine(self.url)
        try:
            table = Table(self.settings.table, MetaData(), autoload_with=engine)
            columns = _check_columns([c.name for c in table.columns], self.settings, self.describe())
            stmt = select(*[table.c[column] for column in columns])
            with engine.connect() as conn:
                rows = conn.execute(stmt).mappings().all()
        except NoSuchTableError as exc:
            raise IncompatibleSourceError(f"table {self.settings.table} does not exist") from exc
        except SQLAlchemyError as exc:
            raise NetsyncError(f"database query failed: {exc}") from exc
        finally:
            engine.dispose()
        records = [{column: ("" if row[column] is None else str(row[column])) for column in columns} for row in rows]
        logger.debug(f"Read {len(records)} records from {self.describe()}")
        return records


def open_record_source(settings: Settings, csv_path: str | Path | None = None) -> CsvRecordSource | SqlRecordSource:
    """Pick the CSV source when a path is given, the SQL table otherwise."""
    if csv_path is not None:
        return CsvRecordSource(csv_path, settings)
    return SqlRecordSource(settings)
