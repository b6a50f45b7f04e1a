"""Sources of ``Vw_Digitacao`` rows."""
from __future__ import annotations

import re
import zipfile
from pathlib import Path
from typing import Any, Iterable, Mapping, Protocol

import pandas as pd
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from omie_sync.core.errors import ConfigurationError, RecordFetchError

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class RecordSource(Protocol):
    """Contract for anything that yields the rows of one sync run."""

    def fetch_records(self) -> list[dict[str, Any]]: ...

    def close(self) -> None: ...


class InMemoryRecordSource:
    """List-backed source used by tests and dry runs."""

    def __init__(self, rows: Iterable[Mapping[str, Any]] = ()) -> None:
        self._rows = [dict(row) for row in rows]

    def fetch_records(self) -> list[dict[str, Any]]:
        return [dict(row) for row in self._rows]

    def close(self) -> None:
        return None


class FileRecordSource:
    """Reads a CSV or Excel export of the view."""

    def __init__(self, path: Path, *, sheet_name: str | int = 0) -> None:
        self._path = Path(path)
        self._sheet_name = sheet_name

    def _read(self) -> pd.DataFrame:
        suffix = self._path.suffix.lower()
        if suffix == ".csv":
            return pd.read_csv(self._path, dtype=str, keep_default_na=True)
        if suffix in {".xlsx", ".xlsm"}:
            return pd.read_excel(self._path, sheet_name=self._sheet_name, dtype=str, engine="openpyxl")
        raise RecordFetchError(f"unsupported export format: {self._path.name}")

    def fetch_records(self) -> list[dict[str, Any]]:
        try:
            dataframe = self._read()
        except (OSError, ValueError, zipfile.BadZipFile, KeyError) as exc:
            raise RecordFetchError(f"failed to read {self._path}: {exc}") from exc
        dataframe = dataframe.astype(object).where(dataframe.notna(), None)
        return dataframe.to_dict(orient="records")

    def close(self) -> None:
        return None


class SqlViewRecordSource:
    """Runs ``SELECT * FROM <view>`` against the operational database."""

    def __init__(self, engine: Engine, view: str = "Vw_Digitacao") -> None:
        if not _IDENTIFIER.match(view):
            raise ConfigurationError(f"invalid view name: {view!r}")
        self._engine = engine
        self._query = text(f"SELECT * FROM {view}")
        self._view = view

    @classmethod
    def from_url(cls, url: str, view: str = "Vw_Digitacao") -> "SqlViewRecordSource":
        return cls(create_engine(url, pool_pre_ping=True), view)

    def fetch_records(self) -> list[dict[str, Any]]:
        try:
            with self._engine.connect() as connection:
                result = connection.execute(self._query)
                return [dict(row) for row in result.mappings().all()]
        except SQLAlchemyError as exc:
            raise RecordFetchError(f"Falha ao consultar DB ({self._view}): {exc}") from exc

    def close(self) -> None:
        self._engine.dispose()


class UnconfiguredRecordSource:
    """Placeholder installed when no database connection was configured."""

    def fetch_records(self) -> list[dict[str, Any]]:
        raise RecordFetchError("no database configured: set DATABASE_URL or DB_SERVER/DB_DATABASE")

    def close(self) -> None:
        return None


__all__ = [
    "FileRecordSource",
    "InMemoryRecordSource",
    "RecordSource",
    "SqlViewRecordSource",
    "UnconfiguredRecordSource",
]
