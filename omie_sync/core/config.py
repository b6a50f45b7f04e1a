"""Runtime configuration.

Defaults live in ``omie_sync/config/omie.yaml``; ``SYNC_CONFIG`` may point to a
replacement file. Credentials and deployment-specific values come from the
environment.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml
from sqlalchemy.engine import URL

from omie_sync.core.errors import ConfigurationError

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"
DEFAULT_CONFIG_PATH = CONFIG_DIR / "omie.yaml"
DEFAULT_CORS_ORIGINS = ("http://localhost:3000", "http://127.0.0.1:3000")
MSSQL_DRIVER = "ODBC Driver 18 for SQL Server"


@dataclass(frozen=True, slots=True)
class Settings:
    omie_app_key: str | None = None
    omie_app_secret: str | None = None
    omie_base_url: str = "https://app.omie.com.br/api/v1/financas/"
    supplier_code: str = "CodigoInterno01"
    account_code: int = 10892094304
    timeout_seconds: float = 30.0

    concurrency: int = 1
    interval_seconds: float = 0.26
    interval_cap: int = 1
    max_attempts: int = 5
    base_retry_delay: float = 1.0
    cooldown_padding: float = 5.0

    due_in_days: int = 3
    source_view: str = "Vw_Digitacao"
    database_url: str | None = None

    log_level: str = "INFO"
    cors_origins: tuple[str, ...] = field(default=DEFAULT_CORS_ORIGINS)

    @property
    def has_credentials(self) -> bool:
        return bool(self.omie_app_key and self.omie_app_secret)

    @property
    def receivable_url(self) -> str:
        return f"{self.omie_base_url}contareceber/"

    @property
    def payable_url(self) -> str:
        return f"{self.omie_base_url}contapagar/"


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigurationError(f"configuration file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping at the top level")
    return data


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"section '{name}' must be a mapping")
    return section


def _number(value: Any, name: str, kind: type = float) -> Any:
    try:
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be numeric, got {value!r}") from exc


def _database_url(env: Mapping[str, str]) -> str | None:
    explicit = env.get("DATABASE_URL")
    if explicit:
        return explicit

    server = env.get("DB_SERVER")
    database = env.get("DB_DATABASE")
    if not (server and database):
        return None
    url = URL.create(
        "mssql+pyodbc",
        username=env.get("DB_USER") or None,
        password=env.get("DB_PASSWORD") or None,
        host=server,
        database=database,
        query={"driver": MSSQL_DRIVER, "Encrypt": "yes", "TrustServerCertificate": "no"},
    )
    return url.render_as_string(hide_password=False)


def load_settings(path: Path | None = None, env: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from the YAML defaults and environment overrides."""

    env = os.environ if env is None else env
    config_path = path or Path(env.get("SYNC_CONFIG") or DEFAULT_CONFIG_PATH)
    data = _load_yaml(Path(config_path))

    omie = _section(data, "omie")
    dispatcher = _section(data, "dispatcher")
    sync = _section(data, "sync")
    defaults = Settings()

    origins_env = env.get("API_CORS_ORIGINS", "")
    origins = tuple(origin.strip() for origin in origins_env.split(",") if origin.strip())

    return Settings(
        omie_app_key=env.get("OMIE_APP_KEY") or None,
        omie_app_secret=env.get("OMIE_APP_SECRET") or None,
        omie_base_url=env.get("OMIE_BASE_URL") or str(omie.get("base_url", defaults.omie_base_url)),
        supplier_code=env.get("OMIE_SUPPLIER_CODE") or str(omie.get("supplier_code", defaults.supplier_code)),
        account_code=_number(
            env.get("OMIE_ACCOUNT_CODE") or omie.get("account_code", defaults.account_code),
            "omie.account_code",
            int,
        ),
        timeout_seconds=_number(omie.get("timeout_seconds", defaults.timeout_seconds), "omie.timeout_seconds"),
        concurrency=_number(dispatcher.get("concurrency", defaults.concurrency), "dispatcher.concurrency", int),
        interval_seconds=_number(dispatcher.get("interval_ms", 260), "dispatcher.interval_ms") / 1000,
        interval_cap=_number(dispatcher.get("interval_cap", defaults.interval_cap), "dispatcher.interval_cap", int),
        max_attempts=_number(dispatcher.get("max_attempts", defaults.max_attempts), "dispatcher.max_attempts", int),
        base_retry_delay=_number(dispatcher.get("base_retry_delay_ms", 1000), "dispatcher.base_retry_delay_ms") / 1000,
        cooldown_padding=_number(
            dispatcher.get("cooldown_padding_seconds", defaults.cooldown_padding),
            "dispatcher.cooldown_padding_seconds",
        ),
        due_in_days=_number(sync.get("due_in_days", defaults.due_in_days), "sync.due_in_days", int),
        source_view=str(sync.get("source_view", defaults.source_view)),
        database_url=_database_url(env),
        log_level=(env.get("LOG_LEVEL") or defaults.log_level).upper(),
        cors_origins=origins or DEFAULT_CORS_ORIGINS,
    )
