"""Connection settings, read from the environment."""

import os
from dataclasses import dataclass, field
from typing import Optional

from psycopg2.extensions import parse_dsn

DEFAULT_PORT = 5432
DEFAULT_CONNECT_TIMEOUT = 10


@dataclass
class ConnectionConfig:
    """Parameters for opening a single database connection.

    When `dsn` is set it is handed to the driver as-is and the discrete
    fields only fill in what the DSN leaves out.
    """

    database: Optional[str] = None
    host: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    port: int = DEFAULT_PORT
    connect_timeout: int = DEFAULT_CONNECT_TIMEOUT
    application_name: str = "dbhandle"
    dsn: Optional[str] = field(default=None, repr=False)

    def connect_kwargs(self) -> dict:
        """Keyword arguments for psycopg2.connect().

        Raises:
            psycopg2.ProgrammingError: If `dsn` does not parse.
        """
        kwargs = {
            "dbname": self.database,
            "host": self.host,
            "user": self.username,
            "password": self.password,
            "port": self.port,
            "connect_timeout": self.connect_timeout,
            "application_name": self.application_name,
        }
        if not self.dsn:
            return kwargs
        # keyword arguments override the DSN, so pass only the keys it lacks
        given = parse_dsn(self.dsn)
        missing = {k: v for k, v in kwargs.items() if k not in given and v is not None}
        return {"dsn": self.dsn, **missing}


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def config_from_env() -> ConnectionConfig:
    """Build a ConnectionConfig from DATABASE_URL or the DB_* variables.

    Raises:
        ValueError: If a required variable is missing or a numeric one
            does not parse.
    """
    port = _int_env("DB_PORT", DEFAULT_PORT)
    timeout = _int_env("DB_CONNECT_TIMEOUT", DEFAULT_CONNECT_TIMEOUT)

    database_url = os.environ.get("DATABASE_URL")
    if database_url:
        return ConnectionConfig(
            database=os.environ.get("DB_NAME"),
            host=os.environ.get("DB_HOST"),
            username=os.environ.get("DB_USER"),
            password=os.environ.get("DB_PASSWORD"),
            port=port,
            connect_timeout=timeout,
            dsn=database_url,
        )

    values = {}
    for name in ("DB_NAME", "DB_HOST", "DB_USER", "DB_PASSWORD"):
        value = os.environ.get(name)
        if not value:
            raise ValueError(f"{name} must be set (or DATABASE_URL)")
        values[name] = value

    return ConnectionConfig(
        database=values["DB_NAME"],
        host=values["DB_HOST"],
        username=values["DB_USER"],
        password=values["DB_PASSWORD"],
        port=port,
        connect_timeout=timeout,
    )
