"""Process-wide shared handle.

The first successful `get_handle()` call fixes the connection for the life
of the process. Later calls return that same handle and ignore the
credentials they pass; reconfiguring mid-process is a no-op. Call
`reset_handle()` first to switch databases.
"""

import atexit
import logging
from typing import Optional

from .config import DEFAULT_PORT, ConnectionConfig, config_from_env
from .errors import DatabaseConnectionError
from .handle import DatabaseHandle

logger = logging.getLogger("dbhandle")

_instance: Optional[DatabaseHandle] = None


def _open_shared(config: ConnectionConfig) -> Optional[DatabaseHandle]:
    global _instance
    if _instance is None:
        try:
            _instance = DatabaseHandle.open(config)
        except DatabaseConnectionError as exc:
            logger.error("Connection failed: %s", exc)
    return _instance


def get_handle(
    database: str,
    host: str,
    username: str,
    password: str,
    port: int = DEFAULT_PORT,
) -> Optional[DatabaseHandle]:
    """Return the shared handle, opening it on first use.

    Returns None when the connection cannot be opened; the next call tries
    again.
    """
    config = ConnectionConfig(
        database=database,
        host=host,
        username=username,
        password=password,
        port=port,
    )
    return _open_shared(config)


get_instance = get_handle


def get_handle_from_env() -> Optional[DatabaseHandle]:
    """Shared handle configured from DATABASE_URL or DB_* variables.

    Raises:
        ValueError: If the environment is incomplete.
    """
    if _instance is not None:
        return _instance
    return _open_shared(config_from_env())


def reset_handle() -> None:
    """Close and forget the shared handle."""
    global _instance
    handle, _instance = _instance, None
    if handle is not None:
        handle.close()


atexit.register(reset_handle)
