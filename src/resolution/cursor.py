"""
Logged DB-API cursor used by `ConnectionWrapper`.
"""
import logging
import time
from collections.abc import Iterator
from functools import wraps
from typing import Any

logger = logging.getLogger(__name__)


def dumpsql(func):
    """Decorator for logging SQL queries and parameters."""
    @wraps(func)
    def wrapper(self, operation: Any, *args: Any, **kwargs: Any):
        start = time.time()
        logger.debug(f'SQL:\n{operation}\nargs: {args}')
        try:
            result = func(self, operation, *args, **kwargs)
            if hasattr(self.dbapi_cursor, 'statusmessage'):
                logger.debug(f'Query result: {self.dbapi_cursor.statusmessage}')
            return result
        except Exception:
            logger.error(f'Error with query:\nSQL:\n{operation}\nargs: {args}')
            raise
        finally:
            elapsed = time.time() - start
            self.connwrapper.addcall(elapsed)
            logger.debug(f'Query time: {elapsed:.4f}s')
    return wrapper


class Cursor:
    """Thin wrapper over a DBAPI cursor that logs and times every execute.
    """

    def __init__(self, cursor: Any, connection_wrapper: Any) -> None:
        self.dbapi_cursor = cursor
        self.connwrapper = connection_wrapper

    def __getattr__(self, name: str) -> Any:
        """Delegate members to underlying cursor."""
        return getattr(self.dbapi_cursor, name)

    def __iter__(self) -> Iterator:
        return iter(self.dbapi_cursor)

    def __enter__(self) -> 'Cursor':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def description(self) -> list[tuple] | None:
        """Column descriptions for last query."""
        return self.dbapi_cursor.description

    @property
    def rowcount(self) -> int:
        return self.dbapi_cursor.rowcount

    @dumpsql
    def execute(self, operation: Any, args: Any = None) -> 'Cursor':
        """Execute a query, returning self so calls can be chained."""
        self.dbapi_cursor.execute(operation, args or None)
        return self

    def fetchone(self) -> tuple | None:
        return self.dbapi_cursor.fetchone()

    def fetchall(self) -> list[tuple]:
        return self.dbapi_cursor.fetchall()

    def close(self) -> None:
        self.dbapi_cursor.close()
