"""
Database connection handling with SQLAlchemy.

This module provides:
1. The `connect()` function for creating new database connections
2. The `ConnectionWrapper` class with the column and resolution readers
3. Engine creation through a thread-safe registry; every engine registers
   the `resolution` composite on each new DBAPI connection
"""
import atexit
import logging
import threading
from collections.abc import Callable
from dataclasses import fields
from functools import partial
from typing import Any, Self

import psycopg
import sqlalchemy as sa
from psycopg import sql as pgsql
from resolution.composite import register_resolution
from resolution.cursor import Cursor
from resolution.exceptions import ConnectionFailure, DbConnectionError
from resolution.exceptions import QueryError
from resolution.options import DatabaseOptions
from resolution.types import Resolution, resolve
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

from libb import load_options

__all__ = [
    'ConnectionWrapper',
    'connect',
    'create_url_from_options',
    'get_engine_for_options',
    'dispose_all_engines',
]

logger = logging.getLogger(__name__)

DRIVERNAME = 'postgresql+psycopg'

_engine_registry: dict[str, Engine] = {}
_engine_registry_lock = threading.RLock()


def create_url_from_options(options: DatabaseOptions,
                            url_creator: Callable[..., sa.URL] = sa.URL.create) -> sa.URL:
    """Convert DatabaseOptions to SQLAlchemy URL.
    """
    query = {}
    if options.timeout:
        query['connect_timeout'] = str(options.timeout)
    if options.appname:
        query['application_name'] = options.appname

    if options.uri:
        try:
            url = sa.make_url(options.uri).set(drivername=DRIVERNAME)
        except sa.exc.ArgumentError as err:
            raise ValueError(f'Could not parse uri: {err}') from err
        # explicit query parameters in the URI win
        return url.update_query_dict({k: v for k, v in query.items()
                                      if k not in url.query})

    return url_creator(
        drivername=DRIVERNAME,
        username=options.username,
        password=options.password,
        host=options.hostname,
        port=options.port,
        database=options.database,
        query=query
    )


def _register_on_connect(type_name: str, dbapi_connection: Any,
                         connection_record: Any) -> None:
    """SQLAlchemy `connect` listener: register the composite on a new connection."""
    register_resolution(dbapi_connection, type_name)


def get_engine_for_options(options: DatabaseOptions,
                           engine_factory: Callable[..., Engine] = sa.create_engine,
                           **kwargs: Any) -> Engine:
    """Get or create a SQLAlchemy engine for the given options.
    """
    key = str(options)

    with _engine_registry_lock:
        if key in _engine_registry:
            logger.debug(f'Using existing engine for {options.drivername}')
            return _engine_registry[key]

        url = create_url_from_options(options)

        engine_kwargs: dict[str, Any] = {'echo': False, 'poolclass': NullPool}
        engine_kwargs.update(kwargs)

        engine = engine_factory(url, **engine_kwargs)
        sa.event.listen(engine, 'connect', partial(_register_on_connect, options.type_name))

        _engine_registry[key] = engine
        logger.debug(f'Created new engine for {options.drivername}')

        return engine


def dispose_all_engines() -> None:
    """Dispose all engines in the registry.
    """
    with _engine_registry_lock:
        for engine in _engine_registry.values():
            engine.dispose()
        _engine_registry.clear()
        logger.debug('All database engines disposed')


atexit.register(dispose_all_engines)


class ConnectionWrapper:
    """Wraps a SQLAlchemy connection object to track calls and execution time

    This class provides a thin wrapper around SQLAlchemy connection objects that:
    1. Tracks query execution counts and timing
    2. Supports context manager protocol for explicit resource management
    3. Reads composite columns through the registered `ResolutionDTO` loader
    """

    def __init__(self, sa_connection: sa.engine.Connection,
                 options: DatabaseOptions) -> None:
        self.sa_connection = sa_connection
        self.engine = sa_connection.engine
        self.options = options
        self.dbapi_connection = sa_connection.connection
        self.calls = 0
        self.time = 0

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.close()

    def cursor(self) -> Cursor:
        """Get a logged cursor for this connection
        """
        return Cursor(self.dbapi_connection.cursor(), self)

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics
        """
        self.time += elapsed
        self.calls += 1

    @property
    def closed(self) -> bool:
        return self.sa_connection.closed

    def close(self) -> None:
        """Close the SQLAlchemy connection, discarding any open read transaction
        """
        if self.sa_connection.closed:
            return
        try:
            self.dbapi_connection.rollback()
        except psycopg.Error as e:
            logger.debug(f'Error rolling back before close: {e}')
        self.sa_connection.close()
        logger.debug(f'Connection closed: {self.calls} queries in {self.time:.2f}s '
                     f'(avg: {self.time/max(1,self.calls):.3f}s per query)')

    def select_column(self, sql: Any, *args: Any) -> list[Any]:
        """Execute a query and return the first column of every row as driver values.
        """
        try:
            with self.cursor() as cursor:
                rows = cursor.execute(sql, args).fetchall()
        except psycopg.Error as err:
            raise QueryError(str(err)) from err
        logger.debug(f'Select query returned {len(rows)} rows')
        return [row[0] for row in rows]

    def resolution_query(self, order_by: str | None = None) -> pgsql.Composed:
        """Build the query that reads the composite column.
        """
        query = pgsql.SQL('select {} from {}').format(
            pgsql.Identifier(self.options.column),
            pgsql.Identifier(self.options.table))
        if order_by:
            query += pgsql.SQL(' order by {}').format(pgsql.Identifier(order_by))
        return query

    def select_resolutions(self, order_by: str | None = None) -> list[Resolution | None]:
        """Read every composite value, None where the whole composite is null.

        Raises TypeConversionError on the first value that is not a
        `ResolutionDTO`.
        """
        return [resolve(value) for value in
                self.select_column(self.resolution_query(order_by))]


@load_options(cls=DatabaseOptions)
def connect(options: DatabaseOptions | dict[str, Any] | str,
            config: Any | None = None, **kw: Any) -> ConnectionWrapper:
    """Connect to PostgreSQL with the `resolution` composite registered

    Args:
        options: Can be:
                - DatabaseOptions object
                - String name of a setting in `config`
                - Dictionary of options
                - Options specified as keyword arguments
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options

    Raises
        ConnectionFailure: the server could not be reached
        TypeConversionError: the composite type is missing or malformed
    """
    if isinstance(options, DatabaseOptions):
        for field in fields(options):
            kw.pop(field.name, None)
    else:
        options_func = load_options(cls=DatabaseOptions)(lambda o, c: o)
        options = options_func(options, config, **kw)

    engine = get_engine_for_options(options)

    try:
        sa_connection = engine.connect()
    except DbConnectionError as err:
        raise ConnectionFailure(f'Could not connect to {engine.url!r}: {err}') from err

    return ConnectionWrapper(sa_connection, options)
