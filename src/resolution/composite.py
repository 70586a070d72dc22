"""
Registration of the `resolution` composite type with psycopg.

Once registered on a connection, every non-null value of the type loads as
a `ResolutionDTO`; null composites still load as None.
"""
import logging
from typing import Any

from psycopg import adapters
from psycopg.types.composite import CompositeInfo, register_composite
from resolution.exceptions import TypeConversionError
from resolution.types import ResolutionDTO

__all__ = [
    'RESOLUTION_FIELDS',
    'fetch_type_info',
    'register_resolution',
]

logger = logging.getLogger(__name__)

RESOLUTION_FIELDS = (
    ('width', 'int4'),
    ('height', 'int4'),
    ('scan', 'bpchar'),
)


def _driver_connection(conn: Any) -> Any:
    """Unwrap a SQLAlchemy pool proxy to the psycopg connection."""
    return getattr(conn, 'driver_connection', conn)


def fetch_type_info(conn: Any, type_name: str = 'resolution') -> CompositeInfo:
    """Look up the composite type (OID and fields) in the catalog.

    Raises TypeConversionError if the type does not exist or its field names
    or types do not match `RESOLUTION_FIELDS`.
    """
    info = CompositeInfo.fetch(_driver_connection(conn), type_name)
    if info is None:
        raise TypeConversionError(f'Composite type {type_name!r} not found')

    expected = [name for name, _ in RESOLUTION_FIELDS]
    if list(info.field_names) != expected:
        raise TypeConversionError(
            f'Composite type {type_name!r} has fields {list(info.field_names)}, '
            f'expected {expected}')

    expected_types = [adapters.types[t].oid for _, t in RESOLUTION_FIELDS]
    if list(info.field_types) != expected_types:
        raise TypeConversionError(
            f'Composite type {type_name!r} has field types {list(info.field_types)}, '
            f'expected {expected_types}')
    return info


def register_resolution(conn: Any, type_name: str = 'resolution') -> CompositeInfo:
    """Register the composite on a psycopg connection with `ResolutionDTO` as factory.
    """
    raw_conn = _driver_connection(conn)
    info = fetch_type_info(raw_conn, type_name)
    register_composite(info, raw_conn, factory=ResolutionDTO)
    logger.debug(f'Registered composite {type_name} (oid={info.oid})')
    return info
