"""
Read the PostgreSQL `resolution` composite type into Python values.

A `resolution` column may be null as a whole, or hold a composite whose
fields are individually null. Values load as `ResolutionDTO` and are
converted to the fully populated `Resolution` with `resolve`:

    with resolution.connect('postgresql', config=config) as cn:
        for res in cn.select_resolutions():
            print(resolution.describe(res))
"""
__version__ = '0.1.0'

from resolution.composite import RESOLUTION_FIELDS, register_resolution
from resolution.connection import ConnectionWrapper, connect
from resolution.exceptions import ConnectionFailure, DatabaseError
from resolution.exceptions import DbConnectionError, QueryError
from resolution.exceptions import TypeConversionError
from resolution.options import DatabaseOptions
from resolution.types import Resolution, ResolutionDTO, describe, resolve


__all__ = [
    'connect',
    'ConnectionWrapper',
    'DatabaseOptions',
    'Resolution',
    'ResolutionDTO',
    'resolve',
    'describe',
    'register_resolution',
    'RESOLUTION_FIELDS',
    'DatabaseError',
    'ConnectionFailure',
    'DbConnectionError',
    'QueryError',
    'TypeConversionError',
]
