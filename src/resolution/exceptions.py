"""
Exception classes for the resolution reader.
"""
import psycopg
import sqlalchemy as sa


class DatabaseError(Exception):
    """Base class for all resolution module errors.
    """


class ConnectionFailure(DatabaseError):
    """Error establishing or maintaining database connection.
    """


class QueryError(DatabaseError):
    """Error in query syntax or execution.
    """


class TypeConversionError(DatabaseError):
    """Error mapping a database value or type to its Python counterpart.
    """


DbConnectionError = (
    psycopg.OperationalError,
    psycopg.InterfaceError,
    sa.exc.OperationalError,
    sa.exc.InterfaceError,
    ConnectionFailure,
    )
