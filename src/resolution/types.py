"""
Domain and transfer types for the `resolution` composite.

The database allows null at two levels: the whole composite column, and each
field inside a non-null composite. The application only ever sees a fully
populated `Resolution`; the all-optional `ResolutionDTO` exists at the
driver boundary and is converted with `ResolutionDTO.as_resolution`.
"""
from dataclasses import dataclass
from typing import Any

from resolution.exceptions import TypeConversionError

__all__ = [
    'Resolution',
    'ResolutionDTO',
    'resolve',
    'describe',
    'DEFAULT_WIDTH',
    'DEFAULT_HEIGHT',
    'DEFAULT_SCAN',
    'NO_RESOLUTION',
]

DEFAULT_WIDTH = 0
DEFAULT_HEIGHT = 0
DEFAULT_SCAN = 'P'

NO_RESOLUTION = 'No defined resolution'


@dataclass(frozen=True)
class Resolution:
    """Fully resolved resolution used by application code.
    """
    width: int
    height: int
    scan: str

    def __str__(self) -> str:
        return f'[{self.width}, {self.height}] at {self.scan}'


@dataclass(frozen=True)
class ResolutionDTO:
    """Composite value as read from the database, any field may be null.

    psycopg builds one of these per non-null composite, passing the fields
    positionally in declaration order.
    """
    width: int | None = None
    height: int | None = None
    scan: str | None = None

    def as_resolution(self) -> Resolution:
        """Convert to a `Resolution`, substituting defaults for null fields.
        """
        return Resolution(
            width=DEFAULT_WIDTH if self.width is None else self.width,
            height=DEFAULT_HEIGHT if self.height is None else self.height,
            scan=DEFAULT_SCAN if self.scan is None else self.scan,
        )


def resolve(value: Any) -> Resolution | None:
    """Map one fetched column value to a `Resolution`.

    A null composite gives None, never a defaulted `Resolution`.

    Raises TypeConversionError if the value is not a `ResolutionDTO`, which
    happens when the composite type was not registered on the connection.
    """
    if value is None:
        return None
    if not isinstance(value, ResolutionDTO):
        raise TypeConversionError(
            f'Expected ResolutionDTO, got {type(value).__name__}: {value!r}')
    return value.as_resolution()


def describe(value: Resolution | None) -> str:
    """Log line for one row."""
    if value is None:
        return NO_RESOLUTION
    return f'Got {value}'
