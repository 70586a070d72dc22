import os
from dataclasses import dataclass

from libb import ConfigOptions, scriptname

__all__ = ['DatabaseOptions', 'DB_URI_ENV']

DB_URI_ENV = 'DB_URI'

SUPPORTED_DRIVERS = ('postgresql',)
REQUIRED_OPTIONS = ('hostname', 'username', 'password', 'database', 'port')


@dataclass
class DatabaseOptions(ConfigOptions):
    """Options

    supported driver names: `postgresql`

    Either `uri` (a `postgresql://` URL) or the discrete connection fields
    must be given. `type_name`, `table` and `column` locate the composite
    type and the column that holds it.
    """
    drivername: str = 'postgresql'
    hostname: str = None
    username: str = None
    password: str = None
    database: str = None
    port: int = 0
    timeout: int = 0
    appname: str = None
    uri: str = None
    type_name: str = 'resolution'
    table: str = 'foo'
    column: str = 'res'

    def __post_init__(self):
        if self.drivername not in SUPPORTED_DRIVERS:
            raise ValueError(f'drivername must be one of: {list(SUPPORTED_DRIVERS)}')
        self.appname = self.appname or scriptname() or 'python_console'
        if not self.uri:
            for field in REQUIRED_OPTIONS:
                if not getattr(self, field):
                    raise ValueError(f'field {field} cannot be None or 0')

    @classmethod
    def from_env(cls, var: str = DB_URI_ENV, **kw) -> 'DatabaseOptions':
        """Build options from a connection URL held in an environment variable.
        """
        uri = os.environ.get(var)
        if not uri:
            raise ValueError(f'environment variable {var} is not set')
        return cls(uri=uri, **kw)
