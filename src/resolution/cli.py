"""Command line program: log every resolution stored in the database."""
import argparse
import logging
import sys

from resolution.connection import ConnectionWrapper, connect
from resolution.exceptions import DatabaseError
from resolution.options import DB_URI_ENV, DatabaseOptions
from resolution.types import Resolution, describe, resolve

logger = logging.getLogger(__name__)


def report(cn: ConnectionWrapper) -> list[Resolution | None]:
    """Log one line per row; rows that fail to convert are logged and skipped.
    """
    results = []
    for value in cn.select_column(cn.resolution_query()):
        try:
            result = resolve(value)
        except DatabaseError as err:
            logger.error(f'Failed to scan: {err}')
            continue
        logger.info(describe(result))
        results.append(result)
    return results


def main(argv: list | None = None) -> int:
    p = argparse.ArgumentParser(
        description='Read the resolution composite column and log each value')
    p.add_argument('--uri',
                   help=f'PostgreSQL connection URL, falls back to ${DB_URI_ENV}')
    p.add_argument('--type-name', default='resolution', help='Composite type name')
    p.add_argument('--table', default='foo', help='Table to read')
    p.add_argument('--column', default='res', help='Composite column to read')
    p.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    settings = {
        'type_name': args.type_name,
        'table': args.table,
        'column': args.column,
    }
    try:
        if args.uri:
            options = DatabaseOptions(uri=args.uri, **settings)
        else:
            options = DatabaseOptions.from_env(DB_URI_ENV, **settings)
    except ValueError as err:
        logger.error(f'Invalid options: {err}')
        return 1

    try:
        with connect(options) as cn:
            report(cn)
    except ValueError as err:
        logger.error(f'Invalid options: {err}')
        return 1
    except DatabaseError as err:
        logger.error(f'Bailing: {err}')
        return 1
    return 0


if __name__ == '__main__':  # pragma: no cover
    sys.exit(main())
