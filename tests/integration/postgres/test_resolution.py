"""
Integration tests reading the resolution composite from PostgreSQL.
"""
import logging

import pytest
import resolution
from resolution import cli
from resolution.composite import fetch_type_info, register_resolution
from resolution.types import Resolution, ResolutionDTO

import config


def test_select_resolutions(conn):
    """Test every null case of the staged table maps as expected"""
    assert conn.select_resolutions(order_by='id') == [
        Resolution(10, 10, 'P'),
        None,
        Resolution(-10, 10, 'P'),
        Resolution(10, 10, 'P'),
    ]


def test_driver_loads_dto(conn):
    """Test the registered loader builds DTOs with nulls kept as None"""
    values = conn.select_column('select res from foo order by id')
    assert values == [
        ResolutionDTO(10, 10, 'P'),
        None,
        ResolutionDTO(-10, 10, 'P'),
        ResolutionDTO(10, 10, None),
    ]


def test_all_fields_null(conn, raw_conn):
    raw_conn.execute("insert into foo values (5, (null, null, null))")
    values = conn.select_column('select res from foo where id = %s', 5)
    assert values == [ResolutionDTO(None, None, None)]
    assert resolution.resolve(values[0]) == Resolution(0, 0, 'P')


def test_report(conn, caplog):
    with caplog.at_level(logging.INFO, logger='resolution.cli'):
        cli.report(conn)

    assert sorted(caplog.messages) == sorted([
        'Got [10, 10] at P',
        'No defined resolution',
        'Got [-10, 10] at P',
        'Got [10, 10] at P',
    ])


def test_connect_from_uri(db_uri):
    with resolution.connect({'uri': db_uri}) as cn:
        assert len(cn.select_resolutions()) == 4
    assert cn.closed


def test_main(db_uri, monkeypatch, caplog):
    monkeypatch.setenv('DB_URI', db_uri)
    with caplog.at_level(logging.INFO, logger='resolution.cli'):
        assert cli.main([]) == 0
    assert 'No defined resolution' in caplog.messages


def test_main_missing_table(db_uri, caplog):
    with caplog.at_level(logging.ERROR, logger='resolution.cli'):
        assert cli.main(['--uri', db_uri, '--table', 'nosuchtable']) == 1
    assert 'nosuchtable' in caplog.text


def pg_options(**overrides):
    pg = config.postgresql
    options = {
        'hostname': pg.hostname,
        'username': pg.username,
        'password': pg.password,
        'database': pg.database,
        'port': pg.port,
        'timeout': pg.timeout,
    }
    options.update(overrides)
    return options


def test_connect_unknown_type(psql_docker):
    with pytest.raises(resolution.TypeConversionError, match='nosuchtype'):
        resolution.connect(pg_options(type_name='nosuchtype'))


def test_connect_bad_password(psql_docker):
    with pytest.raises(resolution.ConnectionFailure):
        resolution.connect(pg_options(password='wrong'))


def test_fetch_type_info(raw_conn):
    info = fetch_type_info(raw_conn, 'resolution')
    assert info.field_names == ['width', 'height', 'scan']
    oid = raw_conn.execute("select 'resolution'::regtype::oid").fetchone()[0]
    assert info.oid == oid


def test_unregistered_connection_returns_text(raw_conn):
    """Test without registration the composite is not a DTO and resolve rejects it"""
    value = raw_conn.execute('select res from foo where id = 1').fetchone()[0]
    assert not isinstance(value, ResolutionDTO)
    with pytest.raises(resolution.TypeConversionError):
        resolution.resolve(value)

    register_resolution(raw_conn)
    value = raw_conn.execute('select res from foo where id = 1').fetchone()[0]
    assert value == ResolutionDTO(10, 10, 'P')


def test_mismatched_type(raw_conn):
    raw_conn.execute('drop type if exists other_res')
    raw_conn.execute('create type other_res as (w int, h int, scan char)')
    with pytest.raises(resolution.TypeConversionError, match='expected'):
        fetch_type_info(raw_conn, 'other_res')


def test_text_fields_rejected(raw_conn):
    """Test a composite with the right field names but text types is rejected"""
    raw_conn.execute('drop type if exists text_res')
    raw_conn.execute('create type text_res as (width text, height text, scan text)')
    with pytest.raises(resolution.TypeConversionError, match='field types'):
        register_resolution(raw_conn, 'text_res')
    with pytest.raises(resolution.TypeConversionError, match='field types'):
        resolution.connect(pg_options(type_name='text_res'))


if __name__ == '__main__':
    __import__('pytest').main([__file__])
