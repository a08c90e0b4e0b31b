# tests/unit/data_integration/test_csv_connector.py

from contextlib import closing

import pytest

from data_integration.connectors import ClaimsCSVConnector, get_connector_for_file
from data_integration.errors.error_handler import (
    ConnectionError, DataLoadError, InputFileNotFoundError
)
from conftest import make_claims, write_claims_csv


def write_text(path, text):
    path.write_text(text, encoding='utf-8')
    return path


def connector_for(path, **params):
    params['file_path'] = str(path)
    return ClaimsCSVConnector(params)


def test_headers_and_values_are_trimmed(tmp_path):
    path = write_text(tmp_path / 'claims.csv',
                      '\ufeff CLAIMID , COUNTYNAME ,VENUESTATE\n'
                      'C1,  Travis  , TX\n')
    with connector_for(path) as connector:
        records = list(connector.iter_records())
        assert connector.columns == ['CLAIMID', 'COUNTYNAME', 'VENUESTATE']

    assert records == [{'CLAIMID': 'C1', 'COUNTYNAME': 'Travis', 'VENUESTATE': 'TX'}]


def test_blank_lines_are_skipped(tmp_path):
    path = write_text(tmp_path / 'claims.csv', 'A,B\n\n1,2\n\n\n3,4\n')
    with connector_for(path) as connector:
        records = list(connector.iter_records())
    assert records == [{'A': '1', 'B': '2'}, {'A': '3', 'B': '4'}]


def test_quoted_fields(tmp_path):
    path = write_text(tmp_path / 'claims.csv',
                      'BODY_REGION,NOTE\n'
                      '"Cervical, Lumbar","said ""ouch""\nthen left"\n')
    with connector_for(path) as connector:
        record = next(iter(connector.load_records()))
    assert record['BODY_REGION'] == 'Cervical, Lumbar'
    assert record['NOTE'] == 'said "ouch"\nthen left'


def test_values_stay_strings(tmp_path):
    path = write_text(tmp_path / 'claims.csv', 'AMOUNT,CODE,FLAG\n1500,007,NA\n')
    with connector_for(path) as connector:
        record = connector.load_records()[0]
    assert record == {'AMOUNT': '1500', 'CODE': '007', 'FLAG': 'NA'}


def test_row_with_extra_fields_fails(tmp_path):
    path = write_text(tmp_path / 'claims.csv', 'A,B,C\n1,2,3\n4,5,6,7\n8,9,10\n')
    with connector_for(path) as connector:
        with pytest.raises(DataLoadError):
            list(connector.iter_records())


def test_row_with_extra_fields_fails_in_memory_mode(tmp_path):
    path = write_text(tmp_path / 'claims.csv', 'A,B,C\n1,2,3\n4,5,6,7\n')
    with connector_for(path) as connector:
        with pytest.raises(DataLoadError):
            connector.load_records()


def test_short_row_reads_missing_fields_as_empty(tmp_path):
    path = write_text(tmp_path / 'claims.csv', 'A,B,C\n1,2\n4,5,6\n')
    with connector_for(path) as connector:
        records = list(connector.iter_records())
    assert records[0] == {'A': '1', 'B': '2', 'C': ''}
    assert records[1] == {'A': '4', 'B': '5', 'C': '6'}


def test_empty_file_fails(tmp_path):
    path = write_text(tmp_path / 'claims.csv', '')
    with connector_for(path) as connector:
        with pytest.raises(DataLoadError):
            list(connector.iter_records())


def test_header_only_file_has_no_records(tmp_path):
    path = write_text(tmp_path / 'claims.csv', 'A,B,C\n')
    with connector_for(path) as connector:
        assert list(connector.iter_records()) == []


def test_missing_file_raises_input_not_found(tmp_path):
    connector = connector_for(tmp_path / 'missing.csv')
    with pytest.raises(InputFileNotFoundError):
        connector.connect()
    assert not connector.is_connected


def test_missing_path_is_connection_error():
    with pytest.raises(ConnectionError):
        ClaimsCSVConnector({}).connect()


def test_small_chunks_stream_every_record(tmp_path):
    claims = make_claims(23)
    path = write_claims_csv(tmp_path / 'claims.csv', claims)

    with connector_for(path, chunk_size=4) as connector:
        streamed = list(connector.iter_records())
        loaded = connector.load_records()

    assert len(streamed) == 23
    assert streamed == loaded
    assert [r['CLAIMID'] for r in streamed] == [c['CLAIMID'] for c in claims]


def test_reader_released_when_consumer_stops_early(tmp_path):
    path = write_claims_csv(tmp_path / 'claims.csv', make_claims(30))
    connector = connector_for(path, chunk_size=5)
    with connector:
        with closing(connector.iter_records()) as records:
            next(records)
            assert connector._reader is not None
        assert connector._reader is None
    assert not connector.is_connected


def test_file_info(claims_csv):
    with connector_for(claims_csv) as connector:
        info = connector.get_file_info()
    assert info['file_name'] == 'dat.csv'
    assert info['file_size'] == claims_csv.stat().st_size
    assert 'last_modified' in info


class TestConnectorFactory:

    def test_csv(self, tmp_path):
        connector = get_connector_for_file(tmp_path / 'dat.csv', chunk_size=50)
        assert isinstance(connector, ClaimsCSVConnector)
        assert connector.delimiter == ','
        assert connector.chunk_size == 50

    def test_tsv_defaults_to_tab(self, tmp_path):
        path = write_text(tmp_path / 'dat.tsv', 'A\tB\n1\t2\n')
        connector = get_connector_for_file(path)
        assert connector.delimiter == '\t'
        with connector:
            assert connector.load_records() == [{'A': '1', 'B': '2'}]

    def test_explicit_delimiter(self, tmp_path):
        path = write_text(tmp_path / 'dat.txt', 'A;B\n1;2\n')
        with get_connector_for_file(path, delimiter=';') as connector:
            assert list(connector.iter_records()) == [{'A': '1', 'B': '2'}]

    def test_unsupported_extension(self, tmp_path):
        with pytest.raises(ValueError):
            get_connector_for_file(tmp_path / 'dat.xlsx')
