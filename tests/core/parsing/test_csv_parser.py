# tests/core/parsing/test_csv_parser.py
"""
Testes do Record Parser para CSV.

Cobre:
- aspas: delimitador, quebra de linha e aspas escapadas dentro do campo
- cabeçalho: trim, colunas sem nome, nomes duplicados, arquivo sem cabeçalho
- linhas iniciais ignoradas e linhas em branco
- linhas malformadas (contabilizadas, não abortam o lote)
- falhas fatais (arquivo vazio, só cabeçalho)
- BOM UTF-8
"""

import pytest

from nexus_intake.core.exceptions import ConfigurationError, FatalParseError
from nexus_intake.core.parsing import CsvOptions, parse


def test_quoted_fields_round_trip():
    raw = b'id,notes\n1,"Hello, ""world"""\n2,"multi\nline"\n'

    result = parse(raw, "csv")

    assert result.columns == ("id", "notes")
    assert result.records[0].values == {"id": "1", "notes": 'Hello, "world"'}
    assert result.records[1].values["notes"] == "multi\nline"
    assert result.total_rows == 2
    assert result.failed_rows == 0


def test_custom_delimiter_and_quote():
    raw = "id;name\n1;'a;b'\n"

    result = parse(raw, "csv", {"delimiter": ";", "quote_char": "'"})

    assert result.records[0].values == {"id": "1", "name": "a;b"}


def test_header_normalization():
    result = parse(b" id ,,name,name\n1,x,a,b\n", "csv")

    assert result.columns == ("id", "column_2", "name", "name_2")


def test_headerless_input_gets_positional_names():
    result = parse(b"1,CA\n2,NY\n", "csv", CsvOptions(has_header=False))

    assert result.columns == ("column_1", "column_2")
    assert result.records[1].values == {"column_1": "2", "column_2": "NY"}
    assert [r.row_number for r in result.records] == [1, 2]


def test_explicit_column_names_override_header():
    result = parse(b"a,b\n1,2\n", "csv", {"column_names": ["x", "y"]})

    assert result.columns == ("x", "y")
    assert result.records[0].values == {"x": "1", "y": "2"}


def test_skip_rows_and_blank_lines():
    raw = b"exported by tool\n\nid,state\n1,CA\n\n2,NY\n"

    result = parse(raw, "csv", {"skip_rows": 1})

    assert result.columns == ("id", "state")
    assert [r.values["id"] for r in result.records] == ["1", "2"]
    assert result.total_rows == 2


def test_short_rows_are_padded():
    result = parse(b"id,state,city\n1,CA\n", "csv")

    assert result.records[0].values == {"id": "1", "state": "CA", "city": ""}


def test_wide_row_is_malformed_but_batch_continues():
    result = parse(b"id,state\n1,CA\n2,NY,extra\n3,TX\n", "csv")

    assert result.total_rows == 3
    assert result.failed_rows == 1
    assert [r.row_number for r in result.records] == [1, 3]
    failure = result.row_failures[0]
    assert failure.row_number == 2
    assert "expected at most 2" in failure.reason
    assert failure.to_error().to_dict()["type"] == "ROW_MALFORMED"


def test_bom_is_stripped():
    result = parse("\ufeffid,state\n1,CA\n".encode("utf-8"), "csv")

    assert result.columns == ("id", "state")


@pytest.mark.parametrize("raw", [b"", b"   \n", b"id,state\n"])
def test_empty_input_is_fatal(raw):
    with pytest.raises(FatalParseError) as exc:
        parse(raw, "csv")

    assert exc.value.details["format"] == "csv"


def test_undecodable_bytes_are_fatal():
    with pytest.raises(FatalParseError):
        parse(b"id\n\xff\xfe\n", "csv", {"encoding": "ascii"})


def test_unknown_option_is_configuration_error():
    with pytest.raises(ConfigurationError):
        parse(b"id\n1\n", "csv", {"separator": ";"})


def test_unknown_format_is_configuration_error():
    with pytest.raises(ConfigurationError):
        parse(b"id\n1\n", "xml")
