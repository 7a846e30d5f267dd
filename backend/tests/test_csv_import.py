import pytest

from inventario.core.csv_import import (
    CsvImportError,
    detect_separator,
    normalize_header,
    parse_equipment_csv,
    split_csv_line,
)


@pytest.mark.parametrize(
    "header, expected",
    [
        ("Número de Série", "NUMERODESERIE"),
        ("numero_de_serie", "NUMERODESERIE"),
        ("NUMERO DE SERIE", "NUMERODESERIE"),
        ("Estado/Província", "ESTADOPROVINCIA"),
        ("País", "PAIS"),
    ],
)
def test_normalize_header_folds_case_accents_and_punctuation(header, expected):
    assert normalize_header(header) == expected


def test_detect_separator_prefers_semicolon_only_when_more_frequent():
    assert detect_separator("a;b;c") == ";"
    assert detect_separator("a,b,c") == ","
    assert detect_separator("a;b,c") == ","


def test_split_keeps_separator_inside_quotes():
    assert split_csv_line('"Silva, Ana",SN1,"Dell"', ",") == ["Silva, Ana", "SN1", "Dell"]


def test_parse_semicolon_export_with_accented_headers():
    text = (
        "Nome do Dispositivo;Número de Série;Nome do Usuário Atual;Marca\r\n"
        "NB-01;SN001;Alice;Dell\r\n"
        "NB-02;SN002;Bob;Lenovo\r\n"
    )
    rows = parse_equipment_csv(text)
    assert rows == [
        {"equipamento": "NB-01", "serial": "SN001", "usuarioAtual": "Alice", "brand": "Dell"},
        {"equipamento": "NB-02", "serial": "SN002", "usuarioAtual": "Bob", "brand": "Lenovo"},
    ]


def test_parse_drops_rows_without_serial_and_skips_empty_values():
    text = "serial,usuario,cidade\nSN1,,Recife\n,Carla,Natal\nSN3,Davi,\n"
    rows = parse_equipment_csv(text)
    assert rows == [
        {"serial": "SN1", "cidade": "Recife"},
        {"serial": "SN3", "usuarioAtual": "Davi"},
    ]


def test_parse_strips_bom_and_ignores_unknown_columns():
    text = "\ufeffSerial,Coluna Desconhecida,Modelo\nSN9,xyz,Latitude 5420\n"
    assert parse_equipment_csv(text) == [{"serial": "SN9", "model": "Latitude 5420"}]


@pytest.mark.parametrize("text", ["", "Serial;Marca", "\ufeff  \n"])
def test_parse_requires_header_and_data(text):
    with pytest.raises(CsvImportError, match="cabeçalho e dados"):
        parse_equipment_csv(text)
