"""Parsing of the periodic equipment CSV export (Absolute report).

The export comes from different tools and locales, so the separator is
guessed from the header line and header names are matched loosely through
:data:`HEADER_ALIASES`.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Dict, List

_LINE_BREAK = re.compile(r"\r\n|\n")
_NON_ALNUM = re.compile(r"[^A-Z0-9]")

# Normalised header -> equipment wire field
HEADER_ALIASES: Dict[str, str] = {
    "NOMEDODISPOSITIVO": "equipamento",
    "DISPOSITIVO": "equipamento",
    "EQUIPAMENTO": "equipamento",
    "NUMERODESERIE": "serial",
    "SERIAL": "serial",
    "NOMEDOUSUARIOATUAL": "usuarioAtual",
    "USUARIOATUAL": "usuarioAtual",
    "USUARIO": "usuarioAtual",
    "MARCA": "brand",
    "MODELO": "model",
    "EMAILDOCOLABORADOR": "emailColaborador",
    "EMAIL": "emailColaborador",
    "IDENTIFICADOR": "identificador",
    "NOMEDOSO": "nomeSO",
    "SO": "nomeSO",
    "MEMORIAFISICATOTAL": "memoriaFisicaTotal",
    "MEMORIA": "memoriaFisicaTotal",
    "GRUPODEPOLITICAS": "grupoPoliticas",
    "POLITICAS": "grupoPoliticas",
    "PAIS": "pais",
    "CIDADE": "cidade",
    "ESTADOPROVINCIA": "estadoProvincia",
    "ESTADO": "estadoProvincia",
    "LOCAL": "local",
    "SETOR": "setor",
}


class CsvImportError(ValueError):
    """The uploaded file cannot be read as an equipment export."""


def _strip_quotes(value: str) -> str:
    value = value.strip()
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value


def split_csv_line(line: str, separator: str) -> List[str]:
    """Split one CSV line; a separator inside double quotes is kept as text."""

    fields: List[str] = []
    current: List[str] = []
    in_quote = False
    for char in line:
        if char == '"':
            in_quote = not in_quote
        elif char == separator and not in_quote:
            fields.append(_strip_quotes("".join(current)))
            current = []
        else:
            current.append(char)
    fields.append(_strip_quotes("".join(current)))
    return fields


def normalize_header(header: str) -> str:
    """``"Número de Série"`` -> ``"NUMERODESERIE"``."""

    decomposed = unicodedata.normalize("NFD", header.upper())
    without_marks = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM.sub("", without_marks)


def detect_separator(header_line: str) -> str:
    return ";" if header_line.count(";") > header_line.count(",") else ","


def parse_equipment_csv(text: str) -> List[Dict[str, str]]:
    """Parse an export into rows keyed by equipment wire field names.

    Unmapped columns and empty values are ignored; rows without a serial are
    dropped because the serial is the merge key.
    """

    if text.startswith("\ufeff"):
        text = text[1:]
    lines = _LINE_BREAK.split(text.strip())
    if len(lines) < 2:
        raise CsvImportError("O arquivo CSV deve conter um cabeçalho e dados.")

    separator = detect_separator(lines[0])
    header = [normalize_header(h) for h in split_csv_line(lines[0], separator)]

    rows: List[Dict[str, str]] = []
    for line in lines[1:]:
        if not line.strip():
            continue
        values = split_csv_line(line, separator)
        entry: Dict[str, str] = {}
        for index, column in enumerate(header):
            field = HEADER_ALIASES.get(column)
            if field is None or index >= len(values):
                continue
            value = values[index].strip()
            if value:
                entry[field] = value
        if entry.get("serial", "").strip():
            rows.append(entry)
    return rows
