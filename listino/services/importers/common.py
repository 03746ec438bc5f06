"""
Utilità condivise dai parser dei listini fornitore.

Conversione colonne, normalizzazione di prezzi/codici/nomi e le euristiche
per riconoscere righe dati, righe di gruppo e riga iniziale.
"""
from __future__ import annotations

import math
import re
from decimal import Decimal
from typing import Any, Iterable, Sequence

from openpyxl.utils import column_index_from_string, get_column_letter

from listino.core import settings


DEFAULT_DELIMITER = ","
FALLBACK_DELIMITERS = (";", "\t", "|")
DELIMITER_SAMPLE_LINES = 3

_CURRENCY_AND_SPACES = re.compile(r"[₴$€£\s]")
_NON_NUMERIC = re.compile(r"[^\d.\-]")
_LEADING_NUMBER = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")


def column_to_index(column: str | int) -> int:
    """Converte una colonna (A, B, AA o indice numerico) in indice 0-based."""
    if isinstance(column, bool):
        raise ValueError(f"Colonna non valida: {column!r}")
    if isinstance(column, int):
        if column < 0:
            raise ValueError(f"Indice colonna negativo: {column}")
        return column
    text = str(column).strip()
    if not text:
        raise ValueError("Identificativo colonna vuoto")
    if text.isdigit():
        return int(text)
    try:
        return column_index_from_string(text.upper()) - 1
    except ValueError as exc:
        raise ValueError(f"Colonna non valida: {column!r}") from exc


def index_to_column(index: int) -> str:
    """Converte un indice 0-based nella lettera di colonna (0=A, 26=AA)."""
    if index < 0:
        raise ValueError(f"Indice colonna negativo: {index}")
    return get_column_letter(index + 1)


def cell_to_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        # Le celle numeriche dei fogli arrivano come float (es. codice 12345.0)
        return str(int(value))
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    text = str(value).strip()
    return text or None


def cell_has_content(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def cell_at(row: Sequence[Any], index: int | None) -> Any:
    if index is None or index < 0 or index >= len(row):
        return None
    return row[index]


def normalize_price(value: Any) -> float | None:
    """
    Normalizza un prezzo testuale in float.

    Rimuove simboli di valuta e spazi, converte la virgola decimale e scarta
    ogni altro carattere. Valori sporchi diventano None, mai un errore.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
        return number if math.isfinite(number) else None
    text = str(value)
    if not text.strip():
        return None
    text = _CURRENCY_AND_SPACES.sub("", text)
    text = text.replace(",", ".")
    text = _NON_NUMERIC.sub("", text)
    if text in ("", "-"):
        return None
    match = _LEADING_NUMBER.match(text)
    if match is None:
        return None
    result = float(match.group(0))
    if not math.isfinite(result):
        # Sequenze di cifre oltre il range float
        return None
    return result


def normalize_code(value: Any) -> str | None:
    text = cell_to_text(value)
    if not text:
        return None
    return text.strip().upper() or None


def normalize_name(value: Any) -> str | None:
    text = cell_to_text(value)
    if not text:
        return None
    return text.strip() or None


def normalize_availability(value: Any) -> str | None:
    return cell_to_text(value)


def is_data_row(
    row: Sequence[Any],
    code_index: int | None,
    price_indexes: Sequence[int],
) -> bool:
    """Una riga dati ha almeno un codice o un prezzo valido."""
    if normalize_code(cell_at(row, code_index)) is not None:
        return True
    return any(normalize_price(cell_at(row, index)) is not None for index in price_indexes)


def is_group_header(
    row: Sequence[Any],
    code_index: int | None,
    price_indexes: Sequence[int],
    *,
    keywords: Iterable[str] | None = None,
    min_length: int | None = None,
) -> bool:
    """
    Riconosce le righe di gruppo (es. "Группа товаров 1", "Category: Tools"):
    testo nella prima cella, colonne codice e prezzo vuote.
    """
    first_cell = cell_to_text(cell_at(row, 0)) or ""
    if not first_cell:
        return False
    if cell_has_content(cell_at(row, code_index)):
        return False
    if any(cell_has_content(cell_at(row, index)) for index in price_indexes):
        return False

    keywords = settings.group_header_keywords if keywords is None else keywords
    min_length = settings.group_header_min_length if min_length is None else min_length
    lowered = first_cell.lower()
    if any(keyword in lowered for keyword in keywords):
        return True
    return len(first_cell) > min_length


def detect_data_start_row(rows: Sequence[Sequence[Any]], price_column: str | int) -> int:
    """Prima riga (1-based) con un prezzo positivo; 2 se non trovata."""
    price_index = column_to_index(price_column)
    for row_index, row in enumerate(rows):
        if price_index >= len(row):
            continue
        normalized = normalize_price(row[price_index])
        if normalized is not None and normalized > 0:
            return row_index + 1
    return 2


def looks_like_price_header(value: Any, keywords: Iterable[str] | None = None) -> bool:
    text = cell_to_text(value)
    if not text:
        return False
    keywords = settings.price_header_keywords if keywords is None else keywords
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)


def detect_delimiter(lines: Sequence[str]) -> str:
    """
    Sceglie il delimitatore più frequente nelle prime righe.
    Campione vuoto o pareggio in testa: virgola.
    """
    sample = "".join(lines[:DELIMITER_SAMPLE_LINES])
    if not sample:
        return DEFAULT_DELIMITER
    counts = {
        delimiter: sample.count(delimiter)
        for delimiter in (DEFAULT_DELIMITER, *FALLBACK_DELIMITERS)
    }
    best = max(counts.values())
    if best == 0:
        return DEFAULT_DELIMITER
    winners = [delimiter for delimiter, count in counts.items() if count == best]
    if len(winners) > 1:
        return DEFAULT_DELIMITER
    return winners[0]
