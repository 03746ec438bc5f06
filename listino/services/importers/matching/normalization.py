"""
Normalizzazione e tokenizzazione dei nomi per il matching gerarchico.
"""
from __future__ import annotations

import re
from typing import Sequence

from .config import CODE_CLEANUP_PATTERN, COMPOSITE_SEPARATOR, NAME_CLEANUP_PATTERN


_NAME_CLEANUP = re.compile(NAME_CLEANUP_PATTERN)
_CODE_CLEANUP = re.compile(CODE_CLEANUP_PATTERN)
_WHITESPACE = re.compile(r"\s+")


def normalize_match_name(value: str | None) -> str:
    """Minuscolo, solo lettere latine/cirilliche e cifre separate da un singolo spazio."""
    if not value:
        return ""
    text = str(value).lower()
    text = _NAME_CLEANUP.sub(" ", text)
    text = _WHITESPACE.sub(" ", text)
    return text.strip()


def tokenize(normalized: str) -> list[str]:
    return [token for token in normalized.split(" ") if token]


def build_haystack(value: str | None) -> str:
    """Nome normalizzato senza spazi, usato per la ricerca per sottostringa."""
    return COMPOSITE_SEPARATOR.join(tokenize(normalize_match_name(value)))


def composite_tokens(tokens: Sequence[str], level: int) -> list[str]:
    """
    Concatenazioni di ``level + 1`` token consecutivi (finestra scorrevole).
    Lista vuota se la finestra supera il numero di token.
    """
    size = level + 1
    if size > len(tokens):
        return []
    return [
        COMPOSITE_SEPARATOR.join(tokens[start : start + size])
        for start in range(len(tokens) - size + 1)
    ]


def count_matches(tokens: Sequence[str], haystack: str) -> int:
    return sum(1 for token in tokens if token and token in haystack)


def normalize_code_key(code: str | None) -> str:
    """Codice fornitore in maiuscolo senza separatori."""
    if code is None:
        return ""
    return _CODE_CLEANUP.sub("", str(code).upper())
