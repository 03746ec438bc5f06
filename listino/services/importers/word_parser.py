from __future__ import annotations

import logging
from typing import Iterable, Iterator
from zipfile import BadZipFile

from docx import Document
from docx.opc.exceptions import PackageNotFoundError

from listino.domain.pricing.models import ParseConfig

from .errors import PriceListParseError
from .parser import BasePriceParser, Row
from .source import PriceListFile


logger = logging.getLogger(__name__)


def _table_rows(table) -> Iterator[list[str]]:
    for row in table.rows:
        yield [cell.text.strip() for cell in row.cells]


class WordPriceParser(BasePriceParser):
    """
    Parser per listini in tabelle di documenti Word (.docx).

    Ogni tabella è un blocco a sé: la riga iniziale si applica a ciascuna
    tabella, perché ognuna ripete la propria intestazione.
    """

    name = "Word Parser"
    supported_extensions = ("docx",)
    read_errors = (PackageNotFoundError, BadZipFile)

    def _iter_row_blocks(self, file: PriceListFile, config: ParseConfig) -> Iterator[Iterable[Row]]:
        with file.open() as stream:
            try:
                document = Document(stream)
            except KeyError as exc:
                raise PriceListParseError(f"Documento Word incompleto {file.filename}: {exc}") from exc
            tables = document.tables
            logger.debug("Listino %s: %s tabelle trovate", file.filename, len(tables))
            for table in tables:
                yield _table_rows(table)
