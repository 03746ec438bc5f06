from __future__ import annotations

import logging
from typing import Any, BinaryIO, Iterable, Iterator
from zipfile import BadZipFile

import pandas as pd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from xlrd import XLRDError

from listino.domain.pricing.models import ParseConfig

from .errors import PriceListParseError
from .parser import BasePriceParser, Row
from .source import PriceListFile


logger = logging.getLogger(__name__)


def _select_sheet(workbook, requested_name: str | None):
    if requested_name:
        if requested_name in workbook.sheetnames:
            return workbook[requested_name]
        raise ValueError(f"Il foglio {requested_name} non esiste nel file selezionato.")
    return workbook.active


class ExcelPriceParser(BasePriceParser):
    """
    Parser per cartelle di lavoro Excel.

    I file .xlsx/.xlsm vengono letti in streaming (openpyxl read-only), i .xls
    legacy tramite pandas con engine xlrd.
    """

    name = "Excel Parser"
    supported_extensions = ("xlsx", "xlsm", "xls")
    read_errors = (InvalidFileException, BadZipFile, XLRDError)

    def _iter_row_blocks(self, file: PriceListFile, config: ParseConfig) -> Iterator[Iterable[Row]]:
        with file.open() as stream:
            if file.extension == "xls":
                yield self._read_legacy_rows(stream, config.sheet_name)
                return
            workbook = self._load_workbook(file, stream)
            try:
                sheet = _select_sheet(workbook, config.sheet_name)
                logger.debug("Listino %s: foglio %s", file.filename, sheet.title)
                yield sheet.iter_rows(values_only=True)
            finally:
                workbook.close()

    @staticmethod
    def _load_workbook(file: PriceListFile, stream: BinaryIO):
        try:
            return load_workbook(stream, read_only=True, data_only=True)
        except KeyError as exc:
            # Archivio zip valido ma senza le parti obbligatorie di una cartella di lavoro
            raise PriceListParseError(f"Cartella di lavoro incompleta {file.filename}: {exc}") from exc

    @staticmethod
    def _read_legacy_rows(stream: BinaryIO, sheet_name: str | None) -> list[list[Any]]:
        try:
            frame = pd.read_excel(
                stream,
                sheet_name=sheet_name if sheet_name else 0,
                header=None,
                dtype=object,
                engine="xlrd",
            )
        except ValueError as exc:
            if sheet_name:
                raise ValueError(f"Il foglio {sheet_name} non esiste nel file selezionato.") from exc
            raise
        return frame.where(pd.notna(frame), None).values.tolist()
