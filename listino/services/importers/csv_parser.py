from __future__ import annotations

import codecs
import csv
import logging
from io import TextIOWrapper
from typing import BinaryIO, Iterable, Iterator

from listino.core import settings
from listino.domain.pricing.models import ParseConfig, PreviewResult

from .common import DELIMITER_SAMPLE_LINES, detect_delimiter
from .parser import BasePriceParser, Row
from .source import PriceListFile


logger = logging.getLogger(__name__)


def detect_encoding(stream: BinaryIO, encodings: Iterable[str] | None = None) -> str:
    """
    Prova le codifiche configurate su un campione iniziale del file.
    Lo stream viene riportato all'inizio.
    """
    candidates = list(encodings or settings.csv_encodings)
    sample = stream.read(settings.csv_sample_bytes)
    stream.seek(0)
    for encoding in candidates:
        decoder = codecs.getincrementaldecoder(encoding)()
        try:
            # final=False: il campione può troncare un carattere multibyte
            decoder.decode(sample, final=False)
        except UnicodeDecodeError:
            continue
        return encoding
    return candidates[-1]


class CsvPriceParser(BasePriceParser):
    """Parser per listini testuali delimitati (.csv, .txt)."""

    name = "CSV Parser"
    supported_extensions = ("csv", "txt")
    read_errors = (csv.Error, UnicodeDecodeError)

    def _iter_row_blocks(self, file: PriceListFile, config: ParseConfig) -> Iterator[Iterable[Row]]:
        with file.open() as stream:
            text = self._open_text(stream)
            delimiter = config.delimiter or self._detect_from_text(text)
            logger.debug("Listino %s: delimitatore %r", file.filename, delimiter)
            yield csv.reader(text, delimiter=delimiter)

    def preview(self, file: PriceListFile, preview_rows: int | None = None) -> PreviewResult:
        delimiter = self.detect_file_delimiter(file)
        raw_rows = self._read_preview_rows(file, ParseConfig(delimiter=delimiter), preview_rows)
        result = self._build_preview(raw_rows)
        result.detected_delimiter = delimiter
        return result

    def detect_file_delimiter(self, file: PriceListFile) -> str:
        with self._wrap_read_errors(file):
            with file.open() as stream:
                return self._detect_from_text(self._open_text(stream))

    @staticmethod
    def _open_text(stream: BinaryIO) -> TextIOWrapper:
        encoding = detect_encoding(stream)
        return TextIOWrapper(stream, encoding=encoding, newline="")

    @staticmethod
    def _detect_from_text(text: TextIOWrapper) -> str:
        lines: list[str] = []
        for _ in range(DELIMITER_SAMPLE_LINES):
            line = text.readline()
            if not line:
                break
            lines.append(line)
        text.seek(0)
        return detect_delimiter(lines)
