from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from listino.domain.pricing.models import ParseConfig, PreviewResult, PriceListRecord

from .csv_parser import CsvPriceParser
from .errors import UnsupportedFormatError
from .excel_parser import ExcelPriceParser
from .parser import BasePriceParser
from .source import PriceListFile
from .word_parser import WordPriceParser


logger = logging.getLogger(__name__)


class ParserRegistry:
    """
    Selettore dei parser (chain of responsibility): vince il primo parser
    registrato che dichiara di supportare il file.
    """

    def __init__(self, parsers: Iterable[BasePriceParser] = ()) -> None:
        self._parsers: list[BasePriceParser] = []
        for parser in parsers:
            self.add_parser(parser)

    def add_parser(self, parser: BasePriceParser) -> None:
        self._parsers.append(parser)

    def get_all_parsers(self) -> list[BasePriceParser]:
        return list(self._parsers)

    def get_parser(self, file: PriceListFile) -> BasePriceParser | None:
        for parser in self._parsers:
            if parser.supports(file):
                return parser
        return None

    def get_parser_by_name(self, name: str) -> BasePriceParser | None:
        for parser in self._parsers:
            if parser.get_name() == name:
                return parser
        return None

    def supports(self, file: PriceListFile) -> bool:
        return self.get_parser(file) is not None

    def parse(
        self,
        file: PriceListFile,
        config: ParseConfig | Mapping[str, Any] | None = None,
    ) -> list[PriceListRecord]:
        return self._require_parser(file).parse(file, config)

    def preview(self, file: PriceListFile, preview_rows: int | None = None) -> PreviewResult:
        return self._require_parser(file).preview(file, preview_rows)

    def get_supported_extensions(self) -> list[str]:
        extensions: list[str] = []
        for parser in self._parsers:
            for extension in parser.get_supported_extensions():
                if extension not in extensions:
                    extensions.append(extension)
        return extensions

    def get_supported_extensions_string(self) -> str:
        return ", ".join(extension.upper() for extension in self.get_supported_extensions())

    def get_parser_info(self) -> list[dict[str, Any]]:
        return [
            {"name": parser.get_name(), "extensions": parser.get_supported_extensions()}
            for parser in self._parsers
        ]

    def _require_parser(self, file: PriceListFile) -> BasePriceParser:
        parser = self.get_parser(file)
        if parser is None:
            extension = file.extension or "sconosciuto"
            logger.warning("Nessun parser disponibile per %s", file.filename)
            raise UnsupportedFormatError(
                f"Nessun parser disponibile per il tipo di file: {extension}. "
                f"Formati supportati: {self.get_supported_extensions_string()}"
            )
        return parser


def build_default_registry() -> ParserRegistry:
    return ParserRegistry([CsvPriceParser(), ExcelPriceParser(), WordPriceParser()])


parser_registry = build_default_registry()
