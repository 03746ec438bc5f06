from .common import (
    column_to_index,
    detect_data_start_row,
    detect_delimiter,
    index_to_column,
    is_data_row,
    is_group_header,
    normalize_code,
    normalize_name,
    normalize_price,
)
from .csv_parser import CsvPriceParser
from .errors import (
    PriceListError,
    PriceListFileError,
    PriceListParseError,
    UnsupportedFormatError,
)
from .excel_parser import ExcelPriceParser
from .parser import BasePriceParser
from .registry import ParserRegistry, build_default_registry, parser_registry
from .source import PriceListFile
from .word_parser import WordPriceParser

__all__ = [
    "column_to_index",
    "detect_data_start_row",
    "detect_delimiter",
    "index_to_column",
    "is_data_row",
    "is_group_header",
    "normalize_code",
    "normalize_name",
    "normalize_price",
    "BasePriceParser",
    "CsvPriceParser",
    "ExcelPriceParser",
    "WordPriceParser",
    "ParserRegistry",
    "build_default_registry",
    "parser_registry",
    "PriceListFile",
    "PriceListError",
    "PriceListFileError",
    "PriceListParseError",
    "UnsupportedFormatError",
]
