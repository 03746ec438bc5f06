"""
Matching prodotti catalogo / righe listino.
"""
from .engine import MatchingEngine, matching_engine
from .normalization import (
    build_haystack,
    composite_tokens,
    count_matches,
    normalize_code_key,
    normalize_match_name,
    tokenize,
)
from .report import (
    build_matching_report,
    describe_record,
    log_unmatched_products,
    shorten_label,
)

__all__ = [
    "MatchingEngine",
    "matching_engine",
    "build_haystack",
    "composite_tokens",
    "count_matches",
    "normalize_code_key",
    "normalize_match_name",
    "tokenize",
    "build_matching_report",
    "describe_record",
    "log_unmatched_products",
    "shorten_label",
]
