"""
Matching gerarchico per token tra prodotti del catalogo e righe del listino.

Per ogni prodotto si contano i token del nome presenti come sottostringa nel
nome compattato di ciascuna riga; a parità si passa a token composti
(coppie, terne, ... di token consecutivi) finché resta un solo candidato.
Righe e catalogo sono tenuti interamente in memoria.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from listino.core import settings
from listino.domain.pricing.models import CatalogItem, MatchResult, PriceListRecord

from .config import METHOD_EXACT_CODE, METHOD_NAME_TOKENS
from .normalization import (
    build_haystack,
    composite_tokens,
    count_matches,
    normalize_code_key,
    normalize_match_name,
    tokenize,
)


logger = logging.getLogger(__name__)


@dataclass
class _IndexedRecord:
    record: PriceListRecord
    haystack: str


@dataclass
class _TokenMatch:
    record: PriceListRecord
    matched_tokens: int
    level: int


def coerce_record(value: PriceListRecord | Mapping[str, Any]) -> PriceListRecord:
    if isinstance(value, PriceListRecord):
        return value
    fields = PriceListRecord.__dataclass_fields__
    return PriceListRecord(**{key: value[key] for key in fields if key in value})


def coerce_catalog_item(value: CatalogItem | Mapping[str, Any]) -> CatalogItem:
    if isinstance(value, CatalogItem):
        return value
    return CatalogItem(
        id=value.get("id"),
        name=value.get("name"),
        supplier_code=value.get("supplier_code"),
    )


def _best_candidates(
    tokens: Sequence[str], candidates: Iterable[_IndexedRecord]
) -> tuple[int, list[_IndexedRecord]]:
    best = 0
    winners: list[_IndexedRecord] = []
    for candidate in candidates:
        matched = count_matches(tokens, candidate.haystack)
        if matched > best:
            best = matched
            winners = [candidate]
        elif matched == best and matched > 0:
            winners.append(candidate)
    return best, winners


class MatchingEngine:
    def __init__(self, *, match_by_supplier_code: bool | None = None) -> None:
        self.match_by_supplier_code = (
            settings.match_by_supplier_code
            if match_by_supplier_code is None
            else match_by_supplier_code
        )

    def match_products(
        self,
        records: Iterable[PriceListRecord | Mapping[str, Any]],
        catalog: Iterable[CatalogItem | Mapping[str, Any]],
    ) -> list[MatchResult]:
        """
        Restituisce un risultato per ogni prodotto abbinato, nell'ordine del
        catalogo. I prodotti senza abbinamento non compaiono.
        """
        price_records = [coerce_record(record) for record in records]
        indexed = [
            _IndexedRecord(record=record, haystack=build_haystack(record.name))
            for record in price_records
            if record.name
        ]
        codes = self._index_codes(price_records) if self.match_by_supplier_code else {}

        results: list[MatchResult] = []
        products = 0
        exact = 0
        for raw_item in catalog:
            item = coerce_catalog_item(raw_item)
            if not item.name:
                continue
            products += 1
            tokens = tokenize(normalize_match_name(item.name))

            code_key = normalize_code_key(item.supplier_code)
            if code_key and code_key in codes:
                exact += 1
                results.append(
                    MatchResult(
                        price_item=codes[code_key],
                        product_id=item.id,
                        matched_tokens=0,
                        level=0,
                        product_name=item.name,
                        original_tokens_count=len(tokens),
                        method=METHOD_EXACT_CODE,
                    )
                )
                continue

            match = self.find_best_match(tokens, indexed)
            if match is None:
                logger.debug("Nessuna riga di listino per il prodotto %s", item.name)
                continue
            results.append(
                MatchResult(
                    price_item=match.record,
                    product_id=item.id,
                    matched_tokens=match.matched_tokens,
                    level=match.level,
                    product_name=item.name,
                    original_tokens_count=len(tokens),
                    method=METHOD_NAME_TOKENS,
                )
            )

        logger.info(
            "Matching completato: %s/%s prodotti abbinati (%s per codice), %s righe listino",
            len(results),
            products,
            exact,
            len(price_records),
        )
        return results

    @staticmethod
    def find_best_match(
        tokens: Sequence[str], indexed: Sequence[_IndexedRecord]
    ) -> _TokenMatch | None:
        matched_tokens, candidates = _best_candidates(tokens, indexed)
        if not candidates:
            return None

        level = 1
        while len(candidates) > 1 and level < len(tokens):
            composites = composite_tokens(tokens, level)
            if not composites:
                break
            level_best, narrowed = _best_candidates(composites, candidates)
            if not narrowed:
                break
            candidates = narrowed
            matched_tokens = level_best
            level += 1

        return _TokenMatch(record=candidates[0].record, matched_tokens=matched_tokens, level=level - 1)

    @staticmethod
    def _index_codes(records: Iterable[PriceListRecord]) -> dict[str, PriceListRecord]:
        codes: dict[str, PriceListRecord] = {}
        for record in records:
            key = normalize_code_key(record.code)
            if key:
                codes.setdefault(key, record)
        return codes


matching_engine = MatchingEngine()
