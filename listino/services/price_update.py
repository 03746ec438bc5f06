from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Hashable, Iterable, Mapping

from listino.domain.pricing.calculator import PriceCalculator, price_calculator, price_change
from listino.domain.pricing.models import (
    CatalogItem,
    MatchResult,
    ParseConfig,
    PriceListRecord,
    PriceRules,
)
from listino.services.importers.errors import PriceListParseError
from listino.services.importers.matching import (
    MatchingEngine,
    build_matching_report,
    log_unmatched_products,
    matching_engine,
)
from listino.services.importers.registry import ParserRegistry, parser_registry
from listino.services.importers.source import PriceListFile


logger = logging.getLogger(__name__)


@dataclass
class PriceUpdateResult:
    records: list[PriceListRecord]
    matches: list[MatchResult]
    items: list[dict[str, Any]] = field(default_factory=list)
    report: dict[str, Any] = field(default_factory=dict)


class PriceUpdateService:
    """Orchestrazione listino -> matching -> calcolo prezzi per un file fornitore."""

    def __init__(
        self,
        registry: ParserRegistry | None = None,
        engine: MatchingEngine | None = None,
        calculator: PriceCalculator | None = None,
    ) -> None:
        self.registry = registry or parser_registry
        self.engine = engine or matching_engine
        self.calculator = calculator or price_calculator

    def run(
        self,
        file: PriceListFile,
        config: ParseConfig | Mapping[str, Any] | None,
        catalog: Iterable[CatalogItem | Mapping[str, Any]],
        rules: PriceRules | Mapping[str, Any] | None = None,
        previous_prices: Mapping[Hashable, Mapping[str, Any]] | None = None,
    ) -> PriceUpdateResult:
        records = self.registry.parse(file, config)
        if not records:
            raise PriceListParseError(f"Nessun dato trovato nel listino {file.filename}")

        catalog_items = list(catalog)
        matches = self.engine.match_products(records, catalog_items)
        items = [
            self._build_item(match, rules, previous_prices or {})
            for match in matches
        ]

        report = build_matching_report(matches, records, catalog_items)
        log_unmatched_products(report["unmatched_products"])
        logger.info(
            "Aggiornamento prezzi da %s: %s righe, %s prodotti abbinati su %s",
            file.filename,
            len(records),
            report["stats"]["matched"],
            report["stats"]["total_products"],
        )
        return PriceUpdateResult(records=records, matches=matches, items=items, report=report)

    def _build_item(
        self,
        match: MatchResult,
        rules: PriceRules | Mapping[str, Any] | None,
        previous_prices: Mapping[Hashable, Mapping[str, Any]],
    ) -> dict[str, Any]:
        record = match.price_item
        calculated = self.calculator.calculate(record, rules)
        previous = previous_prices.get(match.product_id) or {}
        old_purchase = previous.get("purchase_price")
        old_retail = previous.get("retail_price")
        return {
            "product_id": match.product_id,
            "product_name": match.product_name,
            "code": record.code,
            "name": record.name,
            "availability": record.availability,
            "method": match.method,
            "level": match.level,
            "matched_tokens": match.matched_tokens,
            "purchase_price": calculated["purchase_price"],
            "retail_price": calculated["retail_price"],
            "list_price": record.list_price,
            "old_purchase_price": old_purchase,
            "old_retail_price": old_retail,
            "purchase_change": price_change(old_purchase, calculated["purchase_price"]),
            "retail_change": price_change(old_retail, calculated["retail_price"]),
        }


price_update_service = PriceUpdateService()
