"""
Generazione report e warning per matching.
"""
from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Iterable, Mapping, Sequence

from listino.core import settings
from listino.domain.pricing.models import CatalogItem, MatchResult, PriceListRecord

from .config import LABEL_MAX_LENGTH, METHOD_EXACT_CODE
from .engine import coerce_catalog_item, coerce_record

logger = logging.getLogger(__name__)


def product_label(item: CatalogItem) -> str:
    """Genera label descrittiva per un prodotto del catalogo."""
    parts: list[str] = []
    if item.supplier_code:
        parts.append(str(item.supplier_code))
    if item.name:
        parts.append(item.name)
    return " - ".join(parts) or f"Prodotto {item.id}"


def shorten_label(label: str, limit: int = LABEL_MAX_LENGTH) -> str:
    """Accorcia label troppo lunga."""
    text = label.strip()
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def describe_record(record: PriceListRecord) -> str:
    """Descrizione breve della riga di listino (codice @ prezzo)."""
    code = record.code or "SENZA-CODICE"
    price = next(
        (
            value
            for value in (record.purchase_price, record.retail_price, record.list_price)
            if value is not None
        ),
        None,
    )
    price_text = f"{price:.2f}" if isinstance(price, (int, float)) else "n/d"
    return f"{code} @ {price_text}"


def build_matching_report(
    results: Sequence[MatchResult],
    records: Iterable[PriceListRecord | Mapping[str, Any]],
    catalog: Iterable[CatalogItem | Mapping[str, Any]],
) -> dict[str, Any]:
    """
    Costruisce report di matching tra catalogo e listino.
    Include: abbinamenti, prodotti senza riga, righe non usate e statistiche.
    Le righe usate sono riconosciute per identità: ``records`` deve contenere
    gli stessi oggetti restituiti dal matching.
    """
    price_records = [coerce_record(record) for record in records]
    products = [coerce_catalog_item(item) for item in catalog]

    matched_ids = {result.product_id for result in results}
    used_records = {id(result.price_item) for result in results}

    unmatched_products = [
        {"id": item.id, "name": item.name, "supplier_code": item.supplier_code}
        for item in products
        if item.id not in matched_ids
    ]
    unmatched_price_items = [
        record.to_dict() for record in price_records if id(record) not in used_records
    ]

    by_level = Counter(result.level for result in results if result.method != METHOD_EXACT_CODE)
    by_method = Counter(result.method for result in results)

    return {
        "matched": [result.to_dict() for result in results],
        "unmatched_products": unmatched_products,
        "unmatched_price_items": unmatched_price_items,
        "stats": {
            "total_products": len(products),
            "matched": len(results),
            "unmatched": len(unmatched_products),
            "total_price_items": len(price_records),
            "by_level": dict(sorted(by_level.items())),
            "by_method": dict(by_method),
        },
    }


def log_unmatched_products(
    items: Sequence[CatalogItem | Mapping[str, Any]],
    limit: int | None = None,
) -> None:
    if not items:
        return
    sample_limit = settings.report_sample_limit if limit is None else limit
    labels = [
        shorten_label(product_label(coerce_catalog_item(item)))
        for item in items[:sample_limit]
    ]
    extra = len(items) - len(labels)
    suffix = f" (+{extra} altri)" if extra > 0 else ""
    logger.warning(
        "%s prodotti senza riga di listino: %s%s",
        len(items),
        "; ".join(labels),
        suffix,
    )
