from .calculator import PriceCalculator, price_calculator, price_change, round_price
from .models import (
    CatalogItem,
    ColumnRole,
    MatchResult,
    ModifierType,
    ParseConfig,
    PreviewResult,
    PriceKind,
    PriceListRecord,
    PriceMode,
    PriceModifier,
    PriceRules,
)

__all__ = [
    "PriceCalculator",
    "price_calculator",
    "price_change",
    "round_price",
    "CatalogItem",
    "ColumnRole",
    "MatchResult",
    "ModifierType",
    "ParseConfig",
    "PreviewResult",
    "PriceKind",
    "PriceListRecord",
    "PriceMode",
    "PriceModifier",
    "PriceRules",
]
