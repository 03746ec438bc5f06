from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping

from listino.core import settings

from .models import ModifierType, PriceKind, PriceListRecord, PriceMode, PriceModifier, PriceRules


logger = logging.getLogger(__name__)

_ROUNDING_STEP = Decimal("0.01")
_PRICE_KEYS = {
    "purchase": "purchase_price",
    "retail": "retail_price",
    "list": "list_price",
}


def round_price(value: float | Decimal | int | None) -> float | None:
    """Arrotonda a due decimali (half-up), passando da Decimal per evitare errori binari."""
    if value is None:
        return None
    decimal_value = value if isinstance(value, Decimal) else Decimal(str(value))
    return float(decimal_value.quantize(_ROUNDING_STEP, rounding=ROUND_HALF_UP))


def price_change(old_price: float | None, new_price: float | None) -> str:
    if old_price is None or new_price is None:
        return "new"
    if new_price > old_price:
        return "increase"
    if new_price < old_price:
        return "decrease"
    return "unchanged"


def _coerce_rules(rules: PriceRules | Mapping[str, Any] | None) -> PriceRules:
    if rules is None:
        return PriceRules()
    if isinstance(rules, PriceRules):
        return rules
    return PriceRules.model_validate(dict(rules))


def _as_float(value: Any) -> float | None:
    if value is None:
        return None
    return float(value)


class PriceCalculator:
    """
    Deriva il prezzo di acquisto o di vendita mancante applicando i
    modificatori configurati. Il prezzo di listino non viene mai derivato.
    """

    def __init__(
        self,
        default_retail_modifier: PriceModifier | None = None,
        default_purchase_modifier: PriceModifier | None = None,
    ) -> None:
        self.default_retail_modifier = default_retail_modifier or PriceModifier(
            type=ModifierType.percentage, value=settings.default_retail_markup
        )
        self.default_purchase_modifier = default_purchase_modifier or PriceModifier(
            type=ModifierType.percentage, value=settings.default_purchase_markdown
        )

    def calculate(
        self,
        record: PriceListRecord | Mapping[str, Any],
        rules: PriceRules | Mapping[str, Any] | None = None,
    ) -> dict[str, float | None]:
        rules = _coerce_rules(rules)
        price_1, price_2 = self._raw_prices(record, rules)

        if rules.mode == PriceMode.single_purchase:
            purchase, retail = self._from_purchase(price_1, rules)
        elif rules.mode == PriceMode.single_retail:
            purchase, retail = self._from_retail(price_1, rules)
        elif rules.mode == PriceMode.dual:
            purchase, retail = self._dual(price_1, price_2, rules)
        else:
            raise ValueError(f"Modalità prezzo sconosciuta: {rules.mode}")

        return {"purchase_price": round_price(purchase), "retail_price": round_price(retail)}

    def calculate_batch(
        self,
        records: Iterable[PriceListRecord | Mapping[str, Any]],
        rules: PriceRules | Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        rules = _coerce_rules(rules)
        results: list[dict[str, Any]] = []
        for record in records:
            calculated = self.calculate(record, rules)
            payload = record.to_dict() if isinstance(record, PriceListRecord) else dict(record)
            payload["calculated_purchase_price"] = calculated["purchase_price"]
            payload["calculated_retail_price"] = calculated["retail_price"]
            results.append(payload)
        logger.debug("Prezzi calcolati per %s righe (modalità %s)", len(results), rules.mode.value)
        return results

    def apply_modifier(self, base_price: float, modifier: PriceModifier | Mapping[str, Any]) -> float:
        if not isinstance(modifier, PriceModifier):
            modifier = PriceModifier.model_validate(dict(modifier))
        if modifier.type == ModifierType.percentage:
            return base_price * (1 + modifier.value / 100)
        if modifier.type == ModifierType.fixed:
            return base_price + modifier.value
        if modifier.type == ModifierType.none:
            return base_price
        raise ValueError(f"Tipo di modificatore sconosciuto: {modifier.type}")

    def apply_modifiers(
        self,
        prices: PriceListRecord | Mapping[str, Any],
        modifiers: Iterable[Mapping[str, Any]],
    ) -> dict[str, float | None]:
        """
        Applica in sequenza i modificatori per tipo di prezzo
        (``price_type`` purchase/retail/list, ``modifier_type``, ``modifier_value``).
        Prezzi assenti o modificatori ``none`` vengono saltati; ogni risultato
        è arrotondato.
        """
        source = prices.to_dict() if isinstance(prices, PriceListRecord) else prices
        result = {kind: _as_float(source.get(key)) for kind, key in _PRICE_KEYS.items()}

        for entry in modifiers:
            kind = entry.get("price_type")
            modifier_type = entry.get("modifier_type") or ModifierType.none.value
            if kind not in result or result[kind] is None:
                continue
            if modifier_type == ModifierType.none.value:
                continue
            value = entry.get("modifier_value", entry.get("value", 0)) or 0
            modifier = PriceModifier(type=modifier_type, value=float(value))
            result[kind] = round_price(self.apply_modifier(result[kind], modifier))
        return result

    def _raw_prices(
        self, record: PriceListRecord | Mapping[str, Any], rules: PriceRules
    ) -> tuple[float | None, float | None]:
        # Valori posizionali price_1/price_2 come prodotti dal wizard
        if isinstance(record, Mapping) and ("price_1" in record or "price_2" in record):
            return _as_float(record.get("price_1")), _as_float(record.get("price_2"))

        if isinstance(record, PriceListRecord):
            purchase, retail = record.purchase_price, record.retail_price
        else:
            purchase, retail = record.get("purchase_price"), record.get("retail_price")
        purchase, retail = _as_float(purchase), _as_float(retail)

        if rules.mode == PriceMode.single_purchase:
            return purchase, None
        if rules.mode == PriceMode.single_retail:
            return retail, None
        # In dual i campi nominali sono già del tipo giusto
        by_kind = {PriceKind.purchase: purchase, PriceKind.retail: retail}
        return by_kind[rules.price_1_is], by_kind[rules.price_2_is]

    def _from_purchase(self, purchase: float | None, rules: PriceRules) -> tuple[float | None, float | None]:
        if purchase is None:
            return None, None
        return purchase, self.apply_modifier(purchase, rules.retail_modifier or self.default_retail_modifier)

    def _from_retail(self, retail: float | None, rules: PriceRules) -> tuple[float | None, float | None]:
        if retail is None:
            return None, None
        return self.apply_modifier(retail, rules.purchase_modifier or self.default_purchase_modifier), retail

    def _dual(
        self, price_1: float | None, price_2: float | None, rules: PriceRules
    ) -> tuple[float | None, float | None]:
        purchase: float | None = None
        retail: float | None = None
        if rules.price_1_is == PriceKind.purchase:
            purchase = price_1
        else:
            retail = price_1
        if rules.price_2_is == PriceKind.purchase:
            purchase = price_2
        else:
            retail = price_2

        if purchase is not None and retail is None:
            retail = self.apply_modifier(purchase, rules.retail_modifier or self.default_retail_modifier)
        elif retail is not None and purchase is None:
            purchase = self.apply_modifier(retail, rules.purchase_modifier or self.default_purchase_modifier)
        return purchase, retail


price_calculator = PriceCalculator()
