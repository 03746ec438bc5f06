from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Hashable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from listino.core import settings


class ColumnRole(str, Enum):
    product_code = "product_code"
    product_name = "product_name"
    purchase_price = "purchase_price"
    retail_price = "retail_price"
    list_price = "list_price"
    availability = "availability"
    ignore = "ignore"


PRICE_ROLES = (ColumnRole.purchase_price, ColumnRole.retail_price, ColumnRole.list_price)


class PriceMode(str, Enum):
    single_purchase = "single_purchase"
    single_retail = "single_retail"
    dual = "dual"


class PriceKind(str, Enum):
    purchase = "purchase"
    retail = "retail"


class ModifierType(str, Enum):
    percentage = "percentage"
    fixed = "fixed"
    none = "none"


@dataclass
class PriceListRecord:
    code: str | None = None
    name: str | None = None
    purchase_price: float | None = None
    retail_price: float | None = None
    list_price: float | None = None
    availability: str | None = None

    def has_price(self) -> bool:
        return any(
            value is not None
            for value in (self.purchase_price, self.retail_price, self.list_price)
        )

    def is_empty(self) -> bool:
        """Una riga senza codice e senza alcun prezzo non porta informazioni utili."""
        return self.code is None and not self.has_price()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class CatalogItem:
    id: Hashable
    name: str | None
    supplier_code: str | None = None


@dataclass
class MatchResult:
    price_item: PriceListRecord
    product_id: Hashable
    matched_tokens: int
    level: int
    product_name: str | None = None
    original_tokens_count: int = 0
    method: str = "name_tokens"

    def to_dict(self) -> dict[str, Any]:
        return {
            "price_item": self.price_item.to_dict(),
            "match": {
                "product_id": self.product_id,
                "product_name": self.product_name,
                "matched_tokens": self.matched_tokens,
                "original_tokens_count": self.original_tokens_count,
                "level": self.level,
                "method": self.method,
            },
        }


@dataclass
class PreviewResult:
    headers: dict[str, str]
    rows: list[dict[str, str]]
    suggested_start_row: int
    detected_delimiter: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "headers": dict(self.headers),
            "rows": [dict(row) for row in self.rows],
            "suggested_start_row": self.suggested_start_row,
        }
        if self.detected_delimiter is not None:
            payload["detected_delimiter"] = self.detected_delimiter
        return payload


class ParseConfig(BaseModel):
    """Configurazione di parsing fornita dal wizard di mappatura colonne."""

    start_row: int = Field(default_factory=lambda: settings.default_start_row, ge=1)
    column_mapping: dict[int, list[ColumnRole]] = Field(default_factory=dict)
    max_rows: Optional[int] = Field(default=None, ge=0)
    delimiter: Optional[str] = None
    sheet_name: Optional[str] = None

    @field_validator("column_mapping", mode="before")
    @classmethod
    def _normalize_mapping(cls, value: Any) -> dict[int, list[Any]]:
        # Import locale per evitare il ciclo con il package importers
        from listino.services.importers.common import column_to_index

        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("column_mapping deve essere un dizionario colonna -> ruoli")
        normalized: dict[int, list[Any]] = {}
        for column, roles in value.items():
            index = column_to_index(column)
            if roles is None:
                continue
            if isinstance(roles, (str, ColumnRole)):
                roles = [roles]
            normalized.setdefault(index, []).extend(roles)
        return normalized

    @field_validator("delimiter")
    @classmethod
    def _validate_delimiter(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and len(value) != 1:
            raise ValueError("Il delimitatore CSV deve essere un singolo carattere")
        return value

    def code_index(self) -> int | None:
        for index, roles in self.column_mapping.items():
            if ColumnRole.product_code in roles:
                return index
        return None

    def price_indexes(self) -> list[int]:
        return [
            index
            for index, roles in self.column_mapping.items()
            if any(role in PRICE_ROLES for role in roles)
        ]


class PriceModifier(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: ModifierType = ModifierType.percentage
    value: float = 0.0


class PriceRules(BaseModel):
    mode: PriceMode = PriceMode.dual
    price_1_is: PriceKind = PriceKind.purchase
    price_2_is: PriceKind = PriceKind.retail
    purchase_modifier: Optional[PriceModifier] = None
    retail_modifier: Optional[PriceModifier] = None
