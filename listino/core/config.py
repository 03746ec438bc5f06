from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _split_csv_setting(value: str | list[str] | tuple[str, ...] | None) -> list[str] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return list(value)


class Settings(BaseSettings):
    """Configurazione centrale della libreria listini."""

    # Parsing
    default_start_row: int = Field(default=2, description="Riga iniziale dati (1-based) se non indicata")
    default_preview_rows: int = Field(default=5, description="Righe restituite dall'anteprima")
    csv_encodings: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["utf-8-sig", "cp1251"],
        description="Codifiche provate in ordine per i file CSV/TXT",
    )
    csv_sample_bytes: int = Field(
        default=64 * 1024,
        description="Byte letti per riconoscere la codifica del file di testo",
    )

    # Euristiche righe di gruppo / intestazioni
    group_header_keywords: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: [
            "группа", "group", "категория", "category",
            "раздел", "section", "тип", "type",
            "група", "категорія", "розділ",
        ],
        description="Parole chiave che identificano righe di gruppo nei listini",
    )
    group_header_min_length: int = Field(
        default=30,
        description="Oltre questa lunghezza la prima cella viene trattata come intestazione di gruppo",
    )
    price_header_keywords: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["price", "цена", "ціна", "cost", "стоимость", "вартість"],
        description="Parole chiave per riconoscere la colonna prezzo in anteprima",
    )

    # Prezzi
    default_retail_markup: float = Field(
        default=30.0, description="Ricarico percentuale di default (vendita da acquisto)"
    )
    default_purchase_markdown: float = Field(
        default=-20.0, description="Sconto percentuale di default (acquisto da vendita)"
    )

    # Matching
    match_by_supplier_code: bool = Field(
        default=True,
        description="Abbina prima per codice fornitore quando il prodotto lo espone",
    )
    report_sample_limit: int = Field(default=10, description="Esempi inclusi nei report di matching")

    # Logging e observability
    structured_logging: bool = Field(
        default=False,
        description="Emette log JSON per integrazione con SIEM/ELK",
    )
    log_level: str = Field(default="INFO", description="Livello di log applicativo")

    model_config = SettingsConfigDict(
        env_prefix="LISTINO_", env_file=".env", extra="ignore"
    )

    @field_validator("csv_encodings", mode="before")
    @classmethod
    def _split_encodings(
        cls, value: str | list[str] | tuple[str, ...] | None
    ) -> list[str]:
        items = _split_csv_setting(value)
        return items or ["utf-8-sig"]

    @field_validator("group_header_keywords", "price_header_keywords", mode="before")
    @classmethod
    def _split_keywords(
        cls, value: str | list[str] | tuple[str, ...] | None
    ) -> list[str]:
        items = _split_csv_setting(value) or []
        return [item.lower() for item in items]


settings = Settings()
