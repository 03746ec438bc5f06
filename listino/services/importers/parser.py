from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import closing, contextmanager
from itertools import chain, islice
from typing import Any, Callable, Iterable, Iterator, Mapping, Sequence

from listino.core import settings
from listino.domain.pricing.models import (
    ColumnRole,
    ParseConfig,
    PreviewResult,
    PriceListRecord,
)

from .common import (
    cell_at,
    cell_to_text,
    detect_data_start_row,
    index_to_column,
    is_data_row,
    is_group_header,
    looks_like_price_header,
    normalize_availability,
    normalize_code,
    normalize_name,
    normalize_price,
)
from .errors import PriceListError, PriceListParseError
from .source import PriceListFile


logger = logging.getLogger(__name__)

Row = Sequence[Any]

_ROLE_FIELDS: dict[ColumnRole, tuple[str, Callable[[Any], Any]]] = {
    ColumnRole.product_code: ("code", normalize_code),
    ColumnRole.product_name: ("name", normalize_name),
    ColumnRole.purchase_price: ("purchase_price", normalize_price),
    ColumnRole.retail_price: ("retail_price", normalize_price),
    ColumnRole.list_price: ("list_price", normalize_price),
    ColumnRole.availability: ("availability", normalize_availability),
}


def coerce_parse_config(config: ParseConfig | Mapping[str, Any] | None) -> ParseConfig:
    if config is None:
        return ParseConfig()
    if isinstance(config, ParseConfig):
        return config
    return ParseConfig.model_validate(dict(config))


def map_row(row: Row, column_mapping: Mapping[int, Sequence[ColumnRole]]) -> PriceListRecord:
    """Applica la mappatura colonna -> ruoli a una riga grezza."""
    record = PriceListRecord()
    for index, roles in column_mapping.items():
        value = cell_at(row, index)
        for role in roles:
            target = _ROLE_FIELDS.get(role)
            if target is None:
                # ColumnRole.ignore
                continue
            field_name, normalizer = target
            setattr(record, field_name, normalizer(value))
    return record


def _rows_from_start(blocks: Iterable[Iterable[Row]], start_row: int) -> Iterator[Row]:
    for block in blocks:
        for row_number, row in enumerate(block, start=1):
            if row_number >= start_row:
                yield row


class BasePriceParser(ABC):
    """
    Contratto comune dei parser di listini.

    Ogni sottoclasse espone le righe grezze del file come blocchi (un blocco
    per foglio o tabella); normalizzazione, filtri e mappatura sono condivisi.
    """

    name: str = ""
    supported_extensions: tuple[str, ...] = ()
    read_errors: tuple[type[BaseException], ...] = ()

    def supports(self, file: PriceListFile) -> bool:
        extension = file.extension
        return extension is not None and extension in self.get_supported_extensions()

    def get_supported_extensions(self) -> list[str]:
        return list(self.supported_extensions)

    def get_name(self) -> str:
        return self.name

    @abstractmethod
    def _iter_row_blocks(self, file: PriceListFile, config: ParseConfig) -> Iterator[Iterable[Row]]:
        """Restituisce i blocchi di righe del file mantenendo aperte le risorse fino alla chiusura."""

    def parse(
        self,
        file: PriceListFile,
        config: ParseConfig | Mapping[str, Any] | None = None,
    ) -> list[PriceListRecord]:
        config = coerce_parse_config(config)
        code_index = config.code_index()
        price_indexes = config.price_indexes()

        records: list[PriceListRecord] = []
        skipped_headers = 0
        skipped_rows = 0
        with self._wrap_read_errors(file):
            with closing(self._iter_row_blocks(file, config)) as blocks:
                for row in _rows_from_start(blocks, config.start_row):
                    if config.max_rows is not None and len(records) >= config.max_rows:
                        break
                    if is_group_header(row, code_index, price_indexes):
                        skipped_headers += 1
                        logger.debug("Riga di gruppo ignorata: %s", cell_to_text(cell_at(row, 0)))
                        continue
                    if not is_data_row(row, code_index, price_indexes):
                        skipped_rows += 1
                        continue
                    record = map_row(row, config.column_mapping)
                    if record.is_empty():
                        skipped_rows += 1
                        continue
                    records.append(record)

        logger.info(
            "Listino %s letto con %s: %s righe valide, %s intestazioni di gruppo e %s righe scartate",
            file.filename,
            self.get_name(),
            len(records),
            skipped_headers,
            skipped_rows,
        )
        return records

    def preview(self, file: PriceListFile, preview_rows: int | None = None) -> PreviewResult:
        raw_rows = self._read_preview_rows(file, ParseConfig(), preview_rows)
        return self._build_preview(raw_rows)

    def _read_preview_rows(
        self,
        file: PriceListFile,
        config: ParseConfig,
        preview_rows: int | None,
    ) -> list[Row]:
        limit = settings.default_preview_rows if preview_rows is None else preview_rows
        with self._wrap_read_errors(file):
            with closing(self._iter_row_blocks(file, config)) as blocks:
                return [list(row) for row in islice(chain.from_iterable(blocks), max(limit, 0))]

    def _build_preview(self, raw_rows: Sequence[Row]) -> PreviewResult:
        width = max((len(row) for row in raw_rows), default=0)
        letters = [index_to_column(index) for index in range(width)]
        rows = [
            {letter: cell_to_text(cell_at(row, index)) or "" for index, letter in enumerate(letters)}
            for row in raw_rows
        ]
        headers = {letter: rows[0][letter] or letter for letter in letters} if rows else {}

        suggested_start_row = 2
        if len(rows) > 1:
            for index, letter in enumerate(letters):
                if looks_like_price_header(rows[0][letter]):
                    suggested_start_row = detect_data_start_row(raw_rows[1:], index) + 1
                    break

        return PreviewResult(
            headers=headers,
            rows=rows,
            suggested_start_row=suggested_start_row,
        )

    @contextmanager
    def _wrap_read_errors(self, file: PriceListFile) -> Iterator[None]:
        """Converte gli errori delle librerie di lettura in PriceListParseError."""
        try:
            yield
        except PriceListError:
            raise
        except self.read_errors as exc:
            raise PriceListParseError(
                f"Impossibile leggere il listino {file.filename} con {self.get_name()}: {exc}"
            ) from exc
