from __future__ import annotations

from io import BytesIO
from pathlib import Path
from zipfile import ZipFile

import pandas as pd
import pytest
from openpyxl import Workbook

from listino.services.importers import excel_parser
from listino.services.importers.errors import PriceListParseError
from listino.services.importers.excel_parser import ExcelPriceParser
from listino.services.importers.source import PriceListFile


MAPPING = {"A": "product_name", "B": "product_code", "C": "purchase_price", "D": "retail_price"}


def _workbook_bytes(rows: list[list], *, extra_sheet: str | None = None, extra_rows=None) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Listino"
    for row in rows:
        sheet.append(row)
    if extra_sheet:
        other = workbook.create_sheet(extra_sheet)
        for row in extra_rows or []:
            other.append(row)
    buffer = BytesIO()
    workbook.save(buffer)
    workbook.close()
    return buffer.getvalue()


def test_parse_xlsx_active_sheet() -> None:
    content = _workbook_bytes(
        [
            ["Nome", "Codice", "Acquisto", "Vendita"],
            ["Drill", "a1", 12.5, None],
            ["Gruppo: utensili elettrici", None, None, None],
            ["Saw", 12345, "13,00", "19,90"],
            [None, None, None, None],
        ]
    )
    records = ExcelPriceParser().parse(PriceListFile.from_bytes("listino.xlsx", content), {"column_mapping": MAPPING})

    assert len(records) == 2
    first, second = records
    assert first.code == "A1"
    assert first.purchase_price == 12.5
    assert first.retail_price is None
    assert second.code == "12345"
    assert second.purchase_price == 13.0
    assert second.retail_price == 19.9


def test_parse_named_sheet() -> None:
    content = _workbook_bytes(
        [["vuoto"]],
        extra_sheet="Prezzi",
        extra_rows=[["Nome", "Codice", "Prezzo"], ["Drill", "P1", 5]],
    )
    config = {"column_mapping": MAPPING, "sheet_name": "Prezzi"}
    records = ExcelPriceParser().parse(PriceListFile.from_bytes("listino.xlsm", content), config)
    assert [record.code for record in records] == ["P1"]


def test_unknown_sheet_raises_value_error() -> None:
    content = _workbook_bytes([["Nome"]])
    with pytest.raises(ValueError, match="non esiste"):
        ExcelPriceParser().parse(
            PriceListFile.from_bytes("listino.xlsx", content),
            {"column_mapping": MAPPING, "sheet_name": "Assente"},
        )


def test_corrupted_workbook_raises_parse_error() -> None:
    with pytest.raises(PriceListParseError):
        ExcelPriceParser().parse(PriceListFile.from_bytes("rotto.xlsx", b"not a workbook"), {})


def test_preview_suggests_first_priced_row() -> None:
    content = _workbook_bytes(
        [
            ["Nome", "Codice", "Price"],
            ["Sezione", None, None],
            ["Drill", "A1", 10],
        ]
    )
    preview = ExcelPriceParser().preview(PriceListFile.from_bytes("listino.xlsx", content))

    assert preview.headers == {"A": "Nome", "B": "Codice", "C": "Price"}
    assert preview.rows[2] == {"A": "Drill", "B": "A1", "C": "10"}
    assert preview.suggested_start_row == 3
    assert preview.detected_delimiter is None
    assert "detected_delimiter" not in preview.to_dict()


def test_legacy_xls_goes_through_pandas(monkeypatch) -> None:
    calls: dict = {}

    def fake_read_excel(stream, **kwargs):
        calls.update(kwargs)
        return pd.DataFrame(
            [["Nome", "Codice", "Prezzo"], ["Drill", "X1", 10.0], ["Saw", None, float("nan")]],
            dtype=object,
        )

    monkeypatch.setattr(excel_parser.pd, "read_excel", fake_read_excel)
    records = ExcelPriceParser().parse(PriceListFile.from_bytes("vecchio.xls", b"\xd0\xcf"), {"column_mapping": MAPPING})

    assert calls["engine"] == "xlrd"
    assert calls["header"] is None
    assert calls["sheet_name"] == 0
    assert [(record.code, record.purchase_price) for record in records] == [("X1", 10.0)]


def _zip_without_workbook() -> bytes:
    buffer = BytesIO()
    with ZipFile(buffer, "w") as archive:
        archive.writestr("leggimi.txt", "nessuna cartella di lavoro")
    return buffer.getvalue()


def test_zip_without_workbook_parts_raises_parse_error() -> None:
    source = PriceListFile.from_bytes("listino.xlsx", _zip_without_workbook())
    with pytest.raises(PriceListParseError, match="incompleta"):
        ExcelPriceParser().parse(source, {"column_mapping": MAPPING})


def test_errors_outside_the_reader_are_not_wrapped(monkeypatch) -> None:
    def broken_select(workbook, requested_name):
        raise KeyError("bug")

    monkeypatch.setattr(excel_parser, "_select_sheet", broken_select)
    content = _workbook_bytes([["Nome", "Codice", "Prezzo"], ["Drill", "A1", 1]])
    with pytest.raises(KeyError):
        ExcelPriceParser().parse(PriceListFile.from_bytes("listino.xlsx", content), {"column_mapping": MAPPING})


def test_file_handle_released_when_parse_fails(tmp_path: Path, monkeypatch) -> None:
    target = tmp_path / "rotto.xlsx"
    target.write_bytes(b"not a workbook")

    opened = []
    original_open = Path.open

    def tracking_open(self, *args, **kwargs):
        handle = original_open(self, *args, **kwargs)
        opened.append(handle)
        return handle

    monkeypatch.setattr(Path, "open", tracking_open)
    with pytest.raises(PriceListParseError):
        ExcelPriceParser().parse(PriceListFile.from_path(target), {"column_mapping": MAPPING})
    monkeypatch.undo()

    assert len(opened) == 1
    assert opened[0].closed
    target.unlink()
    assert not target.exists()
