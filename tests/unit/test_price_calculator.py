from __future__ import annotations

import copy
import unittest

import pytest

from listino.domain.pricing.calculator import PriceCalculator, price_change, round_price
from listino.domain.pricing.models import PriceListRecord, PriceRules
from listino.services.importers.csv_parser import CsvPriceParser
from listino.services.importers.source import PriceListFile


@pytest.fixture
def calculator() -> PriceCalculator:
    return PriceCalculator()


def test_single_purchase_default_markup(calculator) -> None:
    result = calculator.calculate({"purchase_price": 100}, {"mode": "single_purchase"})
    assert result == {"purchase_price": 100, "retail_price": 130.00}


def test_single_retail_default_markdown(calculator) -> None:
    result = calculator.calculate({"retail_price": 100}, {"mode": "single_retail"})
    assert result == {"purchase_price": 80.00, "retail_price": 100}


def test_single_purchase_fixed_modifier(calculator) -> None:
    rules = {"mode": "single_purchase", "retail_modifier": {"type": "fixed", "value": 15}}
    result = calculator.calculate({"purchase_price": 100}, rules)
    assert result == {"purchase_price": 100, "retail_price": 115.00}


def test_none_modifier_is_identity(calculator) -> None:
    rules = {"mode": "single_purchase", "retail_modifier": {"type": "none", "value": 50}}
    assert calculator.calculate({"purchase_price": 42.5}, rules)["retail_price"] == 42.5


def test_null_base_gives_null_outputs(calculator) -> None:
    assert calculator.calculate({}, {"mode": "single_purchase"}) == {
        "purchase_price": None,
        "retail_price": None,
    }
    assert calculator.calculate(PriceListRecord(), PriceRules()) == {
        "purchase_price": None,
        "retail_price": None,
    }


def test_outputs_are_rounded_half_up(calculator) -> None:
    result = calculator.calculate({"purchase_price": 19.99}, {"mode": "single_purchase"})
    assert result["retail_price"] == 25.99
    assert round_price(2.675) == 2.68
    assert round_price(None) is None


def test_unknown_mode_or_modifier_type_raise(calculator) -> None:
    with pytest.raises(ValueError):
        calculator.calculate({"purchase_price": 10}, {"mode": "triple"})
    with pytest.raises(ValueError):
        calculator.calculate(
            {"purchase_price": 10},
            {"mode": "single_purchase", "retail_modifier": {"type": "bogus", "value": 1}},
        )


def test_price_change() -> None:
    assert price_change(None, 10.0) == "new"
    assert price_change(10.0, None) == "new"
    assert price_change(10.0, 12.0) == "increase"
    assert price_change(12.0, 10.0) == "decrease"
    assert price_change(10.0, 10.0) == "unchanged"


class DualModeTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.calculator = PriceCalculator()

    def test_positional_prices(self) -> None:
        result = self.calculator.calculate({"price_1": 100, "price_2": 150}, {"mode": "dual"})
        self.assertEqual(result, {"purchase_price": 100, "retail_price": 150})

    def test_missing_retail_is_derived(self) -> None:
        result = self.calculator.calculate({"price_1": 100, "price_2": None}, PriceRules())
        self.assertEqual(result, {"purchase_price": 100, "retail_price": 130.0})

    def test_missing_purchase_is_derived_with_custom_modifier(self) -> None:
        rules = {
            "mode": "dual",
            "price_1_is": "retail",
            "price_2_is": "purchase",
            "purchase_modifier": {"type": "percentage", "value": -10},
        }
        result = self.calculator.calculate({"price_1": 200, "price_2": None}, rules)
        self.assertEqual(result, {"purchase_price": 180.0, "retail_price": 200})

    def test_second_assignment_wins(self) -> None:
        rules = {"mode": "dual", "price_1_is": "retail", "price_2_is": "retail"}
        result = self.calculator.calculate({"price_1": 100, "price_2": 120}, rules)
        self.assertEqual(result, {"purchase_price": 96.0, "retail_price": 120})

    def test_named_record_fields(self) -> None:
        result = self.calculator.calculate(PriceListRecord(purchase_price=50.0), PriceRules())
        self.assertEqual(result, {"purchase_price": 50.0, "retail_price": 65.0})
        result = self.calculator.calculate(PriceListRecord(retail_price=100.0), PriceRules())
        self.assertEqual(result, {"purchase_price": 80.0, "retail_price": 100.0})


class BatchTestCase(unittest.TestCase):
    def test_batch_merges_without_mutating_input(self) -> None:
        calculator = PriceCalculator()
        records = [
            {"code": "A1", "purchase_price": 10.0},
            {"code": "A2", "purchase_price": None},
        ]
        snapshot = copy.deepcopy(records)
        rules = {"mode": "single_purchase"}

        first = calculator.calculate_batch(records, rules)
        second = calculator.calculate_batch(records, rules)

        self.assertEqual(records, snapshot)
        self.assertEqual(first, second)
        self.assertEqual(first[0]["code"], "A1")
        self.assertEqual(first[0]["calculated_purchase_price"], 10.0)
        self.assertEqual(first[0]["calculated_retail_price"], 13.0)
        self.assertIsNone(first[1]["calculated_retail_price"])

    def test_batch_accepts_records(self) -> None:
        result = PriceCalculator().calculate_batch([PriceListRecord(code="R1", retail_price=10.0)], {"mode": "single_retail"})
        self.assertEqual(result[0]["code"], "R1")
        self.assertEqual(result[0]["calculated_purchase_price"], 8.0)


class ApplyModifiersTestCase(unittest.TestCase):
    def test_modifiers_per_price_kind(self) -> None:
        prices = {"purchase_price": 100, "retail_price": 200, "list_price": None}
        modifiers = [
            {"price_type": "purchase", "modifier_type": "percentage", "modifier_value": 10},
            {"price_type": "retail", "modifier_type": "fixed", "modifier_value": -5.5},
            {"price_type": "list", "modifier_type": "percentage", "modifier_value": 10},
            {"price_type": "retail", "modifier_type": "none", "modifier_value": 99},
        ]
        result = PriceCalculator().apply_modifiers(prices, modifiers)
        self.assertEqual(result, {"purchase": 110.0, "retail": 194.5, "list": None})

    def test_modifiers_are_applied_in_sequence(self) -> None:
        modifiers = [
            {"price_type": "retail", "modifier_type": "percentage", "value": 10},
            {"price_type": "retail", "modifier_type": "fixed", "value": 1},
        ]
        result = PriceCalculator().apply_modifiers(PriceListRecord(retail_price=10.0), modifiers)
        self.assertEqual(result["retail"], 12.0)


def test_overflowing_price_cell_is_treated_as_missing(calculator) -> None:
    content = ("Code;Price\nA1;" + "9" * 400 + "\n").encode("utf-8")
    records = CsvPriceParser().parse(
        PriceListFile.from_bytes("listino.csv", content),
        {"column_mapping": {"A": "product_code", "B": "purchase_price"}},
    )

    assert records[0].purchase_price is None
    assert calculator.calculate(records[0], {"mode": "single_purchase"}) == {
        "purchase_price": None,
        "retail_price": None,
    }
