"""
Tests for BRL amount handling and the batch ledger.
"""
from datetime import date
from decimal import Decimal

import pytest

from liquidagov.batch import BatchLedger, format_brl, parse_brl_amount
from liquidagov.core.errors import CurrencyFormatError


class TestParseBrlAmount:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("1.234,56", Decimal("1234.56")),
            ("65,44", Decimal("65.44")),
            ("R$ 1.234,56", Decimal("1234.56")),
            ("r$1.000.000,00", Decimal("1000000.00")),
            ("  2.500 ", Decimal("2500.00")),
            ("65.44", Decimal("65.44")),
            ("100", Decimal("100.00")),
            ("R$ 10,5", Decimal("10.50")),
        ],
    )
    def test_localized_amounts(self, raw, expected):
        assert parse_brl_amount(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        ["", "R$", "abc", "1,2,3", "12a,00", "1,234.56", "1.2,50", "10,999", "1.2345", "12.34.5"],
    )
    def test_unparseable_amounts(self, raw):
        with pytest.raises(CurrencyFormatError):
            parse_brl_amount(raw)


class TestFormatBrl:
    def test_thousands_and_decimal_comma(self):
        assert format_brl(Decimal("1300")) == "R$ 1.300,00"

    def test_small_amount(self):
        assert format_brl(Decimal("0.5")) == "R$ 0,50"

    def test_millions(self):
        assert format_brl(Decimal("1234567.891")) == "R$ 1.234.567,89"


class TestBatchLedger:
    def test_total_of_two_records(self, ledger, record_factory):
        ledger.append(record_factory(invoice_amount="1.234,56"))
        ledger.append(record_factory(invoice_amount="65,44"))

        assert ledger.total() == Decimal("1300.00")
        assert ledger.formatted_total() == "R$ 1.300,00"

    def test_append_increases_total_by_amount(self, ledger, record_factory):
        ledger.append(record_factory(invoice_amount="100,00"))
        before = ledger.total()

        ledger.append(record_factory(invoice_amount="R$ 50,25"))

        assert ledger.total() - before == Decimal("50.25")

    def test_unparseable_amount_contributes_zero(self, ledger, record_factory):
        ledger.append(record_factory(invoice_amount="100,00"))
        before = ledger.total()

        ledger.append(record_factory(invoice_amount="cem reais"))

        assert ledger.total() == before
        assert ledger.size() == 2

    def test_misgrouped_amount_leaves_total_unchanged(self, ledger, record_factory):
        ledger.append(record_factory(invoice_amount="100,00"))

        ledger.append(record_factory(invoice_amount="1,234.56"))

        assert ledger.total() == Decimal("100.00")
        assert ledger.formatted_total() == "R$ 100,00"

    def test_strict_policy_fails_on_unparseable(self, record_factory):
        ledger = BatchLedger(date(2024, 10, 17), policy="strict")
        ledger.append(record_factory(invoice_amount="cem reais"))

        with pytest.raises(CurrencyFormatError):
            ledger.total()

    def test_unknown_policy(self):
        with pytest.raises(ValueError):
            BatchLedger(date(2024, 10, 17), policy="optimistic")

    def test_identical_records_are_distinct_entries(self, ledger, record_factory):
        record = record_factory()
        ledger.append(record)
        ledger.append(record)

        assert ledger.size() == 2
        assert ledger.total() == Decimal("2469.12")

    def test_size_and_clear(self, ledger, record_factory):
        for _ in range(3):
            ledger.append(record_factory())
        assert ledger.size() == 3
        assert len(ledger) == 3

        ledger.clear()

        assert ledger.size() == 0
        assert ledger.total() == Decimal("0.00")

    def test_entries_preserve_finalization_order(self, ledger, record_factory):
        ledger.append(record_factory(commitment_number="NE1"))
        ledger.append(record_factory(commitment_number="NE2"))

        assert [r.commitment_number for r in ledger.entries()] == ["NE1", "NE2"]
