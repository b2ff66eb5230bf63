"""Tests for report line classification."""

from decimal import Decimal

import pytest

from reportbridge.domain.entities import LineKind, PaymentMethod, ReportSection
from reportbridge.domain.line_patterns import (
    detect_payment_method,
    detect_section_header,
    match_line,
)


def test_ledger_balance_line():
    """Ledger lines get a fixed description and no payment method."""
    match = match_line("GUEST LEDGER TOTAL|$5,000.00")

    assert match.kind == LineKind.LEDGER_BALANCE
    assert match.source_code == "GUEST LEDGER TOTAL"
    assert match.description == "Ledger Balance"
    assert match.amount == Decimal("5000.00")
    assert match.payment_method is None


@pytest.mark.parametrize(
    "line,code,amount",
    [
        ("VISA/MASTER|($1,500.00)", "VISA/MASTER", Decimal("-1500.00")),
        ("AMEX|-$500.00", "AMEX", Decimal("-500.00")),
        ("DISCOVER|$75.25", "DISCOVER", Decimal("75.25")),
    ],
)
def test_payment_summary_line_has_no_payment_method(line, code, amount):
    """Per-brand totals must never look like individual card transactions."""
    match = match_line(line)

    assert match.kind == LineKind.PAYMENT_SUMMARY
    assert match.source_code == code
    assert match.description == "Payment Method Total"
    assert match.amount == amount
    assert match.payment_method is None


def test_summary_line():
    match = match_line("Total Revenue|$10,000.00")

    assert match.kind == LineKind.SUMMARY
    assert match.source_code == "Total Revenue"
    assert match.description == "Summary Total"
    assert match.payment_method is None


def test_adr_is_summary_when_amount_is_currency():
    match = match_line("ADR|$125.50")

    assert match.kind == LineKind.SUMMARY
    assert match.amount == Decimal("125.50")


def test_embedded_transaction_line():
    match = match_line("9|ROOM CHARGE|12|$1,200.00")

    assert match.kind == LineKind.EMBEDDED_TRANSACTION
    assert match.source_code == "9"
    assert match.description == "ROOM CHARGE"
    assert match.amount == Decimal("1200.00")
    assert match.payment_method is None


def test_embedded_transaction_detects_payment_method():
    assert match_line("RS|RESTAURANT VISA|3|$300.00").payment_method == PaymentMethod.VISA
    assert match_line("AX|AMEX PAYMENT|2|-$200.00").payment_method == PaymentMethod.AMEX


def test_embedded_transaction_with_trailing_columns():
    match = match_line("RM|ROOM|2|$200.00|$180.00|$20.00")

    assert match.kind == LineKind.EMBEDDED_TRANSACTION
    assert match.amount == Decimal("200.00")


@pytest.mark.parametrize(
    "line",
    [
        "RA|REFUND AD DEPOSIT|1|$50.00",
        "RP|REFUND PREPAID|1|$50.00",
    ],
)
def test_refund_lines_are_skipped(line):
    assert match_line(line) is None


def test_category_account_line():
    match = match_line("GL ROOM REVENUE|RM|ROOM NET|5|$500.00")

    assert match.kind == LineKind.CATEGORY_ACCOUNT
    assert match.source_code == "RM"
    assert match.description == "ROOM REVENUE ROOM NET"
    assert match.amount == Decimal("500.00")


def test_category_account_summary_line():
    match = match_line("CL DIRECT BILL|4|$900.00")

    assert match.kind == LineKind.CATEGORY_ACCOUNT_SUMMARY
    assert match.source_code == "CL DIRECT BILL"
    assert match.amount == Decimal("900.00")


@pytest.mark.parametrize(
    "line,code,value",
    [
        ("Occupied|85", "Occupied", Decimal("85")),
        ("Occupancy %|85.5", "Occupancy %", Decimal("85.5")),
        ("Total Rooms|120", "Total Rooms", Decimal("120")),
        ("No Show|2", "No Show", Decimal("2")),
    ],
)
def test_statistical_line(line, code, value):
    match = match_line(line)

    assert match.kind == LineKind.STATISTICAL
    assert match.source_code == code
    assert match.description == "Statistical Data"
    assert match.amount == value
    assert not match.is_currency


def test_category_prefixed_line():
    match = match_line("Food And Beverage|FB|BANQUET|3|$450.00")

    assert match.kind == LineKind.CATEGORY_PREFIXED
    assert match.source_code == "FB"
    assert match.description == "BANQUET"


def test_category_summary_line():
    match = match_line("Food And Beverage|7|$1,450.00")

    assert match.kind == LineKind.CATEGORY_SUMMARY
    assert match.source_code == "Food And Beverage"
    assert match.amount == Decimal("1450.00")


@pytest.mark.parametrize(
    "line",
    [
        "Daily Revenue Report",
        "Page 1 of 3",
        "CODE|DESCRIPTION|COUNT|AMOUNT",
        "",
    ],
)
def test_unmatched_lines_return_none(line):
    assert match_line(line) is None


def test_detect_payment_method_keywords():
    assert detect_payment_method("PAID BY MASTERCARD 1234") == PaymentMethod.MASTER
    assert detect_payment_method("AMERICAN EXPRESS") == PaymentMethod.AMEX
    assert detect_payment_method("X|DISCOVER|1|$1.00") == PaymentMethod.DISCOVER
    assert detect_payment_method("VISAGE SPA") is None


def test_detect_section_header_prefers_summary():
    assert detect_section_header("Detail Listing Summary") == ReportSection.DETAIL_LISTING_SUMMARY
    assert detect_section_header("Detail Listing") == ReportSection.DETAIL_LISTING
    assert detect_section_header("9|ROOM|1|$1.00") is None
