"""Tests for the account line parser."""

from decimal import Decimal

from reportbridge.domain.account_lines import (
    AccountLineParser,
    AccountLineParserConfig,
    is_statistical_code,
    statistical_key,
)
from reportbridge.domain.entities import LineKind, PaymentMethod


CARD_LINES = "\n".join(
    [
        "V1|VISA DEPOSIT|1|-$1,000.00",
        "A1|AMEX DEPOSIT|1|-$500.00",
        "D1|DISCOVER DEPOSIT|1|-$250.00",
    ]
)


def test_parse_sample_report(sample_report):
    """Every recognizable line of the sample report becomes one account line."""
    lines = AccountLineParser().parse_account_lines(sample_report)

    codes = [line.source_code for line in lines]
    assert codes == [
        "9",
        "91",
        "RS",
        "AX",
        "RM",
        "VISA/MASTER",
        "AMEX",
        "GUEST LEDGER TOTAL",
        "Total Revenue",
        "ADR",
        "Occupied",
        "Occupancy %",
    ]


def test_line_numbers_are_one_based(sample_report):
    lines = AccountLineParser().parse_account_lines(sample_report)

    first = lines[0]
    assert first.line_number == 3
    assert first.original_line == "9|ROOM CHARGE|12|$1,200.00"


def test_parsing_is_idempotent(sample_report):
    parser = AccountLineParser()

    assert parser.parse_account_lines(sample_report) == parser.parse_account_lines(sample_report)


def test_summary_and_ledger_lines_never_carry_payment_method(sample_report):
    lines = AccountLineParser().parse_account_lines(sample_report)

    for line in lines:
        if line.kind in (LineKind.LEDGER_BALANCE, LineKind.PAYMENT_SUMMARY, LineKind.SUMMARY):
            assert line.payment_method is None


def test_statistical_codes_are_deduplicated(sample_report):
    """Only the first "Occupied" line survives."""
    lines = AccountLineParser().parse_account_lines(sample_report)

    occupied = [line for line in lines if line.source_code == "Occupied"]
    assert len(occupied) == 1
    assert occupied[0].amount == Decimal("85")


def test_statistical_dedup_ignores_case_and_percent():
    text = "Occupancy %|85.5\nOCCUPANCY%|86.0\nADR|$100.00\nADR|$101.00"

    lines = AccountLineParser().parse_account_lines(text)

    assert [line.amount for line in lines] == [Decimal("85.5"), Decimal("100.00")]


def test_minimum_amount_filters_currency_lines():
    text = "CS|COFFEE SHOP|1|$0.00\nTP|TIPS|1|$0.50\nRM|ROOM|1|$100.00"
    config = AccountLineParserConfig(minimum_amount=Decimal("1.00"))

    lines = AccountLineParser(config).parse_account_lines(text)

    assert [line.source_code for line in lines] == ["RM"]


def test_minimum_amount_never_filters_statistics():
    text = "Out of Service|0\nComps|0"

    lines = AccountLineParser().parse_account_lines(text)

    assert [line.source_code for line in lines] == ["Out of Service", "Comps"]


def test_include_zero_amounts():
    config = AccountLineParserConfig(include_zero_amounts=True)

    lines = AccountLineParser(config).parse_account_lines("CS|COFFEE SHOP|1|$0.00")

    assert len(lines) == 1
    assert lines[0].amount == Decimal("0.00")


def test_short_and_blank_lines_are_ignored():
    lines = AccountLineParser().parse_account_lines("\n  \nab\n\r\nRM|ROOM|1|$10.00\r\n")

    assert len(lines) == 1
    assert lines[0].line_number == 5


def test_whitelist_extracts_longest_known_code():
    config = AccountLineParserConfig(valid_source_codes=frozenset({"9", "91"}))

    lines = AccountLineParser(config).parse_account_lines("91ABC|ROOM TAX|1|$10.00")

    assert lines[0].source_code == "91"
    assert lines[0].description == "ROOM TAX"


def test_whitelist_keeps_unknown_codes():
    config = AccountLineParserConfig(valid_source_codes=frozenset({"9"}))

    lines = AccountLineParser(config).parse_account_lines("RM|ROOM|1|$10.00")

    assert lines[0].source_code == "RM"


def test_group_payment_methods():
    parser = AccountLineParser(
        AccountLineParserConfig(payment_method_groups={"Cards": ["VISA", "DISCOVER"]})
    )
    lines = parser.parse_account_lines(CARD_LINES)

    groups = {group.group_name: group for group in parser.group_payment_methods(lines)}

    assert set(groups) == {"Cards", "AMEX"}
    assert groups["Cards"].total_amount == Decimal("-1250.00")
    assert groups["Cards"].payment_methods == frozenset({"VISA", "DISCOVER"})
    assert groups["AMEX"].total_amount == Decimal("-500.00")
    assert groups["Cards"].configured
    assert not groups["AMEX"].configured


def test_group_payment_methods_disabled():
    parser = AccountLineParser(AccountLineParserConfig(combine_payment_methods=False))

    assert parser.group_payment_methods(parser.parse_account_lines(CARD_LINES)) == []


def test_consolidation_conserves_amounts():
    """VISA and DISCOVER combine into one CC line; AMEX stays on its own."""
    parser = AccountLineParser(
        AccountLineParserConfig(payment_method_groups={"Cards": ["VISA", "DISCOVER"]})
    )

    original = parser.parse_account_lines(CARD_LINES)
    consolidated = parser.get_consolidated_account_lines(CARD_LINES)

    assert sum(l.amount for l in consolidated) == sum(l.amount for l in original)

    combined = [l for l in consolidated if l.source_code == "CC"]
    assert len(combined) == 1
    assert combined[0].amount == Decimal("-1250.00")
    assert combined[0].description == "Cards"
    assert combined[0].payment_method is None
    assert combined[0].kind == LineKind.CONSOLIDATED
    assert combined[0].line_number == 1
    assert combined[0].original_line.startswith("Combined: V1|VISA DEPOSIT")

    ungrouped = [l for l in consolidated if l.payment_method is not None]
    assert [l.payment_method for l in ungrouped] == [PaymentMethod.AMEX]


def test_group_named_like_a_method_keeps_that_method_apart():
    parser = AccountLineParser(
        AccountLineParserConfig(payment_method_groups={"AMEX": ["VISA", "DISCOVER"]})
    )

    consolidated = parser.get_consolidated_account_lines(CARD_LINES)

    combined = [l for l in consolidated if l.source_code == "CC"]
    assert len(combined) == 1
    assert combined[0].amount == Decimal("-1250.00")
    ungrouped = [l for l in consolidated if l.payment_method is not None]
    assert [l.amount for l in ungrouped] == [Decimal("-500.00")]


def test_default_groups_combine_visa_master_and_amex(sample_report):
    consolidated = AccountLineParser().get_consolidated_account_lines(sample_report)

    combined = [l for l in consolidated if l.source_code == "CC"]
    assert len(combined) == 1
    assert combined[0].description == "Credit Cards"
    assert combined[0].amount == Decimal("100.00")
    assert consolidated[-1] is combined[0]
    assert all(l.payment_method is None for l in consolidated)


def test_consolidation_disabled_returns_parsed_lines(sample_report):
    parser = AccountLineParser(AccountLineParserConfig(combine_payment_methods=False))

    assert parser.get_consolidated_account_lines(sample_report) == parser.parse_account_lines(
        sample_report
    )


def test_parsing_stats(sample_report):
    stats = AccountLineParser().get_parsing_stats(sample_report)

    assert stats.total_lines == len(sample_report.split("\n"))
    assert stats.parsed_lines == 12
    assert stats.payment_method_lines == 2
    assert stats.payment_method_amount == Decimal("100.00")


def test_statistical_key():
    assert statistical_key("Occupancy %") == "OCCUPANCY"
    assert statistical_key("out  of service") == "OUT OF SERVICE"
    assert is_statistical_code("RevPar")
    assert not is_statistical_code("ROOM")
