# -*- coding: utf-8 -*-
from conftest import issue_table, violation_card, wcag_criterion, wrap_document
from stark_consolidator import parse
from stark_consolidator.parser import (
    DEFAULT_STRATEGIES,
    ExtractionStrategy,
    StarkReportParser,
    StrategyOutcome,
)
from stark_consolidator.severity import SeverityLabel, SeverityScheme


def test_minimal_table_round_trip():
    html = wrap_document(issue_table(["Severity", "Description"], [["Critical", "Images missing alt text"]]))
    result = parse(html, "minimal.html")

    assert len(result.issues) == 1
    issue = result.issues[0]
    assert issue.severity is SeverityLabel.CRITICAL
    assert issue.description == "Images missing alt text"
    assert issue.occurrences == 1
    assert result.debug.tables_found == 1
    assert result.debug.matched_tables == 1
    assert result.debug.issues_extracted == 1


def test_result_unpacks_into_issues_and_debug(table_report):
    issues, debug = parse(table_report, "a.html")
    assert len(issues) == 2
    assert debug.severity_labels_found == ["Serious", "Minor"]
    assert debug.severity_scheme is SeverityScheme.AXE


def test_hml_scheme_detected(hml_table_report):
    issues, debug = parse(hml_table_report, "b.html")
    assert [i.severity for i in issues] == [SeverityLabel.SERIOUS, SeverityLabel.MINOR]
    assert debug.severity_scheme is SeverityScheme.HML


def test_non_issue_table_falls_through():
    html = wrap_document(issue_table(["Name", "Date"], [["Alice", "2024-01-01"]]))
    issues, debug = parse(html, "names.html")

    assert issues == []
    assert debug.tables_found == 1
    assert debug.matched_tables == 0
    assert "No issue tables matched; using fallback heuristic." in debug.warnings
    assert "No recognizable issue layout found; no issues extracted." in debug.warnings
    assert debug.severity_scheme is None


def test_card_layout(card_report):
    issues, debug = parse(card_report, "checkout.html")

    assert len(issues) == 3
    assert sum(i.occurrences for i in issues) == 5
    assert all(i.page == "https://shop.example.com/checkout" for i in issues)
    assert debug.tables_found == 0
    assert debug.wcag_breakdown_totals.criteria_with_counts == 1
    assert debug.wcag_breakdown_totals.failures == 5
    assert "Detected page URL: https://shop.example.com/checkout" in debug.warnings
    assert "No issue tables matched; parsed Categories-style issue cards." in debug.warnings
    # Cards already account for every failure
    assert not any("synthetic" in w for w in debug.warnings)


def test_breakdown_only_produces_synthetic_issue():
    html = wrap_document("<ul>" + wcag_criterion("1.1.1 Non-text Content", failures=4) + "</ul>")
    issues, debug = parse(html, "collapsed.html")

    assert len(issues) == 1
    assert issues[0].severity is SeverityLabel.CRITICAL
    assert issues[0].occurrences == 4
    assert issues[0].wcag == "1.1.1 Non-text Content"
    assert "details not in export" in issues[0].title
    assert any("synthetic" in w for w in debug.warnings)


def test_collapsed_sections_are_topped_up():
    cards = violation_card("Text has insufficient color contrast", instances=2)
    html = wrap_document(
        "<ul>" + wcag_criterion("1.4.3 Contrast (Minimum)", content=cards, failures=6) + "</ul>"
    )
    issues, _ = parse(html, "partial.html")

    assert [i.occurrences for i in issues] == [2, 4]
    assert issues[1].title == "WCAG 1.4.3 Contrast (Minimum) — Violations (details not in export)"


def test_heuristic_fallback():
    html = wrap_document(
        "<section><h2>Missing form label</h2><p>Severity: High</p><p>Input has no label.</p></section>"
    )
    issues, debug = parse(html, "free.html")

    assert len(issues) == 1
    assert issues[0].title == "Missing form label"
    assert issues[0].severity is SeverityLabel.SERIOUS
    assert issues[0].severity_original == "High"
    assert debug.severity_scheme is SeverityScheme.HML
    assert "No issue tables matched; using fallback heuristic." in debug.warnings


def test_heuristic_deduplicates_nested_containers():
    html = wrap_document(
        "<div><div><h3>Empty button</h3><span>Impact: critical</span></div></div>"
    )
    issues, _ = parse(html, "nested.html")
    assert len(issues) == 1
    assert issues[0].severity is SeverityLabel.CRITICAL


def test_report_totals_are_recorded():
    html = wrap_document(
        "<div><div><p>Violations</p><div>14</div></div>"
        "<div><p>Potential violations</p><div>3</div></div></div>"
        + issue_table(["Severity", "Description"], [["Minor", "Something"]])
    )
    _, debug = parse(html, "totals.html")
    assert debug.report_totals.violations == 14
    assert debug.report_totals.potential_violations == 3


def test_unparsable_input_never_raises():
    issues, debug = parse(None, "broken.html")
    assert issues == []
    assert any("HTML parser failed" in w for w in debug.warnings)


def test_empty_document():
    issues, debug = parse("", "empty.html")
    assert issues == []
    assert "No recognizable issue layout found; no issues extracted." in debug.warnings


def test_failing_strategy_is_reported_and_skipped(table_report):
    def broken(ctx):
        raise RuntimeError("boom")

    parser = StarkReportParser(strategies=[ExtractionStrategy("broken", broken)] + DEFAULT_STRATEGIES)
    issues, debug = parser.parse(table_report, "a.html")

    assert len(issues) == 2
    assert "Extraction strategy 'broken' failed: boom" in debug.warnings


def test_custom_strategy_chain_stops_at_first_usable(table_report):
    calls = []

    def first(ctx):
        calls.append("first")
        return StrategyOutcome([], usable=True)

    def second(ctx):
        calls.append("second")
        return StrategyOutcome([], usable=True)

    parser = StarkReportParser(strategies=[ExtractionStrategy("first", first), ExtractionStrategy("second", second)])
    issues, _ = parser.parse(table_report, "a.html")
    assert issues == []
    assert calls == ["first"]


def test_parse_does_not_modify_input(table_report):
    original = str(table_report)
    parse(table_report, "a.html")
    assert table_report == original
