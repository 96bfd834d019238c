# -*- coding: utf-8 -*-
from bs4 import BeautifulSoup

from conftest import issue_table, wrap_document
from stark_consolidator.extractors.tables import (
    extract_table_issues,
    find_header_row,
    header_looks_like_issues_table,
    parse_table_issues,
)
from stark_consolidator.severity import SeverityLabel


def _soup(html):
    return BeautifulSoup(html, "html.parser")


def test_header_detection():
    assert header_looks_like_issues_table(["severity", "description"])
    assert header_looks_like_issues_table(["impact", "rule"])
    assert not header_looks_like_issues_table(["name", "date"])
    assert not header_looks_like_issues_table(["severity", "count"])


def test_minimal_table():
    soup = _soup(issue_table(["Severity", "Description"], [["Critical", "Images missing alt text"]]))
    issues, headers, matched = extract_table_issues(soup, "report.html")

    assert matched == 1
    assert len(issues) == 1
    issue = issues[0]
    assert issue.severity is SeverityLabel.CRITICAL
    assert issue.description == "Images missing alt text"
    assert issue.title == "Images missing alt text"
    assert issue.occurrences == 1
    assert issue.source_file == "report.html"
    assert headers[0].headers == ["Severity", "Description"]
    assert headers[0].rows == 2


def test_all_columns_are_resolved(table_report):
    issues, _, _ = extract_table_issues(_soup(table_report), "a.html")

    first = issues[0]
    assert first.title == "Low contrast text"
    assert first.description == "Text does not meet 4.5:1"
    assert first.severity is SeverityLabel.SERIOUS
    assert first.severity_original == "Serious"
    assert first.wcag == "1.4.3"
    assert first.occurrences == 12
    assert first.page == "https://example.com/"
    assert issues[1].severity is SeverityLabel.MINOR


def test_description_column_is_not_taken_for_wcag():
    soup = _soup(issue_table(["Severity", "Description"], [["Minor", "Some text"]]))
    issues, _, _ = extract_table_issues(soup, "a.html")
    assert issues[0].wcag is None


def test_non_issue_table_is_rejected():
    soup = _soup(issue_table(["Name", "Date"], [["Alice", "2024-01-01"]]))
    issues, headers, matched = extract_table_issues(soup, "a.html")
    assert issues == []
    assert len(headers) == 1
    assert matched == 0


def test_rows_without_severity_and_description_are_skipped():
    soup = _soup(issue_table(
        ["Severity", "Description", "Page"],
        [["", "", "https://example.com"], ["Moderate", "Focus not visible", ""]],
    ))
    issues = parse_table_issues(soup.find("table"), "a.html")
    assert [i.description for i in issues] == ["Focus not visible"]


def test_header_row_without_thead():
    html = (
        "<table>"
        "<tr><td colspan='2'> </td></tr>"
        "<tr><th>Impact</th><th>Issue</th></tr>"
        "<tr><td>High</td><td>Missing label</td></tr>"
        "</table>"
    )
    table = _soup(html).find("table")
    assert find_header_row(table).find("th").get_text() == "Impact"

    issues = parse_table_issues(table, "a.html")
    # The spacer row has neither a severity nor a description
    assert len(issues) == 1
    assert issues[0].severity is SeverityLabel.SERIOUS
    assert issues[0].title == "Missing label"


def test_nested_table_header_is_not_borrowed():
    html = (
        "<table>"
        "<tr><th>Severity</th><th>Description</th></tr>"
        "<tr><td>Critical</td><td>"
        "<table><thead><tr><th>Name</th><th>Date</th></tr></thead>"
        "<tr><td>x</td><td>y</td></tr></table>"
        "</td></tr>"
        "</table>"
    )
    outer = _soup(html).find("table")
    assert find_header_row(outer).find("th").get_text() == "Severity"

    issues = parse_table_issues(outer, "a.html")
    assert len(issues) == 1
    assert issues[0].severity is SeverityLabel.CRITICAL


def test_multiple_tables_are_counted(table_report):
    html = wrap_document(table_report + issue_table(["Name", "Date"], [["x", "y"]]))
    issues, headers, matched = extract_table_issues(_soup(html), "a.html")
    assert len(headers) == 2
    assert matched == 1
    assert len(issues) == 2
