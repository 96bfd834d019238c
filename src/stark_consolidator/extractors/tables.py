# src/stark_consolidator/extractors/tables.py
"""
Primary strategy: one issue per data row of every "issue table".

A table qualifies only when its header row has a severity-like column
and a title- or description-like column, which keeps tables of contents
and summary grids out.
"""

import logging
import re
from typing import List, Optional, Pattern, Tuple

from bs4 import BeautifulSoup, Tag

from ..models import ParsedIssue, TableHeaderInfo
from ..severity import normalize_severity
from ..utils.text import element_text, normalize_text, parse_occurrences, to_header_key

logger = logging.getLogger(__name__)

SEVERITY_HEADER_RE = re.compile(r"(severity|impact|level)")
DESCRIPTION_HEADER_RE = re.compile(r"(description|details|why it matters|explanation)")
TITLE_HEADER_RE = re.compile(r"(title|issue|problem|summary|rule|check)")

# Column resolution; the first header matching each pattern wins.
COLUMN_PATTERNS = {
    "severity": SEVERITY_HEADER_RE,
    "occurrences": re.compile(r"(occurrences|occurrence|instances|instance|count|violations|items)"),
    "title": re.compile(r"(title|issue|problem|summary|rule)"),
    "description": DESCRIPTION_HEADER_RE,
    "wcag": re.compile(r"(wcag|success criterion|\bsc\b)"),
    "rule_id": re.compile(r"(rule id|ruleid|rule|check|code)"),
    "page": re.compile(r"(page|url|screen|route)"),
}


def header_looks_like_issues_table(header_keys: List[str]) -> bool:
    has_severity = any(SEVERITY_HEADER_RE.search(h) for h in header_keys)
    has_description = any(DESCRIPTION_HEADER_RE.search(h) for h in header_keys)
    has_title = any(TITLE_HEADER_RE.search(h) for h in header_keys)
    return has_severity and (has_description or has_title)


def _row_cells(row: Tag) -> List[Tag]:
    return row.find_all(["td", "th"], recursive=False)


def _own_rows(table: Tag) -> List[Tag]:
    # Rows of nested tables belong to those tables
    rows = []
    for child in table.find_all(["tr", "thead", "tbody", "tfoot"], recursive=False):
        if child.name == "tr":
            rows.append(child)
        else:
            rows.extend(child.find_all("tr", recursive=False))
    return rows


def find_header_row(table: Tag) -> Optional[Tag]:
    """Explicit <thead> row, else the first row with <th> cells, else the first row."""
    thead = table.find("thead", recursive=False)
    if thead is not None:
        first = thead.find("tr", recursive=False)
        if first is not None:
            return first

    rows = _own_rows(table)
    for row in rows:
        if row.find("th", recursive=False) is not None:
            return row
    return rows[0] if rows else None


def header_texts(table: Tag) -> List[str]:
    header_row = find_header_row(table)
    if header_row is None:
        return []
    return [element_text(cell) for cell in _row_cells(header_row)]


def _column_index(header_keys: List[str], pattern: Pattern) -> Optional[int]:
    for idx, key in enumerate(header_keys):
        if pattern.search(key):
            return idx
    return None


def _data_rows(table: Tag, header_row: Tag) -> List[Tag]:
    bodies = table.find_all("tbody", recursive=False)
    if bodies:
        body_rows = [row for body in bodies for row in body.find_all("tr", recursive=False)]
    else:
        body_rows = _own_rows(table)
    return [row for row in body_rows if row is not header_row and _row_cells(row)]


def parse_table_issues(table: Tag, source_file: str) -> List[ParsedIssue]:
    """
    Extract issues from one <table>.

    Args:
        table: The table element
        source_file: Identifier of the export the table came from

    Returns:
        One ParsedIssue per usable data row; empty when the table is not
        an issue table.
    """
    header_row = find_header_row(table)
    if header_row is None:
        return []

    header_keys = [to_header_key(element_text(cell)) for cell in _row_cells(header_row)]
    if not header_looks_like_issues_table(header_keys):
        return []

    columns = {name: _column_index(header_keys, pattern) for name, pattern in COLUMN_PATTERNS.items()}
    logger.debug(f"Issue table columns resolved: {columns}")

    issues = []
    for row in _data_rows(table, header_row):
        cells = [element_text(cell) for cell in _row_cells(row)]

        def get(name: str) -> str:
            idx = columns[name]
            if idx is None or idx >= len(cells):
                return ""
            return normalize_text(cells[idx])

        severity_raw = get("severity")
        title = get("title") or get("description") or "Issue"
        description = get("description") or get("title") or ""
        # Rows with neither a severity nor a description are layout noise
        if not severity_raw and not description:
            continue

        issues.append(ParsedIssue(
            title=title,
            description=description,
            severity=normalize_severity(severity_raw),
            severity_original=severity_raw or None,
            occurrences=parse_occurrences(get("occurrences")),
            wcag=get("wcag") or None,
            rule_id=get("rule_id") or None,
            page=get("page") or None,
            source_file=source_file,
        ))

    return issues


def extract_table_issues(
    soup: BeautifulSoup, source_file: str
) -> Tuple[List[ParsedIssue], List[TableHeaderInfo], int]:
    """
    Run the table strategy over every table of the document.

    Returns:
        (issues, per-table header samples, number of tables that yielded issues)
    """
    issues: List[ParsedIssue] = []
    header_info: List[TableHeaderInfo] = []
    matched = 0

    for index, table in enumerate(soup.find_all("table")):
        header_info.append(TableHeaderInfo(
            index=index,
            headers=header_texts(table),
            rows=len(_own_rows(table)),
        ))
        table_issues = parse_table_issues(table, source_file)
        if table_issues:
            matched += 1
        issues.extend(table_issues)

    return issues, header_info, matched
