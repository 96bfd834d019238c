# -*- coding: utf-8 -*-
"""
Extraction strategies for Stark HTML exports.
"""

from .cards import extract_card_issues, fill_wcag_gaps
from .heuristic import extract_heuristic_issues
from .report_meta import extract_primary_page_url, extract_report_totals
from .tables import extract_table_issues
from .wcag import extract_best_wcag_label, extract_wcag_breakdown_totals

__all__ = [
    'extract_card_issues',
    'fill_wcag_gaps',
    'extract_heuristic_issues',
    'extract_primary_page_url',
    'extract_report_totals',
    'extract_table_issues',
    'extract_best_wcag_label',
    'extract_wcag_breakdown_totals',
]
