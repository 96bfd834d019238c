# -*- coding: utf-8 -*-
"""
stark_consolidator - Parser and consolidator for Stark accessibility
HTML exports.

Extracts raw findings from table, category-card or free-form exports,
normalizes their severities and merges them into unique issues across
any number of files.
"""

from .categorizer import IssueCategory, categorize, categorize_issue
from .consolidation import compute_issue_key, consolidate
from .models import BatchResult, ConsolidatedIssue, FileResult, ParseDebugInfo, ParsedIssue, ParseResult
from .parser import StarkReportParser, parse
from .pipeline import BatchProcessor
from .severity import (
    SeverityLabel,
    SeverityScheme,
    format_severity_label,
    infer_severity_scheme_from_raw_labels,
    normalize_severity,
    resolve_batch_scheme,
)

__title__ = 'stark_consolidator'
__version__ = '1.0.0'
__license__ = 'MIT'

__all__ = [
    'BatchProcessor',
    'BatchResult',
    'ConsolidatedIssue',
    'FileResult',
    'IssueCategory',
    'ParseDebugInfo',
    'ParseResult',
    'ParsedIssue',
    'SeverityLabel',
    'SeverityScheme',
    'StarkReportParser',
    'categorize',
    'categorize_issue',
    'compute_issue_key',
    'consolidate',
    'format_severity_label',
    'infer_severity_scheme_from_raw_labels',
    'normalize_severity',
    'parse',
    'resolve_batch_scheme',
]
