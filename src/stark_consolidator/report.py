# src/stark_consolidator/report.py
"""
Report output for a consolidated batch: a pandas view of the issues,
severity/category aggregations, matplotlib charts, an Excel workbook
(XlsxWriter) and a JSON dump.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from .categorizer import categorize
from .models import BatchResult, ConsolidatedIssue
from .severity import SeverityLabel, SeverityScheme, format_severity_label
from .utils.text import clamp_snippet

logger = logging.getLogger(__name__)

ISSUE_COLUMNS = [
    "severity", "severity_display", "severity_rank", "category", "title", "description",
    "wcag", "rule_id", "occurrences", "page_count", "pages", "source_files", "example_snippets",
]

SEVERITY_COLORS = {
    SeverityLabel.CRITICAL.value: '#E63946',
    SeverityLabel.SERIOUS.value: '#F4A261',
    SeverityLabel.MODERATE.value: '#2A9D8F',
    SeverityLabel.MINOR.value: '#457B9D',
    SeverityLabel.UNKNOWN.value: '#BDBDBD',
}

# Excel caps a cell at 32767 characters
EXCEL_CELL_LIMIT = 32767


def issues_to_dataframe(consolidated: List[ConsolidatedIssue],
                        scheme: Optional[Union[SeverityScheme, str]] = None) -> pd.DataFrame:
    """
    One row per consolidated issue, keeping the consolidation order.

    List fields (pages, source files, snippets) stay as Python lists;
    writers join them as needed.
    """
    rows = []
    for issue in consolidated:
        rows.append({
            "severity": issue.severity.value,
            "severity_display": format_severity_label(issue.severity, scheme),
            "severity_rank": issue.severity.rank,
            "category": categorize(issue).value,
            "title": issue.title,
            "description": issue.description,
            "wcag": issue.wcag or "",
            "rule_id": issue.rule_id or "",
            "occurrences": issue.occurrences,
            "page_count": len(issue.pages),
            "pages": list(issue.pages),
            "source_files": list(issue.source_files),
            "example_snippets": list(issue.example_snippets),
        })
    return pd.DataFrame(rows, columns=ISSUE_COLUMNS)


def create_aggregations(df: pd.DataFrame) -> Dict[str, pd.DataFrame]:
    """
    Summary tables of a consolidated-issue DataFrame.

    Args:
        df: Output of issues_to_dataframe()

    Returns:
        {"By Severity": ..., "By Category": ...}; both empty (with their
        columns) when df has no rows
    """
    severity_columns = ["severity", "severity_display", "Unique_Issues", "Total_Occurrences", "Percentage"]
    category_columns = ["category", "Unique_Issues", "Total_Occurrences", "Critical_Issues", "Percentage"]
    if df.empty:
        return {
            "By Severity": pd.DataFrame(columns=severity_columns),
            "By Category": pd.DataFrame(columns=category_columns),
        }

    total = df["occurrences"].sum()

    by_severity = df.groupby(["severity", "severity_display"], as_index=False).agg(
        Unique_Issues=pd.NamedAgg(column="title", aggfunc="count"),
        Total_Occurrences=pd.NamedAgg(column="occurrences", aggfunc="sum"),
        Rank=pd.NamedAgg(column="severity_rank", aggfunc="first"),
    )
    by_severity["Percentage"] = by_severity["Total_Occurrences"] / total
    by_severity = by_severity.sort_values("Rank", ascending=False).drop(columns="Rank").reset_index(drop=True)

    by_category = df.groupby("category", as_index=False).agg(
        Unique_Issues=pd.NamedAgg(column="title", aggfunc="count"),
        Total_Occurrences=pd.NamedAgg(column="occurrences", aggfunc="sum"),
        Critical_Issues=pd.NamedAgg(column="severity",
                                    aggfunc=lambda x: int((x == SeverityLabel.CRITICAL.value).sum())),
    )
    by_category["Percentage"] = by_category["Total_Occurrences"] / total
    by_category = by_category.sort_values(
        ["Total_Occurrences", "category"], ascending=[False, True]
    ).reset_index(drop=True)

    return {
        "By Severity": by_severity[severity_columns],
        "By Category": by_category[category_columns],
    }


def create_charts(aggregations: Dict[str, pd.DataFrame], charts_dir: Union[str, Path],
                  run_slug: str = "stark") -> Dict[str, str]:
    """
    Render PNG charts for the aggregations.

    Returns:
        Mapping of chart type ("severity", "category") to file path; a
        chart whose aggregation is empty is skipped
    """
    charts_dir = Path(charts_dir)
    charts_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Generating charts in directory: {charts_dir}")

    sns.set_style("whitegrid")
    plt.rcParams['font.family'] = 'sans-serif'
    plt.rcParams['axes.titlesize'] = 14

    chart_files = {}

    severity_df = aggregations.get("By Severity")
    if severity_df is not None and not severity_df.empty:
        fig, ax = plt.subplots(figsize=(8, 6))
        try:
            sizes = severity_df["Total_Occurrences"].astype(int).tolist()
            colors = [SEVERITY_COLORS.get(s, '#BDBDBD') for s in severity_df["severity"]]
            wedges, _texts, autotexts = ax.pie(
                sizes,
                autopct=lambda pct: f"{pct:.1f}%" if pct > 2 else '',
                startangle=90,
                wedgeprops={'width': 0.4, 'edgecolor': 'w', 'linewidth': 1},
                colors=colors,
                pctdistance=0.8,
            )
            for text in autotexts:
                text.set_color('white')
                text.set_fontweight('bold')
            ax.text(0, 0, f"{sum(sizes)}\nOccurrences", ha='center', va='center', fontsize=12, fontweight='bold')
            legend_labels = [f"{row['severity_display']} ({row['Total_Occurrences']})"
                             for _, row in severity_df.iterrows()]
            ax.legend(wedges, legend_labels, title="Severity", loc="center left", bbox_to_anchor=(1, 0, 0.5, 1))
            ax.set_title('Issue occurrences by severity')
            chart_path = charts_dir / f'chart_severity_{run_slug}.png'
            fig.savefig(chart_path, dpi=150, bbox_inches='tight')
            chart_files['severity'] = str(chart_path)
            logger.info(f"Created severity chart: {chart_path}")
        finally:
            plt.close(fig)

    category_df = aggregations.get("By Category")
    if category_df is not None and not category_df.empty:
        fig, ax = plt.subplots(figsize=(10, max(4, len(category_df) * 0.5)))
        try:
            sns.barplot(data=category_df, x="Total_Occurrences", y="category", color='#0077B6', ax=ax)
            ax.set_xlabel('Occurrences')
            ax.set_ylabel('')
            ax.set_title('Issue occurrences by category')
            chart_path = charts_dir / f'chart_category_{run_slug}.png'
            fig.tight_layout()
            fig.savefig(chart_path, dpi=150, bbox_inches='tight')
            chart_files['category'] = str(chart_path)
            logger.info(f"Created category chart: {chart_path}")
        finally:
            plt.close(fig)

    return chart_files


def _files_dataframe(batch: BatchResult) -> pd.DataFrame:
    rows = []
    for f in batch.files:
        totals = f.debug.report_totals
        rows.append({
            "source_file": f.source_file,
            "issues_found": f.issues_found,
            "tables_found": f.debug.tables_found,
            "matched_tables": f.debug.matched_tables,
            "report_violations": totals.violations if totals and totals.violations is not None else "",
            "report_potential_violations": (
                totals.potential_violations if totals and totals.potential_violations is not None else ""
            ),
            "severity_scheme": f.debug.severity_scheme.value if f.debug.severity_scheme else "",
            "warnings": "\n".join(f.debug.warnings),
            "error": f.error or "",
        })
    return pd.DataFrame(rows)


def generate_report(batch: BatchResult, output_path: Union[str, Path],
                    df: Optional[pd.DataFrame] = None,
                    aggregations: Optional[Dict[str, pd.DataFrame]] = None,
                    chart_files: Optional[Dict[str, str]] = None,
                    max_snippets: int = 3,
                    snippet_max_length: int = 420) -> Path:
    """
    Write the consolidated Excel workbook.

    Sheets: Summary, Issues, By Category, Files. Charts, when given, are
    embedded in the Summary sheet.

    Args:
        batch: Result of BatchProcessor
        output_path: Target .xlsx file
        df: Precomputed issues_to_dataframe() output
        aggregations: Precomputed create_aggregations() output
        chart_files: Chart paths from create_charts()
        max_snippets: Example snippets listed per issue
        snippet_max_length: Characters kept per snippet

    Returns:
        Path of the written workbook
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if df is None:
        df = issues_to_dataframe(batch.consolidated, batch.severity_scheme)
    if aggregations is None:
        aggregations = create_aggregations(df)
    chart_files = chart_files or {}

    logger.info(f"Generating Excel report: {output_path}")

    with pd.ExcelWriter(output_path, engine='xlsxwriter') as writer:
        workbook = writer.book

        title_format = workbook.add_format({'bold': True, 'font_size': 16, 'bg_color': '#4472C4',
                                            'font_color': 'white', 'border': 1})
        subtitle_format = workbook.add_format({'bold': True, 'font_size': 12, 'bg_color': '#D9E1F2', 'border': 1})
        header_format = workbook.add_format({'bold': True, 'bg_color': '#D9E1F2', 'border': 1,
                                             'align': 'center', 'valign': 'vcenter', 'text_wrap': True})
        cell_format = workbook.add_format({'border': 1, 'valign': 'top', 'text_wrap': True})
        num_format = workbook.add_format({'num_format': '#,##0', 'border': 1, 'valign': 'top'})
        percent_format = workbook.add_format({'num_format': '0.0%', 'border': 1, 'valign': 'top'})
        severity_formats = {
            label: workbook.add_format({'bg_color': color, 'border': 1, 'bold': True,
                                        'align': 'center', 'valign': 'top'})
            for label, color in SEVERITY_COLORS.items()
        }

        def write_table(ws, dataframe: pd.DataFrame, start_row: int, widths: Dict[str, int]) -> int:
            columns = list(dataframe.columns)
            for c_idx, col_name in enumerate(columns):
                ws.set_column(c_idx, c_idx, widths.get(col_name, 15))
                ws.write(start_row, c_idx, col_name.replace('_', ' ').title(), header_format)
            for r_idx, row in enumerate(dataframe.itertuples(index=False), start=start_row + 1):
                for c_idx, (col_name, value) in enumerate(zip(columns, row)):
                    if isinstance(value, (int, float, np.integer, np.floating)) and not pd.isna(value):
                        fmt = percent_format if col_name == "Percentage" else num_format
                        ws.write_number(r_idx, c_idx, float(value), fmt)
                    elif col_name in ("severity", "Severity"):
                        ws.write_string(r_idx, c_idx, str(value), severity_formats.get(str(value), cell_format))
                    else:
                        ws.write_string(r_idx, c_idx, str(value)[:EXCEL_CELL_LIMIT], cell_format)
            if len(dataframe):
                ws.autofilter(start_row, 0, start_row + len(dataframe), len(columns) - 1)
            return start_row + len(dataframe) + 2

        # --- Summary ---
        summary_ws = workbook.add_worksheet('Summary')
        summary_ws.set_column('A:A', 32)
        summary_ws.set_column('B:E', 18)
        summary_ws.merge_range('A1:E1', 'Stark Accessibility Consolidated Report', title_format)
        summary_ws.write('A2', f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}")

        kpis = [
            ("Files processed", len(batch.files)),
            ("Files not readable", len(batch.failed_files)),
            ("Raw issues", len(batch.raw_issues)),
            ("Unique issues", len(batch.consolidated)),
            ("Total occurrences", batch.total_occurrences),
        ]
        row = 3
        summary_ws.merge_range(row, 0, row, 1, 'Key figures', subtitle_format)
        for name, value in kpis:
            row += 1
            summary_ws.write_string(row, 0, name, cell_format)
            summary_ws.write_number(row, 1, value, num_format)
        row += 1
        summary_ws.write_string(row, 0, "Severity scheme", cell_format)
        summary_ws.write_string(row, 1, SeverityScheme(batch.severity_scheme).value, cell_format)

        row += 2
        summary_ws.merge_range(row, 0, row, 4, 'By severity', subtitle_format)
        row = write_table(summary_ws, aggregations["By Severity"], row + 1, {"severity_display": 18})

        image_row = row
        for chart_type in ("severity", "category"):
            chart_path = chart_files.get(chart_type)
            if chart_path and Path(chart_path).exists():
                summary_ws.insert_image(image_row, 0, chart_path, {'x_scale': 0.6, 'y_scale': 0.6})
                image_row += 22

        # --- Issues ---
        issues_ws = workbook.add_worksheet('Issues')
        issues_df = df.drop(columns=["severity_rank"]).copy()
        issues_df["pages"] = issues_df["pages"].apply("\n".join)
        issues_df["source_files"] = issues_df["source_files"].apply("\n".join)
        issues_df["example_snippets"] = issues_df["example_snippets"].apply(
            lambda snippets: "\n\n".join(clamp_snippet(s, snippet_max_length) for s in snippets[:max_snippets])
        )
        write_table(issues_ws, issues_df, 0, {
            "title": 40, "description": 60, "pages": 45, "source_files": 30, "example_snippets": 60, "category": 18,
        })
        issues_ws.freeze_panes(1, 0)

        # --- By Category ---
        category_ws = workbook.add_worksheet('By Category')
        write_table(category_ws, aggregations["By Category"], 0, {"category": 22})
        category_ws.freeze_panes(1, 0)

        # --- Files ---
        files_ws = workbook.add_worksheet('Files')
        write_table(files_ws, _files_dataframe(batch), 0, {"source_file": 35, "warnings": 70, "error": 40})
        files_ws.freeze_panes(1, 0)

    logger.info(f"Excel report written: {output_path}")
    return output_path


def write_json(batch: BatchResult, output_path: Union[str, Path]) -> Path:
    """Write the consolidated issues plus per-file diagnostics as JSON."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    scheme = SeverityScheme(batch.severity_scheme)
    issues = []
    for issue in batch.consolidated:
        data = issue.to_dict()
        data["severity_display"] = format_severity_label(issue.severity, scheme)
        data["category"] = categorize(issue).value
        issues.append(data)

    payload = {
        "generated_at": datetime.now().isoformat(timespec="seconds"),
        "severity_scheme": scheme.value,
        "raw_issue_count": len(batch.raw_issues),
        "unique_issue_count": len(batch.consolidated),
        "total_occurrences": batch.total_occurrences,
        "files": [f.to_dict() for f in batch.files],
        "issues": issues,
    }
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)

    logger.info(f"JSON report written: {output_path}")
    return output_path
