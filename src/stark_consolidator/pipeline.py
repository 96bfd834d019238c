#!/usr/bin/env python3
# src/stark_consolidator/pipeline.py
"""
Batch processing of Stark exports and the stark-consolidator CLI.

A batch reads every file, parses each one independently (optionally in
a thread pool), and consolidates the raw issues only after all files
have finished, in input order.
"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .consolidation import consolidate
from .models import BatchResult, FileResult, ParsedIssue, ParseDebugInfo, ParseResult
from .parser import StarkReportParser
from .severity import resolve_batch_scheme
from .utils.config_manager import ConfigurationManager
from .utils.logging_config import get_logger
from .utils.output_manager import OutputManager

logger = logging.getLogger(__name__)

HTML_SUFFIXES = (".html", ".htm")


class BatchProcessor:
    """
    Parses a set of exports and consolidates their issues.

    One unreadable or broken file never aborts the batch: it is reported
    in its FileResult and the others are consolidated as usual.
    """

    def __init__(self, parser: Optional[StarkReportParser] = None, max_workers: int = 1,
                 encoding: str = "utf-8", logger: Optional[logging.Logger] = None):
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.parser = parser or StarkReportParser()
        self.max_workers = max_workers
        self.encoding = encoding
        self.logger = logger or logging.getLogger(__name__)

    def process_files(self, paths: Iterable[Union[str, Path]]) -> BatchResult:
        """
        Read, parse and consolidate export files.

        Args:
            paths: Export files; each issue is attributed to the file name

        Returns:
            BatchResult with one FileResult per path, in input order
        """
        documents: List[Tuple[str, Optional[str], Optional[str]]] = []
        for path in map(Path, paths):
            try:
                documents.append((path.name, path.read_text(encoding=self.encoding), None))
            except (OSError, UnicodeDecodeError) as e:
                self.logger.error(f"Could not read {path}: {e}")
                documents.append((path.name, None, str(e)))
        return self._process(documents)

    def process_documents(self, documents: Iterable[Tuple[str, str]]) -> BatchResult:
        """Parse and consolidate in-memory (source_file, html) pairs."""
        return self._process([(name, html, None) for name, html in documents])

    def _process(self, documents: Sequence[Tuple[str, Optional[str], Optional[str]]]) -> BatchResult:
        readable = [(name, html) for name, html, error in documents if error is None]
        self.logger.info(f"Parsing {len(readable)} document(s) with {self.max_workers} worker(s)")

        if self.max_workers > 1 and len(readable) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                # map() yields in submission order
                parsed = list(executor.map(lambda doc: self.parser.parse(doc[1], doc[0]), readable))
        else:
            parsed = [self.parser.parse(html, name) for name, html in readable]

        results = iter(parsed)
        files: List[FileResult] = []
        raw_issues: List[ParsedIssue] = []
        for name, _, error in documents:
            if error is not None:
                debug = ParseDebugInfo(warnings=[f"Could not read file: {error}"])
                files.append(FileResult(source_file=name, debug=debug, error=error))
                continue
            result: ParseResult = next(results)
            files.append(FileResult(source_file=name, issues_found=len(result.issues), debug=result.debug))
            raw_issues.extend(result.issues)

        consolidated = consolidate(raw_issues)
        scheme = resolve_batch_scheme(f.debug.severity_scheme for f in files)

        self.logger.info(
            f"Batch complete: {len(files)} file(s), {len(raw_issues)} raw issue(s), "
            f"{len(consolidated)} unique issue(s), severity scheme '{scheme.value}'"
        )
        return BatchResult(files=files, raw_issues=raw_issues, consolidated=consolidated,
                           severity_scheme=scheme)


def collect_input_files(inputs: Iterable[Union[str, Path]]) -> List[Path]:
    """
    Expand CLI inputs: files are kept as given, directories contribute
    their *.html / *.htm files in name order.

    Missing paths are kept with a warning so the batch records them as
    unreadable files and still consolidates the others.

    Raises:
        FileNotFoundError: none of the input paths exists
        ValueError: no export files were found
    """
    files: List[Path] = []
    missing: List[Path] = []
    for item in map(Path, inputs):
        if not item.exists():
            logger.warning(f"Input not found: {item}")
            missing.append(item)
            files.append(item)
        elif item.is_dir():
            files.extend(sorted(p for p in item.iterdir() if p.suffix.lower() in HTML_SUFFIXES))
        else:
            files.append(item)
    if files and len(missing) == len(files):
        raise FileNotFoundError(f"Input not found: {', '.join(str(p) for p in missing)}")
    if not files:
        raise ValueError("No HTML export files to process")
    return files


def write_debug_files(batch: BatchResult, output_manager: OutputManager) -> List[Path]:
    """Dump each file's ParseDebugInfo as JSON into the debug directory."""
    written = []
    for file_result in batch.files:
        path = output_manager.get_path("debug", f"{Path(file_result.source_file).stem}_debug.json")
        content = json.dumps(file_result.to_dict(), indent=2, ensure_ascii=False)
        if output_manager.safe_write_file(path, content):
            written.append(path)
    return written


def main(argv: Optional[List[str]] = None) -> int:
    """
    Command-line entry point.

    Exit codes: 0 success (missing or unreadable inputs are skipped with a
    warning), 2 no input path exists or the config file is missing, 3 invalid input
    or configuration (including no readable input), 1 unexpected error.
    """
    import argparse

    from .report import create_aggregations, create_charts, generate_report, issues_to_dataframe, write_json

    parser = argparse.ArgumentParser(description='Consolidate Stark accessibility HTML exports')
    parser.add_argument('files', nargs='+', help='Stark HTML export files or directories containing them')
    parser.add_argument('--output-dir', '-o', help='Base output directory (overrides config)')
    parser.add_argument('--run-name', '-n', default='stark', help='Name of the output subdirectory for this run')
    parser.add_argument('--excel', action='store_true', help='Write the Excel report')
    parser.add_argument('--json', action='store_true', help='Write the JSON report')
    parser.add_argument('--charts', action='store_true', help='Render severity/category charts')
    parser.add_argument('--config', '-c', help='Configuration file (.json or .yaml)')
    parser.add_argument('--workers', '-w', type=int, help='Number of parallel parse workers (overrides config)')
    parser.add_argument('--debug', action='store_true', help='Debug logging and per-file parse diagnostics')

    args = parser.parse_args(argv)

    try:
        cli_args = {
            "OUTPUT_DIR": args.output_dir,
            "PARSE_MAX_WORKERS": args.workers,
            "CREATE_CHARTS": True if args.charts else None,
            "LOG_LEVEL": "DEBUG" if args.debug else None,
        }
        config = ConfigurationManager(config_file=args.config, cli_args=cli_args)

        output_manager = OutputManager(base_dir=config.get_path("OUTPUT_DIR"), run_name=args.run_name)
        log_config = config.get_logging_config()["components"]["stark_consolidator"]
        run_logger = get_logger("stark_consolidator", log_config, output_manager, reconfigure=True)
        config.log_config_summary()

        paths = collect_input_files(args.files)
        processor = BatchProcessor(
            parser=StarkReportParser(),
            max_workers=config.get_int("PARSE_MAX_WORKERS"),
            encoding=config.get("FILE_ENCODING"),
        )
        batch = processor.process_files(paths)

        for failed in batch.failed_files:
            run_logger.warning(f"Skipped {failed.source_file}: {failed.error}")
        if not any(f.ok for f in batch.files):
            raise ValueError("None of the input files could be read")

        if args.excel or args.json:
            formats = [fmt for fmt, wanted in (("excel", args.excel), ("json", args.json)) if wanted]
        else:
            formats = [fmt.lower() for fmt in config.get_list("REPORT_FORMATS")]

        outputs: List[Path] = []
        df = issues_to_dataframe(batch.consolidated, batch.severity_scheme)
        aggregations = create_aggregations(df)

        chart_files = {}
        if config.get_bool("CREATE_CHARTS"):
            chart_files = create_charts(aggregations, output_manager.get_path("charts"), output_manager.run_slug)
            outputs.extend(Path(p) for p in chart_files.values())

        if "excel" in formats:
            excel_name = f"stark_consolidated_{output_manager.run_slug}.xlsx"
            output_manager.backup_existing_file("reports", excel_name)
            outputs.append(generate_report(
                batch,
                output_manager.get_path("reports", excel_name),
                df=df,
                aggregations=aggregations,
                chart_files=chart_files,
                max_snippets=config.get_int("MAX_EXAMPLE_SNIPPETS"),
                snippet_max_length=config.get_int("SNIPPET_MAX_LENGTH"),
            ))
        if "json" in formats:
            json_name = f"stark_consolidated_{output_manager.run_slug}.json"
            output_manager.backup_existing_file("reports", json_name)
            outputs.append(write_json(batch, output_manager.get_path("reports", json_name)))

        if args.debug:
            outputs.extend(write_debug_files(batch, output_manager))

        print(f"\nProcessed {len(batch.files)} file(s): {len(batch.raw_issues)} raw issue(s), "
              f"{len(batch.consolidated)} unique issue(s), {batch.total_occurrences} occurrence(s)")
        for path in outputs:
            print(f"  {path}")
        return 0

    except FileNotFoundError as e:
        logger.error(f"File Not Found Error: {e}")
        print(f"Error: Required file not found. Details: {e}")
        return 2
    except ValueError as e:
        logger.error(f"Value Error: {e}")
        print(f"Error: Invalid input or configuration. Details: {e}")
        return 3
    except Exception as e:
        logger.error(f"An unexpected error occurred: {e}", exc_info=True)
        print(f"An unexpected error occurred. Check logs for details. Error: {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
