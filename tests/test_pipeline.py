# -*- coding: utf-8 -*-
import json

import pytest

from conftest import issue_table, wrap_document
from stark_consolidator.pipeline import BatchProcessor, collect_input_files, main
from stark_consolidator.severity import SeverityLabel, SeverityScheme


@pytest.fixture
def axe_doc():
    return wrap_document(issue_table(
        ["Severity", "Issue", "Description", "Page"],
        [
            ["Serious", "Empty link", "Link has no discernible text", "https://example.com/"],
            ["Minor", "Heading order", "Heading levels skip", "https://example.com/"],
        ],
    ))


@pytest.fixture
def hml_doc():
    return wrap_document(issue_table(
        ["Impact", "Issue", "Description", "Page"],
        [["High", "Empty link", "Link has no discernible text", "https://example.com/about"]],
    ))


@pytest.fixture
def export_dir(tmp_path, axe_doc, hml_doc):
    exports = tmp_path / "exports"
    exports.mkdir()
    (exports / "home.html").write_text(axe_doc, encoding="utf-8")
    (exports / "about.html").write_text(hml_doc, encoding="utf-8")
    (exports / "notes.txt").write_text("not an export", encoding="utf-8")
    return exports


def test_process_documents_consolidates_across_files(axe_doc, hml_doc):
    batch = BatchProcessor().process_documents([("home.html", axe_doc), ("about.html", hml_doc)])

    assert [f.source_file for f in batch.files] == ["home.html", "about.html"]
    assert [f.issues_found for f in batch.files] == [2, 1]
    assert len(batch.raw_issues) == 3
    assert len(batch.consolidated) == 2

    link = batch.consolidated[0]
    assert link.title == "Empty link"
    assert link.occurrences == 2
    assert link.severity is SeverityLabel.SERIOUS
    assert link.source_files == ["home.html", "about.html"]
    assert link.pages == ["https://example.com/", "https://example.com/about"]
    assert batch.severity_scheme is SeverityScheme.HML
    assert batch.total_occurrences == 3


def test_thread_pool_keeps_input_order(axe_doc, hml_doc):
    documents = [(f"doc{i}.html", axe_doc if i % 2 else hml_doc) for i in range(6)]
    sequential = BatchProcessor(max_workers=1).process_documents(documents)
    threaded = BatchProcessor(max_workers=3).process_documents(documents)

    assert [f.source_file for f in threaded.files] == [name for name, _ in documents]
    assert [i.to_dict() for i in threaded.raw_issues] == [i.to_dict() for i in sequential.raw_issues]
    assert [c.to_dict() for c in threaded.consolidated] == [c.to_dict() for c in sequential.consolidated]


def test_unreadable_file_does_not_abort_batch(tmp_path, axe_doc):
    good = tmp_path / "good.html"
    good.write_text(axe_doc, encoding="utf-8")
    bad = tmp_path / "bad.html"
    bad.write_bytes(b"\xff\xfe\xfa invalid utf-8")

    batch = BatchProcessor().process_files([bad, good])

    assert [f.source_file for f in batch.files] == ["bad.html", "good.html"]
    failed = batch.files[0]
    assert failed.error is not None
    assert failed.issues_found == 0
    assert failed.debug.warnings[0].startswith("Could not read file:")
    assert batch.failed_files == [failed]
    assert len(batch.consolidated) == 2


def test_invalid_worker_count():
    with pytest.raises(ValueError):
        BatchProcessor(max_workers=0)


def test_collect_input_files(export_dir):
    files = collect_input_files([export_dir])
    assert [f.name for f in files] == ["about.html", "home.html"]

    with pytest.raises(FileNotFoundError):
        collect_input_files([export_dir / "missing.html"])

    mixed = collect_input_files([export_dir / "missing.html", export_dir])
    assert [f.name for f in mixed] == ["missing.html", "about.html", "home.html"]

    empty = export_dir / "empty"
    empty.mkdir()
    with pytest.raises(ValueError):
        collect_input_files([empty])


def test_main_writes_json_report(tmp_path, export_dir, monkeypatch):
    monkeypatch.chdir(tmp_path)
    out = tmp_path / "out"

    exit_code = main([str(export_dir), "--output-dir", str(out), "--json", "--run-name", "Nightly run", "--debug"])

    assert exit_code == 0
    report = out / "Nightly_run" / "reports" / "stark_consolidated_Nightly_run.json"
    data = json.loads(report.read_text(encoding="utf-8"))
    assert data["severity_scheme"] == "hml"
    assert data["raw_issue_count"] == 3
    assert data["unique_issue_count"] == 2
    assert data["issues"][0]["severity_display"] == "High"
    assert data["issues"][0]["category"] == "Link text"
    assert (out / "Nightly_run" / "debug" / "home_debug.json").exists()
    assert not (out / "Nightly_run" / "reports" / "stark_consolidated_Nightly_run.xlsx").exists()


def test_main_missing_input(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert main([str(tmp_path / "nope.html"), "--output-dir", str(tmp_path / "out"), "--json"]) == 2


def test_main_invalid_workers(tmp_path, export_dir, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert main([str(export_dir), "--output-dir", str(tmp_path / "out"), "--json", "--workers", "0"]) == 3


def test_main_skips_missing_input(tmp_path, axe_doc, monkeypatch):
    monkeypatch.chdir(tmp_path)
    good = tmp_path / "good.html"
    good.write_text(axe_doc, encoding="utf-8")
    out = tmp_path / "out"

    exit_code = main([str(good), str(tmp_path / "missing.html"), "-o", str(out), "--json"])

    assert exit_code == 0
    data = json.loads((out / "stark" / "reports" / "stark_consolidated_stark.json").read_text(encoding="utf-8"))
    assert data["raw_issue_count"] == 2
    files = {f["source_file"]: f for f in data["files"]}
    assert files["good.html"]["issues_found"] == 2
    assert files["missing.html"]["error"]


def test_main_no_readable_input(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    bad = tmp_path / "bad.html"
    bad.write_bytes(b"\xff\xfe\xfa invalid utf-8")
    assert main([str(bad), "-o", str(tmp_path / "out"), "--json"]) == 3


def test_main_logs_to_configured_log_dir(tmp_path, export_dir, monkeypatch):
    monkeypatch.chdir(tmp_path)
    log_dir = tmp_path / "mylogs"
    monkeypatch.setenv("STARK_LOG_DIR", str(log_dir))
    out = tmp_path / "out"

    assert main([str(export_dir), "-o", str(out), "--json"]) == 0

    log_text = (log_dir / "stark_consolidator.log").read_text(encoding="utf-8")
    assert "Configuration summary" in log_text
    assert "Batch complete" in log_text
    assert not (out / "stark" / "logs" / "stark_consolidator.log").exists()


def test_main_logs_to_run_directory_by_default(tmp_path, export_dir, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("STARK_LOG_DIR", raising=False)
    out = tmp_path / "out"

    assert main([str(export_dir), "-o", str(out), "--json"]) == 0

    log_text = (out / "stark" / "logs" / "stark_consolidator.log").read_text(encoding="utf-8")
    assert "Configuration summary" in log_text
