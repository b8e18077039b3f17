from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests
from openpyxl import load_workbook

from boatinfo.config.loader import AppConfig
from boatinfo.excel.reader import ColumnNotFound, SheetNotFound
from boatinfo.logging.error_log import ErrorLogBuffer
from boatinfo.models.row_record import RowRecord
from boatinfo.services.delay import NoDelay
from boatinfo.services.enrichment import EnrichmentClient
from boatinfo.services.pipeline import (
    InputNotFound,
    PipelineError,
    RunOptions,
    enrich_all,
    load_rows,
    run,
)
from conftest import completion_body, make_response


def _delay() -> MagicMock:
    delay = MagicMock()
    delay.describe.return_value = "0ms"
    return delay


def test_enrich_all_delays_between_calls_only(app_config: AppConfig, fake_session):
    client = EnrichmentClient(app_config, session=fake_session)
    delay = _delay()
    rows = [RowRecord(2, "Yacht"), RowRecord(3, "Sailboat"), RowRecord(4, "Canoe")]

    results = enrich_all(rows, client, delay)

    assert [r.description for r in results] == ["About Yacht", "About Sailboat", "About Canoe"]
    assert [r.row_id for r in results] == [2, 3, 4]
    assert delay.wait.call_count == 2


def test_enrich_all_single_row_no_delay(app_config: AppConfig, fake_session):
    delay = _delay()
    enrich_all([RowRecord(2, "Yacht")], EnrichmentClient(app_config, session=fake_session), delay)
    delay.wait.assert_not_called()


def test_enrich_all_empty(app_config: AppConfig, fake_session):
    delay = _delay()
    assert enrich_all([], EnrichmentClient(app_config, session=fake_session), delay) == []
    fake_session.post.assert_not_called()
    delay.wait.assert_not_called()


def test_enrich_all_continues_after_failure_and_still_waits(app_config: AppConfig):
    session = MagicMock()
    session.post.side_effect = [
        requests.exceptions.ConnectionError("down"),
        make_response(200, completion_body("Has sails")),
    ]
    delay = _delay()
    results = enrich_all(
        [RowRecord(2, "Yacht"), RowRecord(3, "Sailboat")],
        EnrichmentClient(app_config, session=session),
        delay,
    )
    assert results[0].degraded is True
    assert results[0].description == "Error: Could not fetch information for Yacht"
    assert results[1].description == "Has sails"
    assert delay.wait.call_count == 1


def test_load_rows_missing_input(temp_workdir: Path):
    with pytest.raises(InputNotFound):
        load_rows(RunOptions(file=temp_workdir / "missing.xlsx"))


def test_load_rows_requires_file_or_list():
    with pytest.raises(PipelineError):
        load_rows(RunOptions())
    with pytest.raises(PipelineError):
        load_rows(RunOptions(create=True, subjects=()))


def test_load_rows_create_mode(temp_workdir: Path):
    out = temp_workdir / "created.xlsx"
    workbook, sheet, rows = load_rows(RunOptions(create=True, subjects=("Yacht", "Canoe"), output=out))
    assert workbook == out
    assert sheet == "Boat Types"
    assert [(r.row_id, r.subject) for r in rows] == [(2, "Yacht"), (3, "Canoe")]
    assert out.exists()


def test_load_rows_scan_mode_errors(temp_workdir: Path, make_workbook):
    excel = make_workbook(temp_workdir / "boats.xlsx", {"Sheet1": [["Boat Type"], ["Yacht"]]})
    with pytest.raises(SheetNotFound):
        load_rows(RunOptions(file=excel, sheet="Other"))
    with pytest.raises(ColumnNotFound):
        load_rows(RunOptions(file=excel, column="Type"))


def test_run_scan_mode(temp_workdir: Path, make_workbook, app_config: AppConfig, fake_session):
    excel = make_workbook(temp_workdir / "boats.xlsx", {"Sheet1": [["Boat Type"], ["Yacht"], ["Sailboat"]]})
    result = run(RunOptions(file=excel), EnrichmentClient(app_config, session=fake_session), NoDelay())

    assert result.total_subjects == 2
    assert result.enriched == 2
    assert result.degraded == 0
    assert result.written_rows == 2
    assert result.workbook == excel
    assert result.sheet_name == "Sheet1"
    assert result.elapsed_seconds >= 0
    assert result.error_log is None

    ws = load_workbook(excel)["Sheet1"]
    assert [c.value for c in ws[1]] == ["Boat Type", "Information"]
    assert ws["B2"].value == "About Yacht"
    assert ws["B3"].value == "About Sailboat"


def test_run_records_degraded_rows(temp_workdir: Path, make_workbook, app_config: AppConfig):
    excel = make_workbook(temp_workdir / "boats.xlsx", {"Sheet1": [["Boat Type"], ["Yacht"], ["Sailboat"]]})
    session = MagicMock()
    session.post.side_effect = [
        make_response(500, None, text="Internal Server Error"),
        make_response(200, completion_body("Has sails")),
    ]
    buf = ErrorLogBuffer(app_config.error_log_dir)

    result = run(RunOptions(file=excel), EnrichmentClient(app_config, session=session), NoDelay(), buf)

    assert result.enriched == 1
    assert result.degraded == 1
    assert result.error_log is not None and result.error_log.exists()
    lines = result.error_log.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 1
    rec = json.loads(lines[0])
    assert rec["file"] == "boats.xlsx"
    assert rec["sheet"] == "Sheet1"
    assert rec["row"] == 2
    assert rec["subject"] == "Yacht"
    assert rec["error_type"] == "ENRICHMENT_FAILED"
    assert "HTTP 500" in rec["message"]

    ws = load_workbook(excel)["Sheet1"]
    assert ws["B2"].value == "Error: Could not fetch information for Yacht"
    assert ws["B3"].value == "Has sails"


def test_run_target_sheet_error_leaves_file_untouched(temp_workdir: Path, make_workbook, app_config, fake_session):
    excel = make_workbook(temp_workdir / "boats.xlsx", {"Sheet1": [["Boat Type"], ["Yacht"]]})
    before = excel.read_bytes()
    with pytest.raises(ColumnNotFound):
        run(RunOptions(file=excel, column="Missing"), EnrichmentClient(app_config, session=fake_session), NoDelay())
    assert excel.read_bytes() == before
    fake_session.post.assert_not_called()


def test_run_unwritable_error_log_still_writes_workbook(temp_workdir: Path, make_workbook, app_config, caplog):
    excel = make_workbook(temp_workdir / "boats.xlsx", {"Sheet1": [["Boat Type"], ["Yacht"], ["Sailboat"]]})
    (temp_workdir / "blocker").write_text("not a directory", encoding="utf-8")
    session = MagicMock()
    session.post.side_effect = [
        make_response(500, None, text="Internal Server Error"),
        make_response(200, completion_body("Has sails")),
    ]
    buf = ErrorLogBuffer(temp_workdir / "blocker" / "logs")

    with caplog.at_level("WARNING", logger="boatinfo.services.pipeline"):
        result = run(RunOptions(file=excel), EnrichmentClient(app_config, session=session), NoDelay(), buf)

    assert result.degraded == 1
    assert result.written_rows == 2
    assert result.error_log is None
    assert "could not write error log" in caplog.text

    ws = load_workbook(excel)["Sheet1"]
    assert [c.value for c in ws[1]] == ["Boat Type", "Information"]
    assert ws["B2"].value == "Error: Could not fetch information for Yacht"
    assert ws["B3"].value == "Has sails"


def test_run_unexpected_client_error_degrades_row(temp_workdir: Path, make_workbook, app_config):
    excel = make_workbook(temp_workdir / "boats.xlsx", {"Sheet1": [["Boat Type"], ["Yacht"]]})
    session = MagicMock()
    session.post.side_effect = UnicodeEncodeError("latin-1", "key’x", 3, 4, "ordinal not in range(256)")

    result = run(RunOptions(file=excel), EnrichmentClient(app_config, session=session), NoDelay())

    assert result.degraded == 1
    assert load_workbook(excel)["Sheet1"]["B2"].value == "Error: Could not fetch information for Yacht"
