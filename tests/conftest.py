# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path
from unittest.mock import MagicMock

import pandas as pd
import pytest

from boatinfo.config.loader import AppConfig
from boatinfo.logging.init import reset_logging

ENV_VARS = ["PERPLEXITY_API_KEY", "QUERY_TEMPLATE", "PERPLEXITY_MODEL", "PERPLEXITY_API_URL"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def app_config(temp_workdir: Path) -> AppConfig:
    return AppConfig(api_key="test-key", error_log_dir=str(temp_workdir / "logs"))


@pytest.fixture()
def make_workbook():
    """Write sheets (name -> list of rows, first row = header) to an .xlsx file."""
    def _make(path: Path, sheets: dict[str, list[list[object]]]) -> Path:
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            for sheet, rows in sheets.items():
                pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
        return path
    return _make


def completion_body(content: object) -> dict:
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}


def make_response(status: int = 200, body: object = None, text: str = "") -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.text = text
    if isinstance(body, Exception):
        resp.json.side_effect = body
    else:
        resp.json.return_value = body
    return resp


@pytest.fixture()
def fake_session():
    """Session whose post() answers every prompt with a canned description.

    The description is "About <subject>" where subject is recovered from the
    default prompt template.
    """
    session = MagicMock()

    def _post(url, headers=None, json=None):
        prompt = json["messages"][0]["content"]
        subject = prompt.split("boat type: ", 1)[1].split(". Include", 1)[0]
        return make_response(200, completion_body(f"About {subject}"))

    session.post.side_effect = _post
    return session
