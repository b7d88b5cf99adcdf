# ruff: noqa: E402

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import workerpack.log as workerpack_log


@pytest.fixture(autouse=True)
def _reset_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("WORKERPACK_LOG_LEVEL", raising=False)
    monkeypatch.setattr(workerpack_log, "_configured_level", None)
    monkeypatch.setattr(workerpack_log, "_no_color_override", None)
