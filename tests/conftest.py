"""
Pytest configuration and shared fixtures.
"""

import pytest
from pathlib import Path
from typing import List

from linkage.logger import StructuredLogger, reset_logger
from linkage.schema import HEADER_COLUMNS

HEADER = ",".join(HEADER_COLUMNS)


@pytest.fixture(autouse=True)
def fresh_logger():
    """Each test starts without a cached global logger."""
    reset_logger()
    yield
    reset_logger()


@pytest.fixture
def header_line() -> str:
    return HEADER


@pytest.fixture
def sample_lines() -> List[str]:
    """Header plus six data lines, four matches and two non-matches."""
    return [
        HEADER,
        "37,3148,8326,1,?,1,?,1,1,1,1,1,TRUE",
        "39086,47614,98406,1,?,1,?,1,1,1,1,1,TRUE",
        "70031,70237,70238,1,?,1,?,1,1,1,1,1,TRUE",
        "84795,84795,97439,1,?,1,?,1,1,1,1,1,TRUE",
        "36950,36950,42116,0.833333333333333,?,1,?,1,0,1,1,0,FALSE",
        "42413,42413,48491,0.5,?,0,?,1,1,0,1,1,FALSE",
    ]


@pytest.fixture
def sample_csv(tmp_path, sample_lines) -> Path:
    """Write sample lines to a CSV file with CRLF terminators."""
    path = tmp_path / "linkage.csv"
    path.write_bytes(("\r\n".join(sample_lines) + "\r\n").encode("utf-8"))
    return path


@pytest.fixture
def bad_csv(tmp_path, sample_lines) -> Path:
    """Sample data with one short line and one non-numeric id."""
    lines = list(sample_lines)
    lines.insert(3, "1,2,3,1,1,1,1,1,1,1,1,TRUE")
    lines.insert(5, "9,abc,4,1,1,1,1,1,1,1,1,1,FALSE")
    path = tmp_path / "bad.csv"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def quiet_logger(tmp_path) -> StructuredLogger:
    return StructuredLogger(name="linkage-test", log_dir=tmp_path / "logs", enable_console=False)
