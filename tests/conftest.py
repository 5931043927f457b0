from __future__ import annotations

import logging
import sys
from pathlib import Path
from textwrap import dedent

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))


GREET_RUNFILE = dedent(
    """\
    EXPORT GREETING=hello
    COMMAND greet
    {
      OPTION -n, --name <NAME> "Who to greet"
    }
    {
      echo $GREETING, ${name}!
    }
    """
)


@pytest.fixture
def greet_source() -> bytes:
    return GREET_RUNFILE.encode("utf-8")


@pytest.fixture
def runfile_path(tmp_path: Path) -> Path:
    """A Runfile on disk for runner tests"""
    path = tmp_path / "Runfile"
    path.write_text(GREET_RUNFILE, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _debug_logging(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="runfile")
