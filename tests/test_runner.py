from __future__ import annotations

import io
import sys
from pathlib import Path
from typing import List, Tuple

import pytest

from runfile.runner import main

MAIN_TOOL = "COMMAND main\n{\n  Does the one thing.\n}\n{\n  echo main\n}\n"


@pytest.fixture(autouse=True)
def _program_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "argv", ["run"])
    monkeypatch.delenv("RUNFILE", raising=False)


def run(*argv: str) -> Tuple[int, str, str]:
    out, err = io.StringIO(), io.StringIO()
    code = main(list(argv), out=out, err=err)
    return code, out.getvalue(), err.getvalue()


def _write(tmp_path: Path, name: str, text: str) -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_list(runfile_path: Path) -> None:
    code, out, err = run("-r", str(runfile_path), "list")
    assert code == 0
    assert out == ""
    assert err.startswith("Commands:\n")
    assert "  greet    " in err


def test_list_is_the_default(runfile_path: Path) -> None:
    code, _, err = run("--runfile=" + str(runfile_path))
    assert code == 0
    assert "Commands:" in err


def test_runfile_from_environment(runfile_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RUNFILE", str(runfile_path))
    code, out, _ = run("greet")
    assert code == 0
    assert out.startswith("greet (sh):\n")


def test_dry_run_prints_shell_env_and_script(runfile_path: Path) -> None:
    code, out, err = run("-r", str(runfile_path), "GREET", "-n", "world")
    assert code == 0
    assert err == ""
    assert out == "greet (sh):\n  GREETING=hello\n  name=world\n---\necho $GREETING, ${name}!\n"


FLAG_CASES: List = [
    pytest.param(["--name", "bob"], "  name=bob\n", id="long-next-arg"),
    pytest.param(["--NAME=bob"], "  name=bob\n", id="long-inline-any-case"),
    pytest.param(["-n=bob", "extra"], "  name=bob\n  args: extra\n", id="short-inline-then-args"),
    pytest.param([], "  name=\n", id="unset-option-bound-empty"),
    pytest.param(["--", "--name", "bob"], "  name=\n  args: --name bob\n", id="double-dash-ends-flags"),
]


@pytest.mark.parametrize("args, env", FLAG_CASES)
def test_command_flags_are_bound(runfile_path: Path, args: List[str], env: str) -> None:
    code, out, err = run("-r", str(runfile_path), "greet", *args)
    assert code == 0
    assert err == ""
    assert f"  GREETING=hello\n{env}---\n" in out


COMMAND_FLAG_ERRORS: List = [
    pytest.param(["--name", "bob", "--bogus"], "greet: flag provided but not defined: --bogus", id="unknown-flag"),
    pytest.param(["--name"], "greet: flag needs an argument: --name", id="missing-value"),
]


@pytest.mark.parametrize("args, message", COMMAND_FLAG_ERRORS)
def test_command_flag_errors_exit_2(runfile_path: Path, args: List[str], message: str) -> None:
    code, out, err = run("-r", str(runfile_path), "greet", *args)
    assert code == 2
    assert out == ""
    assert err.startswith(message + "\n")
    assert "Options:" in err


HELP_CASES: List = [
    pytest.param(["help", "greet"], "greet (sh):\n", id="help-command"),
    pytest.param(["greet", "--help"], "greet (sh):\n", id="command-long-flag"),
    pytest.param(["greet", "-h"], "greet (sh):\n", id="command-short-flag"),
    pytest.param(["help"], "Usage:\n", id="help-without-command"),
    pytest.param(["help", "list"], "Commands:\n", id="help-for-list"),
    pytest.param(["help", "help"], "Usage:\n", id="help-for-help"),
    pytest.param(["-h"], "Usage:\n", id="main-help"),
]


@pytest.mark.parametrize("args, prefix", HELP_CASES)
def test_help_exits_2(runfile_path: Path, args: List[str], prefix: str) -> None:
    code, out, err = run("-r", str(runfile_path), *args)
    assert code == 2
    assert out == ""
    assert err.startswith(prefix)


FAILURE_CASES: List = [
    pytest.param(["nope"], "run: command not found: nope", id="unknown-command"),
    pytest.param(["help", "nope"], "run: command not found: nope", id="help-unknown-command"),
    pytest.param(["-x"], "run: Unknown flag: -x", id="unknown-flag"),
]


@pytest.mark.parametrize("args, message", FAILURE_CASES)
def test_failures_exit_2(runfile_path: Path, args: List[str], message: str) -> None:
    code, _, err = run("-r", str(runfile_path), *args)
    assert code == 2
    assert err.startswith(message)


def test_runfile_flag_requires_a_path() -> None:
    code, _, err = run("-r")
    assert code == 2
    assert "-r flag requires a path" in err


def test_missing_runfile(tmp_path: Path) -> None:
    missing = tmp_path / "Nope"
    code, _, err = run("-r", str(missing), "list")
    assert code == 2
    assert err.startswith(f"run: Error reading file '{missing}'")
    assert "Usage:" in err


def test_load_error_is_reported_with_position(tmp_path: Path) -> None:
    path = _write(tmp_path, "Runfile", "EXPORT A B\n")
    code, _, err = run("-r", str(path), "list")
    assert code == 2
    assert err == f"run: {path}: Unexpected IDENT 'B' (expected EQUALS) at line 1, col 10\n"


def test_verbose_flag_logs_resolution(runfile_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    code, _, _ = run("-v", "-r", str(runfile_path), "list")
    assert code == 0
    assert any("registered command greet" in rec.getMessage() for rec in caplog.records)


def test_shebang_main_mode_runs_main(tmp_path: Path) -> None:
    tool = _write(tmp_path, "tool", MAIN_TOOL)
    code, out, _ = run("shebang", str(tool), "anything", "-x")
    assert code == 0
    assert out == "tool (sh):\n  args: anything -x\n---\necho main\n"


def test_shebang_main_mode_help_uses_script_name(tmp_path: Path) -> None:
    tool = _write(tmp_path, "tool", MAIN_TOOL)
    code, _, err = run("shebang", str(tool), "--help")
    assert code == 2
    assert err.startswith("tool (sh):\n  Does the one thing.\n")


def test_shebang_without_main_dispatches_normally(tmp_path: Path, greet_source: bytes) -> None:
    tool = tmp_path / "tool"
    tool.write_bytes(greet_source)
    code, out, err = run("shebang", str(tool), "list")
    assert code == 0
    assert "Commands:" in err

    code, out, _ = run("shebang", str(tool), "greet")
    assert code == 0
    assert out.startswith("greet (sh):\n")


def test_shebang_on_default_runfile_is_not_main_mode(tmp_path: Path) -> None:
    path = _write(tmp_path, "Runfile", MAIN_TOOL)
    code, out, _ = run("shebang", str(path), "main")
    assert code == 0
    assert out.startswith("main (sh):\n")
