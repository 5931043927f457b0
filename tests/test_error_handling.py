from __future__ import annotations

import pytest

from runfile import load
from tests.support.harness import (
    LexError,
    ParseError,
    RunfileError,
    SemanticError,
    load_text,
)


def _commands(*names: str) -> str:
    return "".join(f"COMMAND {name}\n{{\n  echo {name}\n}}\n" for name in names)


SEMANTIC_CASES = [
    pytest.param(_commands("build", "Build"), "Duplicate command: build", (5, 9), id="duplicate-case-insensitive"),
    pytest.param(_commands("a", "b", "A"), "first defined at line 1", (9, 9), id="duplicate-names-first-line"),
    pytest.param(_commands("List"), "reserved for a built-in", (1, 9), id="reserved-list"),
    pytest.param(_commands("ok", "HELP"), "reserved for a built-in", (5, 9), id="reserved-help"),
    pytest.param(
        "COMMAND a\n{\n  OPTION -n\n  OPTION -n, --name\n}\n{\n}\n",
        "Duplicate option: -n",
        (4, 10),
        id="duplicate-short-option",
    ),
    pytest.param(
        "COMMAND a\n{\n  OPTION --Name\n  OPTION --name <X>\n}\n{\n}\n",
        "Duplicate option: --name",
        (4, 10),
        id="duplicate-long-option",
    ),
    pytest.param("EXPORT help=1\n", "reserved for a built-in", (1, 8), id="export-reserved-help"),
    pytest.param("EXPORT LIST=1\n", "reserved for a built-in", (1, 8), id="export-reserved-list"),
    pytest.param(
        "COMMAND a\n{\n  EXPORT Help=1\n}\n{\n}\n",
        "reserved for a built-in",
        (3, 10),
        id="command-export-reserved",
    ),
    pytest.param(
        "EXPORT build=1\nCOMMAND Build\n{\n  make\n}\n",
        "collides with export build",
        (2, 9),
        id="command-after-export",
    ),
    pytest.param(
        "COMMAND deploy\n{\n  true\n}\nEXPORT DEPLOY=1\n",
        "collides with command deploy",
        (5, 8),
        id="export-after-command",
    ),
    pytest.param(
        "COMMAND a\n{\n  EXPORT B=1\n}\n{\n}\nCOMMAND b\n{\n}\n",
        "collides with export B",
        (7, 9),
        id="command-after-command-export",
    ),
]


@pytest.mark.parametrize("source, message, position", SEMANTIC_CASES)
def test_semantic_errors(source: str, message: str, position) -> None:
    with pytest.raises(SemanticError) as exc_info:
        load_text(source)

    err = exc_info.value
    assert message in str(err)
    assert (err.line, err.column) == position


def test_duplicate_reported_at_second_definition() -> None:
    with pytest.raises(SemanticError) as exc_info:
        load_text(_commands("x", "X", "x"))

    assert exc_info.value.line == 5


def test_distinct_commands_resolve_in_source_order() -> None:
    names = ["zeta", "alpha", "Mid", "build_all", "_private", "x2"]
    rf = load_text(_commands(*names))
    assert [cmd.name for cmd in rf.cmds] == names
    for name, cmd in zip(names, rf.cmds):
        assert cmd.script == [f"echo {name}"]


def test_reexports_and_settings_are_not_collisions() -> None:
    rf = load_text(
        """\
        EXPORT .list=ignored
        EXPORT TARGET=one
        EXPORT target=two
        COMMAND deploy
        {
          EXPORT TARGET=three
        }
        {
          true
        }
        """
    )
    assert rf.scope.attrs == {".list": "ignored", "TARGET": "one", "target": "two"}
    assert rf.find("deploy").scope.lookup("TARGET") == "three"


def test_short_options_are_case_sensitive() -> None:
    rf = load_text("COMMAND a\n{\n  OPTION -v\n  OPTION -V\n}\n{\n}\n")
    assert [opt.short for opt in rf.cmds[0].config.opts] == ["v", "V"]


def test_end_to_end_greet(greet_source: bytes) -> None:
    rf = load(greet_source)

    assert len(rf.cmds) == 1
    cmd = rf.cmds[0]
    assert cmd.name == "greet"
    assert cmd.script == ["echo $GREETING, ${name}!"]
    assert cmd.shell == "sh"
    assert rf.scope.lookup("GREETING") == "hello"

    [opt] = cmd.config.opts
    assert (opt.name, opt.short, opt.long, opt.value) == ("name", "n", "name", "NAME")
    assert opt.desc == "Who to greet"
    assert not opt.is_bool


def test_unterminated_option_description_reports_opening_quote() -> None:
    source = 'COMMAND a\n{\n  OPTION -n, --name <NAME> "Who to greet\n}\n{\n}\n'
    with pytest.raises(LexError) as exc_info:
        load_text(source)

    assert "Unterminated string" in str(exc_info.value)
    assert (exc_info.value.line, exc_info.value.column) == (3, 28)


ERROR_KIND_CASES = [
    pytest.param('EXPORT A="\\q"\n', LexError, id="lexical"),
    pytest.param("EXPORT = 1\n", ParseError, id="syntax"),
    pytest.param(_commands("a", "a"), SemanticError, id="semantic"),
]


@pytest.mark.parametrize("source, kind", ERROR_KIND_CASES)
def test_error_kinds_share_a_base(source: str, kind: type) -> None:
    with pytest.raises(kind) as exc_info:
        load_text(source)

    assert isinstance(exc_info.value, RunfileError)
    assert exc_info.value.line is not None
    assert exc_info.value.message in str(exc_info.value)


def test_runfile_error_without_position() -> None:
    err = RunfileError("boom")
    assert str(err) == "boom"
    assert err.line is None and err.column is None
