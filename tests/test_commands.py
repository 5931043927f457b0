from __future__ import annotations

from textwrap import dedent

import pytest

from runfile import load
from runfile.commands import command_list, enter_main_mode, lookup_command
from tests.support.harness import load_text

MAIN_ONLY = dedent(
    """\
    COMMAND Main
    {
      Does the one thing.
    }
    {
      echo main
    }
    """
)


def test_command_list_puts_builtins_first(greet_source: bytes) -> None:
    entries = command_list(load(greet_source))
    assert [entry.name for entry in entries] == ["list", "help", "greet"]
    assert [entry.builtin for entry in entries] == [True, True, False]
    assert entries[0].title == "(builtin) List available commands"


LOOKUP_CASES = [
    pytest.param("greet", "greet", False, id="exact"),
    pytest.param("GREET", "greet", False, id="case-insensitive"),
    pytest.param("List", "list", True, id="builtin"),
    pytest.param("help", "help", True, id="help-builtin"),
]


@pytest.mark.parametrize("name, found, builtin", LOOKUP_CASES)
def test_lookup_command(greet_source: bytes, name: str, found: str, builtin: bool) -> None:
    entry = lookup_command(load(greet_source), name)
    assert entry is not None
    assert entry.name == found
    assert entry.builtin is builtin


def test_lookup_missing_command(greet_source: bytes) -> None:
    assert lookup_command(load(greet_source), "nope") is None


def test_main_mode_renames_the_lone_main_command() -> None:
    rf = load_text(MAIN_ONLY)
    cmd = enter_main_mode(rf, "deploy-tool")

    assert cmd is rf.cmds[0]
    assert cmd.name == "deploy-tool"
    assert cmd.title == "Does the one thing."


MAIN_MODE_MISSES = [
    pytest.param(MAIN_ONLY + "COMMAND other\n{\n  true\n}\n", id="more-than-one-command"),
    pytest.param("COMMAND greet\n{\n  true\n}\n", id="not-named-main"),
    pytest.param("", id="no-commands"),
]


@pytest.mark.parametrize("source", MAIN_MODE_MISSES)
def test_main_mode_needs_a_single_main_command(source: str) -> None:
    rf = load_text(source)
    names = [cmd.name for cmd in rf.cmds]

    assert enter_main_mode(rf, "tool") is None
    assert [cmd.name for cmd in rf.cmds] == names
