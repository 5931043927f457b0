from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .model import BUILTIN_COMMANDS, RunCmd, Runfile

BUILTIN_TITLES = {
    'list': "(builtin) List available commands",
    'help': "(builtin) Show Help for a command",
}

MAIN_COMMAND = 'main'


@dataclass(frozen=True)
class CommandEntry:
    """A row of the command table: a built-in, or a Runfile command"""

    name: str
    title: str
    cmd: Optional[RunCmd] = None

    @property
    def builtin(self) -> bool:
        return self.cmd is None


def command_list(rf: Runfile) -> List[CommandEntry]:
    """Built-ins first, then Runfile commands in source order"""
    entries = [CommandEntry(name, BUILTIN_TITLES[name]) for name in BUILTIN_COMMANDS]
    entries.extend(CommandEntry(cmd.name, cmd.title, cmd) for cmd in rf.cmds)
    return entries


def lookup_command(rf: Runfile, name: str) -> Optional[CommandEntry]:
    key = name.lower()
    for entry in command_list(rf):
        if entry.name.lower() == key:
            return entry

    return None


def enter_main_mode(rf: Runfile, script_name: str) -> Optional[RunCmd]:
    """
    A Runfile run as a script whose only command is 'main' runs that command
    directly; it is renamed so help screens show the script's name.
    """
    if len(rf.cmds) != 1 or rf.cmds[0].name.lower() != MAIN_COMMAND:
        return None

    cmd = rf.cmds[0]
    cmd.rename(script_name)
    return cmd
