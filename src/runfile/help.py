"""
Help, usage and command-list rendering.

Every renderer returns the text instead of writing it, so the caller
decides where it goes (the runner prints to stderr).
"""

from __future__ import annotations

from typing import List

from .commands import command_list
from .model import RunCmd, RunCmdOpt, Runfile
from .options import help_flags

RUNFILE_DEFAULT = 'Runfile'


def _lines(lines: List[str]) -> str:
    return ''.join(f"{line}\n" for line in lines)


def render_main_usage(me: str) -> str:
    pad = ' ' * (len(me) - 1)
    return _lines([
        "Usage:",
        f"       {me} -h | --help",
        f"       {pad} (show help)",
        f"  or   {me} [-r runfile] list",
        f"       {pad} (list commands)",
        f"  or   {me} [-r runfile] help <command>",
        f"       {pad} (show help for <command>)",
        f"  or   {me} [-r runfile] <command> [option ...]",
        f"       {pad} (run <command>)",
        "Options:",
        "  -h, --help",
        "        Show help screen",
        "  -r, --runfile <file>",
        f"        Specify runfile (default='{RUNFILE_DEFAULT}')",
    ])


def render_option(opt: RunCmdOpt) -> str:
    """One option row: '  -s, --long <VALUE>' plus its description"""
    out = "  "
    if opt.short:
        out += f"-{opt.short}"
    if opt.long:
        if opt.short:
            out += ", "
        out += f"--{opt.long}"
    if opt.value:
        out += f" <{opt.value}>"
    if opt.desc:
        # A lone short switch keeps its description on the same line
        if opt.short and not opt.long and not opt.value:
            out += "    "
        else:
            out += "\n        "
        out += opt.desc
    return out


def render_cmd_usage(cmd: RunCmd) -> str:
    """Usage lines and options only"""
    if not cmd.enable_help:
        return f"{cmd.name} ({cmd.shell}): No help available.\n"

    lines: List[str] = []
    pad = ' ' * (len(cmd.name) - 1)
    for i, usage in enumerate(cmd.config.usages):
        if i == 0:
            lines.append("Usage:")
        joiner = "  " if i == 0 else "or"
        # '(' rows continue the previous usage, e.g. "(show help)"
        if usage.startswith('('):
            lines.append(f"       {pad} {usage}")
        else:
            lines.append(f"  {joiner}   {cmd.name} {usage}")

    if cmd.config.opts:
        lines.append("Options:")
        aliases = help_flags(cmd.config.opts).aliases
        if aliases:
            lines.append("  " + ", ".join(aliases))
            lines.append("        Show full help screen")
        lines.extend(render_option(opt) for opt in cmd.config.opts)

    return _lines(lines)


def render_cmd_help(cmd: RunCmd) -> str:
    """Full help screen: name, shell, description, usage and options"""
    if not cmd.enable_help:
        return render_cmd_usage(cmd)

    lines = [f"{cmd.name} ({cmd.shell}):"]
    lines.extend(f"  {desc}" for desc in cmd.config.desc)
    return _lines(lines) + render_cmd_usage(cmd)


def render_command_list(rf: Runfile, me: str) -> str:
    entries = command_list(rf)
    width = max(len(entry.name) for entry in entries)
    pad = ' ' * (len(me) - 1)

    lines = ["Commands:"]
    lines.extend(f"  {entry.name.ljust(width)}    {entry.title}" for entry in entries)
    lines.extend([
        "Usage:",
        f"       {me} [-r runfile] help <command>",
        f"       {pad} (show help for <command>)",
        f"  or   {me} [-r runfile] <command> [option ...]",
        f"       {pad} (run <command>)",
    ])
    return _lines(lines)
