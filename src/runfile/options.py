"""Helpers for the option-evaluating collaborator.

Everything here is a pure function of a command's declared options and its
argument list: which implicit help aliases remain reserved, how arguments
parse into flag values, and how those values become environment bindings.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .model import RunCmdOpt

HELP_SHORT = 'h'
HELP_LONG = 'help'

FlagValue = Union[str, bool, None]


class FlagError(Exception):
    """Bad command-line flag for a command"""


class HelpRequested(Exception):
    """An implicit help alias was passed"""


@dataclass(frozen=True)
class HelpFlags:
    """Implicit help aliases left after the command's own options are taken into account"""

    short: bool
    long: bool

    @property
    def aliases(self) -> Tuple[str, ...]:
        out = []
        if self.short:
            out.append(f"-{HELP_SHORT}")
        if self.long:
            out.append(f"--{HELP_LONG}")
        return tuple(out)


def help_flags(opts: Iterable[RunCmdOpt]) -> HelpFlags:
    """
    -h stays reserved unless an option declares short 'h' (case-sensitive);
    --help stays reserved unless an option declares long 'help' (any case).
    """
    has_short = False
    has_long = False
    for opt in opts:
        if opt.short == HELP_SHORT:
            has_short = True
        if opt.long is not None and opt.long.lower() == HELP_LONG:
            has_long = True

    return HelpFlags(short=not has_short, long=not has_long)


def option_env(opts: Iterable[RunCmdOpt], values: Mapping[str, FlagValue]) -> Dict[str, str]:
    """
    Environment bindings for parsed flags, keyed by canonical option name.
    Every declared option gets a binding; a set boolean switch becomes "1",
    an unset one "".
    """
    env: Dict[str, str] = {}
    for opt in opts:
        value: Optional[FlagValue] = values.get(opt.name)
        if opt.is_bool:
            env[opt.name] = '1' if value in (True, '1', 'true') else ''
        else:
            env[opt.name] = '' if value is None or value is False else str(value)
    return env


def parse_flags(opts: Iterable[RunCmdOpt], args: Sequence[str]) -> Tuple[Dict[str, FlagValue], List[str]]:
    """
    Split `args` into flag values keyed by canonical option name and the
    positional arguments left over.

    Flags end at the first non-flag argument or at '--'. A valued option
    takes '=value' or the next argument; a switch takes no value. Long forms
    match case-insensitively, short forms exactly.
    """
    opts = list(opts)
    reserved = help_flags(opts).aliases
    by_flag: Dict[str, RunCmdOpt] = {}
    for opt in opts:
        if opt.short:
            by_flag[f"-{opt.short}"] = opt
        if opt.long:
            by_flag[f"--{opt.long.lower()}"] = opt

    values: Dict[str, FlagValue] = {}
    it = iter(args)
    for arg in it:
        if arg == '--':
            return values, list(it)
        if not arg.startswith('-') or arg == '-':
            return values, [arg, *it]

        flag, eq, inline = arg.partition('=')
        key = flag.lower() if flag.startswith('--') else flag
        if key in reserved:
            raise HelpRequested(flag)

        opt = by_flag.get(key)
        if opt is None:
            raise FlagError(f"flag provided but not defined: {flag}")

        if opt.is_bool:
            if eq:
                raise FlagError(f"flag does not take a value: {flag}")
            values[opt.name] = True
        elif eq:
            values[opt.name] = inline
        else:
            try:
                values[opt.name] = next(it)
            except StopIteration:
                raise FlagError(f"flag needs an argument: {flag}") from None

    return values, []
