from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence, TextIO

from . import load
from .commands import enter_main_mode, lookup_command
from .errors import RunfileError
from .help import (
    RUNFILE_DEFAULT,
    render_cmd_help,
    render_cmd_usage,
    render_command_list,
    render_main_usage,
)
from .model import RunCmd, Runfile
from .options import FlagError, HelpRequested, option_env, parse_flags

logger = logging.getLogger(__name__)


class UsageError(Exception):
    pass


def _read_runfile(path: str) -> bytes:
    """The core never touches the filesystem; the caller reads the buffer"""
    candidate = Path(path)
    if not candidate.is_file():
        raise FileNotFoundError(f"File not found: {path}")
    return candidate.read_bytes()


def _load(path: str, me: str, err: TextIO) -> Optional[Runfile]:
    try:
        return load(_read_runfile(path))
    except OSError as exc:
        err.write(f"{me}: Error reading file '{path}': {exc}\n")
        err.write(render_main_usage(me))
    except RunfileError as exc:
        err.write(f"{me}: {path}: {exc}\n")
    return None


def describe_command(cmd: RunCmd, flags: Optional[Dict[str, str]] = None, args: Sequence[str] = ()) -> str:
    """What the executor would be handed: shell, environment, arguments and script. Nothing is run."""
    lines = [f"{cmd.name} ({cmd.shell}):"]
    for name, value in sorted(cmd.environment(flags).items()):
        lines.append(f"  {name}={value}")
    if args:
        lines.append(f"  args: {' '.join(args)}")
    lines.append("---")
    lines.extend(cmd.script)
    return ''.join(f"{line}\n" for line in lines)


def dispatch(rf: Runfile, args: List[str], me: str, out: TextIO, err: TextIO) -> int:
    name = args[0] if args else 'list'
    rest = args[1:]

    entry = lookup_command(rf, name)
    logger.debug("dispatch %s -> %s", name, entry)
    if entry is None:
        err.write(f"{me}: command not found: {name}\n")
        err.write(render_command_list(rf, me))
        return 2

    if entry.name == 'list':
        err.write(render_command_list(rf, me))
        return 0

    if entry.name == 'help':
        if not rest:
            err.write(render_main_usage(me))
            return 2
        target = lookup_command(rf, rest[0])
        if target is None:
            err.write(f"{me}: command not found: {rest[0]}\n")
            err.write(render_command_list(rf, me))
        elif target.name == 'list':
            err.write(render_command_list(rf, me))
        elif target.builtin:
            err.write(render_main_usage(me))
        else:
            err.write(render_cmd_help(target.cmd))
        return 2

    return run_command(entry.cmd, rest, out, err)


def run_command(cmd: RunCmd, args: List[str], out: TextIO, err: TextIO) -> int:
    try:
        values, rest = parse_flags(cmd.config.opts, args)
    except HelpRequested:
        err.write(render_cmd_help(cmd))
        return 2
    except FlagError as exc:
        err.write(f"{cmd.name}: {exc}\n")
        err.write(render_cmd_usage(cmd))
        return 2

    out.write(describe_command(cmd, option_env(cmd.config.opts, values), rest))
    return 0


def main(argv: Optional[List[str]] = None, out: Optional[TextIO] = None, err: Optional[TextIO] = None) -> int:
    out = sys.stdout if out is None else out
    err = sys.stderr if err is None else err
    args = list(sys.argv[1:] if argv is None else argv)
    me = Path(sys.argv[0]).name if sys.argv and sys.argv[0] else 'runfile'
    runfile_path = os.environ.get('RUNFILE', RUNFILE_DEFAULT)
    shebang = False
    rf: Optional[Runfile] = None

    # shebang <file> [args...]: the file is the runfile and names the tool
    if args and args[0].lower() == 'shebang':
        args.pop(0)
        if args:
            runfile_path = args.pop(0)
            shebang = Path(runfile_path).name != RUNFILE_DEFAULT
            if shebang:
                me = Path(runfile_path).name

    if shebang:
        # A lone "main" command takes every argument itself
        rf = _load(runfile_path, me, err)
        if rf is None:
            return 2
        main_cmd = enter_main_mode(rf, me)
        if main_cmd is not None:
            return run_command(main_cmd, args, out, err)

    rest: List[str] = []
    it = iter(args)
    try:
        for token in it:
            if rest:
                rest.append(token)
                continue
            if token in ('-v', '--verbose'):
                logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
                continue
            if token in ('-h', '--help'):
                err.write(render_main_usage(me))
                return 2
            if not shebang and token.startswith('--runfile='):
                runfile_path = token.split('=', 1)[1]
                continue
            if not shebang and token in ('-r', '--runfile'):
                try:
                    runfile_path = next(it)
                except StopIteration:
                    raise UsageError(f"{token} flag requires a path") from None
                continue
            if token.startswith('-') and token != '-':
                raise UsageError(f"Unknown flag: {token}")
            rest.append(token)
    except UsageError as exc:
        err.write(f"{me}: {exc}\n")
        err.write(render_main_usage(me))
        return 2

    if rf is None:
        rf = _load(runfile_path, me, err)
        if rf is None:
            return 2

    return dispatch(rf, rest, me, out, err)


if __name__ == "__main__":
    sys.exit(main())
