from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

# Global attribute consulted when a command has no SHELL of its own
SHELL_ATTR = '.SHELL'
DEFAULT_SHELL = 'sh'

BUILTIN_COMMANDS = ('list', 'help')


class Scope:
    """Name -> value attributes with an optional parent for fallback lookup.

    Scopes only point upward; a parent never holds its children.
    """

    def __init__(self, parent: Optional['Scope'] = None):
        self.parent = parent
        self.attrs: Dict[str, str] = {}

    def define(self, name: str, value: str) -> None:
        self.attrs[name] = value

    def lookup(self, name: str) -> Optional[str]:
        if name in self.attrs:
            return self.attrs[name]

        if self.parent is not None:
            return self.parent.lookup(name)

        return None

    def __contains__(self, name: str) -> bool:
        return self.lookup(name) is not None

    def child(self) -> 'Scope':
        return Scope(parent=self)

    def flatten(self) -> Dict[str, str]:
        """All visible attributes, narrower scopes overriding wider ones"""
        merged = self.parent.flatten() if self.parent is not None else {}
        merged.update(self.attrs)
        return merged

    def __repr__(self) -> str:
        return f"Scope({self.attrs!r}, parent={self.parent!r})"


@dataclass
class RunCmdOpt:
    """An OPTION declared in a command's config block"""

    name: str
    short: Optional[str] = None
    long: Optional[str] = None
    value: Optional[str] = None
    desc: str = ''

    @property
    def is_bool(self) -> bool:
        return self.value is None


@dataclass
class RunCmdConfig:
    shell: Optional[str] = None
    desc: List[str] = field(default_factory=list)
    usages: List[str] = field(default_factory=list)
    opts: List[RunCmdOpt] = field(default_factory=list)


@dataclass
class RunCmd:
    name: str
    config: RunCmdConfig
    scope: Scope
    script: List[str] = field(default_factory=list)

    @property
    def title(self) -> str:
        """First line of the description"""
        return self.config.desc[0] if self.config.desc else ''

    @property
    def shell(self) -> str:
        return self.config.shell or self.scope.lookup(SHELL_ATTR) or DEFAULT_SHELL

    @property
    def enable_help(self) -> bool:
        """False when there is nothing custom to show on a help screen"""
        return bool(self.config.desc or self.config.usages or self.config.opts)

    def rename(self, name: str) -> None:
        # Only used by main mode, so help shows the invoking script's name
        self.name = name

    def environment(self, flags: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """
        Environment for the script: exported attributes (command scope over
        global scope) overlaid with flag values keyed by option name.
        Dotted attributes such as .SHELL are settings, not variables.
        """
        env = {k: v for k, v in self.scope.flatten().items() if not k.startswith('.')}
        if flags:
            env.update(flags)
        return env


@dataclass
class Runfile:
    """The processed file, ready to run"""

    scope: Scope = field(default_factory=Scope)
    cmds: List[RunCmd] = field(default_factory=list)

    def default_shell(self) -> Optional[str]:
        return self.scope.attrs.get(SHELL_ATTR) or None

    def find(self, name: str) -> Optional[RunCmd]:
        key = name.lower()
        for cmd in self.cmds:
            if cmd.name.lower() == key:
                return cmd

        return None
