# runtime.py
from __future__ import annotations

from collections.abc import Mapping
from contextvars import ContextVar
from dataclasses import dataclass, field
from importlib.util import find_spec
from typing import Any

from colorama import Fore, Style

REQUIRED_MODULES = ("sympy",)


@dataclass
class Runtime:
    """Active profile for the current CLI run; read through CFG()."""
    profile_name: str = "default"
    settings: dict[str, Any] = field(default_factory=dict)
    debug: bool = False           # [debug] lines on stderr, tracebacks
    show_progress: bool = True    # progress bar during record scans

    def apply(self, settings: Any) -> None:
        """Install a config.Settings, or a plain nested dict (tests)."""
        if isinstance(settings, Mapping):
            self.profile_name = "default"
            self.settings = dict(settings)
        else:
            self.profile_name = settings.name
            self.settings = dict(settings.as_dict())

        dbg = self.get("BEHAVIOUR.DEBUG")
        if isinstance(dbg, bool):
            self.debug = dbg
        prog = self.get("BEHAVIOUR.SHOW_PROGRESS")
        if isinstance(prog, bool):
            self.show_progress = prog

    def get(self, key: str, default: Any = None) -> Any:
        """Dotted lookup: get('FORMATTING.FLOAT_DIGITS')."""
        node: Any = self.settings
        for part in key.split(".") if key else ():
            if not isinstance(node, Mapping) or part not in node:
                return default
            node = node[part]
        return node if key else default


_current_runtime: ContextVar[Runtime | None] = ContextVar("zaremba_runtime", default=None)


def current() -> Runtime:
    rt = _current_runtime.get()
    if rt is None:
        rt = reset()
    return rt


def reset() -> Runtime:
    """Install a fresh Runtime (used between CLI invocations and in tests)."""
    rt = Runtime()
    _current_runtime.set(rt)
    return rt


def APPLY(settings: Any) -> None:
    current().apply(settings)


def CFG(key: str, default: Any = None) -> Any:
    return current().get(key, default)


def ensure_runtime_deps(strict: bool = True) -> bool:
    """
    Check that the number-theory backend is importable without importing it.
    Prints an install hint when something is missing; returns False only in
    strict mode.
    """
    missing = [name for name in REQUIRED_MODULES if find_spec(name) is None]
    if not missing:
        return True

    print(
        f"{Fore.RED}{Style.BRIGHT}Missing dependencies:{Style.RESET_ALL} {', '.join(missing)}\n"
        f"Install with: {Fore.YELLOW}pip install {' '.join(missing)}{Style.RESET_ALL}"
    )
    return not strict
