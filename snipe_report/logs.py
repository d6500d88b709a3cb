"""Console diagnostics.

Lines are tagged like ``[snipe] message`` and written to stderr so that
report output on stdout stays clean.
"""

from __future__ import annotations

import sys

_verbose = False


def set_verbose(enabled: bool) -> None:
    global _verbose
    _verbose = bool(enabled)


def is_verbose() -> bool:
    return _verbose


def log(tag: str, msg: str) -> None:
    """Print with flush for reliable ordering against report output."""
    print(f"[{tag}] {msg}", file=sys.stderr, flush=True)


def debug(tag: str, msg: str) -> None:
    if _verbose:
        log(tag, msg)


def warn(tag: str, msg: str) -> None:
    log(tag, f"WARNING: {msg}")
