"""
Console output helpers shared by gwtm commands.
"""

import sys
from typing import Optional, TextIO

from gwtm.core import GwtmError


def print_status(message: str) -> None:
    print(message)


def print_dry_run(message: str) -> None:
    print(f"[DRY-RUN] {message}")


def print_warning(message: str) -> None:
    print(f"Warning: {message}")


def format_error(error: Exception, guidance: str) -> str:
    """Error message followed by a line of actionable guidance."""
    return f"Error: {error}\nHint: {guidance}"


def print_error(error: Exception, guidance: str) -> None:
    print(format_error(error, guidance), file=sys.stderr)


def parse_yes_no(answer: str) -> bool:
    """Interpret a y/n answer; an empty answer means no."""
    answer = answer.strip().lower()
    if answer in ('y', 'yes'):
        return True
    if answer in ('n', 'no', ''):
        return False
    raise GwtmError(f"Invalid input: expected y/n, got '{answer}'")


def prompt_yes_no(question: str, stream: Optional[TextIO] = None) -> bool:
    """Ask a yes/no question, reading the answer from stream (stdin by default)."""
    stream = stream or sys.stdin
    print(f"{question} [y/N]: ", end='', flush=True)

    line = stream.readline()
    if not line:
        # EOF
        return False
    return parse_yes_no(line)
