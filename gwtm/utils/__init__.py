"""
Utility modules for gwtm.
"""

from .output import (
    print_status,
    print_dry_run,
    print_warning,
    format_error,
    print_error,
    parse_yes_no,
    prompt_yes_no
)

__all__ = [
    'print_status',
    'print_dry_run',
    'print_warning',
    'format_error',
    'print_error',
    'parse_yes_no',
    'prompt_yes_no'
]
