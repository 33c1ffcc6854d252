"""Utility modules for debslice.

This module exports commonly used utility functions.
"""

from debslice.utils.formatting import (
    console,
    create_record_table,
    err_console,
    format_record_row,
    print_error,
    print_info,
    print_success,
    print_warning,
)

__all__ = [
    "console",
    "create_record_table",
    "err_console",
    "format_record_row",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
]
