"""Common utilities shared by the dashboard, the tool server and storage.

This module provides currency formatting and file-name helpers.
"""

from .formatting import escape_dollar_for_markdown, format_compact, format_currency, format_runway
from .file_operations import ensure_directory, safe_filename

__all__ = [
    'escape_dollar_for_markdown',
    'format_compact',
    'format_currency',
    'format_runway',
    'ensure_directory',
    'safe_filename',
]
