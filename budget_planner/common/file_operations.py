"""File operation utilities for storage keys and data directories."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


def safe_filename(name: str, default: str = 'file', max_length: Optional[int] = None) -> str:
    """Create a safe filename from a storage key or budget name.

    Keeps alphanumeric characters, underscores and hyphens; spaces become
    underscores and runs of underscores collapse to one.

    Args:
        name: The key or name to sanitize
        default: Name to use if nothing survives sanitization
        max_length: Optional maximum length (truncates if provided)

    Returns:
        Sanitized filename safe for use in file systems

    Example:
        >>> safe_filename("MY_BUDGET_LIST")
        'MY_BUDGET_LIST'
        >>> safe_filename("Trip to Lisbon!")
        'Trip_to_Lisbon'
        >>> safe_filename("", default="budget")
        'budget'
    """
    if not name:
        return default

    cleaned = ''.join(c for c in name if c.isalnum() or c in {' ', '_', '-'})
    cleaned = cleaned.strip().replace(' ', '_')
    while '__' in cleaned:
        cleaned = cleaned.replace('__', '_')

    if max_length is not None and len(cleaned) > max_length:
        cleaned = cleaned[:max_length]
    cleaned = cleaned.rstrip('_')

    return cleaned if cleaned else default


def ensure_directory(path: Path) -> Path:
    """Create ``path`` (and parents) if needed and return it.

    Raises:
        OSError: If the directory cannot be created
    """
    path.mkdir(parents=True, exist_ok=True)
    return path
