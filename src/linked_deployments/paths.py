"""Path management utilities for linked-deployments library."""

from pathlib import Path
from typing import Optional, Union


def get_default_output_dir() -> Path:
    """
    Get default output directory (current working directory).

    Returns:
        Path to ./.linked-deployments
    """
    return Path.cwd() / ".linked-deployments"


def get_address_book_path(output_root: Optional[Union[Path, str]] = None) -> Path:
    """
    Get the address book file path.

    Args:
        output_root: Custom output directory (defaults to ./.linked-deployments)

    Returns:
        Absolute path to addresses.json
    """
    if output_root is None:
        output_root = get_default_output_dir()
    else:
        output_root = Path(output_root).absolute()

    return output_root / "addresses.json"
