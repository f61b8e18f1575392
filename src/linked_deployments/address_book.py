"""Address book persistence for linked-deployments library."""

import json
from pathlib import Path
from typing import Dict, Mapping, Optional

from .paths import get_address_book_path


def load_address_book(book_path: Optional[Path] = None) -> Dict[str, Dict[str, str]]:
    """
    Load existing address book or return empty dict.

    Args:
        book_path: Path to addresses.json file (defaults to ./.linked-deployments/addresses.json)

    Returns:
        Dictionary mapping network -> unit name -> address
        Empty dict if file doesn't exist or is corrupted
    """
    if book_path is None:
        book_path = get_address_book_path()
    try:
        with open(book_path) as f:
            return json.load(f)
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


def load_addresses(network: str, book_path: Optional[Path] = None) -> Dict[str, str]:
    """
    Get the recorded addresses for one network.

    The result can be passed as ``deployed=`` to run_plan() to resume a run.
    """
    return dict(load_address_book(book_path).get(network, {}))


def save_addresses(
    network: str, addresses: Mapping[str, str], book_path: Optional[Path] = None
) -> Path:
    """
    Merge a network's resolved addresses into the address book on disk.

    Entries of other networks are kept. Within the network, entries for the
    given units are replaced and others kept.

    Creates parent directories if they don't exist.

    Returns:
        Path the book was written to
    """
    if book_path is None:
        book_path = get_address_book_path()
    book = load_address_book(book_path)
    book.setdefault(network, {}).update(addresses)

    book_path.parent.mkdir(parents=True, exist_ok=True)
    with open(book_path, "w") as f:
        json.dump(book, f, indent=2)
    return book_path
