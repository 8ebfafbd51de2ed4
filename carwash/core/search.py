"""
Helpers for list endpoints: free-text search and sorting.
"""
from typing import Any, Callable, List, Optional, Sequence


def matches_search(term: Optional[str], *fields: Optional[str]) -> bool:
    """Case-insensitive substring match against any of ``fields``."""
    if not term:
        return True
    needle = term.lower()
    return any(needle in str(value).lower() for value in fields if value)


def sort_records(records: Sequence, key: Callable[[Any], Any], order: str = "asc") -> List:
    """
    Sort ``records`` by ``key``; records whose key is None sort last in
    both directions.
    """
    present = [r for r in records if key(r) is not None]
    missing = [r for r in records if key(r) is None]
    present.sort(key=key, reverse=(order == "desc"))
    return present + missing


def normalise_plate(plate: str) -> str:
    """License plates are stored upper case with no whitespace."""
    return "".join(plate.split()).upper()
