"""
Cache key derivation for search queries.
"""

from typing import Iterable, Tuple
from urllib.parse import urlencode


def normalize_query(params: Iterable[Tuple[str, str]]) -> str:
    """
    Derive a stable cache key from query parameters.

    Pairs are sorted so that any ordering of the same parameters gives the
    same key. Names and values are percent-encoded, so '&' or '=' inside a
    value cannot collide with a different set of pairs.

    Args:
        params: (name, value) pairs, repeated names allowed

    Returns:
        Normalized key, "" for no parameters
    """
    return urlencode(sorted((str(name), str(value)) for name, value in params))
