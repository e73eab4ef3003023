"""
Label helpers shared by the middleware components.
"""

import re
from typing import Dict, Iterable, List

UUID_SEGMENT = re.compile(
    r'[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}',
    re.IGNORECASE
)
ID_SEGMENT = re.compile(r'[0-9]+')


def _strip_segment(segment: str) -> str:
    if UUID_SEGMENT.fullmatch(segment):
        return ':uuid'
    if ID_SEGMENT.fullmatch(segment):
        return ':id'
    return segment


def strip_ids_from_path(path: str) -> str:
    """
    Collapse variable path segments so the path is usable as a label value.

    UUID segments become ``:uuid`` and all-digit segments become ``:id``:

        >>> strip_ids_from_path('/orders/550e8400-e29b-41d4-a716-446655440000/42')
        '/orders/:uuid/:id'
    """
    return '/'.join(_strip_segment(segment) for segment in path.split('/'))


def label_names(builtin: Iterable[str], extra: Dict[str, str]) -> List[str]:
    """Built-in label names followed by the configured ones, without repeats."""
    return list(dict.fromkeys([*builtin, *extra]))


def merge_labels(builtin: Dict[str, str], extra: Dict[str, str]) -> Dict[str, str]:
    """Configured labels are applied after the built-ins and win on collision."""
    merged = dict(builtin)
    merged.update(extra)
    return merged
