"""Search engine: match computation and cyclic match navigation.

The same functions serve the primary task search and the nested feature-name
search inside the feature selection modal.
"""

from __future__ import annotations

import bisect
from collections.abc import Sequence

from .models import SearchState, Task

HISTORY_LIMIT = 50


def compute_matches(labels: Sequence[str], query: str) -> list[int]:
    """Indices of labels containing the query (trimmed, case-insensitive).

    Args:
        labels: Text to search, in display order
        query: Raw query as typed

    Returns:
        Ascending match indices; empty for a blank query
    """
    needle = query.strip().lower()
    if not needle:
        return []
    return [index for index, label in enumerate(labels) if needle in label.lower()]


def task_matches(tasks: Sequence[Task], query: str) -> list[int]:
    """Match task titles against the query."""
    return compute_matches([task.title for task in tasks], query)


def next_match(matches: Sequence[int], current: int) -> int | None:
    """Match index after ``current``, wrapping to the first match.

    If ``current`` is itself a match the adjacent match in order is returned;
    otherwise the nearest match below it in the list.
    """
    if not matches:
        return None
    pos = bisect.bisect_right(matches, current)
    if pos < len(matches):
        return matches[pos]
    return matches[0]


def previous_match(matches: Sequence[int], current: int) -> int | None:
    """Match index before ``current``, wrapping to the last match."""
    if not matches:
        return None
    pos = bisect.bisect_left(matches, current)
    if pos > 0:
        return matches[pos - 1]
    return matches[-1]


def first_match_from(matches: Sequence[int], current: int) -> int | None:
    """First match at or after ``current``, wrapping to the first match."""
    if not matches:
        return None
    pos = bisect.bisect_left(matches, current)
    if pos < len(matches):
        return matches[pos]
    return matches[0]


def match_position(matches: Sequence[int], current: int) -> tuple[int, int]:
    """1-based position of ``current`` among the matches (0 if not a match) and the total."""
    pos = bisect.bisect_left(matches, current)
    if pos < len(matches) and matches[pos] == current:
        return pos + 1, len(matches)
    return 0, len(matches)


def push_history(history: list[str], query: str, limit: int = HISTORY_LIMIT) -> None:
    """Record a committed query, most recent first, without duplicates."""
    query = query.strip()
    if not query:
        return
    if query in history:
        history.remove(query)
    history.insert(0, query)
    del history[limit:]


def refresh_matches(search: SearchState, labels: Sequence[str], selected: int) -> None:
    """Recompute matches for the current query and point at ``selected`` if it matches."""
    search.matches = compute_matches(labels, search.query)
    position, _ = match_position(search.matches, selected)
    search.current_match = position - 1
