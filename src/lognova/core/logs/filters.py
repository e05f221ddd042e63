"""Residual filtering of normalized log entries.

Each predicate is an independent test on one entry and all of them are
ANDed together, so applying the filter twice, or applying the predicates one
at a time in any order, gives the same result.
"""

from collections.abc import Iterable

from lognova.core.logs.base import LogEntry, LogQuery

QUERY = "query"
LEVEL = "level"
TIME = "time"

PREDICATES = frozenset({QUERY, LEVEL, TIME})


def match_query(entry: LogEntry, query: LogQuery) -> bool:
    """Case-insensitive substring match on message or source."""
    if not query.query:
        return True
    needle = query.query.lower()
    return needle in entry.message.lower() or needle in entry.source.lower()


def match_level(entry: LogEntry, query: LogQuery) -> bool:
    """Exact level match; no level means ALL."""
    if query.level is None:
        return True
    return entry.level == query.level


def match_time(entry: LogEntry, query: LogQuery) -> bool:
    """Inclusive start/end bounds on the entry timestamp."""
    if query.start is not None and entry.timestamp < query.start:
        return False
    if query.end is not None and entry.timestamp > query.end:
        return False
    return True


_MATCHERS = {
    QUERY: match_query,
    LEVEL: match_level,
    TIME: match_time,
}


def apply_filters(
    entries: Iterable[LogEntry],
    query: LogQuery,
    skip: Iterable[str] = (),
) -> list[LogEntry]:
    """Apply the predicates of ``query`` not listed in ``skip``.

    Args:
        entries: Normalized entries
        query: Request carrying the predicates
        skip: Predicates already satisfied by the source (query, level, time)

    Returns:
        New list with the matching entries, input order preserved
    """
    skipped = set(skip)
    unknown = skipped - PREDICATES
    if unknown:
        raise ValueError(f"Unknown filter predicates: {sorted(unknown)}")

    matchers = [matcher for name, matcher in _MATCHERS.items() if name not in skipped]
    return [entry for entry in entries if all(matcher(entry, query) for matcher in matchers)]
