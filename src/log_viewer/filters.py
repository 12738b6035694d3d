"""Filter engine: decides whether a log event is visible under a FilterConfig."""

from .models import FilterConfig, LogEvent


def _contains(value: str | None, query: str) -> bool:
    """Case-insensitive substring test; an empty query matches anything."""
    query = query.strip().lower()
    if not query:
        return True
    # Absence never matches a non-empty query
    if not value:
        return False
    return query in value.lower()


def matches(event: LogEvent, config: FilterConfig) -> bool:
    """Return True when ``event`` passes every active filter.

    Checks run in order and the first failing one rejects: level toggle,
    method substring, request-hash substring.
    """
    if not config.shows(event.level):
        return False
    if not _contains(event.method, config.method_substring):
        return False
    if not _contains(event.request_hash, config.hash_substring):
        return False
    return True
