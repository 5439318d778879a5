"""
clipkeep_services.search
Filtering of a published history snapshot by a free-text query.
"""

from typing import Iterable

from clipkeep.models import ClipboardItem


def search_items(items: Iterable[ClipboardItem], query: str) -> list[ClipboardItem]:
    """
    Items whose content or keywords contain `query`, ignoring case.

    The input order is preserved and the query is used as given, surrounding
    whitespace included. An empty query returns every item.

    Example:
        >>> [i.content for i in search_items(items, "WORK")]
        ['work notes', 'todo']  # 'todo' carries the keyword 'work'
    """
    return [item for item in items if item.matches(query)]


__all__ = ["search_items"]
