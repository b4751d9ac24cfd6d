# core/search.py
from dataclasses import dataclass, field
from typing import Iterable, List, Set

from .errors import StorageError
from .logger import get_logger
from .models import CatalogItem

logger = get_logger(__name__)

# Picker sentinel meaning "no category restriction"; never a real category.
ALL_CATEGORIES = "All"


def normalize_search_text(text: str | None) -> str:
    return (text or "").strip().lower()


def text_matches(needle: str, name: str | None, description: str | None) -> bool:
    """
    Case-insensitive substring match of an already-normalized needle against
    name or description. Also registered as an SQL function by the item store
    so both filtering paths agree.
    """
    if not needle:
        return True
    return needle in (name or "").lower() or needle in (description or "").lower()


@dataclass
class FilterCriteria:
    selected_categories: Set[str] = field(default_factory=set)
    search_text: str = ""

    def categories(self) -> Set[str]:
        """Effective category restriction; empty means any category."""
        selected = {c for c in self.selected_categories if c}
        if ALL_CATEGORIES in selected:
            return set()
        return selected

    def needle(self) -> str:
        return normalize_search_text(self.search_text)


def item_matches(item: CatalogItem, categories: Set[str], needle: str) -> bool:
    if categories and item.category not in categories:
        return False
    return text_matches(needle, item.name, item.description)


def filter_items(items: Iterable[CatalogItem], criteria: FilterCriteria) -> List[CatalogItem]:
    """In-memory equivalent of ItemStore.filter, ordered by name."""
    categories = criteria.categories()
    needle = criteria.needle()
    matched = [it for it in items if item_matches(it, categories, needle)]
    matched.sort(key=lambda it: it.name)
    return matched


def available_categories(items: Iterable[CatalogItem]) -> List[str]:
    """Picker entries: the "All" sentinel followed by categories in first-seen order."""
    seen: List[str] = []
    for it in items:
        if it.category and it.category not in seen:
            seen.append(it.category)
    return [ALL_CATEGORIES] + seen


def toggle_category(selection: Iterable[str], category: str) -> Set[str]:
    """Apply one picker tap to the current selection and return the new one."""
    if category == ALL_CATEGORIES:
        return {ALL_CATEGORIES}

    current = {c for c in selection if c != ALL_CATEGORIES}
    if category in current:
        current.discard(category)
        if not current:
            return {ALL_CATEGORIES}
        return current

    current.add(category)
    return current


class CatalogSearch:
    """
    Serves filtered views, preferring the store and falling back to memory.

    When built with the CatalogSync that loaded the list, the store is only
    queried while that coordinator reports the cache as in sync; after a
    failed or skipped save the caller's list is filtered directly.
    """

    def __init__(self, store, sync=None):
        self.store = store
        self.sync = sync

    async def query(
        self, criteria: FilterCriteria, full_list: List[CatalogItem]
    ) -> List[CatalogItem]:
        if self.sync is not None and not self.sync.cache_in_sync:
            logger.debug("Item store out of sync; filtering %d items in memory.", len(full_list))
            return filter_items(full_list, criteria)
        try:
            return await self.store.filter(criteria.categories(), criteria.search_text)
        except StorageError as e:
            logger.warning(
                "Store filter unavailable (%s); filtering %d items in memory.",
                e, len(full_list),
            )
        return filter_items(full_list, criteria)
