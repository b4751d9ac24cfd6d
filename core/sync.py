# core/sync.py
from typing import List

from .errors import StorageError
from .logger import get_logger
from .models import CatalogItem

logger = get_logger(__name__)

SOURCE_CACHE = "cache"
SOURCE_REMOTE = "remote"


class CatalogSync:
    """
    Cache-or-fetch policy over an ItemStore and a remote menu source.

    The store is only an accelerator: any StorageError degrades to fetching
    from the remote source. NetworkError and DataFormatError from the source
    are the only failures a caller sees, and calling load_catalog() or
    refresh() again is the retry.
    """

    def __init__(self, store, source):
        self.store = store
        self.source = source
        self.last_source: str | None = None
        # True only while the store holds exactly the list last handed out
        self.cache_in_sync = False

    async def _storage_ready(self) -> bool:
        try:
            await self.store.init()
        except StorageError as e:
            logger.warning("Item store unavailable, using remote menu only: %s", e)
            return False
        return True

    async def _cached_items(self) -> List[CatalogItem]:
        try:
            if not await self.store.has_data():
                logger.info("Item store is empty; fetching menu from remote.")
                return []
            return await self.store.get_all()
        except StorageError as e:
            logger.warning("Could not read cached menu, falling back to remote: %s", e)
            return []

    async def _fetch_and_store(self, storage_ready: bool) -> List[CatalogItem]:
        items = await self.source.fetch()
        if storage_ready:
            try:
                await self.store.save(items)
                self.cache_in_sync = True
            except StorageError as e:
                self.cache_in_sync = False
                logger.warning(
                    "Could not cache %d fetched menu items; serving them anyway: %s",
                    len(items), e,
                )
        else:
            self.cache_in_sync = False
            logger.debug("Skipping cache write; item store is unavailable.")
        self.last_source = SOURCE_REMOTE
        return items

    async def load_catalog(self) -> List[CatalogItem]:
        storage_ready = await self._storage_ready()

        if storage_ready:
            cached = await self._cached_items()
            if cached:
                logger.info("Serving %d menu items from cache.", len(cached))
                self.last_source = SOURCE_CACHE
                self.cache_in_sync = True
                return cached

        return await self._fetch_and_store(storage_ready)

    async def refresh(self) -> List[CatalogItem]:
        """Fetch from remote regardless of cache state and replace the cache."""
        storage_ready = await self._storage_ready()
        return await self._fetch_and_store(storage_ready)
