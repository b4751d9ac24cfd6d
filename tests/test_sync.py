import pytest
import responses

from core.errors import DataFormatError, NetworkError
from core.sync import SOURCE_CACHE, SOURCE_REMOTE, CatalogSync
from fetchers.menu import MenuSource


MENU_URL = "https://menu.test/capstone.json"


@pytest.mark.asyncio
async def test_cache_hit_skips_remote(store, sample_items, fake_source):
    await store.init()
    await store.save(sample_items)
    source = fake_source(error=AssertionError("remote must not be called"))

    sync = CatalogSync(store, source)
    items = await sync.load_catalog()

    assert items == sample_items
    assert source.calls == 0
    assert sync.last_source == SOURCE_CACHE


@pytest.mark.asyncio
async def test_cache_miss_fetches_and_persists(store, sample_items, fake_source):
    source = fake_source(items=sample_items)

    sync = CatalogSync(store, source)
    items = await sync.load_catalog()

    assert items == sample_items
    assert source.calls == 1
    assert sync.last_source == SOURCE_REMOTE
    assert await store.get_all() == sample_items


@pytest.mark.asyncio
async def test_second_load_is_served_from_cache(store, sample_items, fake_source):
    source = fake_source(items=sample_items)
    sync = CatalogSync(store, source)

    await sync.load_catalog()
    again = await sync.load_catalog()

    assert again == sample_items
    assert source.calls == 1


@pytest.mark.asyncio
async def test_save_failure_still_returns_remote_items(broken_store, sample_items, fake_source):
    store = broken_store("save")
    source = fake_source(items=sample_items)

    items = await CatalogSync(store, source).load_catalog()

    assert items == sample_items
    assert await store.has_data() is False


@pytest.mark.asyncio
async def test_init_failure_degrades_to_remote(broken_store, sample_items, fake_source):
    store = broken_store("init", "save")
    source = fake_source(items=sample_items)

    items = await CatalogSync(store, source).load_catalog()

    assert items == sample_items
    assert source.calls == 1


@pytest.mark.asyncio
async def test_unreadable_cache_falls_through_to_remote(broken_store, sample_items, fake_source):
    store = broken_store("count")
    source = fake_source(items=sample_items)

    items = await CatalogSync(store, source).load_catalog()

    assert items == sample_items
    assert source.calls == 1
    assert await store.get_all() == sample_items


@pytest.mark.asyncio
async def test_remote_500_rejects_and_leaves_store_untouched(store):
    source = MenuSource(url=MENU_URL)
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, MENU_URL, status=500)
        with pytest.raises(NetworkError):
            await CatalogSync(store, source).load_catalog()

    assert await store.has_data() is False


@pytest.mark.asyncio
async def test_data_format_error_propagates(store, fake_source):
    source = fake_source(error=DataFormatError("response has no 'menu' array"))
    with pytest.raises(DataFormatError):
        await CatalogSync(store, source).load_catalog()


@pytest.mark.asyncio
async def test_refresh_bypasses_cache_and_replaces_it(store, sample_items, fake_source):
    await store.init()
    await store.save(sample_items)
    fresh = sample_items[:1]
    source = fake_source(items=fresh)

    sync = CatalogSync(store, source)
    items = await sync.refresh()

    assert items == fresh
    assert source.calls == 1
    assert await store.get_all() == fresh


@pytest.mark.asyncio
async def test_failed_refresh_keeps_cached_menu(store, sample_items):
    await store.init()
    await store.save(sample_items)
    source = MenuSource(url=MENU_URL)

    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, MENU_URL, status=500)
        with pytest.raises(NetworkError):
            await CatalogSync(store, source).refresh()

    assert await store.get_all() == sample_items


@pytest.mark.asyncio
async def test_retry_after_failure_succeeds(store, sample_items, fake_source):
    source = fake_source(error=NetworkError("offline"))
    sync = CatalogSync(store, source)
    with pytest.raises(NetworkError):
        await sync.load_catalog()

    source.error = None
    source.items = sample_items
    assert await sync.load_catalog() == sample_items


@pytest.mark.asyncio
async def test_cache_in_sync_tracks_last_write(broken_store, store, sample_items, fake_source):
    hit = CatalogSync(store, fake_source(items=sample_items))
    await hit.load_catalog()
    assert hit.cache_in_sync is True

    unwritable = CatalogSync(broken_store("save"), fake_source(items=sample_items))
    await unwritable.load_catalog()
    assert unwritable.cache_in_sync is False

    unopenable = CatalogSync(broken_store("init"), fake_source(items=sample_items))
    await unopenable.load_catalog()
    assert unopenable.cache_in_sync is False
