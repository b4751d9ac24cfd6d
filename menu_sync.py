import asyncio
import os
import sys
from typing import List

from core.debounce import debounce
from core.errors import DataFormatError, NetworkError
from core.logger import get_logger
from core.models import CatalogItem
from core.report_text import build_menu_text
from core.search import ALL_CATEGORIES, CatalogSearch, FilterCriteria
from core.storage import ItemStore
from core.sync import CatalogSync
from fetchers.menu import MenuSource

logger = get_logger(__name__)

MODE = os.getenv("MODE", "once").lower()  # "once" or "interactive"
SEARCH_DEBOUNCE_MS = int(os.getenv("SEARCH_DEBOUNCE_MS", "500"))
SEARCH = os.getenv("SEARCH", "")
CATEGORIES = os.getenv("CATEGORIES", "")


def parse_categories(raw: str) -> set[str]:
    parts = [p.strip() for p in raw.replace(";", ",").split(",")]
    selected = {p for p in parts if p}
    return selected or {ALL_CATEGORIES}


def build_services(store: ItemStore | None = None, source: MenuSource | None = None):
    store = store or ItemStore()
    source = source or MenuSource()
    sync = CatalogSync(store, source)
    return sync, CatalogSearch(store, sync)


async def _load(sync: CatalogSync) -> List[CatalogItem] | None:
    try:
        return await sync.load_catalog()
    except (NetworkError, DataFormatError) as e:
        logger.error("Failed to load menu data: %s. Run again to retry.", e)
        return None


async def run_once(out=sys.stdout) -> int:
    sync, search = build_services()
    items = await _load(sync)
    if items is None:
        return 1

    criteria = FilterCriteria(parse_categories(CATEGORIES), SEARCH)
    shown = await search.query(criteria, items)
    out.write(build_menu_text(shown, criteria))
    return 0


async def run_interactive(lines=None, out=sys.stdout) -> int:
    """
    Load the catalog, then treat each input line as the current search box
    contents. Bursts of lines collapse into one search through the debouncer.
    """
    sync, search = build_services()
    items = await _load(sync)
    if items is None:
        return 1

    categories = parse_categories(CATEGORIES)
    out.write(build_menu_text(items))

    async def show(text: str) -> None:
        criteria = FilterCriteria(categories, text)
        shown = await search.query(criteria, items)
        out.write(build_menu_text(shown, criteria))
        out.flush()

    debounced_show = debounce(show, SEARCH_DEBOUNCE_MS)
    loop = asyncio.get_running_loop()
    source = lines if lines is not None else sys.stdin

    while True:
        line = await loop.run_in_executor(None, source.readline)
        if not line:
            break
        debounced_show(line.rstrip("\n"))

    await debounced_show.flush()
    return 0


def main() -> int:
    if MODE == "interactive":
        return asyncio.run(run_interactive())
    return asyncio.run(run_once())


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except KeyboardInterrupt:
        raise SystemExit(130)
    except Exception as e:
        logger.exception("Fatal menu sync error: %s", e)
        raise SystemExit(2)
