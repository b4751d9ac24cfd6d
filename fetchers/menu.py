# fetchers/menu.py
import asyncio
import os
from decimal import Decimal, InvalidOperation
from typing import Any, List

import requests

from core.errors import DataFormatError, NetworkError
from core.logger import get_logger
from core.models import DEFAULT_CATEGORY, CatalogItem, to_price

logger = get_logger(__name__)

MENU_URL = os.getenv(
    "MENU_URL",
    "https://raw.githubusercontent.com/Meta-Mobile-Developer-PC/"
    "Working-With-Data-API/main/capstone.json",
)
IMAGE_BASE_URL = os.getenv(
    "IMAGE_BASE_URL",
    "https://github.com/Meta-Mobile-Developer-PC/"
    "Working-With-Data-API/blob/main/images/{filename}?raw=true",
)
FETCH_TIMEOUT = float(os.getenv("FETCH_TIMEOUT", "30"))
USER_AGENT = os.getenv("MENU_USER_AGENT", "little-lemon-menu-sync/1.0")

SESSION = requests.Session()
SESSION.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})


def absolute_image_url(image: str | None) -> str | None:
    if not image or not str(image).strip():
        return None
    image = str(image).strip()
    if image.startswith("http://") or image.startswith("https://"):
        return image
    return IMAGE_BASE_URL.format(filename=image.lstrip("/"))


def _parse_price(raw: Any, position: int) -> Decimal:
    if raw is None or isinstance(raw, bool):
        raise DataFormatError(f"menu record {position} has no usable price: {raw!r}")
    if isinstance(raw, str):
        raw = raw.strip().replace("$", "").replace(",", "")
    try:
        price = to_price(raw)
    except (InvalidOperation, ValueError) as e:
        raise DataFormatError(f"menu record {position} has invalid price {raw!r}") from e
    if not price.is_finite() or price < 0:
        raise DataFormatError(f"menu record {position} has invalid price {raw!r}")
    return price


def _upstream_ids(records: List[dict]) -> List[int] | None:
    """Upstream ids, when every record has a distinct integer one."""
    ids = [rec.get("id") if isinstance(rec, dict) else None for rec in records]
    if not ids or not all(isinstance(i, int) and not isinstance(i, bool) for i in ids):
        return None
    if len(set(ids)) != len(ids):
        return None
    return ids


def normalize_record(record: Any, item_id: int, position: int) -> CatalogItem:
    if not isinstance(record, dict):
        raise DataFormatError(f"menu record {position} is not an object")

    name = str(record.get("name") or "").strip()
    if not name:
        raise DataFormatError(f"menu record {position} has no name")

    category = str(record.get("category") or "").strip() or DEFAULT_CATEGORY

    return CatalogItem(
        id=item_id,
        name=name,
        description=str(record.get("description") or ""),
        price=_parse_price(record.get("price"), position),
        image=absolute_image_url(record.get("image")),
        category=category,
    )


def parse_menu(payload: Any) -> List[CatalogItem]:
    """
    Turn a decoded `{"menu": [...]}` document into CatalogItems.
    Raises DataFormatError on the first bad record; never returns a partial list.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("menu"), list):
        raise DataFormatError("response has no 'menu' array")

    records = payload["menu"]
    ids = _upstream_ids(records)
    if ids is None:
        # ids are re-derived from position on every fetch
        ids = list(range(1, len(records) + 1))

    items = [
        normalize_record(rec, item_id, pos)
        for pos, (rec, item_id) in enumerate(zip(records, ids), start=1)
    ]
    logger.debug("Normalized %d menu records (sample: %s)", len(items), items[:2])
    return items


class MenuSource:
    """Fetches the authoritative menu from the remote JSON endpoint."""

    def __init__(
        self,
        url: str = MENU_URL,
        session: requests.Session | None = None,
        timeout: float = FETCH_TIMEOUT,
    ):
        self.url = url
        self.session = session or SESSION
        self.timeout = timeout

    def _get(self) -> requests.Response:
        return self.session.get(self.url, timeout=self.timeout)

    async def fetch(self) -> List[CatalogItem]:
        logger.info("Fetching menu from %s", self.url)
        try:
            resp = await asyncio.to_thread(self._get)
        except requests.RequestException as e:
            logger.error("Menu fetch failed for %s: %s", self.url, e)
            raise NetworkError(f"request to {self.url} failed: {e}") from e

        if not 200 <= resp.status_code < 300:
            logger.error("Menu endpoint returned status %s at %s.", resp.status_code, self.url)
            raise NetworkError(
                f"bad status code {resp.status_code}", status_code=resp.status_code
            )

        try:
            payload = resp.json()
        except ValueError as e:
            logger.error("Menu endpoint at %s did not return JSON: %s", self.url, e)
            raise DataFormatError(f"response is not valid JSON: {e}") from e

        items = parse_menu(payload)
        logger.info("Fetched %d menu items from %s", len(items), self.url)
        return items
