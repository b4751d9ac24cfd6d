# core/storage.py
import asyncio
import os
import sqlite3
from contextlib import contextmanager
from typing import Iterable, List

from .errors import StorageError
from .logger import get_logger
from .models import CatalogItem, to_price
from .search import normalize_search_text, text_matches

logger = get_logger(__name__)

DB_PATH = os.getenv("DB_PATH", "/data/little_lemon.db")

_COLUMNS = "id, name, description, price, image, category"


def _row_to_item(row) -> CatalogItem:
    item_id, name, description, price, image, category = row
    return CatalogItem(
        id=item_id,
        name=name,
        description=description or "",
        price=to_price(price),
        image=image or None,
        category=category,
    )


class ItemStore:
    """
    SQLite-backed cache of the menu catalog.

    One instance is built at startup and handed to the sync coordinator, which
    is its only writer; concurrent save() calls are not supported. Each
    operation opens its own connection inside a worker thread, so awaiting any
    method never blocks the event loop.
    """

    def __init__(self, db_path: str = DB_PATH):
        self.db_path = db_path

    @contextmanager
    def _connect(self):
        dirname = os.path.dirname(self.db_path)
        if dirname:
            os.makedirs(dirname, exist_ok=True)
        con = sqlite3.connect(self.db_path)
        try:
            con.create_function("menu_match", 3, text_matches, deterministic=True)
            yield con
        finally:
            con.close()

    async def _run(self, op: str, fn, *args):
        try:
            return await asyncio.to_thread(fn, *args)
        except (sqlite3.Error, OSError) as e:
            logger.debug("Item store %s failed on %s: %s", op, self.db_path, e)
            raise StorageError(f"{op} failed: {e}") from e

    # blocking implementations, run via _run

    def _ensure_schema(self) -> None:
        with self._connect() as con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS menu (
                    id INTEGER PRIMARY KEY,
                    name TEXT NOT NULL,
                    description TEXT,
                    price REAL NOT NULL,
                    image TEXT,
                    category TEXT
                )
            """
            )
            con.commit()

    def _count(self) -> int:
        with self._connect() as con:
            row = con.execute("SELECT COUNT(*) FROM menu").fetchone()
        return row[0] if row and row[0] is not None else 0

    def _replace_all(self, items: List[CatalogItem]) -> None:
        rows = [
            (
                it.id,
                it.name,
                it.description,
                float(it.price),
                it.image,
                it.category,
            )
            for it in items
        ]
        with self._connect() as con:
            # delete + insert share one transaction; any error rolls both back
            with con:
                con.execute("DELETE FROM menu")
                con.executemany(
                    f"INSERT INTO menu ({_COLUMNS}) VALUES (?,?,?,?,?,?)",
                    rows,
                )

    def _select_all(self) -> List[CatalogItem]:
        with self._connect() as con:
            rows = con.execute(f"SELECT {_COLUMNS} FROM menu ORDER BY id").fetchall()
        return [_row_to_item(r) for r in rows]

    def _select_categories(self) -> List[str]:
        with self._connect() as con:
            rows = con.execute(
                """
                SELECT DISTINCT category FROM menu
                WHERE category IS NOT NULL
                ORDER BY category
            """
            ).fetchall()
        return [r[0] for r in rows]

    def _select_filtered(self, categories: List[str], needle: str) -> List[CatalogItem]:
        clauses = []
        params: list = []
        if categories:
            clauses.append(f"category IN ({','.join('?' * len(categories))})")
            params.extend(categories)
        if needle:
            clauses.append("menu_match(?, name, description)")
            params.append(needle)

        sql = f"SELECT {_COLUMNS} FROM menu"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY name"

        with self._connect() as con:
            rows = con.execute(sql, params).fetchall()
        return [_row_to_item(r) for r in rows]

    # public coroutine API

    async def init(self) -> None:
        await self._run("init", self._ensure_schema)
        logger.debug("Item store ready at %s", self.db_path)

    async def count(self) -> int:
        return await self._run("count", self._count)

    async def has_data(self) -> bool:
        return await self.count() > 0

    async def save(self, items: Iterable[CatalogItem]) -> None:
        """
        Replace the whole persisted menu with `items`.
        Either every row lands or the previous content stays untouched.
        """
        batch = list(items)
        await self._run("save", self._replace_all, batch)
        logger.info("Saved %d menu items to %s", len(batch), self.db_path)

    async def get_all(self) -> List[CatalogItem]:
        return await self._run("get_all", self._select_all)

    async def get_categories(self) -> List[str]:
        return await self._run("get_categories", self._select_categories)

    async def filter(self, categories: Iterable[str], search_text: str | None) -> List[CatalogItem]:
        cats = sorted(set(categories or ()))
        needle = normalize_search_text(search_text)
        items = await self._run("filter", self._select_filtered, cats, needle)
        logger.debug(
            "Store filter categories=%s search=%r matched %d items",
            cats, needle, len(items),
        )
        return items
