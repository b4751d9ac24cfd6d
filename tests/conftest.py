from decimal import Decimal

import pytest

from core.errors import StorageError
from core.models import CatalogItem
from core.storage import ItemStore



@pytest.fixture
def store(tmp_path):
    return ItemStore(str(tmp_path / "data" / "menu.db"))


@pytest.fixture
def sample_items():
    return [
        CatalogItem(
            id=1,
            name="Greek Salad",
            description="Crispy lettuce, peppers, olives and our Chicago style feta cheese.",
            price=Decimal("12.99"),
            image="https://img.test/greekSalad.jpg",
            category="Starters",
        ),
        CatalogItem(
            id=2,
            name="Lemon Cake",
            description="Light and fluffy, topped with lemon glaze.",
            price=Decimal("6.50"),
            image=None,
            category="Desserts",
        ),
        CatalogItem(
            id=3,
            name="Bruschetta",
            description="Grilled bread smeared with garlic.",
            price=Decimal("7.99"),
            image="https://img.test/bruschetta.jpg",
            category="Starters",
        ),
        CatalogItem(
            id=4,
            name="Grilled Fish",
            description="Barbequed catch of the day, with red onion and lemon.",
            price=Decimal("20.00"),
            image="https://img.test/grilledFish.jpg",
            category="Mains",
        ),
    ]


@pytest.fixture
def menu_payload():
    return {
        "menu": [
            {
                "name": "Greek Salad",
                "price": 12.99,
                "description": "The famous greek salad of crispy lettuce.",
                "image": "greekSalad.jpg",
                "category": "starters",
            },
            {
                "name": "Pasta",
                "price": "18.99",
                "description": "Penne with fried aubergines, tomato sauce.",
                "image": "pasta.jpg",
            },
            {
                "name": "Lemon Dessert",
                "price": 6.5,
                "description": "Traditional homemade Italian Lemon Ricotta Cake.",
                "category": "desserts",
            },
        ]
    }


class FakeSource:
    """Remote source double returning a fixed list or raising."""

    def __init__(self, items=None, error=None):
        self.items = items or []
        self.error = error
        self.calls = 0

    async def fetch(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.items)


class BrokenStore(ItemStore):
    """ItemStore whose selected operations always fail."""

    def __init__(self, db_path, fail=()):
        super().__init__(db_path)
        self.fail = set(fail)

    async def _run(self, op, fn, *args):
        if op in self.fail:
            raise StorageError(f"{op} failed: simulated")
        return await super()._run(op, fn, *args)


@pytest.fixture
def broken_store(tmp_path):
    def make(*fail):
        return BrokenStore(str(tmp_path / "broken.db"), fail=fail)
    return make


@pytest.fixture
def fake_source():
    return FakeSource
