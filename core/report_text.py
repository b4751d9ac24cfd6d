from pathlib import Path
from typing import List

from jinja2 import Environment, FileSystemLoader

from core.models import CatalogItem, format_price
from core.search import FilterCriteria

# Resolve template directory relative to this file
TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)


def _filter_summary(criteria: FilterCriteria | None) -> str:
    if criteria is None:
        return ""
    parts = []
    categories = criteria.categories()
    if categories:
        parts.append("categories: " + ", ".join(sorted(categories)))
    if criteria.needle():
        parts.append(f"search: \"{criteria.search_text.strip()}\"")
    return " · ".join(parts)


def build_menu_text(
    items: List[CatalogItem],
    criteria: FilterCriteria | None = None,
) -> str:
    template = env.get_template("menu_text.txt")

    item_data = [
        {
            "name": it.name,
            "category": it.category,
            "price_str": format_price(it.price),
            "description": it.description.strip(),
        }
        for it in items
    ]

    ctx = {
        "count": len(items),
        "filter_summary": _filter_summary(criteria),
        "items": item_data,
    }

    return template.render(**ctx)
