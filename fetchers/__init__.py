# fetchers/__init__.py
from .menu import MenuSource, parse_menu

__all__ = ["MenuSource", "parse_menu"]
