"""EntityDesk CLI -- list and export managed collections from a terminal."""

from entitydesk import __version__

__all__ = ["__version__"]
