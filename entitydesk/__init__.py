"""EntityDesk -- one record-management engine, many entities, configured not coded."""

from entitydesk.api import CollectionClient, Session
from entitydesk.entities import get_schema
from entitydesk.kernel import EntitySchema, RecordManager

__version__ = "0.1.0"

__all__ = ["CollectionClient", "EntitySchema", "RecordManager", "Session", "get_schema", "__version__"]
