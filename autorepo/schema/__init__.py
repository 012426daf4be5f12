"""Schema discovery services."""

from .coordinator import SchemaDiscoveryCoordinator
from .factory import DialectCapabilities, DiscoveryFactory
from .relationships import RelationshipDiscoveryService
from .tables import TableDiscoveryService
from .views import ViewDiscoveryService, extract_table_references
from .watcher import SchemaChange, SchemaWatcher, diff_schemas

__all__ = [
    "SchemaDiscoveryCoordinator",
    "DialectCapabilities",
    "DiscoveryFactory",
    "RelationshipDiscoveryService",
    "TableDiscoveryService",
    "ViewDiscoveryService",
    "extract_table_references",
    "SchemaChange",
    "SchemaWatcher",
    "diff_schemas",
]
