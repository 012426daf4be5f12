"""Dialect registry: introspectors, capabilities and discovery wiring."""

from dataclasses import dataclass
from typing import Dict, List, Optional, Type

from ..config import Settings
from ..database.base import DatabaseIntrospector
from ..database.duckdb import DuckDBIntrospector
from ..database.executor import StatementExecutor
from ..database.postgres import PostgresIntrospector
from ..database.sqlite import SQLiteIntrospector
from ..errors import UnsupportedDialectError
from .coordinator import SchemaDiscoveryCoordinator
from .relationships import RelationshipDiscoveryService
from .tables import TableDiscoveryService
from .views import ViewDiscoveryService


@dataclass(frozen=True)
class DialectCapabilities:
    """What a dialect supports, as far as the engine is concerned."""
    supports_views: bool = True
    supports_indexes: bool = True
    supports_foreign_keys: bool = True
    supports_returning: bool = False
    implicit_row_identifier: Optional[str] = None
    paramstyle: str = "qmark"


class DiscoveryFactory:
    """Map dialect names to introspectors and build discovery coordinators."""

    INTROSPECTORS: Dict[str, Type[DatabaseIntrospector]] = {
        "sqlite": SQLiteIntrospector,
        "postgresql": PostgresIntrospector,
        "duckdb": DuckDBIntrospector,
    }

    ALIASES = {
        "postgres": "postgresql",
        "sqlite3": "sqlite",
    }

    CAPABILITIES: Dict[str, DialectCapabilities] = {
        "sqlite": DialectCapabilities(implicit_row_identifier="rowid"),
        "postgresql": DialectCapabilities(supports_returning=True, paramstyle="format"),
        "duckdb": DialectCapabilities(supports_returning=True),
    }

    @classmethod
    def normalize(cls, dialect: str) -> str:
        name = (dialect or "").strip().lower()
        name = cls.ALIASES.get(name, name)
        if name not in cls.INTROSPECTORS:
            raise UnsupportedDialectError(dialect, cls.supported_dialects())
        return name

    @classmethod
    def supported_dialects(cls) -> List[str]:
        return sorted(cls.INTROSPECTORS)

    @classmethod
    def is_supported(cls, dialect: str) -> bool:
        name = (dialect or "").strip().lower()
        return cls.ALIASES.get(name, name) in cls.INTROSPECTORS

    @classmethod
    def get_capabilities(cls, dialect: str) -> DialectCapabilities:
        return cls.CAPABILITIES[cls.normalize(dialect)]

    @classmethod
    def create_introspector(cls, dialect: str, executor: StatementExecutor) -> DatabaseIntrospector:
        return cls.INTROSPECTORS[cls.normalize(dialect)](executor)

    @classmethod
    def create_coordinator(
        cls,
        introspector: DatabaseIntrospector,
        settings: Settings,
    ) -> SchemaDiscoveryCoordinator:
        """Wire fresh discovery services around an introspector."""
        capabilities = cls.get_capabilities(introspector.dialect)
        type_mapper = introspector.type_mapper_class(settings.custom_type_mappings)

        view_service = None
        if settings.include_views and capabilities.supports_views:
            view_service = ViewDiscoveryService(introspector)

        return SchemaDiscoveryCoordinator(
            introspector=introspector,
            table_service=TableDiscoveryService(
                introspector,
                type_mapper=type_mapper,
                exclude_tables=settings.exclude_tables,
            ),
            relationship_service=RelationshipDiscoveryService(),
            view_service=view_service,
        )
