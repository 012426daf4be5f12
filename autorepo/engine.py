"""Engine: owns the schema snapshot, the repository cache and the query analyzer."""

import asyncio
import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from .config import Settings, settings as default_settings
from .database.executor import StatementExecutor, create_executor
from .database.models import MANY_TO_MANY, RelationshipInfo, SchemaInfo
from .errors import (
    ColumnNotFoundError,
    ConnectionError,
    NotInitializedError,
    TableNotFoundError,
)
from .performance.analyzer import AnalyzerOptions, QueryAnalyzer
from .repository import Repository, RepositoryFactory
from .schema.factory import DiscoveryFactory
from .schema.watcher import ChangeCallback, SchemaChange, SchemaWatcher

logger = logging.getLogger(__name__)


class Engine:
    """Entry point: discover a database and hand out table repositories.

    Usage:
        engine = Engine.from_url("sqlite:///app.db")
        await engine.initialize()
        users = engine.get_repository("users")
        user = await users.find_by_id(1)
        await engine.close()
    """

    def __init__(
        self,
        executor: StatementExecutor,
        settings: Optional[Settings] = None,
        dialect: Optional[str] = None,
    ):
        self.executor = executor
        self.settings = settings or default_settings
        self.dialect = DiscoveryFactory.normalize(dialect or executor.dialect)
        self.capabilities = DiscoveryFactory.get_capabilities(self.dialect)
        self.introspector = DiscoveryFactory.create_introspector(self.dialect, executor)

        self._schema: Optional[SchemaInfo] = None
        self._repositories: Dict[str, Repository] = {}
        self._manual_relationships: List[RelationshipInfo] = []
        self._analyzer: Optional[QueryAnalyzer] = None
        self._monitoring = self.settings.analyzer_enabled
        self._initialized = False
        self._lock: Optional[asyncio.Lock] = None
        self._watcher: Optional[SchemaWatcher] = None
        self._schema_callbacks: List[ChangeCallback] = []

    @classmethod
    def from_url(cls, database_url: Optional[str] = None, settings: Optional[Settings] = None) -> "Engine":
        """Build an engine for a database URL (defaults to ``settings.database_url``)."""
        settings = settings or default_settings
        url = database_url or settings.database_url
        if not url:
            raise ConnectionError("No database URL given. Set AUTOREPO_DATABASE_URL or pass one explicitly.")
        return cls(create_executor(url), settings=settings)

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def analyzer(self) -> Optional[QueryAnalyzer]:
        return self._analyzer

    def _require_initialized(self) -> SchemaInfo:
        if not self._initialized or self._schema is None:
            raise NotInitializedError()
        return self._schema

    async def initialize(self) -> None:
        """Ping the database and discover the schema.

        Calling it again once initialized logs a warning and does nothing.

        Raises:
            ConnectionError: the database did not answer the ping
        """
        if self._initialized:
            logger.warning("Engine already initialized")
            return

        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            if self._initialized:
                logger.warning("Engine already initialized")
                return

            logger.info("Initializing engine for %s database", self.dialect)
            try:
                await self.introspector.ping()
            except ConnectionError:
                raise
            except Exception as e:
                raise ConnectionError(f"Could not connect to {self.dialect} database: {e}", original_error=e) from e
            logger.info("Database connection successful")

            schema = await self._discover()
            self._schema = schema
            self._analyzer = QueryAnalyzer(schema, AnalyzerOptions.from_settings(self.settings))
            self._initialized = True
            logger.info("Engine initialized with %d tables", len(schema.tables))

    async def _discover(self) -> SchemaInfo:
        coordinator = DiscoveryFactory.create_coordinator(self.introspector, self.settings)
        schema = await coordinator.discover_schema()
        if self._manual_relationships:
            schema = replace(schema, relationships=schema.relationships + list(self._manual_relationships))
        return schema

    def get_schema_info(self) -> SchemaInfo:
        return self._require_initialized()

    def get_repository(self, table_name: str) -> Repository:
        """Return the (cached) repository for a table.

        Raises:
            NotInitializedError: initialize() has not completed
            TableNotFoundError: the table was not discovered
        """
        schema = self._require_initialized()
        repository = self._repositories.get(table_name)
        if repository is None:
            factory = RepositoryFactory(
                self.executor,
                schema,
                supports_returning=self.capabilities.supports_returning,
                observer=self._observe,
            )
            repository = factory.create_repository(table_name)
            self._repositories[table_name] = repository
        return repository

    async def refresh_schema(self) -> SchemaInfo:
        """Rediscover the schema, publish it and drop cached repositories."""
        self._require_initialized()
        logger.info("Refreshing schema")
        schema = await self._discover()
        self._install_schema(schema)
        logger.info("Schema refreshed: %d tables", len(schema.tables))
        return schema

    def _install_schema(self, schema: SchemaInfo) -> None:
        self._schema = schema
        self._repositories = {}
        if self._analyzer is not None:
            self._analyzer.update_schema(schema)

    def add_relationship(self, relationship: RelationshipInfo) -> None:
        """Register a relationship discovery cannot infer, such as many-to-many.

        It survives refresh_schema().
        """
        schema = self._require_initialized()
        self._check_endpoint(schema, relationship.from_table, relationship.from_column)
        self._check_endpoint(schema, relationship.to_table, relationship.to_column)
        if relationship.type == MANY_TO_MANY:
            self._check_endpoint(schema, relationship.junction_table, relationship.junction_from_column)
            self._check_endpoint(schema, relationship.junction_table, relationship.junction_to_column)

        self._manual_relationships.append(relationship)
        self._schema = replace(schema, relationships=schema.relationships + [relationship])
        self._repositories = {}
        if self._analyzer is not None:
            self._analyzer.update_schema(self._schema)

    @staticmethod
    def _check_endpoint(schema: SchemaInfo, table_name: str, column: str) -> None:
        table = schema.get_table(table_name)
        if table is None:
            raise TableNotFoundError(table_name, schema.table_names)
        if not table.has_column(column):
            raise ColumnNotFoundError(column, table_name, table.column_names)

    def _observe(self, sql: str, execution_time: float, row_count: Optional[int], table: Optional[str]) -> None:
        if self._monitoring and self._analyzer is not None:
            self._analyzer.record_query(sql, execution_time, row_count, table)

    def get_performance_metrics(self) -> Dict[str, object]:
        schema = self._require_initialized()
        stats = self._analyzer.get_performance_stats() if self._analyzer else {}
        return {
            **stats,
            "monitoring_enabled": self._monitoring,
            "repository_count": len(self._repositories),
            "schema": schema.to_dict(),
        }

    def enable_performance_monitoring(self, options: Optional[AnalyzerOptions] = None) -> None:
        schema = self._require_initialized()
        if options is not None:
            self._analyzer = QueryAnalyzer(schema, options)
        elif self._analyzer is not None and not self._analyzer.enabled:
            self._analyzer.options.enabled = True
        self._monitoring = True
        logger.info("Query performance monitoring enabled")

    def disable_performance_monitoring(self) -> None:
        self._monitoring = False
        logger.info("Query performance monitoring disabled")

    # Schema watching

    @property
    def is_watching_schema(self) -> bool:
        return self._watcher is not None and self._watcher.is_watching

    async def start_schema_watching(
        self,
        poll_interval: Optional[float] = None,
        ignored_tables: Optional[Iterable[str]] = None,
    ) -> None:
        """Poll for schema changes and refresh the engine when any are found.

        Callbacks registered with on_schema_change() run after the refresh,
        so they see the new schema.

        Args:
            poll_interval: Seconds between checks (default: settings.schema_watch_interval_seconds)
            ignored_tables: Tables whose changes are not reported
        """
        schema = self._require_initialized()
        if self.is_watching_schema:
            logger.warning("Schema watcher already running")
            return

        self._watcher = SchemaWatcher(
            self._discover,
            poll_interval=poll_interval or self.settings.schema_watch_interval_seconds,
            ignored_tables=ignored_tables,
        )
        self._watcher.on_schema_change(self._apply_watched_changes)
        for callback in self._schema_callbacks:
            self._watcher.on_schema_change(callback)
        await self._watcher.start(schema)

    async def stop_schema_watching(self) -> None:
        if self._watcher is not None:
            await self._watcher.stop()
            self._watcher = None

    def on_schema_change(self, callback: ChangeCallback) -> None:
        """Register a callback receiving the list of SchemaChange found by the watcher."""
        self._schema_callbacks.append(callback)
        if self._watcher is not None:
            self._watcher.on_schema_change(callback)

    def _apply_watched_changes(self, changes: List[SchemaChange]) -> None:
        for change in changes:
            logger.info("Schema change %s: %s %s", change.type, change.table, change.details)
        if self._initialized and self._watcher is not None and self._watcher.last_schema is not None:
            self._install_schema(self._watcher.last_schema)
            logger.info("Schema refreshed: %d tables", len(self._watcher.last_schema.tables))

    async def close(self) -> None:
        logger.info("Closing engine")
        await self.stop_schema_watching()
        try:
            await self.executor.close()
        finally:
            self._initialized = False
            self._repositories = {}
            self._schema = None
        logger.info("Engine closed")

    async def __aenter__(self) -> "Engine":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
