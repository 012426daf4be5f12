"""Schema discovery coordination."""

import logging
from typing import Optional

from ..database.base import DatabaseIntrospector
from ..database.models import SchemaInfo
from .relationships import RelationshipDiscoveryService
from .tables import TableDiscoveryService
from .views import ViewDiscoveryService

logger = logging.getLogger(__name__)


class SchemaDiscoveryCoordinator:
    """Run table, relationship and view discovery and assemble a SchemaInfo.

    All services are passed in by the caller; the coordinator keeps no state
    between runs.
    """

    def __init__(
        self,
        introspector: DatabaseIntrospector,
        table_service: TableDiscoveryService,
        relationship_service: RelationshipDiscoveryService,
        view_service: Optional[ViewDiscoveryService] = None,
    ):
        self.introspector = introspector
        self.table_service = table_service
        self.relationship_service = relationship_service
        self.view_service = view_service

    async def discover_schema(self) -> SchemaInfo:
        """Discover the complete schema.

        Returns:
            A fresh SchemaInfo; nothing is shared with earlier results
        """
        tables = await self.table_service.discover_tables()

        for issue in self.relationship_service.validate(tables):
            logger.info("Relationship skipped: %s", issue)
        relationships = self.relationship_service.discover_relationships(tables)

        views = []
        if self.view_service is not None:
            views = await self.view_service.discover_views()
            for view in views:
                for issue in self.view_service.validate_view(view):
                    logger.warning(issue)

        schema = SchemaInfo(tables=tables, relationships=relationships, views=views)
        logger.info(
            "Schema discovery complete: %d tables, %d relationships, %d views",
            len(tables), len(relationships), len(views),
        )
        return schema
