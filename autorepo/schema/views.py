"""View discovery."""

import logging
import re
from typing import Dict, List

from ..database.base import DatabaseIntrospector
from ..database.models import ViewInfo

logger = logging.getLogger(__name__)

_TABLE_REFERENCE_RE = re.compile(r"\b(?:FROM|JOIN)\s+[\"`\[]?([A-Za-z_][A-Za-z0-9_]*)", re.IGNORECASE)

_WRITE_PATTERNS = [
    re.compile(r"\bDROP\s+TABLE\b", re.IGNORECASE),
    re.compile(r"\bDELETE\s+FROM\b", re.IGNORECASE),
    re.compile(r"\bINSERT\s+INTO\b", re.IGNORECASE),
    re.compile(r"\bTRUNCATE\b", re.IGNORECASE),
    re.compile(r"\bALTER\s+TABLE\b", re.IGNORECASE),
]


def extract_table_references(definition: str) -> List[str]:
    """Names following FROM / JOIN in a view definition, in first-seen order."""
    references: List[str] = []
    for name in _TABLE_REFERENCE_RE.findall(definition or ""):
        if name not in references:
            references.append(name)
    return references


class ViewDiscoveryService:
    """Discover views and the tables they read from."""

    def __init__(self, introspector: DatabaseIntrospector):
        self.introspector = introspector

    async def discover_views(self) -> List[ViewInfo]:
        """List views; a failure is logged and yields no views."""
        try:
            views = await self.introspector.list_views()
        except Exception as e:
            logger.warning("Failed to discover views: %s", e)
            return []
        logger.info("Discovered %d views", len(views))
        return views

    @staticmethod
    def view_dependencies(views: List[ViewInfo]) -> Dict[str, List[str]]:
        """Map each view name to the tables referenced by its definition."""
        return {
            view.name: extract_table_references(view.definition)
            for view in views
            if view.definition
        }

    @staticmethod
    def validate_view(view: ViewInfo) -> List[str]:
        """Problems with a view definition (empty when it looks sane)."""
        issues = []
        if not view.name:
            issues.append("View name is required")
        if not view.definition or not view.definition.strip():
            issues.append(f"View '{view.name}' has no definition")
            return issues
        for pattern in _WRITE_PATTERNS:
            if pattern.search(view.definition):
                issues.append(f"View '{view.name}' definition contains a write statement: {pattern.pattern}")
        return issues
