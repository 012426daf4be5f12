"""Relationship discovery from foreign keys."""

import logging
from typing import Dict, List, Set

from ..database.models import (
    MANY_TO_ONE,
    ONE_TO_MANY,
    RelationshipInfo,
    TableInfo,
)
from ..database.naming import relationship_name, reverse_relationship_name, to_pascal_case

logger = logging.getLogger(__name__)


class RelationshipDiscoveryService:
    """Derive bidirectional relationships from discovered foreign keys."""

    def discover_relationships(self, tables: List[TableInfo]) -> List[RelationshipInfo]:
        """Emit a forward and a reverse relationship for every usable foreign key.

        Foreign keys pointing at tables that were not discovered are skipped.

        Args:
            tables: Discovered tables

        Returns:
            Relationships in foreign-key order, forward before reverse
        """
        by_name = {t.name: t for t in tables}
        used_names: Dict[str, Set[str]] = {t.name: set() for t in tables}
        relationships: List[RelationshipInfo] = []

        for table in tables:
            for fk in table.foreign_keys:
                referenced = by_name.get(fk.referenced_table)
                if referenced is None:
                    continue

                forward_name = relationship_name(fk.column, fk.referenced_table)
                if forward_name in used_names[table.name] or table.has_column(forward_name):
                    renamed = f"{forward_name}Ref"
                    logger.warning(
                        "Relationship %s.%s would overwrite a column or relationship of the same name; "
                        "using %s",
                        table.name, forward_name, renamed,
                    )
                    forward_name = renamed
                unique = referenced.is_unique_column(fk.referenced_column)
                if unique:
                    forward_type, reverse_type = MANY_TO_ONE, ONE_TO_MANY
                else:
                    forward_type, reverse_type = ONE_TO_MANY, MANY_TO_ONE
                    logger.warning(
                        "Foreign key %s.%s references non-unique column %s.%s; "
                        "relationship %s is ambiguous",
                        table.name, fk.column, referenced.name, fk.referenced_column, forward_name,
                    )

                relationships.append(RelationshipInfo(
                    name=forward_name,
                    type=forward_type,
                    from_table=table.name,
                    from_column=fk.column,
                    to_table=referenced.name,
                    to_column=fk.referenced_column,
                    ambiguous=not unique,
                ))
                used_names[table.name].add(forward_name)

                reverse_name = reverse_relationship_name(table.name)
                if reverse_name in used_names[referenced.name] or referenced.has_column(reverse_name):
                    reverse_name = f"{reverse_name}By{to_pascal_case(forward_name)}"
                used_names[referenced.name].add(reverse_name)

                relationships.append(RelationshipInfo(
                    name=reverse_name,
                    type=reverse_type,
                    from_table=referenced.name,
                    from_column=fk.referenced_column,
                    to_table=table.name,
                    to_column=fk.column,
                    ambiguous=not unique,
                ))

        return relationships

    @staticmethod
    def is_junction_table(table: TableInfo) -> bool:
        """A composite-key table whose every column is a key or foreign-key column."""
        fk_columns = {fk.column for fk in table.foreign_keys}
        has_composite_pk = bool(table.primary_key) and len(table.primary_key) > 1
        only_key_columns = all(c.is_primary_key or c.name in fk_columns for c in table.columns)
        return has_composite_pk and only_key_columns

    def analyze_patterns(self, tables: List[TableInfo]) -> Dict[str, object]:
        """Summarize foreign-key shapes across the schema.

        Returns:
            Dict with one_to_many, many_to_many and self_referencing counts,
            junction_tables and circular_references (``a -> b -> a`` strings)
        """
        names = {t.name for t in tables}
        patterns = {
            "one_to_many": 0,
            "many_to_many": 0,
            "self_referencing": 0,
            "junction_tables": [],
            "circular_references": [],
        }

        for table in tables:
            junction = self.is_junction_table(table)
            if junction:
                patterns["junction_tables"].append(table.name)
            for fk in table.foreign_keys:
                if fk.referenced_table == table.name:
                    patterns["self_referencing"] += 1
                if junction and fk.referenced_table in names:
                    patterns["many_to_many"] += 1
                else:
                    patterns["one_to_many"] += 1

        patterns["circular_references"] = self._find_cycles(tables)
        return patterns

    def _find_cycles(self, tables: List[TableInfo]) -> List[str]:
        by_name = {t.name: t for t in tables}
        visited: Set[str] = set()
        on_path: Set[str] = set()
        cycles: List[str] = []

        def visit(name: str, path: List[str]):
            if name in on_path:
                start = path.index(name)
                cycles.append(" -> ".join(path[start:] + [name]))
                return
            if name in visited:
                return
            visited.add(name)
            on_path.add(name)
            table = by_name.get(name)
            if table:
                for fk in table.foreign_keys:
                    visit(fk.referenced_table, path + [name])
            on_path.discard(name)

        for table in tables:
            if table.name not in visited:
                visit(table.name, [])
        return cycles

    def validate(self, tables: List[TableInfo]) -> List[str]:
        """List foreign keys that point at missing tables or columns."""
        by_name = {t.name: t for t in tables}
        issues = []
        for table in tables:
            for fk in table.foreign_keys:
                referenced = by_name.get(fk.referenced_table)
                if referenced is None:
                    issues.append(
                        f"Foreign key '{fk.name}' in table '{table.name}' references "
                        f"unknown table '{fk.referenced_table}'"
                    )
                elif not referenced.has_column(fk.referenced_column):
                    issues.append(
                        f"Foreign key '{fk.name}' in table '{table.name}' references "
                        f"unknown column '{fk.referenced_column}' in table '{fk.referenced_table}'"
                    )
                if not table.has_column(fk.column):
                    issues.append(
                        f"Foreign key '{fk.name}' in table '{table.name}' uses unknown column '{fk.column}'"
                    )
        return issues
