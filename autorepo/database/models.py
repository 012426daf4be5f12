"""Schema metadata models produced by introspection."""

from typing import Optional, List, Dict, Any
from dataclasses import dataclass, field


MANY_TO_ONE = "many-to-one"
ONE_TO_MANY = "one-to-many"
MANY_TO_MANY = "many-to-many"

RELATIONSHIP_TYPES = (MANY_TO_ONE, ONE_TO_MANY, MANY_TO_MANY)


@dataclass
class TableRef:
    """A table or view name as listed by the database."""
    name: str
    schema: Optional[str] = None
    kind: str = "table"  # 'table' or 'view'


@dataclass
class ColumnInfo:
    """Represents a database column."""
    name: str
    data_type: str
    is_nullable: bool = True
    default_value: Optional[Any] = None
    is_primary_key: bool = False
    is_auto_increment: bool = False
    max_length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    python_type: str = "Any"
    primary_key_ordinal: int = 0
    auto_increment_type: Optional[str] = None  # 'autoincrement', 'rowid', 'sequence', 'identity'

    @property
    def is_required(self) -> bool:
        """True when an insert must supply a value for this column."""
        return (
            not self.is_nullable
            and self.default_value is None
            and not self.is_auto_increment
        )


@dataclass
class IndexInfo:
    """Represents an index on a table."""
    name: str
    columns: List[str] = field(default_factory=list)
    unique: bool = False
    origin: Optional[str] = None  # 'c' created, 'u' unique constraint, 'pk' primary key


@dataclass
class ForeignKeyInfo:
    """Represents a single-column foreign key reference."""
    name: str
    column: str
    referenced_table: str
    referenced_column: str
    on_delete: Optional[str] = None
    on_update: Optional[str] = None


@dataclass
class AutoIncrementInfo:
    """How new rows of a table get their key."""
    column: Optional[str] = None
    kind: Optional[str] = None
    row_identifier: Optional[str] = None

    @property
    def has_auto_increment(self) -> bool:
        return self.column is not None


@dataclass
class TableInfo:
    """Represents a table with its columns, keys and indexes."""
    name: str
    schema: Optional[str] = None
    columns: List[ColumnInfo] = field(default_factory=list)
    primary_key: Optional[List[str]] = None
    indexes: List[IndexInfo] = field(default_factory=list)
    foreign_keys: List[ForeignKeyInfo] = field(default_factory=list)
    auto_increment: AutoIncrementInfo = field(default_factory=AutoIncrementInfo)

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    def get_column(self, name: str) -> Optional[ColumnInfo]:
        """Return the column with the given name, or None."""
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def has_column(self, name: str) -> bool:
        return self.get_column(name) is not None

    @property
    def key_columns(self) -> List[str]:
        """Columns that identify a row.

        The declared primary key when present, otherwise the implicit row
        identifier the dialect exposes (SQLite ``rowid``), otherwise empty.
        """
        if self.primary_key:
            return list(self.primary_key)
        if self.auto_increment.row_identifier:
            return [self.auto_increment.row_identifier]
        return []

    @property
    def uses_row_identifier(self) -> bool:
        return not self.primary_key and bool(self.auto_increment.row_identifier)

    def unique_columns(self) -> List[str]:
        """Columns that are provably unique on their own."""
        unique: List[str] = []
        if self.primary_key and len(self.primary_key) == 1:
            unique.append(self.primary_key[0])
        for index in self.indexes:
            if index.unique and len(index.columns) == 1 and index.columns[0] not in unique:
                unique.append(index.columns[0])
        return unique

    def is_unique_column(self, name: str) -> bool:
        """True when ``name`` is a primary-key member or a single-column unique index."""
        if self.primary_key and name in self.primary_key:
            return True
        return name in self.unique_columns()

    def indexed_columns(self) -> List[str]:
        """Columns that lead at least one index, plus the primary key."""
        indexed = list(self.primary_key or [])
        for index in self.indexes:
            if index.columns and index.columns[0] not in indexed:
                indexed.append(index.columns[0])
        return indexed

    def validate(self) -> List[str]:
        """Check that keys only name existing columns.

        Returns:
            List of problem descriptions (empty when consistent)
        """
        names = set(self.column_names)
        problems = []
        for pk in self.primary_key or []:
            if pk not in names:
                problems.append(f"primary key column '{pk}' is not a column of '{self.name}'")
        for fk in self.foreign_keys:
            if fk.column not in names:
                problems.append(f"foreign key '{fk.name}' uses unknown column '{fk.column}'")
        return problems


@dataclass
class RelationshipInfo:
    """A named, directed association between two tables."""
    name: str
    type: str
    from_table: str
    from_column: str
    to_table: str
    to_column: str
    junction_table: Optional[str] = None
    junction_from_column: Optional[str] = None
    junction_to_column: Optional[str] = None
    ambiguous: bool = False

    def __post_init__(self):
        if self.type not in RELATIONSHIP_TYPES:
            raise ValueError(f"Unknown relationship type '{self.type}'")
        if self.type == MANY_TO_MANY and not (
            self.junction_table and self.junction_from_column and self.junction_to_column
        ):
            raise ValueError(
                f"many-to-many relationship '{self.name}' needs a junction table and both junction columns"
            )

    @property
    def is_collection(self) -> bool:
        return self.type != MANY_TO_ONE


@dataclass
class ViewInfo:
    """Represents a database view."""
    name: str
    schema: Optional[str] = None
    definition: Optional[str] = None
    columns: List[ColumnInfo] = field(default_factory=list)


@dataclass
class SchemaInfo:
    """Snapshot of everything discovered about a database."""
    tables: List[TableInfo] = field(default_factory=list)
    relationships: List[RelationshipInfo] = field(default_factory=list)
    views: List[ViewInfo] = field(default_factory=list)

    @property
    def table_names(self) -> List[str]:
        return [t.name for t in self.tables]

    def get_table(self, name: str) -> Optional[TableInfo]:
        for table in self.tables:
            if table.name == name:
                return table
        return None

    def relationships_for(self, table_name: str) -> List[RelationshipInfo]:
        """Relationships whose source is ``table_name``."""
        return [r for r in self.relationships if r.from_table == table_name]

    def to_dict(self) -> Dict[str, Any]:
        """Summary used by the CLI and performance metrics."""
        return {
            "tables": len(self.tables),
            "relationships": len(self.relationships),
            "views": len(self.views),
        }
