"""Database-specific mapping from native column types to Python type names."""

from typing import Dict, Optional


UNKNOWN_TYPE = "Any"


class TypeMapper:
    """Map native column types to Python type names.

    Lookup order: custom override, exact lower-case match, base type before
    the first ``(``, then ``fallback()``.
    """

    TYPE_MAP: Dict[str, str] = {
        "text": "str",
        "varchar": "str",
        "char": "str",
        "character varying": "str",
        "string": "str",
        "integer": "int",
        "int": "int",
        "smallint": "int",
        "bigint": "int",
        "real": "float",
        "float": "float",
        "double": "float",
        "double precision": "float",
        "numeric": "Decimal",
        "decimal": "Decimal",
        "boolean": "bool",
        "bool": "bool",
        "date": "date",
        "datetime": "datetime",
        "timestamp": "datetime",
        "time": "time",
        "blob": "bytes",
        "json": "dict",
        "uuid": "UUID",
    }

    def __init__(self, custom_mappings: Optional[Dict[str, str]] = None):
        self.custom_mappings = dict(custom_mappings or {})

    def to_python_type(self, db_type: str) -> str:
        """Convert a native type string to a Python type name."""
        if not db_type:
            return UNKNOWN_TYPE

        if db_type in self.custom_mappings:
            return self.custom_mappings[db_type]
        lowered_custom = {k.lower(): v for k, v in self.custom_mappings.items()}
        type_lower = db_type.strip().lower()
        if type_lower in lowered_custom:
            return lowered_custom[type_lower]

        if type_lower in self.TYPE_MAP:
            return self.TYPE_MAP[type_lower]

        base_type = type_lower.split("(")[0].strip()
        if base_type in self.TYPE_MAP:
            return self.TYPE_MAP[base_type]

        return self.fallback(db_type.upper())

    def fallback(self, type_upper: str) -> str:
        """Mapping for types missing from the table."""
        return UNKNOWN_TYPE


class SQLiteTypeMapper(TypeMapper):
    """Type mapper for SQLite declared types.

    Unknown declarations fall back to SQLite's column affinity rules.
    """

    TYPE_MAP = {
        **TypeMapper.TYPE_MAP,
        "nvarchar": "str",
        "clob": "str",
        "tinyint": "int",
        "mediumint": "int",
        "int2": "int",
        "int8": "int",
    }

    def fallback(self, type_upper: str) -> str:
        if "INT" in type_upper:
            return "int"
        elif any(t in type_upper for t in ["CHAR", "CLOB", "TEXT"]):
            return "str"
        elif "BLOB" in type_upper:
            return "bytes"
        elif any(t in type_upper for t in ["REAL", "FLOA", "DOUB"]):
            return "float"
        elif "BOOL" in type_upper:
            return "bool"
        return UNKNOWN_TYPE


class PostgresTypeMapper(TypeMapper):
    """Type mapper for PostgreSQL types."""

    TYPE_MAP = {
        **TypeMapper.TYPE_MAP,
        "character": "str",
        "citext": "str",
        "serial": "int",
        "bigserial": "int",
        "smallserial": "int",
        "int2": "int",
        "int4": "int",
        "int8": "int",
        "float4": "float",
        "float8": "float",
        "money": "Decimal",
        "timestamp without time zone": "datetime",
        "timestamp with time zone": "datetime",
        "timestamptz": "datetime",
        "time without time zone": "time",
        "time with time zone": "time",
        "interval": "timedelta",
        "bytea": "bytes",
        "jsonb": "dict",
        "array": "list",
        "inet": "str",
    }

    def fallback(self, type_upper: str) -> str:
        if type_upper.endswith("[]"):
            return "list"
        return UNKNOWN_TYPE


class DuckDBTypeMapper(TypeMapper):
    """Type mapper for DuckDB types."""

    TYPE_MAP = {
        **TypeMapper.TYPE_MAP,
        "tinyint": "int",
        "hugeint": "int",
        "ubigint": "int",
        "uinteger": "int",
        "usmallint": "int",
        "utinyint": "int",
        "timestamp with time zone": "datetime",
        "timestamptz": "datetime",
        "interval": "timedelta",
        "list": "list",
        "struct": "dict",
        "map": "dict",
    }

    def fallback(self, type_upper: str) -> str:
        if type_upper.endswith("[]"):
            return "list"
        elif type_upper.startswith("STRUCT") or type_upper.startswith("MAP"):
            return "dict"
        return UNKNOWN_TYPE


def map_column_type(db_type: str, custom_mappings: Optional[Dict[str, str]] = None) -> str:
    """Map a native type using the shared table and optional overrides.

    >>> map_column_type("varchar(255)")
    'str'
    >>> map_column_type("VARCHAR", {"VARCHAR": "Text"})
    'Text'
    """
    return TypeMapper(custom_mappings).to_python_type(db_type)
