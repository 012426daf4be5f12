"""Tests for native type -> Python type mapping."""

import pytest

from autorepo.database.type_mappers import (
    DuckDBTypeMapper,
    PostgresTypeMapper,
    SQLiteTypeMapper,
    TypeMapper,
    map_column_type,
)


class TestMapColumnType:
    """Test the shared lookup order."""

    def test_parameterized_type_uses_base_type(self):
        """varchar(255) maps through its base type."""
        assert map_column_type("varchar(255)", {}) == "str"

    def test_custom_mapping_wins(self):
        """A custom mapping beats the built-in table."""
        assert map_column_type("VARCHAR", {"VARCHAR": "Text"}) == "Text"

    def test_custom_mapping_is_case_insensitive_fallback(self):
        """Custom keys match case-insensitively when there is no exact key."""
        assert map_column_type("jsonb", {"JSONB": "Document"}) == "Document"

    def test_exact_match_is_case_insensitive(self):
        assert map_column_type("INTEGER") == "int"
        assert map_column_type("Boolean") == "bool"

    def test_decimal_with_precision(self):
        assert map_column_type("DECIMAL(10,2)") == "Decimal"

    def test_unknown_type(self):
        """Types nobody knows map to Any."""
        assert map_column_type("geometry") == "Any"

    def test_empty_type(self):
        assert map_column_type("") == "Any"


class TestSQLiteTypeMapper:
    """Test SQLite affinity fallback."""

    @pytest.mark.parametrize("declared,expected", [
        ("BIGINT UNSIGNED", "int"),
        ("NATIVE CHARACTER(70)", "str"),
        ("DOUBLE PRECISION", "float"),
        ("BLOB", "bytes"),
        ("LONG DOUBLE", "float"),
    ])
    def test_affinity_rules(self, declared, expected):
        assert SQLiteTypeMapper().to_python_type(declared) == expected

    def test_base_mapper_has_no_affinity(self):
        """The shared mapper does not guess."""
        assert TypeMapper().to_python_type("BIGINT UNSIGNED") == "Any"


class TestDialectMappers:
    """Test dialect-specific additions."""

    def test_postgres_types(self):
        mapper = PostgresTypeMapper()
        assert mapper.to_python_type("timestamp with time zone") == "datetime"
        assert mapper.to_python_type("bytea") == "bytes"
        assert mapper.to_python_type("jsonb") == "dict"
        assert mapper.to_python_type("integer[]") == "list"
        assert mapper.to_python_type("interval") == "timedelta"

    def test_duckdb_types(self):
        mapper = DuckDBTypeMapper()
        assert mapper.to_python_type("HUGEINT") == "int"
        assert mapper.to_python_type("VARCHAR[]") == "list"
        assert mapper.to_python_type("STRUCT(a INTEGER)") == "dict"

    def test_custom_mappings_apply_to_dialect_mappers(self):
        mapper = PostgresTypeMapper({"citext": "CaseInsensitive"})
        assert mapper.to_python_type("citext") == "CaseInsensitive"
