"""SQL text for repository operations."""

from typing import List, Optional, Sequence

from ..database.models import TableInfo

JOIN_KEY_ALIAS = "__join_key"


class StatementBuilder:
    """Build parameterized statements for one table.

    Values always travel as parameters; only identifiers are inlined, and
    those come from discovered metadata.
    """

    def __init__(self, table: TableInfo, paramstyle: str = "qmark"):
        self.table = table
        self.paramstyle = paramstyle
        self.placeholder = "%s" if paramstyle == "format" else "?"

    @property
    def row_identifier(self) -> Optional[str]:
        if self.table.uses_row_identifier:
            return self.table.auto_increment.row_identifier
        return None

    def quote(self, name: str) -> str:
        if name == self.row_identifier:
            return name
        return '"' + name.replace('"', '""') + '"'

    @property
    def table_name(self) -> str:
        if self.table.schema:
            return f"{self.quote(self.table.schema)}.{self.quote(self.table.name)}"
        return self.quote(self.table.name)

    @property
    def select_list(self) -> str:
        if self.row_identifier:
            return f"{self.row_identifier} AS {self.row_identifier}, *"
        return "*"

    def placeholders(self, count: int) -> str:
        return ", ".join([self.placeholder] * count)

    def where(self, columns: Sequence[str]) -> str:
        if not columns:
            return ""
        return " WHERE " + " AND ".join(f"{self.quote(c)} = {self.placeholder}" for c in columns)

    def order_by_key(self, prefix: str = "") -> str:
        keys = self.table.key_columns
        if not keys:
            return ""
        return " ORDER BY " + ", ".join(f"{prefix}{self.quote(k)}" for k in keys)

    def select(
        self,
        where: Sequence[str] = (),
        order_by: Optional[str] = None,
        direction: str = "ASC",
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> str:
        sql = f"SELECT {self.select_list} FROM {self.table_name}{self.where(where)}"
        if order_by:
            sql += f" ORDER BY {self.quote(order_by)} {direction}"
        else:
            sql += self.order_by_key()
        if limit is not None:
            sql += f" LIMIT {int(limit)}"
        if offset:
            sql += f" OFFSET {int(offset)}"
        return sql

    def select_in(self, column: str, count: int) -> str:
        """Rows whose ``column`` is one of ``count`` parameters, ordered by key."""
        if count:
            predicate = f"{self.quote(column)} IN ({self.placeholders(count)})"
        else:
            predicate = "1 = 0"
        return f"SELECT {self.select_list} FROM {self.table_name} WHERE {predicate}{self.order_by_key()}"

    def select_through(
        self,
        junction: TableInfo,
        junction_from_column: str,
        junction_to_column: str,
        to_column: str,
        count: int,
    ) -> str:
        """Rows of this table linked through ``junction``, tagged with the junction's source value."""
        j = StatementBuilder(junction, self.paramstyle)
        if count:
            predicate = f"j.{j.quote(junction_from_column)} IN ({self.placeholders(count)})"
        else:
            predicate = "1 = 0"
        return (
            f"SELECT t.*, j.{j.quote(junction_from_column)} AS {JOIN_KEY_ALIAS} "
            f"FROM {self.table_name} t "
            f"JOIN {j.table_name} j ON j.{j.quote(junction_to_column)} = t.{self.quote(to_column)} "
            f"WHERE {predicate}{self.order_by_key('t.')}"
        )

    def count(self, where: Sequence[str] = ()) -> str:
        return f"SELECT COUNT(*) AS count FROM {self.table_name}{self.where(where)}"

    def count_through(self, junction: TableInfo, junction_from_column: str) -> str:
        j = StatementBuilder(junction, self.paramstyle)
        return f"SELECT COUNT(*) AS count FROM {j.table_name}{j.where([junction_from_column])}"

    def exists(self, where: Sequence[str]) -> str:
        return f"SELECT 1 AS found FROM {self.table_name}{self.where(where)} LIMIT 1"

    def insert(self, columns: List[str], returning: bool = False) -> str:
        if columns:
            names = ", ".join(self.quote(c) for c in columns)
            sql = f"INSERT INTO {self.table_name} ({names}) VALUES ({self.placeholders(len(columns))})"
        else:
            sql = f"INSERT INTO {self.table_name} DEFAULT VALUES"
        if returning:
            sql += f" RETURNING {self.select_list}"
        return sql

    def update(self, columns: List[str], key: List[str]) -> str:
        assignments = ", ".join(f"{self.quote(c)} = {self.placeholder}" for c in columns)
        return f"UPDATE {self.table_name} SET {assignments}{self.where(key)}"

    def delete(self, key: List[str]) -> str:
        return f"DELETE FROM {self.table_name}{self.where(key)}"
