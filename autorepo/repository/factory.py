"""Repository construction."""

from typing import Optional

from ..database.executor import StatementExecutor
from ..database.models import SchemaInfo
from ..errors import TableNotFoundError
from .repository import QueryObserver, Repository


class RepositoryFactory:
    """Build repositories against one schema snapshot."""

    def __init__(
        self,
        executor: StatementExecutor,
        schema: SchemaInfo,
        supports_returning: bool = False,
        observer: Optional[QueryObserver] = None,
    ):
        self.executor = executor
        self.schema = schema
        self.supports_returning = supports_returning
        self.observer = observer

    def create_repository(self, table_name: str) -> Repository:
        table = self.schema.get_table(table_name)
        if table is None:
            raise TableNotFoundError(table_name, self.schema.table_names)
        return Repository(
            table=table,
            schema=self.schema,
            executor=self.executor,
            supports_returning=self.supports_returning,
            observer=self.observer,
        )
