"""Table repositories."""

from .factory import RepositoryFactory
from .repository import QueryObserver, Repository
from .sql import StatementBuilder

__all__ = [
    "Repository",
    "RepositoryFactory",
    "QueryObserver",
    "StatementBuilder",
]
