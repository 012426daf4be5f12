"""Query analyzer: watches executed statements and reports likely performance problems."""

import logging
import re
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, List, Optional

from ..config import Settings
from ..database.models import SchemaInfo

logger = logging.getLogger(__name__)

SLOW_QUERY = "slow_query"
N_PLUS_ONE = "n_plus_one"
MISSING_INDEX = "missing_index"
LARGE_RESULT_SET = "large_result_set"

HIGH = "high"
MEDIUM = "medium"
LOW = "low"

_LOG_LEVELS = {HIGH: logging.WARNING, MEDIUM: logging.INFO, LOW: logging.DEBUG}

_POSITIONAL_PARAM_RE = re.compile(r"\$\d+")
_STRING_LITERAL_RE = re.compile(r"'[^']*'")
_NUMBER_RE = re.compile(r"\b\d+(?:\.\d+)?\b")
_WHITESPACE_RE = re.compile(r"\s+")

_IDENT = r"[\"`]?(\w+)[\"`]?"
_TABLE_RE = re.compile(r"\b(?:FROM|INTO|UPDATE)\s+(?:[\"`]?\w+[\"`]?\.)?" + _IDENT, re.IGNORECASE)
_WHERE_RE = re.compile(r"\bWHERE\b(.*?)(?:\bORDER\s+BY\b|\bGROUP\s+BY\b|\bLIMIT\b|\bRETURNING\b|$)", re.IGNORECASE)
_PREDICATE_COLUMN_RE = re.compile(r"(?:\w+\.)?" + _IDENT + r"\s*(?:[=<>]|\bIN\b)", re.IGNORECASE)


def normalize_query(query: str) -> str:
    """Replace literals and placeholders with ``?`` and collapse whitespace."""
    normalized = _POSITIONAL_PARAM_RE.sub("?", query)
    normalized = normalized.replace("%s", "?")
    normalized = _STRING_LITERAL_RE.sub("?", normalized)
    normalized = _NUMBER_RE.sub("?", normalized)
    return _WHITESPACE_RE.sub(" ", normalized).strip()


def extract_operation(query: str) -> str:
    head = query.lstrip().upper()
    for operation in ("SELECT", "INSERT", "UPDATE", "DELETE"):
        if head.startswith(operation):
            return operation
    return "OTHER"


def extract_table(query: str) -> Optional[str]:
    match = _TABLE_RE.search(query)
    return match.group(1) if match else None


@dataclass
class QueryMetrics:
    """One recorded statement."""
    query: str
    execution_time: float
    timestamp: float
    table: Optional[str] = None
    operation: str = "OTHER"
    row_count: Optional[int] = None


@dataclass
class PerformanceWarning:
    type: str
    message: str
    suggestion: str
    severity: str
    query: Optional[str] = None
    table: Optional[str] = None


@dataclass
class AnalyzerOptions:
    enabled: bool = True
    slow_query_threshold_ms: float = 1000.0
    large_result_set_threshold: int = 1000
    n_plus_one_detection: bool = True
    missing_index_detection: bool = True
    repeated_query_window_seconds: float = 5.0
    repeated_query_threshold: int = 5
    repeated_query_retention_seconds: float = 10.0
    max_history_size: int = 1000

    @classmethod
    def from_settings(cls, settings: Settings) -> "AnalyzerOptions":
        return cls(
            enabled=settings.analyzer_enabled,
            slow_query_threshold_ms=settings.slow_query_threshold_ms,
            large_result_set_threshold=settings.large_result_set_threshold,
            n_plus_one_detection=settings.n_plus_one_detection,
            missing_index_detection=settings.missing_index_detection,
            repeated_query_window_seconds=settings.repeated_query_window_seconds,
            repeated_query_threshold=settings.repeated_query_threshold,
            max_history_size=settings.max_query_history,
        )


class QueryAnalyzer:
    """Record executed statements and flag slow, repeated, unindexed or oversized ones.

    Warnings are logged and returned; they never affect execution. The
    schema may be missing or partial, in which case the missing-index check
    simply finds nothing to compare against.
    """

    def __init__(
        self,
        schema: Optional[SchemaInfo] = None,
        options: Optional[AnalyzerOptions] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.schema = schema
        self.options = options or AnalyzerOptions()
        self._clock = clock
        self.history: Deque[QueryMetrics] = deque(maxlen=self.options.max_history_size)
        self._recent: Dict[str, List[QueryMetrics]] = {}
        self.warning_counts: Dict[str, int] = {}

    @property
    def enabled(self) -> bool:
        return self.options.enabled

    def record_query(
        self,
        query: str,
        execution_time: float,
        result_count: Optional[int] = None,
        table: Optional[str] = None,
    ) -> List[PerformanceWarning]:
        """Record one statement and run the detectors.

        Args:
            query: SQL text as executed
            execution_time: Elapsed time in milliseconds
            result_count: Rows returned, when known
            table: Table the statement targets (inferred from the SQL if omitted)

        Returns:
            Warnings raised by this statement
        """
        if not self.options.enabled:
            return []

        now = self._clock()
        metrics = QueryMetrics(
            query=normalize_query(query),
            execution_time=execution_time,
            timestamp=now,
            table=table or extract_table(query),
            operation=extract_operation(query),
            row_count=result_count,
        )
        self.history.append(metrics)
        self._remember(metrics, now)

        warnings = []
        for detector in (self._check_slow, self._check_repeated, self._check_missing_index, self._check_large_result):
            warning = detector(metrics, now)
            if isinstance(warning, list):
                warnings.extend(warning)
            elif warning is not None:
                warnings.append(warning)

        for warning in warnings:
            self.warning_counts[warning.type] = self.warning_counts.get(warning.type, 0) + 1
            self._log(warning)
        return warnings

    def _remember(self, metrics: QueryMetrics, now: float) -> None:
        self._recent.setdefault(metrics.query, []).append(metrics)
        cutoff = now - self.options.repeated_query_retention_seconds
        for query in list(self._recent):
            recent = [m for m in self._recent[query] if m.timestamp >= cutoff]
            if recent:
                self._recent[query] = recent
            else:
                del self._recent[query]

    def _check_slow(self, metrics: QueryMetrics, now: float) -> Optional[PerformanceWarning]:
        threshold = self.options.slow_query_threshold_ms
        if not threshold or metrics.execution_time <= threshold:
            return None
        return PerformanceWarning(
            type=SLOW_QUERY,
            message=f"Slow query detected: {metrics.execution_time:.1f}ms",
            suggestion="Consider adding indexes or optimizing the query",
            severity=HIGH if metrics.execution_time >= threshold * 3 else MEDIUM,
            query=metrics.query,
            table=metrics.table,
        )

    def _check_repeated(self, metrics: QueryMetrics, now: float) -> Optional[PerformanceWarning]:
        if not self.options.n_plus_one_detection:
            return None
        window = self.options.repeated_query_window_seconds
        in_window = [m for m in self._recent.get(metrics.query, []) if now - m.timestamp < window]
        if len(in_window) < self.options.repeated_query_threshold:
            return None
        return PerformanceWarning(
            type=N_PLUS_ONE,
            message=f"Potential N+1 query detected: same query executed {len(in_window)} times",
            suggestion="Consider using joins or batch loading to reduce query count",
            severity=HIGH,
            query=metrics.query,
            table=metrics.table,
        )

    def _check_missing_index(self, metrics: QueryMetrics, now: float) -> List[PerformanceWarning]:
        if not self.options.missing_index_detection or not metrics.table or self.schema is None:
            return []
        table = self.schema.get_table(metrics.table)
        if table is None:
            return []
        where = _WHERE_RE.search(metrics.query)
        if not where:
            return []

        warnings = []
        seen = set()
        for column in _PREDICATE_COLUMN_RE.findall(where.group(1)):
            if column in seen or not table.has_column(column):
                continue
            seen.add(column)
            if table.primary_key and column in table.primary_key:
                continue
            if any(column in index.columns for index in table.indexes):
                continue
            warnings.append(PerformanceWarning(
                type=MISSING_INDEX,
                message=f"Column '{column}' used in WHERE clause may benefit from an index",
                suggestion=f"Consider adding an index on {table.name}.{column}",
                severity=MEDIUM,
                query=metrics.query,
                table=table.name,
            ))
        return warnings

    def _check_large_result(self, metrics: QueryMetrics, now: float) -> Optional[PerformanceWarning]:
        threshold = self.options.large_result_set_threshold
        count = metrics.row_count
        if not count or not threshold or count <= threshold:
            return None
        return PerformanceWarning(
            type=LARGE_RESULT_SET,
            message=f"Large result set: {count} rows returned",
            suggestion="Consider using pagination or filtering to reduce result size",
            severity=HIGH if count > threshold * 5 else MEDIUM,
            query=metrics.query,
            table=metrics.table,
        )

    def _log(self, warning: PerformanceWarning) -> None:
        logger.log(
            _LOG_LEVELS.get(warning.severity, logging.INFO),
            "Performance warning [%s] %s: %s",
            warning.severity.upper(), warning.type, warning.message,
        )
        logger.debug("  Suggestion: %s", warning.suggestion)
        if warning.query:
            logger.debug("  Query: %s", warning.query)

    def get_performance_stats(self) -> Dict[str, object]:
        total = len(self.history)
        total_time = sum(m.execution_time for m in self.history)
        threshold = self.options.slow_query_threshold_ms
        operations: Dict[str, int] = {}
        for m in self.history:
            operations[m.operation] = operations.get(m.operation, 0) + 1
        return {
            "total_queries": total,
            "average_execution_time": total_time / total if total else 0.0,
            "slow_queries": sum(1 for m in self.history if m.execution_time > threshold),
            "operations": operations,
            "warning_counts": dict(self.warning_counts),
        }

    def clear_history(self) -> None:
        self.history.clear()
        self._recent.clear()
        self.warning_counts.clear()

    def update_schema(self, schema: Optional[SchemaInfo]) -> None:
        self.schema = schema
